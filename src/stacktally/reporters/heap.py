import json
from typing import IO
from typing import Any
from typing import Dict
from typing import Iterable
from typing import Optional

from rich import print as rprint
from rich.markup import escape
from rich.table import Column
from rich.table import Table
from rich.text import Text

from stacktally._heap import HeapProfile
from stacktally._heap import HeapRecord
from stacktally._heap import aggregate_heap_types
from stacktally._names import format_type_display_name
from stacktally._report import ProfileReport
from stacktally.reporters.common import shorten_name
from stacktally.reporters.common import weight_fmt
from stacktally.reporters.common import weight_to_color

SAMPLED_TYPES_TITLE = "Allocation By Type (Sampled)"
MAX_TYPE_NAME_LENGTH = 80


class HeapReporter:
    def __init__(
        self,
        profile: HeapProfile,
        *,
        max_rows: Optional[int] = None,
        title: str = "Heap",
        unit: str = "bytes",
    ):
        if max_rows is not None and max_rows < 1:
            raise ValueError(f"Invalid input max_rows={max_rows}, should be >=1")
        self.profile = profile
        self.max_rows = max_rows
        self.title = title
        self.unit = unit

    @classmethod
    def from_records(
        cls,
        records: Optional[Iterable[HeapRecord]],
        *,
        raw_output: Optional[str] = None,
        max_rows: Optional[int] = None,
    ) -> "HeapReporter":
        return cls(
            aggregate_heap_types(records, raw_output=raw_output), max_rows=max_rows
        )

    @classmethod
    def from_report(
        cls,
        report: ProfileReport,
        *,
        max_rows: Optional[int] = None,
        unit: str = "bytes",
    ) -> "HeapReporter":
        """Table of the typed samples of a report, such as sampled allocations."""
        return cls(
            report.result.types,
            max_rows=max_rows,
            title=SAMPLED_TYPES_TITLE,
            unit=unit,
        )

    def render(self, *, file: Optional[IO[str]] = None) -> None:
        if not self.profile.has_types:
            if self.profile.raw_output:
                rprint(Text(self.profile.raw_output), file=file)
            else:
                rprint("<No heap types>", file=file)
            return

        total_bytes = self.profile.total_bytes
        table = Table(
            Column("Type", ratio=1),
            Column("Count", justify="right", no_wrap=True),
            Column("Size", justify="right", no_wrap=True),
            Column("Size %", justify="right", no_wrap=True),
            title=(
                f"{self.title}: {self.profile.total_count:,} objects,"
                f" {weight_fmt(total_bytes, self.unit).strip()}"
            ),
            expand=True,
        )
        for entry in self.profile.types[: self.max_rows]:
            share = entry.total_bytes / total_bytes if total_bytes > 0 else 0.0
            color = weight_to_color(share)
            type_name = shorten_name(
                format_type_display_name(entry.type_name), MAX_TYPE_NAME_LENGTH
            )
            table.add_row(
                f"[bold magenta]{escape(type_name)}[/]",
                f"{entry.count:,}",
                f"[{color}]{weight_fmt(entry.total_bytes, self.unit).strip()}[/]",
                f"[{color}]{share * 100:.2f}%[/]",
            )
        rprint(table, file=file)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_count": self.profile.total_count,
            "total_bytes": self.profile.total_bytes,
            "types": [
                {
                    "type": entry.type_name,
                    "count": entry.count,
                    "bytes": entry.total_bytes,
                }
                for entry in self.profile.types[: self.max_rows]
            ],
            "raw_output": None if self.profile.has_types else self.profile.raw_output,
        }

    def render_json(self, file: IO[str]) -> None:
        json.dump(self.to_dict(), file, indent=2)
