import os
from typing import IO
from typing import Iterable
from typing import Optional

from rich import print as rprint
from rich.markup import escape
from rich.table import Column
from rich.table import Table

from stacktally._functions import FunctionRow
from stacktally._functions import FunctionTable
from stacktally._names import format_function_display_name
from stacktally._report import ProfileReport
from stacktally.reporters.common import weight_fmt
from stacktally.reporters.common import weight_to_color

DEFAULT_TERMINAL_LINES = 24


def _get_terminal_lines() -> int:
    try:
        return os.get_terminal_size().lines
    except OSError:
        return DEFAULT_TERMINAL_LINES


def _total_calls(table: FunctionTable) -> int:
    return sum(row.calls for row in table.rows.values())


class FunctionSummaryReporter:
    KEY_TO_COLUMN_NAME = {
        1: "total_weight",
        2: "total_weight",
        3: "self_weight",
        4: "self_weight",
        5: "calls",
    }

    N_COLUMNS = len(KEY_TO_COLUMN_NAME)

    def __init__(
        self,
        rows: Iterable[FunctionRow],
        total_weight: float,
        *,
        unit: str = "ms",
        total_calls: Optional[int] = None,
        sort_column: int = 1,
    ):
        self.rows = tuple(rows)
        self.total_weight = total_weight
        if total_calls is None:
            total_calls = sum(row.calls for row in self.rows)
        self.total_calls = total_calls
        self.unit = unit
        self.sort_column = sort_column

    @classmethod
    def from_table(
        cls,
        table: FunctionTable,
        *,
        function_filter: Optional[str] = None,
        include_runtime: bool = False,
        unit: str = "ms",
    ) -> "FunctionSummaryReporter":
        rows = table.filter(function_filter, include_runtime=include_runtime)
        return cls(
            rows, table.total_weight, unit=unit, total_calls=_total_calls(table)
        )

    @classmethod
    def from_report(
        cls, report: ProfileReport, *, unit: str = "ms"
    ) -> "FunctionSummaryReporter":
        return cls(
            report.functions,
            report.total_weight,
            unit=unit,
            total_calls=_total_calls(report.result.functions),
            sort_column=3 if report.options.self_time_mode else 1,
        )

    def _share(self, value: float, total: float) -> float:
        return value / total if total > 0 else 0.0

    def render(
        self,
        sort_column: Optional[int] = None,
        *,
        max_rows: Optional[int] = None,
        file: Optional[IO[str]] = None,
    ) -> None:
        if sort_column is None:
            sort_column = self.sort_column
        if sort_column not in self.KEY_TO_COLUMN_NAME:
            raise ValueError(
                f"Invalid sort_column={sort_column},"
                f" should be between 1 and {self.N_COLUMNS}"
            )
        max_rows = max_rows or max(_get_terminal_lines() - 5, 10)
        table = Table(
            Column("Function", ratio=1),
            Column("Total", justify="right", no_wrap=True),
            Column("Total %", justify="right", no_wrap=True),
            Column("Self", justify="right", no_wrap=True),
            Column("Self %", justify="right", no_wrap=True),
            Column("Calls", justify="right", no_wrap=True),
            expand=True,
        )
        table.columns[sort_column].header = f"<{table.columns[sort_column].header}>"

        sorted_rows = sorted(
            self.rows,
            key=lambda row: getattr(row, self.KEY_TO_COLUMN_NAME[sort_column]),
            reverse=True,
        )[:max_rows]
        for row in sorted_rows:
            total_share = self._share(row.total_weight, self.total_weight)
            self_share = self._share(row.self_weight, self.total_weight)
            total_color = weight_to_color(total_share)
            self_color = weight_to_color(self_share)
            calls_color = weight_to_color(self._share(row.calls, self.total_calls))
            table.add_row(
                f"[bold magenta]{escape(format_function_display_name(row.name))}[/]",
                f"[{total_color}]{weight_fmt(row.total_weight, self.unit)}[/]",
                f"[{total_color}]{total_share * 100:.2f}%[/]",
                f"[{self_color}]{weight_fmt(row.self_weight, self.unit)}[/]",
                f"[{self_color}]{self_share * 100:.2f}%[/]",
                f"[{calls_color}]{row.calls}[/]",
            )

        rprint(table, file=file)
