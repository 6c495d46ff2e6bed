from collections import defaultdict
from dataclasses import dataclass
from dataclasses import field
from typing import DefaultDict
from typing import Dict
from typing import Iterable
from typing import List
from typing import Optional

from stacktally._names import matches_name
from stacktally._samples import Sample
from stacktally._samples import StackFrame
from stacktally.reporters.frame_tools import is_runtime_frame

SORT_KEYS = {
    "total": "total_weight",
    "self": "self_weight",
    "calls": "calls",
}


@dataclass(frozen=True)
class FunctionRow:
    name: str
    total_weight: float
    self_weight: float
    calls: int
    module: str = ""

    @property
    def frame(self) -> StackFrame:
        return StackFrame(self.name, self.module)

    @property
    def is_runtime(self) -> bool:
        return is_runtime_frame(self.frame)


@dataclass
class _RowTotals:
    module: str
    total_weight: float = 0.0
    self_weight: float = 0.0
    calls: int = 0


@dataclass(frozen=True)
class FunctionTable:
    """One row per distinct function, plus the weight of every sample seen."""

    rows: Dict[str, FunctionRow] = field(default_factory=dict)
    total_weight: float = 0.0

    def __len__(self) -> int:
        return len(self.rows)

    def __contains__(self, name: object) -> bool:
        return name in self.rows

    def __getitem__(self, name: str) -> FunctionRow:
        return self.rows[name]

    def sorted_rows(self, sort_by: str = "total") -> List[FunctionRow]:
        try:
            attribute = SORT_KEYS[sort_by]
        except KeyError:
            raise ValueError(
                f"Invalid sort key {sort_by!r}, should be one of {sorted(SORT_KEYS)}"
            ) from None
        # sorted() is stable, so equal rows keep the order they were first seen in
        return sorted(
            self.rows.values(),
            key=lambda row: getattr(row, attribute),
            reverse=True,
        )

    def filter(
        self,
        substring: Optional[str] = None,
        *,
        include_runtime: bool = False,
        sort_by: str = "total",
    ) -> List[FunctionRow]:
        needle = substring.strip().lower() if substring else ""
        return [
            row
            for row in self.sorted_rows(sort_by)
            if (include_runtime or not row.is_runtime)
            and matches_name(row.name, needle)
        ]

    def merge(self, other: "FunctionTable") -> "FunctionTable":
        """Combine the tables of two disjoint batches of samples."""
        totals: Dict[str, _RowTotals] = {}
        for row in (*self.rows.values(), *other.rows.values()):
            entry = totals.setdefault(row.name, _RowTotals(module=row.module))
            entry.total_weight += row.total_weight
            entry.self_weight += row.self_weight
            entry.calls += row.calls
        return FunctionTable(
            rows=_freeze(totals),
            total_weight=self.total_weight + other.total_weight,
        )


def _freeze(totals: Dict[str, _RowTotals]) -> Dict[str, FunctionRow]:
    return {
        name: FunctionRow(
            name=name,
            total_weight=entry.total_weight,
            self_weight=entry.self_weight,
            calls=entry.calls,
            module=entry.module,
        )
        for name, entry in totals.items()
    }


def aggregate_functions(samples: Iterable[Sample]) -> FunctionTable:
    """Take samples and for each function contained, record the "self" weight
    of the samples where it is the leaf, and sum up the weight of every sample
    it appears in to calculate the "total" weight."""

    processed: DefaultDict[str, _RowTotals] = defaultdict(
        lambda: _RowTotals(module="")
    )
    total_weight = 0.0

    for sample in samples:
        total_weight += sample.weight

        # Walk the whole stack and sum totals, once per function per sample
        visited = set()
        for frame in sample.stack:
            entry = processed[frame.name]
            if not entry.module:
                entry.module = frame.module
            if frame.name in visited:
                continue
            visited.add(frame.name)
            entry.total_weight += sample.weight

        leaf = processed[sample.leaf.name]
        leaf.self_weight += sample.weight
        leaf.calls += sample.count

    return FunctionTable(rows=_freeze(processed), total_weight=total_weight)
