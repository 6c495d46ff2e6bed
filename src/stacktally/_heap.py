from dataclasses import dataclass
from typing import Dict
from typing import Iterable
from typing import List
from typing import Optional
from typing import Tuple

from stacktally._samples import Sample

HeapRecord = Tuple[str, int, int]


@dataclass(frozen=True)
class HeapTypeEntry:
    type_name: str
    count: int
    total_bytes: float


@dataclass(frozen=True)
class HeapProfile:
    """Retained objects grouped by type, largest first.

    ``raw_output`` keeps the report the records were decoded from, if any.
    When the report could not be decoded there are no types and the raw text
    is all there is to show.
    """

    types: Tuple[HeapTypeEntry, ...] = ()
    raw_output: Optional[str] = None

    @property
    def total_count(self) -> int:
        return sum(entry.count for entry in self.types)

    @property
    def total_bytes(self) -> float:
        return sum(entry.total_bytes for entry in self.types)

    @property
    def has_types(self) -> bool:
        return bool(self.types)


def _sort_key(entry: HeapTypeEntry) -> Tuple[float, int, str]:
    return (-entry.total_bytes, -entry.count, entry.type_name)


def aggregate_heap_types(
    records: Optional[Iterable[HeapRecord]] = None,
    *,
    raw_output: Optional[str] = None,
) -> HeapProfile:
    if records is None:
        return HeapProfile(types=(), raw_output=raw_output)

    totals: Dict[str, List[int]] = {}
    for type_name, count, size in records:
        if count < 0:
            raise ValueError(f"Invalid object count={count} for type {type_name!r}")
        if size < 0:
            raise ValueError(f"Invalid size={size} for type {type_name!r}")
        entry = totals.setdefault(type_name, [0, 0])
        entry[0] += count
        entry[1] += size

    types = sorted(
        (
            HeapTypeEntry(type_name=name, count=count, total_bytes=size)
            for name, (count, size) in totals.items()
        ),
        key=_sort_key,
    )
    return HeapProfile(types=tuple(types), raw_output=raw_output)


def aggregate_sample_types(samples: Iterable[Sample]) -> HeapProfile:
    """Group typed samples, such as sampled allocations, by their type.

    Each entry sums the weights and the counts of the samples labelled with
    that type. Samples without a type are left out.
    """
    totals: Dict[str, List[float]] = {}
    for sample in samples:
        if sample.type_name is None:
            continue
        entry = totals.setdefault(sample.type_name, [0, 0])
        entry[0] += sample.count
        entry[1] += sample.weight

    types = sorted(
        (
            HeapTypeEntry(type_name=name, count=int(count), total_bytes=weight)
            for name, (count, weight) in totals.items()
        ),
        key=_sort_key,
    )
    return HeapProfile(types=tuple(types))
