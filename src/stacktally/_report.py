from dataclasses import dataclass
from typing import Iterable
from typing import List
from typing import Optional

from stacktally._call_tree import CallTreeResult
from stacktally._functions import FunctionRow
from stacktally._logging import LOGGER
from stacktally._options import ShapeOptions
from stacktally._samples import Sample
from stacktally._shaping import ShapedTree
from stacktally._shaping import shape_tree


@dataclass(frozen=True)
class ProfileReport:
    result: CallTreeResult
    tree: ShapedTree
    functions: List[FunctionRow]
    options: ShapeOptions

    @property
    def total_weight(self) -> float:
        return self.result.total_weight


def build_report(
    samples: Iterable[Sample],
    options: Optional[ShapeOptions] = None,
    *,
    total_weight: Optional[float] = None,
) -> ProfileReport:
    """Aggregate samples into a function table and a shaped call tree.

    The samples are materialized once so that a one-shot iterator can feed
    both the table and the tree.
    """
    options = ShapeOptions() if options is None else options

    snapshot = tuple(samples)
    LOGGER.debug("Aggregating %d samples", len(snapshot))
    result = CallTreeResult.from_samples(snapshot, total_weight=total_weight)
    LOGGER.debug(
        "Built call tree with %d nodes and %d functions",
        len(result.tree) - 1,
        len(result.functions),
    )

    tree = shape_tree(result, options)
    functions = result.functions.filter(
        options.function_filter,
        include_runtime=options.include_runtime_frames,
        sort_by="self" if options.self_time_mode else "total",
    )
    LOGGER.debug("Listing %d of %d functions", len(functions), len(result.functions))
    return ProfileReport(result=result, tree=tree, functions=functions, options=options)
