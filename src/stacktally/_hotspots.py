from dataclasses import dataclass
from typing import Dict
from typing import List
from typing import Optional
from typing import Union

from stacktally._call_tree import ROOT_INDEX
from stacktally._call_tree import CallTree
from stacktally._call_tree import CallTreeNode
from stacktally._errors import InvalidConfigurationError
from stacktally._shaping import ShapedNode
from stacktally.reporters.frame_tools import is_runtime_frame

HOTNESS_THRESHOLD = 0.4


@dataclass(frozen=True)
class HotFunction:
    name: str
    hotness: float
    index: int


def hotness(
    node: Union[CallTreeNode, ShapedNode], total_weight: float, total_calls: float
) -> float:
    """Share of the samples passing through a node times its share of self weight."""
    if total_weight <= 0 or total_calls <= 0:
        return 0.0
    return (node.calls / total_calls) * (node.self_weight / total_weight)


def find_hot_functions(
    tree: CallTree,
    threshold: float = HOTNESS_THRESHOLD,
    *,
    include_runtime: bool = False,
    root: Optional[int] = None,
) -> List[HotFunction]:
    if not 0 <= threshold <= 1:
        raise InvalidConfigurationError(
            f"Invalid hotness threshold={threshold}, should be between 0 and 1"
        )

    start = tree[ROOT_INDEX if root is None else root]
    total_weight = start.inclusive_weight
    total_calls = start.calls
    if total_weight <= 0 or total_calls <= 0:
        return []

    hot_by_name: Dict[str, HotFunction] = {}
    for node in tree.iter_preorder(start.index):
        if node.is_root or (not include_runtime and is_runtime_frame(node.frame)):
            continue
        score = hotness(node, total_weight, total_calls)
        if score < threshold:
            continue
        existing = hot_by_name.get(node.name)
        if existing is None or score > existing.hotness:
            hot_by_name[node.name] = HotFunction(node.name, score, node.index)

    return sorted(
        hot_by_name.values(),
        key=lambda hot: (-hot.hotness, hot.name.lower()),
    )
