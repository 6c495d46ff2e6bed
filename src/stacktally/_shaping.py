"""Cut a fully merged call tree down to something a person can read.

Shaping never looks at the raw samples again: it re-roots, limits the depth
and width of, and prunes an already built :class:`~stacktally.CallTree`,
folding whatever it drops at one level into a single synthetic "other"
sibling so that no weight silently disappears from a parent's children.
"""
from dataclasses import dataclass
from typing import Dict
from typing import Iterator
from typing import List
from typing import Optional
from typing import Tuple
from typing import Union

from stacktally._call_tree import CallTree
from stacktally._call_tree import CallTreeNode
from stacktally._call_tree import CallTreeResult
from stacktally._call_tree import TypeShare
from stacktally._errors import RootNotFoundError
from stacktally._names import matches_name
from stacktally._options import ShapeOptions
from stacktally._samples import StackFrame
from stacktally.reporters.frame_tools import is_runtime_frame


@dataclass(frozen=True)
class ShapedNode:
    name: str
    inclusive_weight: float
    self_weight: float
    calls: int
    children: Tuple["ShapedNode", ...] = ()
    collapsed: int = 0
    frame: Optional[StackFrame] = None
    index: Optional[int] = None
    types: Tuple[TypeShare, ...] = ()

    @property
    def is_other(self) -> bool:
        return self.collapsed > 0

    def weight(self, use_self_weight: bool = False) -> float:
        return self.self_weight if use_self_weight else self.inclusive_weight


@dataclass(frozen=True)
class ShapedTree:
    root: ShapedNode
    options: ShapeOptions
    total_weight: float
    is_rooted: bool = False

    @property
    def baseline(self) -> float:
        """Weight that represents 100%: the display root's inclusive weight."""
        return self.root.inclusive_weight

    def percentage(self, node: ShapedNode) -> float:
        if self.baseline <= 0:
            return 0.0
        return 100 * node.weight(self.options.self_time_mode) / self.baseline

    def walk(self) -> Iterator[Tuple[int, ShapedNode]]:
        """Yield ``(depth, node)`` pairs in display order."""
        pending = [(0, self.root)]
        while pending:
            depth, node = pending.pop()
            yield depth, node
            pending.extend((depth + 1, child) for child in reversed(node.children))


def other_bucket_name(n_siblings: int) -> str:
    return f"other ({n_siblings} siblings)"


def find_root(
    tree: CallTree,
    root_match: str,
    *,
    root_mode: str = "first",
    include_runtime: bool = False,
) -> CallTreeNode:
    """Locate the node that becomes the display root.

    Candidates are the nodes whose raw or display name contains
    ``root_match``, ignoring case, in pre-order. Runtime frames are only
    picked when nothing else matches, unless ``include_runtime`` is set.
    """
    needle = root_match.strip().lower()
    matches = [
        node
        for node in tree.iter_preorder()
        if not node.is_root and matches_name(node.name, needle)
    ]
    if not matches:
        raise RootNotFoundError(
            f"No call tree node matched {root_match!r}", root_match=root_match
        )

    candidates = matches
    if not include_runtime:
        candidates = [node for node in matches if not is_runtime_frame(node.frame)]
        candidates = candidates or matches

    # min() keeps the earliest candidate on ties, i.e. pre-order
    if root_mode == "shallowest":
        return min(candidates, key=lambda node: node.depth)
    if root_mode == "hottest":
        return min(candidates, key=lambda node: -node.inclusive_weight)
    return candidates[0]


def visible_children(
    tree: CallTree, index: int, *, include_runtime: bool = False
) -> List[CallTreeNode]:
    """Children of a node in first-seen order.

    When runtime frames are hidden, a runtime child is replaced by its own
    visible descendants so the application frames below it stay reachable.
    """
    children = tree[index].children
    if include_runtime:
        return [tree[child] for child in children]

    ret = []
    pending = list(reversed(children))
    while pending:
        node = tree[pending.pop()]
        if is_runtime_frame(node.frame):
            pending.extend(reversed(node.children))
        else:
            ret.append(node)
    return ret


def partition_children(
    children: List[CallTreeNode], options: ShapeOptions
) -> Tuple[List[CallTreeNode], List[CallTreeNode]]:
    """Split children into the ones kept expanded and the ones folded away.

    Children are ranked by weight, heaviest first, with ties in first-seen
    order. Anything lighter than the sibling cutoff (a percentage of the
    heaviest sibling) is dropped first, then only ``max_width`` are kept.
    """
    use_self_weight = options.self_time_mode
    ordered = sorted(
        children, key=lambda child: child.weight(use_self_weight), reverse=True
    )
    if not ordered:
        return [], []

    kept = ordered
    top_weight = ordered[0].weight(use_self_weight)
    if options.sibling_cutoff_percent > 0 and top_weight > 0:
        min_weight = top_weight * options.sibling_cutoff_percent / 100
        kept = [
            child for child in ordered if child.weight(use_self_weight) >= min_weight
        ]

    # The cutoff keeps a prefix of the ranking, so the rest is what was folded
    kept = kept[: options.max_width]
    return kept, ordered[len(kept) :]


def _other_bucket(folded: List[CallTreeNode]) -> Optional[ShapedNode]:
    if not folded:
        return None
    return ShapedNode(
        name=other_bucket_name(len(folded)),
        inclusive_weight=sum(node.inclusive_weight for node in folded),
        self_weight=sum(node.self_weight for node in folded),
        calls=sum(node.calls for node in folded),
        collapsed=len(folded),
    )


def _shape_from(
    tree: CallTree, display_root: CallTreeNode, options: ShapeOptions
) -> ShapedNode:
    order: List[CallTreeNode] = []
    kept_by_index: Dict[int, List[int]] = {}
    other_by_index: Dict[int, Optional[ShapedNode]] = {}

    pending = [(display_root, 0)]
    while pending:
        node, depth = pending.pop()
        order.append(node)
        if depth >= options.max_depth:
            kept: List[CallTreeNode] = []
            folded: List[CallTreeNode] = []
        else:
            kept, folded = partition_children(
                visible_children(
                    tree, node.index, include_runtime=options.include_runtime_frames
                ),
                options,
            )
        kept_by_index[node.index] = [child.index for child in kept]
        other_by_index[node.index] = _other_bucket(folded)
        pending.extend((child, depth + 1) for child in reversed(kept))

    # Children always come after their parent in ``order``
    built: Dict[int, ShapedNode] = {}
    for node in reversed(order):
        children = [built.pop(child) for child in kept_by_index[node.index]]
        other = other_by_index[node.index]
        if other is not None:
            children.append(other)
        built[node.index] = ShapedNode(
            name=node.name,
            inclusive_weight=node.inclusive_weight,
            self_weight=node.self_weight,
            calls=node.calls,
            children=tuple(children),
            frame=node.frame,
            index=node.index,
            types=node.type_shares(),
        )
    return built[display_root.index]


def shape_tree(
    source: Union[CallTreeResult, CallTree],
    options: Optional[ShapeOptions] = None,
) -> ShapedTree:
    """Produce the bounded display tree for a built call tree.

    Raises :class:`~stacktally.RootNotFoundError` if ``options.root_match``
    is set and no node matches it.
    """
    options = ShapeOptions() if options is None else options
    if isinstance(source, CallTreeResult):
        tree = source.tree
        total_weight = source.total_weight
    else:
        tree = source
        total_weight = tree.root.inclusive_weight

    display_root = tree.root
    if options.root_match is not None:
        display_root = find_root(
            tree,
            options.root_match,
            root_mode=options.root_mode,
            include_runtime=options.include_runtime_frames,
        )

    return ShapedTree(
        root=_shape_from(tree, display_root, options),
        options=options,
        total_weight=total_weight,
        is_rooted=not display_root.is_root,
    )
