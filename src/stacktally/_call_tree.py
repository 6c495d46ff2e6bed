from dataclasses import dataclass
from dataclasses import field
from typing import Dict
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Optional
from typing import Tuple

from stacktally._functions import FunctionTable
from stacktally._functions import aggregate_functions
from stacktally._heap import HeapProfile
from stacktally._heap import aggregate_sample_types
from stacktally._samples import Sample
from stacktally._samples import StackFrame

ROOT_INDEX = 0
ROOT_FRAME = StackFrame("<root>")

NodeKey = Tuple[int, StackFrame]


@dataclass(frozen=True)
class TypeShare:
    """Weight and count of the samples of one type that ended at a node."""

    type_name: str
    weight: float
    count: int


def _type_share_key(share: TypeShare) -> Tuple[float, int, str]:
    return (-share.weight, -share.count, share.type_name)


@dataclass
class CallTreeNode:
    """A function at one position of the merged call hierarchy."""

    index: int
    frame: StackFrame
    parent: Optional[int]
    depth: int
    inclusive_weight: float = 0.0
    self_weight: float = 0.0
    calls: int = 0
    children: List[int] = field(default_factory=list)
    type_weights: Dict[str, float] = field(default_factory=dict)
    type_counts: Dict[str, int] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.frame.name

    @property
    def is_root(self) -> bool:
        return self.parent is None

    def weight(self, use_self_weight: bool = False) -> float:
        return self.self_weight if use_self_weight else self.inclusive_weight

    def add_type(self, type_name: str, weight: float, count: int) -> None:
        self.type_weights[type_name] = self.type_weights.get(type_name, 0.0) + weight
        self.type_counts[type_name] = self.type_counts.get(type_name, 0) + count

    def type_shares(self, limit: Optional[int] = None) -> Tuple[TypeShare, ...]:
        """Types of the samples ending here, heaviest first."""
        shares = sorted(
            (
                TypeShare(name, weight, self.type_counts[name])
                for name, weight in self.type_weights.items()
            ),
            key=_type_share_key,
        )
        return tuple(shares[:limit])


class CallTree:
    """Arena of call tree nodes addressed by integer index.

    Index 0 is always the synthetic root, whose children are the entry points
    of the sampled program. Nodes only refer to each other by index.
    """

    def __init__(self) -> None:
        self.nodes: List[CallTreeNode] = [
            CallTreeNode(index=ROOT_INDEX, frame=ROOT_FRAME, parent=None, depth=0)
        ]
        self._node_index_by_key: Dict[NodeKey, int] = {}

    def __len__(self) -> int:
        return len(self.nodes)

    def __getitem__(self, index: int) -> CallTreeNode:
        return self.nodes[index]

    @property
    def root(self) -> CallTreeNode:
        return self.nodes[ROOT_INDEX]

    def child(self, parent: int, frame: StackFrame) -> Optional[CallTreeNode]:
        index = self._node_index_by_key.get((parent, frame))
        return None if index is None else self.nodes[index]

    def children(
        self, index: int, *, use_self_weight: bool = False
    ) -> List[CallTreeNode]:
        """Children of a node, heaviest first.

        Ties keep the order in which the children were first seen.
        """
        return sorted(
            (self.nodes[child] for child in self.nodes[index].children),
            key=lambda node: node.weight(use_self_weight),
            reverse=True,
        )

    def iter_preorder(self, start: int = ROOT_INDEX) -> Iterator[CallTreeNode]:
        # Iterative, so arbitrarily deep stacks never hit the recursion limit
        pending = [start]
        while pending:
            node = self.nodes[pending.pop()]
            yield node
            pending.extend(reversed(node.children))

    def path(self, index: int) -> List[CallTreeNode]:
        """Nodes from the first entry point down to ``index``."""
        ret = []
        current: Optional[int] = index
        while current is not None and current != ROOT_INDEX:
            node = self.nodes[current]
            ret.append(node)
            current = node.parent
        return ret[::-1]

    def _get_or_create_child(self, parent: int, frame: StackFrame) -> int:
        node_key = (parent, frame)
        index = self._node_index_by_key.get(node_key)
        if index is None:
            index = len(self.nodes)
            self._node_index_by_key[node_key] = index
            self.nodes[parent].children.append(index)
            self.nodes.append(
                CallTreeNode(
                    index=index,
                    frame=frame,
                    parent=parent,
                    depth=self.nodes[parent].depth + 1,
                )
            )
        return index


class CallTreeBuilder:
    """Incrementally merge samples into a :class:`CallTree`.

    Every call to :meth:`add` leaves a complete, consistent tree behind, so
    construction may be abandoned at any sample boundary.
    """

    def __init__(self) -> None:
        self.tree = CallTree()
        self.total_weight = 0.0
        self.n_samples = 0

    def add(self, sample: Sample) -> None:
        tree = self.tree
        root = tree.root
        root.inclusive_weight += sample.weight
        root.calls += sample.count

        current_frame_id = ROOT_INDEX
        for stack_frame in sample.stack:
            current_frame_id = tree._get_or_create_child(current_frame_id, stack_frame)
            current_frame = tree.nodes[current_frame_id]
            current_frame.inclusive_weight += sample.weight
            current_frame.calls += sample.count

        leaf = tree.nodes[current_frame_id]
        leaf.self_weight += sample.weight
        if sample.type_name is not None:
            leaf.add_type(sample.type_name, sample.weight, sample.count)
        self.total_weight += sample.weight
        self.n_samples += 1

    def add_all(self, samples: Iterable[Sample]) -> "CallTreeBuilder":
        for sample in samples:
            self.add(sample)
        return self


def build_call_tree(samples: Iterable[Sample]) -> CallTree:
    return CallTreeBuilder().add_all(samples).tree


@dataclass(frozen=True)
class CallTreeResult:
    tree: CallTree
    total_weight: float
    functions: FunctionTable
    types: HeapProfile = HeapProfile()

    @property
    def root(self) -> CallTreeNode:
        return self.tree.root

    @classmethod
    def from_samples(
        cls,
        samples: Iterable[Sample],
        *,
        total_weight: Optional[float] = None,
    ) -> "CallTreeResult":
        # Both the table and the tree need a full pass over the samples
        snapshot = tuple(samples)
        builder = CallTreeBuilder().add_all(snapshot)
        return cls(
            tree=builder.tree,
            total_weight=builder.total_weight if total_weight is None else total_weight,
            functions=aggregate_functions(snapshot),
            types=aggregate_sample_types(snapshot),
        )
