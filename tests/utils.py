"""Utilities / Helpers for writing tests."""
from typing import Iterator
from typing import Optional
from typing import Tuple

from stacktally import Sample
from stacktally import ShapedNode
from stacktally import StackFrame


def make_sample(
    stack: str, weight: float, count: int = 1, type_name: Optional[str] = None
) -> Sample:
    """Build a sample from a folded "root;child;leaf" stack."""
    names = stack.split(";") if stack else []
    return Sample.from_names(names, weight, count, type_name=type_name)


def make_runtime_sample(
    stack: str,
    weight: float,
    *,
    runtime: Tuple[str, ...] = (),
    module: str = "runtime",
) -> Sample:
    """Like make_sample, labelling the frames named in ``runtime`` with ``module``."""
    frames = tuple(
        StackFrame(name, module if name in runtime else "app")
        for name in stack.split(";")
    )
    return Sample(frames, weight)


def walk(
    node: ShapedNode, depth: int = 0
) -> Iterator[Tuple[int, ShapedNode, Optional[ShapedNode]]]:
    """Yield ``(depth, node, parent)`` for every node below and including ``node``."""
    pending = [(depth, node, None)]
    while pending:
        current_depth, current, parent = pending.pop()
        yield current_depth, current, parent
        pending.extend(
            (current_depth + 1, child, current) for child in reversed(current.children)
        )


def child_names(node: ShapedNode) -> list:
    return [child.name for child in node.children]
