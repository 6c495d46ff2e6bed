from typing import IO
from typing import List
from typing import Optional
from typing import Tuple

from rich import print as rprint
from rich.style import Style
from rich.text import Text
from rich.tree import Tree

from stacktally._call_tree import TypeShare
from stacktally._hotspots import HOTNESS_THRESHOLD
from stacktally._hotspots import hotness
from stacktally._names import format_function_display_name
from stacktally._names import format_type_display_name
from stacktally._report import ProfileReport
from stacktally._shaping import ShapedNode
from stacktally._shaping import ShapedTree
from stacktally.reporters.common import shorten_name
from stacktally.reporters.common import weight_fmt
from stacktally.reporters.common import weight_to_color
from stacktally.reporters.frame_tools import is_runtime_frame

MAX_NAME_LENGTH = 80
TYPE_LIMIT = 3


class CallTreeReporter:
    def __init__(
        self,
        data: ShapedTree,
        *,
        unit: str = "ms",
        hot_threshold: float = HOTNESS_THRESHOLD,
        type_limit: int = TYPE_LIMIT,
    ) -> None:
        super().__init__()
        if type_limit < 0:
            raise ValueError(f"Invalid input type_limit={type_limit}, should be >=0")
        self.data = data
        self.unit = unit
        self.hot_threshold = hot_threshold
        self.type_limit = type_limit

    @classmethod
    def from_report(
        cls,
        report: ProfileReport,
        *,
        unit: str = "ms",
        hot_threshold: float = HOTNESS_THRESHOLD,
        type_limit: int = TYPE_LIMIT,
    ) -> "CallTreeReporter":
        return cls(
            report.tree, unit=unit, hot_threshold=hot_threshold, type_limit=type_limit
        )

    @property
    def title(self) -> str:
        mode = "Self Time" if self.data.options.self_time_mode else "Total Time"
        title = f"Call Tree ({mode})"
        if self.data.is_rooted:
            title += f" - root: {self.data.options.root_match}"
        return title

    def is_hot(self, node: ShapedNode) -> bool:
        if node.is_other or node is self.data.root:
            return False
        root = self.data.root
        score = hotness(node, root.inclusive_weight, root.calls)
        return score > 0 and score >= self.hot_threshold

    def frame_text(self, node: ShapedNode) -> Text:
        value = node.weight(self.data.options.self_time_mode)
        percentage = self.data.percentage(node)
        size_color = weight_to_color(percentage / 100)

        ret = Text()
        if self.is_hot(node):
            ret.append_text(Text.from_markup(":fire: "))
        ret.append(
            f"{weight_fmt(value, self.unit)} ({percentage:.1f}%)",
            style=Style(color=size_color),
        )
        ret.append(f" {node.calls}x ", style="cyan")

        if node is self.data.root and not self.data.is_rooted:
            ret.append("Total", style="bold")
        elif node.is_other:
            ret.append(node.name, style="dim italic")
        else:
            name = shorten_name(
                format_function_display_name(node.name), MAX_NAME_LENGTH
            )
            is_runtime = node.frame is not None and is_runtime_frame(node.frame)
            ret.append(name, style="dim" if is_runtime else "bold")
        return ret

    def type_text(self, share: TypeShare) -> Text:
        ret = Text()
        ret.append(weight_fmt(share.weight, self.unit), style="yellow")
        ret.append(f" {share.count:,}x ", style="cyan")
        ret.append(
            shorten_name(format_type_display_name(share.type_name), MAX_NAME_LENGTH),
            style="italic",
        )
        return ret

    def _add_types(self, branch: Tree, node: ShapedNode) -> None:
        for share in node.types[: self.type_limit]:
            branch.add(self.type_text(share))

    def build(self) -> Tree:
        root = self.data.root
        tree = Tree(self.frame_text(root), guide_style="dim")
        self._add_types(tree, root)
        pending: List[Tuple[Tree, ShapedNode]] = [
            (tree, child) for child in reversed(root.children)
        ]
        while pending:
            parent, node = pending.pop()
            branch = parent.add(self.frame_text(node))
            self._add_types(branch, node)
            pending.extend((branch, child) for child in reversed(node.children))
        return tree

    def render(
        self,
        *,
        file: Optional[IO[str]] = None,
    ) -> None:
        rprint(Text(self.title, style="bold"), file=file)
        if self.data.root.inclusive_weight <= 0:
            rprint("<No samples>", file=file)
            return
        rprint(self.build(), file=file)
