"""Value types describing the raw input of every aggregation."""
from dataclasses import dataclass
from dataclasses import field
from typing import Iterable
from typing import Optional
from typing import Tuple
from typing import Union


@dataclass(frozen=True)
class StackFrame:
    """One level of a call stack.

    Frames compare and hash by name only: the module label may differ between
    builds of the same logical function and is only used for classification.
    """

    name: str
    module: str = field(default="", compare=False)

    def __str__(self) -> str:
        return self.name


UNKNOWN_FRAME = StackFrame("<unknown>")

FrameLike = Union[StackFrame, str]


def _as_frame(frame: FrameLike) -> StackFrame:
    if isinstance(frame, StackFrame):
        return frame
    return StackFrame(frame)


def _as_stack(frames: Iterable[FrameLike]) -> Tuple[StackFrame, ...]:
    if isinstance(frames, str):
        raise TypeError(
            f"Invalid stack={frames!r}, should be a sequence of frames, not a string"
        )
    return tuple(_as_frame(frame) for frame in frames)


@dataclass(frozen=True)
class Sample:
    """A weighted observation of a call stack, ordered from root to leaf.

    ``type_name`` optionally labels what the sample measured at its leaf, such
    as the allocated type of an allocation sample or the thrown type of an
    exception sample.
    """

    stack: Tuple[StackFrame, ...]
    weight: float
    count: int = 1
    type_name: Optional[str] = None

    def __post_init__(self) -> None:
        stack = _as_stack(self.stack)
        if not stack:
            stack = (UNKNOWN_FRAME,)
        object.__setattr__(self, "stack", stack)
        if self.weight < 0:
            raise ValueError(f"Invalid sample weight={self.weight}, should be >= 0")
        if self.count < 0:
            raise ValueError(f"Invalid sample count={self.count}, should be >= 0")
        if self.type_name is not None and not isinstance(self.type_name, str):
            raise TypeError(
                f"Invalid type_name={self.type_name!r}, should be a string"
            )
        if self.type_name is not None and not self.type_name.strip():
            object.__setattr__(self, "type_name", None)

    @property
    def leaf(self) -> StackFrame:
        return self.stack[-1]

    @classmethod
    def from_names(
        cls,
        names: Iterable[FrameLike],
        weight: float,
        count: int = 1,
        *,
        type_name: Optional[str] = None,
    ) -> "Sample":
        return cls(_as_stack(names), weight, count, type_name)
