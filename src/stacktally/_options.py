from dataclasses import dataclass
from typing import Optional

from stacktally._errors import InvalidConfigurationError

DEFAULT_MAX_DEPTH = 30
DEFAULT_MAX_WIDTH = 4
DEFAULT_SIBLING_CUTOFF_PERCENT = 5.0

ROOT_MODES = ("first", "shallowest", "hottest")


@dataclass(frozen=True)
class ShapeOptions:
    """How a call tree is cut down for display, and how the table is filtered.

    Values are validated on construction, so an invalid configuration is
    rejected before any aggregation work begins.
    """

    root_match: Optional[str] = None
    max_depth: int = DEFAULT_MAX_DEPTH
    max_width: int = DEFAULT_MAX_WIDTH
    sibling_cutoff_percent: float = DEFAULT_SIBLING_CUTOFF_PERCENT
    self_time_mode: bool = False
    function_filter: Optional[str] = None
    include_runtime_frames: bool = False
    root_mode: str = "first"

    def __post_init__(self) -> None:
        if isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int):
            raise InvalidConfigurationError(
                f"Invalid max_depth={self.max_depth!r}, should be an integer"
            )
        if self.max_depth < 1:
            raise InvalidConfigurationError(
                f"Invalid max_depth={self.max_depth}, should be >= 1"
            )
        if isinstance(self.max_width, bool) or not isinstance(self.max_width, int):
            raise InvalidConfigurationError(
                f"Invalid max_width={self.max_width!r}, should be an integer"
            )
        if self.max_width < 1:
            raise InvalidConfigurationError(
                f"Invalid max_width={self.max_width}, should be >= 1"
            )
        if isinstance(self.sibling_cutoff_percent, bool) or not isinstance(
            self.sibling_cutoff_percent, (int, float)
        ):
            raise InvalidConfigurationError(
                f"Invalid sibling_cutoff_percent={self.sibling_cutoff_percent!r},"
                " should be a number"
            )
        if not 0 <= self.sibling_cutoff_percent <= 100:
            raise InvalidConfigurationError(
                f"Invalid sibling_cutoff_percent={self.sibling_cutoff_percent},"
                " should be between 0 and 100"
            )
        if self.root_mode not in ROOT_MODES:
            raise InvalidConfigurationError(
                f"Invalid root_mode={self.root_mode!r},"
                f" should be one of {', '.join(ROOT_MODES)}"
            )
        for name in ("root_match", "function_filter"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise InvalidConfigurationError(
                    f"Invalid {name}={value!r}, should be a string"
                )
        if self.root_match is not None and not self.root_match.strip():
            raise InvalidConfigurationError("root_match must not be blank")
