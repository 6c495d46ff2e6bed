from typing import Any


class StacktallyError(Exception):
    """Exceptions raised in this package."""


class InvalidConfigurationError(StacktallyError, ValueError):
    """A report option is outside of its documented domain."""


class RootNotFoundError(StacktallyError, LookupError):
    """No call tree node matched the requested root."""

    def __init__(self, *args: Any, root_match: str) -> None:
        super().__init__(*args)
        self.root_match = root_match
