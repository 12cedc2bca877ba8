"""Exception types for catalogue, rule and combination failures."""

from __future__ import annotations


class PathFinderError(Exception):
    """Base class for errors raised by the combination subsystem."""


class CatalogueError(PathFinderError):
    """One or more referenced subject codes have no catalogue row."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(
            "Subject catalogue is missing code(s): " + ", ".join(self.missing)
        )


class StreamRuleError(PathFinderError):
    """A stream's rule document is missing, untyped or malformed."""


class CombinationError(PathFinderError):
    """A generated candidate failed validation and cannot be stored."""
