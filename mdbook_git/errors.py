"""Per-directive error kinds.

Every failure raised while evaluating a ``{{ #git ... }}`` directive derives
from ``DirectiveError`` so the substitution pass can contain it to the one
directive that produced it.
"""

from __future__ import annotations


class DirectiveError(Exception):
    """Base class for errors scoped to a single directive."""


class MalformedDirective(DirectiveError):
    pass


class UnknownCommand(DirectiveError):
    pass


class MissingArgument(DirectiveError):
    pass


class InvalidRangeSpec(DirectiveError):
    pass


class InvalidDiffOption(DirectiveError):
    pass


class InvalidRevision(DirectiveError):
    pass


class PathNotFoundAtRevision(DirectiveError):
    """Raised when ``path`` does not exist in the tree of ``revision``."""

    def __init__(self, revision: str, path: str) -> None:
        super().__init__(f"{path!r} not found at revision {revision!r}")
        self.revision = revision
        self.path = path


__all__ = [
    "DirectiveError",
    "MalformedDirective",
    "UnknownCommand",
    "MissingArgument",
    "InvalidRangeSpec",
    "InvalidDiffOption",
    "InvalidRevision",
    "PathNotFoundAtRevision",
]
