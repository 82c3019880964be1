"""Locate ``{{ #git ... }}`` directives and parse them into typed commands.

Two commands exist::

    {{ #git show <revision>:<path>[:<range-spec>] }}
    {{ #git diff <revision_a> <revision_b> <path>[:<range-spec>] [-h] [-U<n>] }}

Parsing is pure: the same body always yields an equal command or the same
error.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

from .diff import DEFAULT_CONTEXT_LINES
from .errors import InvalidDiffOption, MalformedDirective, MissingArgument, UnknownCommand
from .ranges import RangeSet, parse_range_spec

_DIRECTIVE_RE = re.compile(
    r"""
    \{\{\s*       # opening braces
    \#git         # directive name
    (?=[\s}])     # followed by whitespace or the closing braces
    ([^}]*)       # body: anything but a closing brace
    \}\}          # closing braces
    """,
    re.VERBOSE,
)
_DIGITS = frozenset("0123456789")


@dataclass(frozen=True)
class Directive:
    """One directive span found in markdown text."""

    start: int
    end: int
    text: str
    body: str


@dataclass(frozen=True)
class ShowCommand:
    revision: str
    path: str
    ranges: RangeSet | None = None


@dataclass(frozen=True)
class DiffCommand:
    revision_a: str
    revision_b: str
    path: str
    hide_header_and_deletions: bool = False
    context_lines: int = DEFAULT_CONTEXT_LINES
    # Hides rendered diff lines outside the selection; ``None`` shows all.
    ranges: RangeSet | None = None


Command = ShowCommand | DiffCommand


def find_directives(text: str) -> Iterator[Directive]:
    """Yield directive spans left to right."""
    for match in _DIRECTIVE_RE.finditer(text):
        yield Directive(
            start=match.start(),
            end=match.end(),
            text=match.group(0),
            body=match.group(1).strip(),
        )


def split_path_and_range(token: str) -> tuple[str, RangeSet | None]:
    """Split ``path[:range-spec]`` at the first colon outside brackets.

    The range spec begins at the first top-level colon, so paths containing
    colons are unsupported: ``a:b.txt:3`` is path ``a`` with spec ``b.txt:3``.
    Everything after the separator belongs to the range spec, which keeps
    ``a:b`` specs intact.
    """
    depth = 0
    for index, char in enumerate(token):
        if char == "[":
            depth += 1
        elif char == "]":
            depth = max(0, depth - 1)
        elif char == ":" and depth == 0:
            return token[:index], parse_range_spec(token[index + 1 :])
    return token, None


def _parse_show(args: list[str]) -> ShowCommand:
    if not args:
        raise MissingArgument("show requires <revision>:<path>")
    if len(args) > 1:
        raise MalformedDirective(f"show takes a single <revision>:<path> argument, got extra {' '.join(args[1:])!r}")

    revision, separator, path_and_range = args[0].partition(":")
    if not separator:
        raise MissingArgument(f"expected <revision>:<path>, got {args[0]!r}")
    if not revision:
        raise MissingArgument(f"missing revision in {args[0]!r}")
    path, ranges = split_path_and_range(path_and_range)
    if not path:
        raise MissingArgument(f"missing path in {args[0]!r}")
    return ShowCommand(revision=revision, path=path, ranges=ranges)


def _parse_context_lines(flag: str) -> int:
    value = flag[2:]
    if not value or any(char not in _DIGITS for char in value):
        raise InvalidDiffOption(f"-U expects a non-negative integer, got {flag!r}")
    return int(value)


def _parse_diff(args: list[str], default_context_lines: int) -> DiffCommand:
    positionals = [arg for arg in args if not arg.startswith("-")]
    flags = [arg for arg in args if arg.startswith("-")]

    names = ("revision_a", "revision_b", "path")
    if len(positionals) < len(names):
        missing = ", ".join(names[len(positionals) :])
        raise MissingArgument(f"diff requires <revision_a> <revision_b> <path>; missing {missing}")
    if len(positionals) > len(names):
        raise MalformedDirective(f"diff got unexpected arguments {' '.join(positionals[3:])!r}")

    hide_header_and_deletions = False
    context_lines = default_context_lines
    for flag in flags:
        if flag == "-h":
            hide_header_and_deletions = True
        elif flag.startswith("-U"):
            context_lines = _parse_context_lines(flag)
        else:
            raise InvalidDiffOption(f"unknown diff option {flag!r}")

    revision_a, revision_b, path_and_range = positionals
    path, ranges = split_path_and_range(path_and_range)
    if not path:
        raise MissingArgument(f"missing path in {path_and_range!r}")
    return DiffCommand(
        revision_a=revision_a,
        revision_b=revision_b,
        path=path,
        hide_header_and_deletions=hide_header_and_deletions,
        context_lines=context_lines,
        ranges=ranges,
    )


def parse_directive(body: str, default_context_lines: int = DEFAULT_CONTEXT_LINES) -> Command:
    """Parse a directive body (the text after ``#git``) into a command.

    ``default_context_lines`` applies to ``diff`` directives without ``-U``.
    """
    tokens = body.split()
    if not tokens:
        raise MalformedDirective("empty #git directive")

    keyword, args = tokens[0], tokens[1:]
    if keyword == "show":
        return _parse_show(args)
    if keyword == "diff":
        return _parse_diff(args, default_context_lines)
    raise UnknownCommand(f"unknown #git command {keyword!r}, expected 'show' or 'diff'")


__all__ = [
    "DEFAULT_CONTEXT_LINES",
    "Command",
    "DiffCommand",
    "Directive",
    "ShowCommand",
    "find_directives",
    "parse_directive",
    "split_path_and_range",
]
