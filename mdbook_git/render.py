"""Turn fetched lines and diff hunks into text for a fenced code block.

Two different mechanisms keep lines out of the reader's way:

- hiding: the line stays in the output with the ``# `` hidden-line prefix,
  which the book front end collapses and reveals on demand;
- ``-h`` on diffs: headers and removed lines are dropped from the output.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace

from .diff import ChangeKind, Hunk
from .ranges import RangeSet

HIDDEN_LINE_PREFIX = "# "
ERROR_MARKER = "**mdbook-git error:**"


@dataclass(frozen=True)
class RenderedLine:
    """One output line; ``kind`` is set for diff body lines only."""

    text: str
    hidden: bool = False
    kind: ChangeKind | None = None

    def to_text(self) -> str:
        if not self.hidden or self.text.startswith(HIDDEN_LINE_PREFIX):
            return self.text
        return f"{HIDDEN_LINE_PREFIX}{self.text}"


def join_rendered(rendered: Sequence[RenderedLine]) -> str:
    return "\n".join(line.to_text() for line in rendered)


def apply_ranges(rendered: Sequence[RenderedLine], ranges: RangeSet | None) -> list[RenderedLine]:
    """Mark lines outside ``ranges`` hidden; ``None`` leaves everything visible."""
    if ranges is None:
        return list(rendered)
    mask = ranges.visible_mask(len(rendered))
    return [line if visible else replace(line, hidden=True) for line, visible in zip(rendered, mask)]


def render_show_lines(lines: Sequence[str], ranges: RangeSet | None) -> list[RenderedLine]:
    return apply_ranges([RenderedLine(line) for line in lines], ranges)


def render_show(lines: Sequence[str], ranges: RangeSet | None = None) -> str:
    """Render file content with lines outside ``ranges`` hidden, never removed."""
    return join_rendered(render_show_lines(lines, ranges))


def render_diff_lines(
    hunks: Sequence[Hunk],
    path: str,
    hide_header_and_deletions: bool = False,
) -> list[RenderedLine]:
    rendered: list[RenderedLine] = []
    if hunks and not hide_header_and_deletions:
        rendered.append(RenderedLine(f"--- a/{path}"))
        rendered.append(RenderedLine(f"+++ b/{path}"))

    for hunk in hunks:
        if not hide_header_and_deletions:
            rendered.append(RenderedLine(hunk.header))
        for line in hunk.lines:
            if hide_header_and_deletions and line.kind is ChangeKind.REMOVED:
                continue
            rendered.append(RenderedLine(f"{line.kind.marker}{line.text}", kind=line.kind))
    return rendered


def render_diff(
    hunks: Sequence[Hunk],
    path: str,
    hide_header_and_deletions: bool = False,
    ranges: RangeSet | None = None,
) -> str:
    """Render hunks as marker-prefixed lines (``+``, ``-``, space).

    ``ranges`` counts over the rendered lines, headers included, and hides
    the lines outside it.
    """
    rendered = render_diff_lines(hunks, path, hide_header_and_deletions)
    return join_rendered(apply_ranges(rendered, ranges))


def render_error(message: str) -> str:
    return f"{ERROR_MARKER} {message}"


__all__ = [
    "ERROR_MARKER",
    "HIDDEN_LINE_PREFIX",
    "RenderedLine",
    "apply_ranges",
    "join_rendered",
    "render_diff",
    "render_diff_lines",
    "render_error",
    "render_show",
    "render_show_lines",
]
