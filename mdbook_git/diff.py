"""Line-level diffs grouped into hunks with a bounded context window.

Alignment uses ``difflib.SequenceMatcher``; hunk grouping follows unified
diff rules: each change run keeps up to ``context_lines`` unchanged lines on
either side, and runs separated by more than ``2 * context_lines`` unchanged
lines become separate hunks.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from difflib import SequenceMatcher
from enum import Enum

DEFAULT_CONTEXT_LINES = 3


class ChangeKind(Enum):
    ADDED = "+"
    REMOVED = "-"
    CONTEXT = " "

    @property
    def marker(self) -> str:
        return self.value


@dataclass(frozen=True)
class DiffLine:
    kind: ChangeKind
    text: str


def _format_range(start: int, count: int) -> str:
    if count == 1:
        return f"{start}"
    return f"{start},{count}"


@dataclass(frozen=True)
class Hunk:
    """One contiguous diff region.

    ``old_start`` / ``new_start`` follow unified-diff header numbering: the
    1-based first line of the hunk, or the line before it when the side is
    empty.
    """

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: tuple[DiffLine, ...]

    @property
    def header(self) -> str:
        old = _format_range(self.old_start, self.old_count)
        new = _format_range(self.new_start, self.new_count)
        return f"@@ -{old} +{new} @@"

    @property
    def changes(self) -> tuple[DiffLine, ...]:
        return tuple(line for line in self.lines if line.kind is not ChangeKind.CONTEXT)

    @property
    def leading_context(self) -> tuple[DiffLine, ...]:
        leading: list[DiffLine] = []
        for line in self.lines:
            if line.kind is not ChangeKind.CONTEXT:
                break
            leading.append(line)
        return tuple(leading)

    @property
    def trailing_context(self) -> tuple[DiffLine, ...]:
        trailing: list[DiffLine] = []
        for line in reversed(self.lines):
            if line.kind is not ChangeKind.CONTEXT:
                break
            trailing.append(line)
        return tuple(reversed(trailing))


def diff_lines(old: Sequence[str], new: Sequence[str]) -> list[DiffLine]:
    """Align two line sequences into one tagged sequence covering both files.

    Replaced blocks list their removed lines before the added ones.
    """
    matcher = SequenceMatcher(None, list(old), list(new), autojunk=False)
    aligned: list[DiffLine] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            aligned.extend(DiffLine(ChangeKind.CONTEXT, text) for text in old[i1:i2])
            continue
        if tag in {"delete", "replace"}:
            aligned.extend(DiffLine(ChangeKind.REMOVED, text) for text in old[i1:i2])
        if tag in {"insert", "replace"}:
            aligned.extend(DiffLine(ChangeKind.ADDED, text) for text in new[j1:j2])
    return aligned


def _group_change_spans(lines: Sequence[DiffLine], context_lines: int) -> list[tuple[int, int]]:
    """Return ``[lo, hi)`` slices of ``lines`` forming each hunk."""
    change_indexes = [index for index, line in enumerate(lines) if line.kind is not ChangeKind.CONTEXT]
    if not change_indexes:
        return []

    groups: list[list[int]] = [[change_indexes[0], change_indexes[0]]]
    for index in change_indexes[1:]:
        gap = index - groups[-1][1] - 1
        if gap > 2 * context_lines:
            groups.append([index, index])
        else:
            groups[-1][1] = index

    return [
        (max(0, first - context_lines), min(len(lines), last + 1 + context_lines))
        for first, last in groups
    ]


def hunks_from_diff_lines(lines: Sequence[DiffLine], context_lines: int = DEFAULT_CONTEXT_LINES) -> list[Hunk]:
    """Group an aligned diff into hunks, for stores that supply diffs directly."""
    if context_lines < 0:
        raise ValueError("context_lines must be non-negative")

    hunks: list[Hunk] = []
    old_line_no = 0
    new_line_no = 0
    cursor = 0
    for lo, hi in _group_change_spans(lines, context_lines):
        for line in lines[cursor:lo]:
            if line.kind is not ChangeKind.ADDED:
                old_line_no += 1
            if line.kind is not ChangeKind.REMOVED:
                new_line_no += 1

        body = tuple(lines[lo:hi])
        old_count = sum(1 for line in body if line.kind is not ChangeKind.ADDED)
        new_count = sum(1 for line in body if line.kind is not ChangeKind.REMOVED)
        hunks.append(
            Hunk(
                old_start=old_line_no + 1 if old_count else old_line_no,
                old_count=old_count,
                new_start=new_line_no + 1 if new_count else new_line_no,
                new_count=new_count,
                lines=body,
            )
        )
        old_line_no += old_count
        new_line_no += new_count
        cursor = hi
    return hunks


def build_hunks(old: Sequence[str], new: Sequence[str], context_lines: int = DEFAULT_CONTEXT_LINES) -> list[Hunk]:
    """Diff two line sequences into hunks; identical inputs yield ``[]``."""
    return hunks_from_diff_lines(diff_lines(old, new), context_lines)


__all__ = [
    "DEFAULT_CONTEXT_LINES",
    "ChangeKind",
    "DiffLine",
    "Hunk",
    "build_hunks",
    "diff_lines",
    "hunks_from_diff_lines",
]
