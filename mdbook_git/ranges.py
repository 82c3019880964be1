"""Line-selection specs: parsing, normalization, and resolution.

A spec is a single line (``7``), a two-sided range with optional ends
(``4:8``, ``12:``, ``:3``, ``:``), or a bracketed comma list mixing both
(``[2,4:8,12:]``). Open ends stay open until a file's line count is known,
so a ``RangeSet`` can be built before anything is fetched.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import NoReturn

from .errors import InvalidRangeSpec

_DIGITS = frozenset("0123456789")


@dataclass(frozen=True)
class LineRange:
    """Closed 1-based interval; ``None`` bounds are open."""

    start: int | None = None
    end: int | None = None

    @classmethod
    def point(cls, line_no: int) -> LineRange:
        return cls(line_no, line_no)

    @property
    def lower(self) -> int:
        return 1 if self.start is None else self.start

    def contains(self, line_no: int) -> bool:
        if line_no < self.lower:
            return False
        return self.end is None or line_no <= self.end

    def resolve(self, line_count: int) -> tuple[int, int] | None:
        """Clamp to ``1..line_count``; ``None`` when nothing of the range is left."""
        upper = line_count if self.end is None else min(self.end, line_count)
        if self.lower > upper:
            return None
        return self.lower, upper


def _merge(ranges: Iterable[LineRange]) -> tuple[LineRange, ...]:
    """Sort and merge overlapping or adjacent ranges."""
    # Open lower bounds sort ahead of an explicit 1 so they survive merging.
    ordered = sorted(ranges, key=lambda item: (item.lower, item.start is not None))
    merged: list[LineRange] = []
    for current in ordered:
        if merged:
            last = merged[-1]
            if last.end is None:
                continue
            if current.lower <= last.end + 1:
                end = None if current.end is None else max(last.end, current.end)
                merged[-1] = LineRange(last.start, end)
                continue
        merged.append(current)
    return tuple(merged)


@dataclass(frozen=True)
class RangeSet:
    """Normalized set of line ranges deciding which lines stay visible.

    An empty set hides every line. Callers use ``None`` instead of a
    ``RangeSet`` for "no selection, everything visible".
    """

    ranges: tuple[LineRange, ...] = ()

    @classmethod
    def of(cls, ranges: Iterable[LineRange]) -> RangeSet:
        return cls(_merge(ranges))

    @property
    def is_empty(self) -> bool:
        return not self.ranges

    def __iter__(self) -> Iterator[LineRange]:
        return iter(self.ranges)

    def normalized(self) -> RangeSet:
        return RangeSet.of(self.ranges)

    def contains(self, line_no: int) -> bool:
        return any(item.contains(line_no) for item in self.ranges)

    def resolve(self, line_count: int) -> tuple[tuple[int, int], ...]:
        """Return closed ``(start, end)`` pairs clamped to the file length."""
        resolved: list[tuple[int, int]] = []
        for item in self.ranges:
            bounds = item.resolve(line_count)
            if bounds is not None:
                resolved.append(bounds)
        return tuple(resolved)

    def visible_mask(self, line_count: int) -> list[bool]:
        """Per-line visibility flags, index ``i`` describing line ``i + 1``."""
        mask = [False] * max(0, line_count)
        for start, end in self.resolve(line_count):
            for index in range(start - 1, end):
                mask[index] = True
        return mask


class _RangeSpecParser:
    """Recursive-descent parser for the range mini-language.

    spec  := list | item
    list  := "[" [ item ("," item)* ] "]"
    item  := bound [ ":" bound ]
    bound := "" | digits
    """

    def __init__(self, spec: str) -> None:
        self.spec = spec
        self.pos = 0

    def parse(self) -> RangeSet:
        if not self.spec:
            raise InvalidRangeSpec("empty range spec")
        if self._peek() == "[":
            items = self._list()
        else:
            items = [self._item()]
        if self.pos != len(self.spec):
            self._fail_unexpected()
        return RangeSet.of(items)

    def _peek(self) -> str | None:
        if self.pos < len(self.spec):
            return self.spec[self.pos]
        return None

    def _fail_unexpected(self) -> NoReturn:
        char = self._peek()
        if char is None:
            raise InvalidRangeSpec(f"unexpected end of range spec {self.spec!r}")
        raise InvalidRangeSpec(f"unexpected {char!r} at offset {self.pos} in range spec {self.spec!r}")

    def _list(self) -> list[LineRange]:
        self.pos += 1
        items: list[LineRange] = []
        if self._peek() == "]":
            self.pos += 1
            return items
        while True:
            items.append(self._item())
            char = self._peek()
            if char == ",":
                self.pos += 1
                continue
            if char == "]":
                self.pos += 1
                return items
            self._fail_unexpected()

    def _item(self) -> LineRange:
        start = self._bound()
        if self._peek() != ":":
            if start is None:
                self._fail_unexpected()
            return LineRange.point(start)
        self.pos += 1
        end = self._bound()
        if start is not None and end is not None and start > end:
            raise InvalidRangeSpec(f"range start {start} is after end {end} in {self.spec!r}")
        return LineRange(start, end)

    def _bound(self) -> int | None:
        begin = self.pos
        while self.pos < len(self.spec) and self.spec[self.pos] in _DIGITS:
            self.pos += 1
        digits = self.spec[begin : self.pos]
        if not digits:
            return None
        value = int(digits)
        if value < 1:
            raise InvalidRangeSpec(f"line numbers are 1-based, got {digits!r} in {self.spec!r}")
        return value


def parse_range_spec(spec: str) -> RangeSet:
    """Parse ``spec`` into a normalized ``RangeSet``.

    Raises ``InvalidRangeSpec`` for anything outside the grammar, zero
    line numbers, and ranges whose start is after their end.
    """
    return _RangeSpecParser(spec).parse()


__all__ = [
    "LineRange",
    "RangeSet",
    "parse_range_spec",
]
