"""
L1 Domain — Dotted numeric versions (pure).

Driver versions come from two places that disagree on shape: the AWS
documentation pages print ``1.4.0`` while Windows reports ``1.4.0.0``.
Comparison pads the shorter side with zeros so both compare equal.
No I/O.
"""

from __future__ import annotations

import functools
from itertools import zip_longest

from driver_updater.core.errors import ParseError


@functools.total_ordering
class VersionString:
    """An ordered tuple of non-negative integers parsed from ``"1.4.0"``."""

    __slots__ = ("_parts", "_text")

    def __init__(self, parts: tuple[int, ...], text: str = ""):
        if not parts:
            raise ParseError("Version has no components")
        if any(p < 0 for p in parts):
            raise ParseError(f"Negative version component in {parts!r}")
        self._parts = tuple(parts)
        self._text = text or ".".join(str(p) for p in parts)

    @classmethod
    def parse(cls, text: str) -> VersionString:
        """Parse a dotted numeric string.

        Raises:
            ParseError: If ``text`` is empty or any dot-separated segment
                is not a non-negative integer.
        """
        if text is None or not text.strip():
            raise ParseError("Empty version string")
        raw = text.strip()
        parts: list[int] = []
        for segment in raw.split("."):
            # isdigit() admits superscripts and other unicode digits
            if not segment.isascii() or not segment.isdigit():
                raise ParseError(f"Invalid version segment {segment!r} in {raw!r}")
            parts.append(int(segment))
        return cls(tuple(parts), raw)

    @property
    def parts(self) -> tuple[int, ...]:
        return self._parts

    def canonical(self, max_components: int = 3) -> str:
        """First ``max_components`` components, dotted, for display."""
        return ".".join(str(p) for p in self._parts[:max_components])

    def _significant(self) -> tuple[int, ...]:
        parts = list(self._parts)
        while len(parts) > 1 and parts[-1] == 0:
            parts.pop()
        return tuple(parts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionString):
            return NotImplemented
        return compare(self, other) == 0

    def __lt__(self, other: VersionString) -> bool:
        if not isinstance(other, VersionString):
            return NotImplemented
        return compare(self, other) < 0

    def __hash__(self) -> int:
        return hash(self._significant())

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"VersionString({self._text!r})"


def compare(a: VersionString, b: VersionString) -> int:
    """Return -1, 0 or 1. Missing trailing components count as zero."""
    for left, right in zip_longest(a.parts, b.parts, fillvalue=0):
        if left < right:
            return -1
        if left > right:
            return 1
    return 0


def canonicalize(version: VersionString, max_components: int = 3) -> str:
    return version.canonical(max_components)
