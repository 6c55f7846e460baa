"""Version parsing and comparison utilities.

Versions reported by update servers are dotted strings of up to four
numeric components (``1.2.3.4``). Comparison is lenient: missing or
unparsable components count as 0 and anything past the fourth component
is ignored, so malformed versions never raise.
"""

from __future__ import annotations

import re
from functools import total_ordering
from typing import NamedTuple

VERSION_SLOTS = 4

# Leading integer, the way a lenient parseInt reads "12abc" as 12
LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")


class VersionComponents(NamedTuple):
    """The four numeric slots of a version."""

    major: int
    minor: int
    build: int
    patch: int


def parse_leading_int(text: str | None) -> int | None:
    """Parse the integer at the start of a string.

    Args:
        text: String to parse.

    Returns:
        The leading integer, or None if the string does not start with one.

    Examples:
        >>> parse_leading_int("12abc")
        12
        >>> parse_leading_int("abc") is None
        True
    """
    if not text:
        return None
    match = LEADING_INT_PATTERN.match(text)
    if match is None:
        return None
    return int(match.group(1))


def parse_version(version: str | None) -> VersionComponents:
    """Parse a version string into exactly four integer slots.

    Args:
        version: Dotted version string.

    Returns:
        VersionComponents with missing or unparsable slots set to 0.

    Examples:
        >>> parse_version("1.2")
        VersionComponents(major=1, minor=2, build=0, patch=0)
        >>> parse_version("a.b.c.d")
        VersionComponents(major=0, minor=0, build=0, patch=0)
    """
    parts = (version or "").split(".")
    slots = [0] * VERSION_SLOTS
    for i, part in enumerate(parts[:VERSION_SLOTS]):
        slots[i] = parse_leading_int(part) or 0
    return VersionComponents(*slots)


def compare_versions(version1: str | None, version2: str | None) -> int:
    """Compare two version strings slot by slot.

    Returns:
        -1 if version1 < version2
         0 if version1 == version2
         1 if version1 > version2
    """
    for left, right in zip(parse_version(version1), parse_version(version2), strict=True):
        diff = right - left
        if diff > 0:
            return -1
        if diff < 0:
            return 1
    return 0


def is_newer(current: str | None, available: str | None) -> bool:
    """Check whether ``available`` is newer than ``current``.

    Equal versions are not newer.

    Examples:
        >>> is_newer("1.2.3.4", "1.2.3.5")
        True
        >>> is_newer("1.0", "1.0.0.0")
        False
    """
    return compare_versions(current, available) < 0


@total_ordering
class Version:
    """A comparable four-slot version.

    Example:
        >>> Version("1.2") == Version("1.2.0.0")
        True
        >>> Version("1.2") < Version("1.10")
        True
    """

    raw: str
    components: VersionComponents

    def __init__(self, version: str) -> None:
        self.raw = version.strip()
        self.components = parse_version(self.raw)

    def __str__(self) -> str:
        return self.raw

    def __repr__(self) -> str:
        return f"Version({self.raw!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.components == other.components

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.components < other.components

    def __hash__(self) -> int:
        return hash(self.components)
