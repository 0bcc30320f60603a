"""Byte pattern search over dump images."""

from typing import Iterator


class InvalidPattern(ValueError):
    """Search pattern cannot be used (empty)."""


def find_all(haystack: bytes, needle: bytes) -> Iterator[int]:
    """
    Return a lazy iterator over every start offset of needle in haystack.

    Offsets come out left to right and overlapping occurrences are reported.

    Raises:
        InvalidPattern: If needle is empty (raised immediately, not on iteration)
    """
    if not needle:
        raise InvalidPattern("Search pattern must not be empty")
    return _scan(bytes(haystack), bytes(needle))


def _scan(data: bytes, pattern: bytes) -> Iterator[int]:
    pos = data.find(pattern)
    while pos != -1:
        yield pos
        pos = data.find(pattern, pos + 1)
