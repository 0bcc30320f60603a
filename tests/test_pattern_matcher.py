"""Tests for byte pattern search."""

import pytest

from uart_cl.pattern_matcher import InvalidPattern, find_all


def test_single_match():
    assert list(find_all(b"\x00\x00ABC\x00", b"ABC")) == [2]


def test_overlapping_matches_are_reported():
    assert list(find_all(b"AAAA", b"AA")) == [0, 1, 2]


def test_no_match():
    assert list(find_all(b"\x00" * 16, b"\x01")) == []


def test_needle_longer_than_haystack():
    assert list(find_all(b"AB", b"ABC")) == []


def test_empty_needle_raises_before_iteration():
    with pytest.raises(InvalidPattern):
        find_all(b"ABC", b"")


def test_accepts_bytearray_haystack():
    assert list(find_all(bytearray(b"xyxy"), b"xy")) == [0, 2]
