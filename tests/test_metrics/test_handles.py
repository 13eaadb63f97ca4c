"""Tests for handle normalization."""

import pytest

from cardvault.metrics.handles import normalize_username


@pytest.mark.parametrize("raw,expected", [
    ("jack", "jack"),
    ("@Jack", "jack"),
    ("  NASA  ", "nasa"),
    ("under_score_1", "under_score_1"),
    ("a" * 15, "a" * 15),
])
def test_valid_handles(raw, expected):
    assert normalize_username(raw) == expected


@pytest.mark.parametrize("raw", ["", "@", "   ", "has space", "dash-ed", "a" * 16, "@@jack", "emoji🙂"])
def test_invalid_handles(raw):
    with pytest.raises(ValueError, match="Invalid username"):
        normalize_username(raw)
