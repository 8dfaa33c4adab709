"""
Unit tests for Course Code Normalizer.
"""

import pytest
from classrank.agents.normalization import CourseCodeNormalizer


@pytest.fixture
def normalizer():
    return CourseCodeNormalizer()


def test_normalize_inserts_hyphen(normalizer):
    """Test letters followed by digits are split with a hyphen."""
    assert normalizer.normalize("CS101") == "CS-101"
    assert normalizer.normalize("MATH123") == "MATH-123"


def test_normalize_empty(normalizer):
    assert normalizer.normalize("") == ""


def test_normalize_leaves_canonical_codes_alone(normalizer):
    """Test already-hyphenated codes come back unchanged."""
    assert normalizer.normalize("MATH-204") == "MATH-204"
    assert normalizer.normalize("CS-101") == "CS-101"


def test_normalize_without_boundary(normalizer):
    """Test codes with no letter/digit boundary are returned as-is."""
    assert normalizer.normalize("N/A") == "N/A"
    assert normalizer.normalize("101") == "101"
    assert normalizer.normalize("HISTORY") == "HISTORY"


def test_normalize_preserves_case(normalizer):
    assert normalizer.normalize("cs101") == "cs-101"


@pytest.mark.parametrize("raw", [
    "CS101", "", "MATH-204", "N/A", "cs101", "CS101H", "CS101CS102",
    "CS 101", "101CS", "CS--101", "ECEN-314/CSCE314",
])
def test_normalize_is_idempotent(normalizer, raw):
    once = normalizer.normalize(raw)
    assert normalizer.normalize(once) == once


@pytest.mark.parametrize("code", ["CS-101", "MATH-204", "cs-101"])
def test_is_valid_accepts(normalizer, code):
    assert normalizer.is_valid(code)


@pytest.mark.parametrize("code", [
    "CS101",     # not normalized
    "101",       # no department
    "CS--101",   # double hyphen
    "",          # empty
    "N/A",       # free text
    "CS -101",   # embedded whitespace
    "CS-101-2",  # multiple hyphens
    "CS-",       # no number
    "-101",      # no department
])
def test_is_valid_rejects(normalizer, code):
    assert not normalizer.is_valid(code)


def test_canonical(normalizer):
    """Test normalize + validate in one step."""
    assert normalizer.canonical("CS101") == "CS-101"
    assert normalizer.canonical("CS-202") == "CS-202"
    assert normalizer.canonical("N/A") is None
    assert normalizer.canonical("") is None


# Run tests if executed directly
if __name__ == "__main__":
    pytest.main([__file__, "-v"])
