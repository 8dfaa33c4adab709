"""
Unit tests for Review Validity Filter.
"""

import pytest
from datetime import datetime, timezone

from classrank.agents.validity import (
    ReviewValidityFilter,
    is_recent_enough,
    subtract_months,
)
from classrank.models.review import MalformedDate, RawReview


NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_review(date="2023-06-01 12:00:00 +0000 UTC", course_code="CS101", review_id="r-1"):
    return RawReview(review_id=review_id, course_code=course_code, date=date)


def test_subtract_months_calendar_arithmetic():
    assert subtract_months(NOW, 24) == datetime(2022, 1, 1, tzinfo=timezone.utc)
    assert subtract_months(NOW, 1) == datetime(2023, 12, 1, tzinfo=timezone.utc)
    assert subtract_months(NOW, 0) == NOW


def test_subtract_months_clamps_day():
    """Test the day is clamped to the end of a shorter month."""
    assert subtract_months(datetime(2024, 3, 31), 1) == datetime(2024, 2, 29)
    assert subtract_months(datetime(2023, 3, 31), 1) == datetime(2023, 2, 28)
    assert subtract_months(datetime(2024, 2, 29), 24) == datetime(2022, 2, 28)


def test_old_review_excluded():
    assert not is_recent_enough(datetime(2020, 1, 1, tzinfo=timezone.utc), 24, NOW)


def test_recent_review_included():
    assert is_recent_enough(datetime(2023, 6, 1, tzinfo=timezone.utc), 24, NOW)


def test_boundary_is_included():
    """Test a review dated exactly at the cutoff is kept."""
    limit = datetime(2022, 1, 1, tzinfo=timezone.utc)
    assert is_recent_enough(limit, 24, NOW)
    assert not is_recent_enough(datetime(2021, 12, 31, 23, 59, 59, tzinfo=timezone.utc), 24, NOW)


def test_naive_datetimes_treated_as_utc():
    assert is_recent_enough(datetime(2022, 1, 1), 24, datetime(2024, 1, 1))


def test_accepts_recent_review_with_valid_code():
    assert ReviewValidityFilter().accepts(make_review(), NOW)


def test_rejects_stale_review():
    review = make_review(date="2020-01-01 00:00:00 +0000 UTC")
    assert not ReviewValidityFilter().accepts(review, NOW)


def test_rejects_invalid_course_code():
    review = make_review(course_code="N/A")
    assert not ReviewValidityFilter().accepts(review, NOW)


def test_custom_cutoff():
    """Test a shorter window drops reviews a 24 month window would keep."""
    review = make_review(date="2023-06-01")
    assert ReviewValidityFilter(cutoff_months=24).accepts(review, NOW)
    assert not ReviewValidityFilter(cutoff_months=3).accepts(review, NOW)


def test_malformed_date_raises():
    """Test unparseable dates surface as MalformedDate, not a crash."""
    review = make_review(date="last tuesday")
    with pytest.raises(MalformedDate) as exc_info:
        ReviewValidityFilter().accepts(review, NOW)
    assert exc_info.value.value == "last tuesday"


def test_malformed_date_is_value_error():
    with pytest.raises(ValueError):
        ReviewValidityFilter().accepts(make_review(date=""), NOW)


def test_negative_cutoff_rejected():
    with pytest.raises(ValueError):
        ReviewValidityFilter(cutoff_months=-1)


# Run tests if executed directly
if __name__ == "__main__":
    pytest.main([__file__, "-v"])
