"""
Review Validity Filter.

Decides whether a single review is eligible for course aggregation.
"""

import calendar
import logging
from datetime import datetime, timezone
from typing import Optional

from classrank.agents.normalization import CourseCodeNormalizer
from classrank.models.review import RawReview, parse_review_date

logger = logging.getLogger(__name__)


def subtract_months(moment: datetime, months: int) -> datetime:
    """
    Calendar-month subtraction.

    The day is clamped to the end of the target month, so
    2024-03-31 minus one month is 2024-02-29.
    """
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def is_recent_enough(review_date: datetime, cutoff_months: int, now: datetime) -> bool:
    """
    Check a review date against the recency window.

    Returns:
        True iff review_date >= now - cutoff_months (boundary included)
    """
    limit = subtract_months(_as_utc(now), cutoff_months)
    return _as_utc(review_date) >= limit


class ReviewValidityFilter:
    """
    Accepts a review iff it falls inside the recency window and its
    course code normalizes to a valid DEPT-NUMBER code.

    Stale reviews and invalid course codes are filtering outcomes and
    never raise. An unparseable date raises MalformedDate so the caller
    can choose to skip the review or abort the run.
    """

    def __init__(
        self,
        cutoff_months: int = 24,
        normalizer: Optional[CourseCodeNormalizer] = None
    ):
        """
        Initialize validity filter.

        Args:
            cutoff_months: Size of the recency window in calendar months
            normalizer: Course code normalizer (a default one is created if omitted)
        """
        if cutoff_months < 0:
            raise ValueError(f"Invalid cutoff_months: {cutoff_months}. Must be >= 0")
        self.cutoff_months = cutoff_months
        self.normalizer = normalizer or CourseCodeNormalizer()

    def is_recent_enough(self, review_date: datetime, now: datetime) -> bool:
        return is_recent_enough(review_date, self.cutoff_months, now)

    def accepts(self, review: RawReview, now: datetime) -> bool:
        """
        Decide whether a review takes part in aggregation.

        Raises:
            MalformedDate: If the review date cannot be parsed
        """
        review_date = parse_review_date(review.date)

        if not self.is_recent_enough(review_date, now):
            logger.debug(f"Review {review.review_id} dated {review.date} is outside the window")
            return False

        if self.normalizer.canonical(review.course_code) is None:
            logger.debug(f"Review {review.review_id} has invalid course code {review.course_code!r}")
            return False

        return True
