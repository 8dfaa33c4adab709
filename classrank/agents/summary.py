"""
Professor Summary Builder.

Turns a raw instructor record plus its reviews into a single
ProfessorSummary for the aggregation run.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from classrank.agents.validity import ReviewValidityFilter
from classrank.models.course import NOT_AVAILABLE, ProfessorSummary
from classrank.models.instructor import RawInstructor
from classrank.models.review import MalformedDate, RawReview

logger = logging.getLogger(__name__)


# 4.0 scale, best first so ties round up
GRADE_POINTS = [
    ("A+", 4.0),
    ("A", 4.0),
    ("A-", 3.7),
    ("B+", 3.3),
    ("B", 3.0),
    ("B-", 2.7),
    ("C+", 2.3),
    ("C", 2.0),
    ("C-", 1.7),
    ("D+", 1.3),
    ("D", 1.0),
    ("D-", 0.7),
    ("F", 0.0),
]
_POINTS_BY_GRADE = dict(GRADE_POINTS)

MALFORMED_DATE_POLICIES = ("skip", "abort")


def average_grade(grades: Iterable[Optional[str]]) -> str:
    """
    Average letter grades on the 4.0 scale and map back to a letter.

    Non-letter values ("Not sure yet", "Audit/No Grade", blanks) are
    ignored. Returns "N/A" when nothing is left to average.
    """
    points = []
    for grade in grades:
        if not grade:
            continue
        value = _POINTS_BY_GRADE.get(grade.strip().upper())
        if value is not None:
            points.append(value)

    if not points:
        return NOT_AVAILABLE

    mean = sum(points) / len(points)
    # "A+" shares 4.0 with "A"; report "A". Distances are rounded so exact
    # ties go to the earlier (better) grade.
    letter, _ = min(GRADE_POINTS[1:], key=lambda item: round(abs(item[1] - mean), 6))
    return letter


def pick_top_review(reviews: Iterable[RawReview]) -> str:
    """Comment of the most helpful, clearest unflagged review."""
    best = None
    best_score = None
    for review in reviews:
        if not review.comment or not review.comment.strip():
            continue
        if review.flag_status.upper() == "FLAGGED":
            continue
        score = review.helpful_rating + review.clarity_rating
        if best_score is None or score > best_score:
            best = review
            best_score = score
    return best.comment.strip() if best else NOT_AVAILABLE


class ProfessorSummaryBuilder:
    """
    Builds one ProfessorSummary per instructor.

    Average rating and would-take-again come straight from the
    instructor record. Review-derived fields (accepted count, top
    review, average grade) come from a single pass over the reviews
    that pass the validity filter.
    """

    def __init__(
        self,
        validity_filter: Optional[ReviewValidityFilter] = None,
        malformed_date_policy: str = "skip"
    ):
        """
        Initialize summary builder.

        Args:
            validity_filter: Filter applied to every review
            malformed_date_policy: "skip" drops reviews with unparseable
                dates, "abort" re-raises MalformedDate
        """
        if malformed_date_policy not in MALFORMED_DATE_POLICIES:
            raise ValueError(
                f"Invalid malformed_date_policy: {malformed_date_policy}. "
                f"Must be one of {MALFORMED_DATE_POLICIES}"
            )
        self.validity_filter = validity_filter or ReviewValidityFilter()
        self.malformed_date_policy = malformed_date_policy

    def accepted_reviews(self, reviews: Iterable[RawReview], now: datetime) -> List[RawReview]:
        """
        Filter reviews down to the ones eligible for aggregation.

        Raises:
            MalformedDate: Only when the policy is "abort"
        """
        accepted = []
        for review in reviews:
            try:
                if self.validity_filter.accepts(review, now):
                    accepted.append(review)
            except MalformedDate as e:
                if self.malformed_date_policy == "abort":
                    raise
                logger.warning(f"Skipping review {review.review_id}: {e}")
        return accepted

    def summarize(self, instructor: RawInstructor, accepted: List[RawReview]) -> ProfessorSummary:
        """Build a summary from reviews that were already accepted."""
        return ProfessorSummary(
            name=instructor.display_name,
            num_reviews=len(accepted),
            avg_rating=instructor.avg_rating,
            avg_would_take_again=instructor.would_take_again_percent,
            top_review=pick_top_review(accepted),
            avg_grade=average_grade(review.grade for review in accepted)
        )

    def build(
        self,
        instructor: RawInstructor,
        reviews: Iterable[RawReview],
        now: datetime
    ) -> ProfessorSummary:
        """
        Filter the instructor's reviews and build their summary.

        Args:
            instructor: Raw instructor record
            reviews: All reviews fetched for the instructor
            now: Reference time for the recency window

        Returns:
            ProfessorSummary for the instructor
        """
        accepted = self.accepted_reviews(reviews, now)
        summary = self.summarize(instructor, accepted)
        logger.debug(f"Built summary for {summary.name}: {summary.num_reviews} accepted reviews")
        return summary
