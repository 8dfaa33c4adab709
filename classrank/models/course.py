"""
Course data model.

Represents per-instructor summaries and the per-course aggregates
built from them during an aggregation run.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence


NOT_AVAILABLE = "N/A"


@dataclass(frozen=True)
class ProfessorSummary:
    """
    Aggregated view of one instructor, built once per run.
    Reused across every course the instructor was reviewed for.
    """
    name: str  # Display name, also the dedup key within a course
    num_reviews: int = 0  # Accepted reviews only
    avg_rating: float = 0.0
    avg_would_take_again: Optional[float] = None
    top_review: str = NOT_AVAILABLE
    avg_grade: str = NOT_AVAILABLE

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "name": self.name,
            "num_reviews": self.num_reviews,
            "avg_rating": self.avg_rating,
            "avg_would_take_again": self.avg_would_take_again,
            "top_review": self.top_review,
            "avg_grade": self.avg_grade
        }


@dataclass(frozen=True)
class Course:
    """
    All professors reviewed for one normalized course code.
    Professors are kept in first-seen order.

    Built once by CourseAggregator.finalize and never changed afterwards.
    """
    code: str  # Canonical DEPT-NUMBER form
    num_professors: int = 0
    num_reviews: int = 0
    professors: Sequence[ProfessorSummary] = field(default_factory=tuple)

    @property
    def professor_names(self) -> List[str]:
        return [professor.name for professor in self.professors]

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "code": self.code,
            "num_professors": self.num_professors,
            "num_reviews": self.num_reviews,
            "professors": [p.to_dict() for p in self.professors]
        }
