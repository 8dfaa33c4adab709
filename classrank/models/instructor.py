"""
Instructor data model.

Represents a teacher card from the RateMyProfessors department search.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class RawInstructor:
    """
    Raw instructor record with the upstream aggregate fields.
    Averages are trusted as-is and never recomputed from reviews.
    """
    instructor_id: str
    first_name: str
    last_name: str
    avg_difficulty: float = 0.0
    avg_rating: float = 0.0
    num_ratings: int = 0
    would_take_again_percent: Optional[float] = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_graphql(cls, node: Dict[str, Any]) -> "RawInstructor":
        """Build from a teacher node of a TeacherSearch response."""
        avg_rating = node.get("avgRating")
        if avg_rating is None:
            avg_rating = node.get("avgRatingRounded")

        would_take_again = node.get("wouldTakeAgainPercent")
        if would_take_again is None:
            would_take_again = node.get("wouldTakeAgainPercentRounded")
        # RMP reports -1 when nobody answered the question
        if would_take_again is not None and would_take_again < 0:
            would_take_again = None

        return cls(
            instructor_id=str(node["id"]),
            first_name=node.get("firstName") or "",
            last_name=node.get("lastName") or "",
            avg_difficulty=float(node.get("avgDifficulty") or 0.0),
            avg_rating=float(avg_rating or 0.0),
            num_ratings=int(node.get("numRatings") or 0),
            would_take_again_percent=(
                float(would_take_again) if would_take_again is not None else None
            ),
        )
