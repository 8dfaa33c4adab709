"""
Review data model.

Represents a single raw rating returned by the RateMyProfessors API.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# RMP returns dates like "2024-12-12 23:47:15 +0000 UTC"
RMP_DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z UTC"


class MalformedDate(ValueError):
    """Raised when a review date string cannot be parsed."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Malformed review date: {value!r}")


def parse_review_date(value: Any) -> datetime:
    """
    Parse a review date into an aware UTC datetime.

    Accepts the RMP wire format, ISO 8601 (with or without a trailing "Z")
    and bare YYYY-MM-DD dates. Datetime objects pass through, naive ones
    are assumed to be UTC.

    Raises:
        MalformedDate: If the value is not a recognised date
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            parsed = datetime.strptime(text, RMP_DATE_FORMAT)
        except ValueError:
            try:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                raise MalformedDate(value) from None
    else:
        raise MalformedDate(value)

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _would_take_again(node: Dict[str, Any]) -> Optional[bool]:
    # Newer schema: wouldTakeAgain is 1, 0 or null. Older: iWouldTakeAgain bool.
    if "wouldTakeAgain" in node:
        value = node["wouldTakeAgain"]
    else:
        value = node.get("iWouldTakeAgain")
    if value is None:
        return None
    return bool(value)


@dataclass(frozen=True)
class RawReview:
    """
    Raw review for one instructor.
    Date is kept as the wire string and parsed by the validity filter.
    """
    review_id: str
    course_code: str  # Free text, e.g. "MATH123"
    date: str
    grade: Optional[str] = None
    helpful_rating: int = 0
    clarity_rating: int = 0
    difficulty_rating: int = 0
    would_take_again: Optional[bool] = None  # yes / no / unknown
    comment: str = ""
    flag_status: str = "UNFLAGGED"

    @classmethod
    def from_graphql(cls, node: Dict[str, Any]) -> "RawReview":
        """Build from a rating node of a RatingsListQuery response."""
        difficulty = node.get("difficultyRating")
        if difficulty is None:
            difficulty = node.get("difficultyRatingRounded")
        return cls(
            review_id=str(node.get("id", "")),
            course_code=node.get("class") or "",
            date=node.get("date") or "",
            grade=node.get("grade") or None,
            helpful_rating=int(node.get("helpfulRating") or 0),
            clarity_rating=int(node.get("clarityRating") or 0),
            difficulty_rating=int(difficulty or 0),
            would_take_again=_would_take_again(node),
            comment=node.get("comment") or "",
            flag_status=node.get("flagStatus") or "UNFLAGGED",
        )
