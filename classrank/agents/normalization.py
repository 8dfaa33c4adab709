"""
Course Code Normalizer.

Canonicalizes free-text course codes from reviews into DEPT-NUMBER form
and checks that the result has the expected shape.
"""

import logging
import re
from typing import Optional

logger = logging.getLogger(__name__)


# A run of letters directly followed by a run of digits, e.g. "MATH123"
LETTER_DIGIT_BOUNDARY = re.compile(r"([A-Za-z]+)([0-9]+)")

# Department (no digits, hyphens or whitespace), one hyphen, course number
CANONICAL_CODE = re.compile(r"[^0-9\-\s]+-[0-9]+")


class CourseCodeNormalizer:
    """
    Converts raw course codes like "CS101" into "CS-101".

    Normalization only inserts the hyphen; case is preserved, so
    "cs101" and "CS101" stay distinct courses.
    """

    def normalize(self, raw: str) -> str:
        """
        Insert a hyphen at every letter/digit boundary.

        Codes without such a boundary (including already-hyphenated
        codes) are returned unchanged, so normalizing twice is a no-op.
        """
        if not raw:
            return ""
        return LETTER_DIGIT_BOUNDARY.sub(r"\1-\2", raw)

    def is_valid(self, code: str) -> bool:
        """Check that an already-normalized code is exactly DEPT-NUMBER."""
        if not code:
            return False
        return CANONICAL_CODE.fullmatch(code) is not None

    def canonical(self, raw: str) -> Optional[str]:
        """
        Normalize and validate in one step.

        Returns:
            The canonical code, or None when the review's course field
            cannot be turned into a valid code
        """
        code = self.normalize(raw)
        if not self.is_valid(code):
            logger.debug(f"Rejected course code {raw!r} (normalized: {code!r})")
            return None
        return code
