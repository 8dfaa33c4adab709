"""
Ingestion Agent.

Fetches instructors and their reviews from the RateMyProfessors GraphQL API.
Supports both the live API and mock data for testing.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

import requests

from classrank.agents.validity import subtract_months
from classrank.models.instructor import RawInstructor
from classrank.models.review import RawReview

logger = logging.getLogger(__name__)


TEACHER_SEARCH_QUERY = """
query TeacherSearchPaginationQuery(
  $count: Int!
  $cursor: String
  $query: TeacherSearchQuery!
) {
  search: newSearch {
    teachers(query: $query, first: $count, after: $cursor) {
      edges {
        cursor
        node {
          id
          firstName
          lastName
          avgRating
          avgDifficulty
          numRatings
          wouldTakeAgainPercent
        }
      }
      pageInfo {
        hasNextPage
        endCursor
      }
      resultCount
    }
  }
}
"""

RATINGS_LIST_QUERY = """
query RatingsListQuery(
  $count: Int!
  $id: ID!
  $cursor: String
) {
  node(id: $id) {
    __typename
    ... on Teacher {
      id
      lastName
      numRatings
      ratings(first: $count, after: $cursor) {
        edges {
          cursor
          node {
            id
            class
            date
            grade
            comment
            flagStatus
            helpfulRating
            clarityRating
            difficultyRating
            wouldTakeAgain
          }
        }
        pageInfo {
          hasNextPage
          endCursor
        }
      }
    }
    id
  }
}
"""


class IngestionError(RuntimeError):
    """Raised when the review API cannot supply a page of results."""


class TeacherSource(Protocol):
    def list_instructors(self, department_id: str) -> List[RawInstructor]:
        ...


class ReviewSource(Protocol):
    def list_reviews(self, instructor_id: str, page_size: int) -> List[RawReview]:
        ...


class RateMyProfessorsClient:
    """
    Teacher and review source backed by the RateMyProfessors GraphQL API.

    Both listings follow pageInfo.hasNextPage / endCursor until the
    connection is exhausted, so callers always get complete sequences.
    """

    def __init__(
        self,
        school_id: str,
        url: str = "https://www.ratemyprofessors.com/graphql",
        authorization: str = "Basic dGVzdDp0ZXN0",
        teacher_page_size: int = 500,
        max_retries: int = 3,
        request_delay: float = 1.0,
        timeout_seconds: int = 30,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize API client.

        Args:
            school_id: RMP school id (base64 "School-<n>")
            url: GraphQL endpoint
            authorization: Value of the Authorization header
            teacher_page_size: Page size for the teacher search
            max_retries: Attempts per page before giving up
            request_delay: Seconds to wait between retries
            timeout_seconds: HTTP request timeout
            session: Optional requests session (a new one is created if omitted)
        """
        self.school_id = school_id
        self.url = url
        self.teacher_page_size = teacher_page_size
        self.max_retries = max_retries
        self.request_delay = request_delay
        self.timeout_seconds = timeout_seconds

        self.session = session or requests.Session()
        self.headers = {
            "Authorization": authorization,
            "Content-Type": "application/json",
            "Accept": "*/*",
            "Referer": "https://www.ratemyprofessors.com/",
        }

        logger.info(f"Initialized RateMyProfessorsClient for school={school_id}")

    def _post(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST one GraphQL query and return its "data" object.

        Raises:
            IngestionError: If every attempt fails or GraphQL reports errors
        """
        payload = {"query": query, "variables": variables}

        for attempt in range(self.max_retries):
            try:
                response = self.session.post(
                    self.url,
                    headers=self.headers,
                    json=payload,
                    timeout=self.timeout_seconds
                )
                response.raise_for_status()
                body = response.json()
            except (requests.RequestException, ValueError) as e:
                logger.error(f"GraphQL request failed (attempt {attempt + 1}): {e}")
                if attempt == self.max_retries - 1:
                    raise IngestionError(f"GraphQL request failed after {self.max_retries} attempts: {e}") from e
                time.sleep(self.request_delay)
                continue

            if body.get("errors"):
                raise IngestionError(f"GraphQL returned errors: {body['errors']}")
            return body.get("data") or {}

        raise IngestionError("GraphQL request was never attempted (max_retries < 1)")

    def list_instructors(self, department_id: str) -> List[RawInstructor]:
        """
        Fetch every instructor in a department.

        Args:
            department_id: RMP department id (base64 "Department-<n>")

        Returns:
            List of RawInstructor objects
        """
        instructors = []
        cursor = ""
        while True:
            data = self._post(TEACHER_SEARCH_QUERY, {
                "count": self.teacher_page_size,
                "cursor": cursor,
                "query": {
                    "text": "",
                    "schoolID": self.school_id,
                    "fallback": False,
                    "departmentID": department_id,
                },
            })
            teachers = (data.get("search") or {}).get("teachers") or {}

            for edge in teachers.get("edges") or []:
                try:
                    instructors.append(RawInstructor.from_graphql(edge["node"]))
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning(f"Invalid teacher node in department {department_id}: {e}")

            page_info = teachers.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                break
            next_cursor = page_info.get("endCursor") or ""
            if not next_cursor or next_cursor == cursor:
                logger.warning(
                    f"Teacher search for department {department_id} reported another page "
                    f"without a new cursor, stopping at {len(instructors)} instructors"
                )
                break
            cursor = next_cursor

        logger.info(f"Fetched {len(instructors)} instructors for department {department_id}")
        return instructors

    def list_reviews(self, instructor_id: str, page_size: int = 200) -> List[RawReview]:
        """
        Fetch every review for an instructor.

        Args:
            instructor_id: RMP teacher id
            page_size: Ratings requested per page

        Returns:
            List of RawReview objects in API order
        """
        reviews = []
        cursor = ""
        while True:
            data = self._post(RATINGS_LIST_QUERY, {
                "count": page_size,
                "id": instructor_id,
                "cursor": cursor,
            })
            ratings = (data.get("node") or {}).get("ratings") or {}

            for edge in ratings.get("edges") or []:
                node = edge.get("node")
                if not node:
                    continue
                try:
                    reviews.append(RawReview.from_graphql(node))
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning(f"Invalid rating node for instructor {instructor_id}: {e}")

            page_info = ratings.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                break
            next_cursor = page_info.get("endCursor") or ""
            if not next_cursor or next_cursor == cursor:
                logger.warning(
                    f"Ratings for instructor {instructor_id} reported another page "
                    f"without a new cursor, stopping at {len(reviews)} reviews"
                )
                break
            cursor = next_cursor

        logger.debug(f"Fetched {len(reviews)} reviews for instructor {instructor_id}")
        return reviews


class MockReviewSource:
    """
    Deterministic synthetic instructors and reviews for offline runs.

    Several instructors share courses, course codes come in both "CS101"
    and "CS-101" shapes, and a few reviews are stale or have unusable
    course fields so the filters have something to do.
    """

    INSTRUCTORS = [
        ("Jane", "Doe", 4.5, 2.8, 92.0),
        ("John", "Smith", 3.1, 3.9, 55.0),
        ("Ana", "Lopez", 4.8, 3.2, 97.0),
        ("Wei", "Chen", 2.4, 4.4, 31.0),
    ]

    # (course, months ago, grade, helpful, clarity, comment)
    TEMPLATES = [
        ("CS101", 2, "A", 5, 5, "Clear lectures and fair exams."),
        ("CS-101", 7, "B+", 4, 4, "Lots of homework but you learn a lot."),
        ("CS202", 11, "A-", 5, 4, "Projects are hard, office hours help."),
        ("MATH123", 4, "B", 3, 3, "Tough grader, explains proofs well."),
        ("MATH-204", 15, "C+", 2, 2, "Exams do not match the homework."),
        ("N/A", 3, None, 4, 4, "Took this as an elective."),
        ("PHYS150", 40, "A", 5, 5, "Best class I took years ago."),
    ]

    def __init__(self, now: Optional[datetime] = None):
        self.now = now

    def list_instructors(self, department_id: str) -> List[RawInstructor]:
        instructors = [
            RawInstructor(
                instructor_id=f"mock-{department_id}-{i}",
                first_name=first,
                last_name=last,
                avg_rating=rating,
                avg_difficulty=difficulty,
                num_ratings=len(self.TEMPLATES),
                would_take_again_percent=would_take_again
            )
            for i, (first, last, rating, difficulty, would_take_again) in enumerate(self.INSTRUCTORS)
        ]
        logger.info(f"Generated {len(instructors)} mock instructors for {department_id}")
        return instructors

    def list_reviews(self, instructor_id: str, page_size: int = 200) -> List[RawReview]:
        now = self.now or datetime.now(timezone.utc)
        seed = sum(ord(c) for c in instructor_id)

        reviews = []
        for i, (course, months_ago, grade, helpful, clarity, comment) in enumerate(self.TEMPLATES):
            # Each instructor skips a different template
            if (i + seed) % 3 == 0:
                continue
            date = subtract_months(now, months_ago)
            reviews.append(RawReview(
                review_id=f"{instructor_id}-r{i}",
                course_code=course,
                date=date.strftime("%Y-%m-%d %H:%M:%S +0000 UTC"),
                grade=grade,
                helpful_rating=helpful,
                clarity_rating=clarity,
                difficulty_rating=3,
                would_take_again=helpful >= 4,
                comment=comment
            ))
        return reviews[:page_size]
