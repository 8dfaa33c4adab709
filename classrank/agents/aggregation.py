"""
Course Aggregator and Course Report Writer.

Folds professor summaries into per-course aggregates and writes the
finished mapping out as a course table.
"""

import json
import logging
import os
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Set

import pandas as pd

from classrank.agents.normalization import CourseCodeNormalizer
from classrank.models.course import Course, ProfessorSummary

logger = logging.getLogger(__name__)


class CourseAggregator:
    """
    Owns the course code -> Course mapping for one aggregation run.

    Lifecycle: construct, ingest once per accepted review, finalize once.
    Not safe for concurrent ingest; callers serialize access.
    """

    def __init__(self, normalizer: Optional[CourseCodeNormalizer] = None):
        self.normalizer = normalizer or CourseCodeNormalizer()
        self._review_counts: Dict[str, int] = {}
        self._professors: Dict[str, List[ProfessorSummary]] = {}
        self._seen: Dict[str, Set[str]] = {}  # course code -> professor names
        self._finalized = False

    def __len__(self) -> int:
        return len(self._review_counts)

    def __contains__(self, course_code: str) -> bool:
        return course_code in self._review_counts

    def ingest(self, course_code: str, professor: ProfessorSummary) -> None:
        """
        Record one accepted review of `professor` for `course_code`.

        The review count always increments; the professor is appended
        only the first time its name shows up for the course.

        Raises:
            ValueError: If course_code is not a canonical code
            RuntimeError: If the aggregator was already finalized
        """
        if self._finalized:
            raise RuntimeError("Cannot ingest into a finalized aggregator")
        if not self.normalizer.is_valid(course_code):
            raise ValueError(f"Invalid course code: {course_code!r}. Normalize and validate before ingesting")

        if course_code not in self._review_counts:
            self._review_counts[course_code] = 1
            self._professors[course_code] = [professor]
            self._seen[course_code] = {professor.name}
            logger.debug(f"New course {course_code} from {professor.name}")
            return

        self._review_counts[course_code] += 1

        names = self._seen[course_code]
        if professor.name not in names:
            names.add(professor.name)
            self._professors[course_code].append(professor)

    def finalize(self) -> Mapping[str, Course]:
        """
        End the run and hand back a read-only snapshot.

        Returns:
            Mapping of course code -> frozen Course with professors as tuples
        """
        self._finalized = True
        snapshot = {
            code: Course(
                code=code,
                num_professors=len(self._professors[code]),
                num_reviews=num_reviews,
                professors=tuple(self._professors[code])
            )
            for code, num_reviews in self._review_counts.items()
        }
        logger.info(
            f"Aggregated {len(snapshot)} courses "
            f"({sum(c.num_reviews for c in snapshot.values())} reviews)"
        )
        return MappingProxyType(snapshot)


class CourseReportWriter:
    """
    Writes a finalized course mapping as a CSV table plus metadata JSON.
    """

    COLUMNS = [
        "Course", "Professors", "Course Reviews", "Professor",
        "Avg Rating", "Would Take Again %", "Avg Grade",
        "Professor Reviews", "Top Review"
    ]

    def to_dataframe(self, courses: Mapping[str, Course]) -> pd.DataFrame:
        """
        Flatten courses into one row per (course, professor).

        Sorted by course code, then by average rating (highest first).
        """
        rows = []
        for course in courses.values():
            for professor in course.professors:
                rows.append({
                    "Course": course.code,
                    "Professors": course.num_professors,
                    "Course Reviews": course.num_reviews,
                    "Professor": professor.name,
                    "Avg Rating": professor.avg_rating,
                    "Would Take Again %": professor.avg_would_take_again,
                    "Avg Grade": professor.avg_grade,
                    "Professor Reviews": professor.num_reviews,
                    "Top Review": professor.top_review
                })

        df = pd.DataFrame(rows, columns=self.COLUMNS)
        if df.empty:
            logger.warning("No courses found, creating empty course table")
            return df

        df = df.sort_values(["Course", "Avg Rating"], ascending=[True, False], kind="stable")
        return df.reset_index(drop=True)

    def write(
        self,
        courses: Mapping[str, Course],
        run_date: str,
        output_dir: str = "output",
        departments: Optional[List[str]] = None
    ) -> str:
        """
        Write the course table for a run.

        Args:
            courses: Finalized course mapping
            run_date: Run date in YYYY-MM-DD format, used in file names
            output_dir: Directory to save CSV output
            departments: Department ids the run covered

        Returns:
            Path to generated CSV file
        """
        df = self.to_dataframe(courses)

        os.makedirs(output_dir, exist_ok=True)
        output_path = os.path.join(output_dir, f"courses_{run_date}.csv")
        df.to_csv(output_path, index=False)

        logger.info(f"Course table saved to {output_path} ({len(courses)} courses, {len(df)} rows)")

        metadata_path = os.path.join(output_dir, f"courses_{run_date}_metadata.json")
        metadata = {
            "run_date": run_date,
            "departments": departments or [],
            "total_courses": len(courses),
            "total_reviews": sum(c.num_reviews for c in courses.values()),
            "generated_at": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        }
        with open(metadata_path, 'w') as f:
            json.dump(metadata, f, indent=2)

        logger.info(f"Metadata saved to {metadata_path}")

        return output_path
