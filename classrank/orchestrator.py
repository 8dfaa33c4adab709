"""
Pipeline Orchestrator.

Runs one aggregation run: instructors -> reviews -> summaries -> courses.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import closing
from datetime import datetime, timezone
from typing import Iterable, Iterator, List, Mapping, Optional, Tuple

from classrank.agents.aggregation import CourseAggregator
from classrank.agents.ingestion import IngestionError, ReviewSource, TeacherSource
from classrank.agents.normalization import CourseCodeNormalizer
from classrank.agents.summary import ProfessorSummaryBuilder
from classrank.agents.validity import ReviewValidityFilter
from classrank.models.course import Course
from classrank.models.instructor import RawInstructor
from classrank.models.review import RawReview
import config.settings as settings

logger = logging.getLogger(__name__)


class PipelineOrchestrator:
    """
    Orchestrates a single aggregation run.

    Coordinates:
    1. Teacher listing → 2. Review fetch → 3. Filtering + summary
    → 4. Course aggregation (one ingest per accepted review)

    Review fetches may run on a thread pool; everything from step 3 on
    runs on the calling thread in instructor order.
    """

    def __init__(
        self,
        teacher_source: TeacherSource,
        review_source: ReviewSource,
        cutoff_months: int = settings.REVIEW_CUTOFF_MONTHS,
        review_page_size: int = settings.REVIEW_PAGE_SIZE,
        malformed_date_policy: str = settings.MALFORMED_DATE_POLICY,
        fetch_workers: int = settings.FETCH_WORKERS,
        continue_on_failure: bool = settings.CONTINUE_ON_INSTRUCTOR_FAILURE
    ):
        """
        Initialize pipeline orchestrator.

        Args:
            teacher_source: Supplies instructors per department
            review_source: Supplies reviews per instructor
            cutoff_months: Recency window for reviews
            review_page_size: Page size passed to the review source
            malformed_date_policy: "skip" or "abort"
            fetch_workers: Threads used for review fetching (1 = sequential)
            continue_on_failure: Skip instructors whose reviews cannot be fetched
        """
        self.teacher_source = teacher_source
        self.review_source = review_source
        self.review_page_size = review_page_size
        self.fetch_workers = max(1, fetch_workers)
        self.continue_on_failure = continue_on_failure

        self.normalizer = CourseCodeNormalizer()
        self.validity_filter = ReviewValidityFilter(
            cutoff_months=cutoff_months,
            normalizer=self.normalizer
        )
        self.summary_builder = ProfessorSummaryBuilder(
            validity_filter=self.validity_filter,
            malformed_date_policy=malformed_date_policy
        )

        logger.info(
            f"Pipeline initialized (cutoff={cutoff_months} months, "
            f"workers={self.fetch_workers}, malformed dates={malformed_date_policy})"
        )

    def run(
        self,
        department_ids: Iterable[str],
        now: Optional[datetime] = None
    ) -> Mapping[str, Course]:
        """
        Aggregate every instructor of the given departments by course.

        Args:
            department_ids: RMP department ids
            now: Reference time for the recency window (defaults to current UTC time)

        Returns:
            Read-only mapping of course code -> Course
        """
        now = now or datetime.now(timezone.utc)
        aggregator = CourseAggregator(normalizer=self.normalizer)

        instructors = self._list_instructors(department_ids)
        if not instructors:
            logger.warning("No instructors found, returning empty course mapping")
            return aggregator.finalize()

        logger.info(f"Processing {len(instructors)} instructors")

        processed = 0
        with closing(self._fetch_reviews(instructors)) as fetched:
            for instructor, reviews in fetched:
                if reviews is None:
                    continue
                self._process_instructor(aggregator, instructor, reviews, now)
                processed += 1

        logger.info(f"Processed {processed}/{len(instructors)} instructors into {len(aggregator)} courses")
        return aggregator.finalize()

    def _list_instructors(self, department_ids: Iterable[str]) -> List[RawInstructor]:
        """List instructors across departments, dropping repeats by id."""
        instructors = []
        seen_ids = set()
        for department_id in department_ids:
            for instructor in self.teacher_source.list_instructors(department_id):
                if instructor.instructor_id in seen_ids:
                    continue
                seen_ids.add(instructor.instructor_id)
                instructors.append(instructor)
        return instructors

    def _fetch_one(self, instructor: RawInstructor) -> Optional[List[RawReview]]:
        try:
            return self.review_source.list_reviews(instructor.instructor_id, self.review_page_size)
        except IngestionError as e:
            logger.error(f"Failed to fetch reviews for {instructor.display_name}: {e}")
            if self.continue_on_failure:
                logger.warning("Continuing to next instructor (graceful degradation)")
                return None
            raise

    def _fetch_reviews(
        self,
        instructors: List[RawInstructor]
    ) -> Iterator[Tuple[RawInstructor, Optional[List[RawReview]]]]:
        """Yield (instructor, reviews) pairs in instructor order."""
        if self.fetch_workers == 1:
            for instructor in instructors:
                yield instructor, self._fetch_one(instructor)
            return

        executor = ThreadPoolExecutor(max_workers=self.fetch_workers)
        futures = [executor.submit(self._fetch_one, instructor) for instructor in instructors]
        try:
            for instructor, future in zip(instructors, futures):
                yield instructor, future.result()
        finally:
            # Queued fetches are dropped if the consumer stops early
            executor.shutdown(wait=False, cancel_futures=True)

    def _process_instructor(
        self,
        aggregator: CourseAggregator,
        instructor: RawInstructor,
        reviews: List[RawReview],
        now: datetime
    ) -> None:
        """Summarize one instructor and ingest each accepted review."""
        if not reviews:
            logger.debug(f"No reviews for {instructor.display_name}")
            return

        accepted = self.summary_builder.accepted_reviews(reviews, now)
        summary = self.summary_builder.summarize(instructor, accepted)

        for review in accepted:
            aggregator.ingest(self.normalizer.normalize(review.course_code), summary)

        logger.info(
            f"{instructor.display_name}: {len(accepted)}/{len(reviews)} reviews accepted"
        )
