"""
ClassRank - Compare instructors teaching the same course

CLI entry point for running an aggregation run.
"""

import argparse
import logging
import sys
from datetime import datetime, timezone

from classrank.agents.aggregation import CourseReportWriter
from classrank.agents.ingestion import MockReviewSource, RateMyProfessorsClient
from classrank.orchestrator import PipelineOrchestrator
import config.settings as settings


def setup_logging(log_level: str = "INFO"):
    """Configure logging for the entire application."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=settings.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(settings.LOG_FILE)
        ]
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="ClassRank - RateMyProfessors reviews grouped by course",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Aggregate the departments listed in config.yml
  python main.py

  # Aggregate a single department with a 12 month window
  python main.py --department RGVwYXJ0bWVudC00Ng== --cutoff-months 12

  # Offline run on synthetic data
  python main.py --mock
        """
    )

    parser.add_argument(
        "--config",
        default=str(settings.DEFAULT_CONFIG_PATH),
        help=f"YAML run config with schoolID and departmentID (default: {settings.DEFAULT_CONFIG_PATH})"
    )

    parser.add_argument(
        "--department",
        action="append",
        dest="departments",
        help="Department id to aggregate (repeatable, overrides the config file)"
    )

    parser.add_argument(
        "--school-id",
        help="School id (overrides the config file)"
    )

    parser.add_argument(
        "--cutoff-months",
        type=int,
        default=settings.REVIEW_CUTOFF_MONTHS,
        help=f"Ignore reviews older than this many months (default: {settings.REVIEW_CUTOFF_MONTHS})"
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=settings.FETCH_WORKERS,
        help=f"Concurrent review fetches (default: {settings.FETCH_WORKERS})"
    )

    parser.add_argument(
        "--output-dir",
        default=str(settings.OUTPUT_ROOT),
        help=f"Output directory (default: {settings.OUTPUT_ROOT})"
    )

    parser.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging level (default: {settings.LOG_LEVEL})"
    )

    parser.add_argument(
        "--mock",
        action="store_true",
        default=settings.USE_MOCK_DATA,
        help="Use synthetic instructors and reviews instead of the live API"
    )

    return parser


def main(argv=None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    try:
        if args.mock:
            school_id = args.school_id or "mock-school"
            departments = args.departments or ["mock-department"]
            source = MockReviewSource()
        else:
            run_config = None
            if not (args.school_id and args.departments):
                run_config = settings.load_run_config(args.config)
            school_id = args.school_id or run_config.school_id
            departments = args.departments or run_config.department_ids
            source = RateMyProfessorsClient(
                school_id=school_id,
                url=settings.RMP_GRAPHQL_URL,
                authorization=settings.RMP_AUTHORIZATION,
                teacher_page_size=settings.TEACHER_PAGE_SIZE,
                max_retries=settings.REQUEST_MAX_RETRIES,
                request_delay=settings.REQUEST_DELAY_SECONDS,
                timeout_seconds=settings.REQUEST_TIMEOUT_SECONDS
            )

        if not departments:
            logger.error("No departments to aggregate. Pass --department or list them in the config file.")
            sys.exit(1)

        logger.info(f"School: {school_id}, departments: {', '.join(departments)}")

        orchestrator = PipelineOrchestrator(
            teacher_source=source,
            review_source=source,
            cutoff_months=args.cutoff_months,
            fetch_workers=args.workers
        )

        now = datetime.now(timezone.utc)
        courses = orchestrator.run(departments, now=now)

        output_path = CourseReportWriter().write(
            courses,
            run_date=now.strftime("%Y-%m-%d"),
            output_dir=args.output_dir,
            departments=departments
        )

        logger.info(f"ClassRank completed successfully: {len(courses)} courses, table at {output_path}")
        sys.exit(0)

    except KeyboardInterrupt:
        logger.warning("Run interrupted by user")
        sys.exit(1)

    except Exception as e:
        logger.error(f"Run failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
