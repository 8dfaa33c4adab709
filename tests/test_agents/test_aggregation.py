"""
Unit tests for Course Aggregator and Course Report Writer.
"""

import pytest
import json
import os
import tempfile
from dataclasses import FrozenInstanceError

import pandas as pd

from classrank.agents.aggregation import CourseAggregator, CourseReportWriter
from classrank.models.course import ProfessorSummary


def professor(name, rating=4.0, num_reviews=1):
    return ProfessorSummary(name=name, num_reviews=num_reviews, avg_rating=rating)


def test_first_ingest_creates_course():
    aggregator = CourseAggregator()
    jane = professor("Jane Doe")
    aggregator.ingest("CS-101", jane)

    courses = aggregator.finalize()
    course = courses["CS-101"]
    assert course.code == "CS-101"
    assert course.num_professors == 1
    assert course.num_reviews == 1
    assert list(course.professors) == [jane]


def test_repeat_professor_counts_review_but_not_professor():
    aggregator = CourseAggregator()
    jane = professor("Jane Doe")
    for _ in range(3):
        aggregator.ingest("CS-101", jane)

    course = aggregator.finalize()["CS-101"]
    assert course.num_professors == 1
    assert course.num_reviews == 3
    assert course.professor_names == ["Jane Doe"]


def test_two_professors_on_one_course():
    """Test dedup by display name and total review counting."""
    aggregator = CourseAggregator()
    a = professor("Alice Adams")
    b = professor("Bob Brown")
    aggregator.ingest("MATH-123", a)
    aggregator.ingest("MATH-123", b)
    aggregator.ingest("MATH-123", a)
    aggregator.ingest("MATH-123", b)
    aggregator.ingest("MATH-123", b)

    course = aggregator.finalize()["MATH-123"]
    assert course.num_professors == 2
    assert course.num_reviews == 5
    assert course.professor_names == ["Alice Adams", "Bob Brown"]


def test_professor_order_is_first_seen():
    aggregator = CourseAggregator()
    aggregator.ingest("CS-101", professor("Zed", rating=1.0))
    aggregator.ingest("CS-101", professor("Amy", rating=5.0))

    course = aggregator.finalize()["CS-101"]
    assert course.professor_names == ["Zed", "Amy"]


def test_invalid_course_code_rejected():
    """Test ingesting an unvalidated code is a caller error and leaves state untouched."""
    aggregator = CourseAggregator()
    aggregator.ingest("CS-101", professor("Jane Doe"))

    for bad in ["N/A", "CS101", ""]:
        with pytest.raises(ValueError):
            aggregator.ingest(bad, professor("Jane Doe"))

    courses = aggregator.finalize()
    assert sorted(courses) == ["CS-101"]
    assert courses["CS-101"].num_reviews == 1


def test_finalize_returns_read_only_snapshot():
    aggregator = CourseAggregator()
    aggregator.ingest("CS-101", professor("Jane Doe"))
    courses = aggregator.finalize()

    with pytest.raises(TypeError):
        courses["CS-999"] = None
    assert isinstance(courses["CS-101"].professors, tuple)


def test_finalized_course_values_are_frozen():
    aggregator = CourseAggregator()
    aggregator.ingest("CS-101", professor("Jane Doe"))
    course = aggregator.finalize()["CS-101"]

    with pytest.raises(FrozenInstanceError):
        course.num_reviews = 99
    with pytest.raises(FrozenInstanceError):
        course.num_professors = -5
    assert course.num_reviews == 1
    assert course.num_professors == 1


def test_ingest_after_finalize_fails():
    aggregator = CourseAggregator()
    aggregator.finalize()
    with pytest.raises(RuntimeError):
        aggregator.ingest("CS-101", professor("Jane Doe"))


def test_empty_aggregator():
    aggregator = CourseAggregator()
    assert len(aggregator) == 0
    assert dict(aggregator.finalize()) == {}


def test_len_and_contains():
    aggregator = CourseAggregator()
    aggregator.ingest("CS-101", professor("Jane Doe"))
    aggregator.ingest("CS-202", professor("Jane Doe"))
    assert len(aggregator) == 2
    assert "CS-101" in aggregator
    assert "CS-303" not in aggregator


@pytest.fixture
def finalized_courses():
    aggregator = CourseAggregator()
    aggregator.ingest("MATH-123", professor("Low Rated", rating=2.0))
    aggregator.ingest("MATH-123", professor("High Rated", rating=4.8))
    aggregator.ingest("CS-101", professor("Jane Doe", rating=4.5))
    aggregator.ingest("CS-101", professor("Jane Doe", rating=4.5))
    return aggregator.finalize()


def test_report_dataframe_sorted(finalized_courses):
    df = CourseReportWriter().to_dataframe(finalized_courses)

    assert list(df["Course"]) == ["CS-101", "MATH-123", "MATH-123"]
    assert list(df["Professor"]) == ["Jane Doe", "High Rated", "Low Rated"]
    assert list(df["Course Reviews"]) == [2, 2, 2]


def test_report_dataframe_empty():
    df = CourseReportWriter().to_dataframe({})
    assert df.empty
    assert list(df.columns) == CourseReportWriter.COLUMNS


def test_report_write(finalized_courses):
    with tempfile.TemporaryDirectory() as tmpdir:
        output_path = CourseReportWriter().write(
            finalized_courses,
            run_date="2024-01-01",
            output_dir=tmpdir,
            departments=["dept-1"]
        )

        assert output_path == os.path.join(tmpdir, "courses_2024-01-01.csv")
        df = pd.read_csv(output_path)
        assert len(df) == 3

        with open(os.path.join(tmpdir, "courses_2024-01-01_metadata.json")) as f:
            metadata = json.load(f)
        assert metadata["total_courses"] == 2
        assert metadata["total_reviews"] == 4
        assert metadata["departments"] == ["dept-1"]


# Run tests if executed directly
if __name__ == "__main__":
    pytest.main([__file__, "-v"])
