"""
Configuration settings for ClassRank.

Centralized configuration for all agents and pipeline parameters.
Per-run school and department ids live in a YAML file (config.yml).
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

import yaml

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
OUTPUT_ROOT = PROJECT_ROOT / "output"
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config.yml"

# RateMyProfessors API
RMP_GRAPHQL_URL = "https://www.ratemyprofessors.com/graphql"
RMP_AUTHORIZATION = "Basic dGVzdDp0ZXN0"  # Public web client credentials
RMP_SCHOOL_ID = os.getenv("RMP_SCHOOL_ID", "")
TEACHER_PAGE_SIZE = 500
REVIEW_PAGE_SIZE = 200
REQUEST_TIMEOUT_SECONDS = 30
REQUEST_MAX_RETRIES = 3
REQUEST_DELAY_SECONDS = 1.0

# Review filtering
REVIEW_CUTOFF_MONTHS = 24
MALFORMED_DATE_POLICY = "skip"  # "skip" or "abort"

# Pipeline Configuration
FETCH_WORKERS = 1  # >1 fetches reviews concurrently; aggregation stays serial
CONTINUE_ON_INSTRUCTOR_FAILURE = True  # Graceful degradation

# Ingestion
USE_MOCK_DATA = False  # True serves synthetic instructors and reviews

# Logging
LOG_LEVEL = "INFO"  # DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = "classrank.log"


@dataclass
class RunConfig:
    """School and departments to aggregate in one run."""
    school_id: str
    department_ids: List[str] = field(default_factory=list)


def load_run_config(path: Union[str, Path, None] = None) -> RunConfig:
    """
    Load the per-run YAML config.

    Expected keys (same as the original config.yml):
        schoolID: RMP school id
        departmentID: list of RMP department ids

    Raises:
        ValueError: If the file is missing or has no schoolID
    """
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        raise ValueError(f"Config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    school_id: Optional[str] = data.get("schoolID") or RMP_SCHOOL_ID
    if not school_id:
        raise ValueError(f"No schoolID in {config_path} and RMP_SCHOOL_ID is not set")

    departments = data.get("departmentID") or []
    if isinstance(departments, str):
        departments = [departments]

    return RunConfig(
        school_id=str(school_id),
        department_ids=[str(d) for d in departments]
    )
