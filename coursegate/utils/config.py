"""
Runtime settings for coursegate.

Read from environment variables (and a local .env file, if present).
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


ENV_PREFIX = "COURSEGATE_"


class Settings(BaseModel):
    db_path: Path = Path("data/course.db")
    load_timeout_seconds: float = Field(default=15.0, gt=0)  # page load budget
    max_workers: int = Field(default=4, ge=1)
    log_level: str = Field(default="INFO", pattern=r'^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$')


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """
    Load settings from the environment.

    Args:
        env_file: Optional .env file (default: search from the working directory)

    Raises:
        pydantic.ValidationError: If a variable holds an invalid value
    """
    load_dotenv(env_file)
    values = {}
    for field, var in (
        ("db_path", "DB_PATH"),
        ("load_timeout_seconds", "LOAD_TIMEOUT"),
        ("max_workers", "MAX_WORKERS"),
        ("log_level", "LOG_LEVEL"),
    ):
        raw = os.environ.get(ENV_PREFIX + var)
        if raw:
            values[field] = raw.upper() if field == "log_level" else raw
    return Settings(**values)
