"""
Runtime configuration.

Settings come from EVAL_EXPR_* environment variables, optionally seeded from
a .env file in the working directory. Command-line flags override them.
"""

import logging
import os
from typing import Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, field_validator

from eval_expr.evaluator import DEFAULT_MAX_DEPTH, MAX_DEPTH_LIMIT

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseModel):
    """Validated settings for the command line and the interactive prompt."""
    log_level: str = "WARNING"
    max_depth: int = Field(DEFAULT_MAX_DEPTH, ge=1, le=MAX_DEPTH_LIMIT, description="Maximum expression nesting")
    history_file: str = Field(default_factory=lambda: os.path.expanduser("~/.eval_expr_history"))

    @field_validator('log_level')
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level {v!r}; expected one of {', '.join(_LOG_LEVELS)}")
        return level

    @field_validator('history_file')
    @classmethod
    def expand_history_file(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('History file cannot be empty')
        return os.path.expanduser(v.strip())


def load_settings(dotenv_path: Optional[str] = None) -> Settings:
    """Build Settings from the environment.

    Variables already set in the environment take precedence over the .env
    file. Raises pydantic.ValidationError for invalid values.
    """
    load_dotenv(dotenv_path or find_dotenv(usecwd=True))
    values = {}
    for field, var in (
        ('log_level', 'EVAL_EXPR_LOG_LEVEL'),
        ('max_depth', 'EVAL_EXPR_MAX_DEPTH'),
        ('history_file', 'EVAL_EXPR_HISTORY_FILE'),
    ):
        raw = os.getenv(var)
        if raw is not None:
            values[field] = raw
    return Settings(**values)


def configure_logging(level: str) -> None:
    """Send log records to stderr at ``level``."""
    logging.basicConfig(level=getattr(logging, level), format=LOG_FORMAT, force=True)
