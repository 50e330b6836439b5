"""
Configuration Module

This module handles all configuration settings for the application,
including logging, environment variables, and planner/storage settings.

Selecting a grade scale:
-----------------------
Different calculators in the planner historically disagreed on whether
D- exists and where the D cutoff sits. Both variants are kept as named
presets and one is picked here:

   - Export in shell: export GRADE_SCALE=no_d_minus
   - Add to .env file: THRESHOLD_LADDER=inline

Choosing a storage backend:
--------------------------
   STORE_BACKEND=memory   (default, single session)
   STORE_BACKEND=redis    (uses REDIS_URL)

Example .env file:
-----------------
DEBUG=false
GRADE_SCALE=standard
THRESHOLD_LADDER=standard
STORE_BACKEND=redis
REDIS_URL=redis://localhost:6379/0
MAX_TERM_CREDITS=18
"""

import os
import logging.config
from pathlib import Path
from typing import Dict, Any
from datetime import datetime
from dataclasses import dataclass
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Base directory for all logs
LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))
LOG_DIR.mkdir(parents=True, exist_ok=True)

# Create dated log files
current_date = datetime.now().strftime("%Y-%m-%d")
ERROR_LOG = LOG_DIR / f"error_{current_date}.log"
DEBUG_LOG = LOG_DIR / f"debug_{current_date}.log"

# Logging configuration
LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "detailed": {
            "format": "%(asctime)s | %(name)s | %(levelname)s | %(module)s:%(lineno)d | %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
        "simple": {
            "format": "%(asctime)s | %(levelname)s | %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": "INFO",
            "formatter": "simple",
            "stream": "ext://sys.stdout",
        },
        "error_file": {
            "class": "logging.FileHandler",
            "level": "ERROR",
            "formatter": "detailed",
            "filename": str(ERROR_LOG),
            "mode": "a",
        },
        "debug_file": {
            "class": "logging.FileHandler",
            "level": "DEBUG",
            "formatter": "detailed",
            "filename": str(DEBUG_LOG),
            "mode": "a",
        },
    },
    "loggers": {
        "": {  # Root logger
            "handlers": ["console", "error_file"],
            "level": "INFO",
            "propagate": True,
        },
        "counselor": {
            "handlers": ["debug_file", "error_file"],
            "level": "DEBUG",
            "propagate": False,
        },
    },
}

# Initialize logging configuration
logging.config.dictConfig(LOGGING_CONFIG)
logger = logging.getLogger(__name__)

GRADE_SCALE_CHOICES = ("standard", "no_d_minus")
THRESHOLD_LADDER_CHOICES = ("standard", "inline")
STORE_BACKEND_CHOICES = ("memory", "redis")


@dataclass
class StoreConfig:
    """
    Plan storage configuration.

    Attributes:
        backend (str): "memory" or "redis"
        redis_url (str): Redis connection URL
        namespace (str): Prefix applied to every stored key
        recent_courses_limit (int): How many recent searches to keep
        ucore_cache_max_age (int): UCORE cache lifetime in seconds
    """
    backend: str = "memory"
    redis_url: str = "redis://localhost:6379/0"
    namespace: str = ""
    recent_courses_limit: int = 15
    ucore_cache_max_age: int = 24 * 60 * 60


@dataclass
class PlannerConfig:
    """
    Degree planner configuration.

    Attributes:
        grade_scale (str): Grade-point scale preset used for GPA math
        threshold_ladder (str): Percentage-to-letter preset
        max_term_credits (int): A term at or above this load is full
        history_limit (int): Undo/redo depth
        base_required_credits (int): Credits for the primary major
    """
    grade_scale: str = "standard"
    threshold_ladder: str = "standard"
    max_term_credits: int = 18
    history_limit: int = 50
    base_required_credits: int = 120


class Config:
    """Application configuration management."""

    def __init__(self):
        """Initialize configuration with environment variables and defaults."""
        self.debug_mode = os.getenv("DEBUG", "false").lower() == "true"

        self.planner = PlannerConfig(
            grade_scale=os.getenv("GRADE_SCALE", "standard").lower(),
            threshold_ladder=os.getenv("THRESHOLD_LADDER", "standard").lower(),
            max_term_credits=int(os.getenv("MAX_TERM_CREDITS", "18")),
            history_limit=int(os.getenv("HISTORY_LIMIT", "50")),
        )

        self.store = StoreConfig(
            backend=os.getenv("STORE_BACKEND", "memory").lower(),
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            namespace=os.getenv("STORE_NAMESPACE", ""),
            recent_courses_limit=int(os.getenv("RECENT_COURSES_LIMIT", "15")),
        )

        logger.info("Configuration initialized")
        if self.debug_mode:
            logger.debug(f"Current configuration: {self.to_dict()}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "debug_mode": self.debug_mode,
            "grade_scale": self.planner.grade_scale,
            "threshold_ladder": self.planner.threshold_ladder,
            "max_term_credits": self.planner.max_term_credits,
            "history_limit": self.planner.history_limit,
            "store_backend": self.store.backend,
            "redis_url": self.store.redis_url,
            "store_namespace": self.store.namespace,
            "recent_courses_limit": self.store.recent_courses_limit,
        }

    def validate(self) -> None:
        """Validate configuration settings."""
        try:
            assert self.planner.grade_scale in GRADE_SCALE_CHOICES, (
                f"Grade scale must be one of: {', '.join(GRADE_SCALE_CHOICES)}"
            )
            assert self.planner.threshold_ladder in THRESHOLD_LADDER_CHOICES, (
                f"Threshold ladder must be one of: {', '.join(THRESHOLD_LADDER_CHOICES)}"
            )
            assert self.store.backend in STORE_BACKEND_CHOICES, (
                f"Store backend must be one of: {', '.join(STORE_BACKEND_CHOICES)}"
            )
            assert 0 < self.planner.max_term_credits <= 30, "Max term credits must be between 1 and 30"
            assert 0 < self.planner.history_limit <= 500, "History limit must be between 1 and 500"
            assert 0 < self.store.recent_courses_limit <= 100, "Recent courses limit must be between 1 and 100"
            logger.info("Configuration validation successful")
        except AssertionError as e:
            logger.error(f"Configuration validation failed: {str(e)}")
            raise ValueError(f"Invalid configuration: {str(e)}")

# Global configuration instance
config = Config()
config.validate()
