"""
Schedule store configuration.
Values come from the environment (and an optional .env file) and are read
through functions so a changed environment is picked up at runtime.
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

load_dotenv()

# Database path configuration
DB_PATH = os.getenv("DB_PATH", "./data/schedule.db")

# Debug flag is a function to be dynamic
DEBUG = os.getenv("DEBUG", "true").lower() == "true"

# Change feed configuration
CHANGE_FEED_ENABLED = os.getenv("CHANGE_FEED_ENABLED", "true").lower() == "true"
CHANGE_FEED_POLL_SEC = float(os.getenv("CHANGE_FEED_POLL_SEC", "1.0"))
CHANGE_LOG_RETENTION_SEC = int(os.getenv("CHANGE_LOG_RETENTION_SEC", "3600"))

# UI configuration
SUCCESS_MESSAGE_SEC = float(os.getenv("SUCCESS_MESSAGE_SEC", "3"))

# API server configuration
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "8000"))

# Version string
VERSION = "1.0.0"


def get_db_path() -> str:
    """Get the database path, honouring runtime changes to DB_PATH."""
    return os.getenv("DB_PATH", DB_PATH)


def debug_enabled() -> bool:
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "true").lower() == "true"


def is_change_feed_enabled() -> bool:
    """Check if the change feed should poll in the background."""
    return os.getenv("CHANGE_FEED_ENABLED", "true").lower() == "true"


def get_change_feed_poll_interval() -> float:
    """Get change feed poll interval in seconds."""
    return float(os.getenv("CHANGE_FEED_POLL_SEC", str(CHANGE_FEED_POLL_SEC)))


def get_change_log_retention() -> int:
    """Get how long change log rows are kept, in seconds."""
    return int(os.getenv("CHANGE_LOG_RETENTION_SEC", str(CHANGE_LOG_RETENTION_SEC)))


def get_success_message_duration() -> float:
    """Get how long the form's success indicator stays visible, in seconds."""
    return float(os.getenv("SUCCESS_MESSAGE_SEC", str(SUCCESS_MESSAGE_SEC)))


def get_cors_origins() -> List[str]:
    """Get browser origins allowed to call the API (comma-separated CORS_ORIGINS)."""
    raw = os.getenv("CORS_ORIGINS", CORS_ORIGINS)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def ensure_db_directory():
    """Ensure the database directory exists."""
    Path(get_db_path()).parent.mkdir(parents=True, exist_ok=True)


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    try:
        if get_change_feed_poll_interval() <= 0:
            issues.append("CHANGE_FEED_POLL_SEC must be > 0")
    except ValueError:
        issues.append(f"Invalid CHANGE_FEED_POLL_SEC: {os.getenv('CHANGE_FEED_POLL_SEC')}")

    try:
        if get_change_log_retention() < 0:
            issues.append("CHANGE_LOG_RETENTION_SEC must be >= 0")
    except ValueError:
        issues.append(f"Invalid CHANGE_LOG_RETENTION_SEC: {os.getenv('CHANGE_LOG_RETENTION_SEC')}")

    try:
        if get_success_message_duration() < 0:
            issues.append("SUCCESS_MESSAGE_SEC must be >= 0")
    except ValueError:
        issues.append(f"Invalid SUCCESS_MESSAGE_SEC: {os.getenv('SUCCESS_MESSAGE_SEC')}")

    return issues
