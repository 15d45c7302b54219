"""
Gift Planner configuration: all environment variables in one place.

Read from the environment at import time. Call sites receive the Settings
instance explicitly (see data.mongo_setup.global_init and
infrastructure.log_setup.configure_logging).
"""

import os


class Settings:
    """Application settings from environment variables."""

    # Document store
    MONGO_DB: str = os.environ.get("GIFT_PLANNER_MONGO_DB", "gift_planner")
    MONGO_HOST: str = os.environ.get("GIFT_PLANNER_MONGO_HOST", "mongodb://localhost:27017")

    # Logging
    LOG_LEVEL: str = os.environ.get("GIFT_PLANNER_LOG_LEVEL", "INFO")

    # Read-modify-write attempts before a concurrent edit is reported as a conflict.
    MAX_WRITE_RETRIES: int = int(os.environ.get("GIFT_PLANNER_MAX_WRITE_RETRIES", "5"))


settings = Settings()
