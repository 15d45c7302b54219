"""Process-wide logging configuration for the console app."""

import logging

from infrastructure.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(settings: Settings):
    # basicConfig is a no-op when handlers already exist (e.g. under pytest).
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)

    # pymongo is chatty at DEBUG; keep it at WARNING unless asked otherwise.
    if level > logging.DEBUG:
        logging.getLogger("pymongo").setLevel(logging.WARNING)
