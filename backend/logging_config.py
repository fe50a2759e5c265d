import logging

from config import LOG_LEVEL


def setup_logging() -> logging.Logger:
    """Configure the root logger for the application."""
    level = getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    return logging.getLogger("habit_tracker")
