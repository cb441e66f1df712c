import logging
import os

LOG_LEVEL = os.environ.get("LOG_LEVEL", "info")

LOGGING_FORMAT = "[{asctime}|{filename}:{funcName}:{lineno:d}]{levelname}  {message}"


def _resolve_level(level: str) -> int:
    return {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warning": logging.WARNING,
        "critical": logging.CRITICAL,
        "error": logging.ERROR,
    }.get(level.lower(), logging.INFO)


def setup_logging(level: str | None = None) -> logging.Logger:
    """Route veoscripter logs to the console.

    Args:
        level: Level name ('debug', 'info', ...). Defaults to the LOG_LEVEL environment variable.
    """
    logger = logging.getLogger("veoscripter")
    logger.setLevel(_resolve_level(level or LOG_LEVEL))

    formatter = logging.Formatter(LOGGING_FORMAT, style="{", datefmt="%H:%M:%S")
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    # Replace handlers from a previous call
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.addHandler(console_handler)
    logger.propagate = False

    return logger
