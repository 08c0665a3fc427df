import sys
from typing import Optional

from loguru import logger

LIBRARY_NAME = "git_context"


def setup_logger(log_level: str = "INFO", log_file: Optional[str] = None):
    """
    Set up console (and optionally file) handlers and enable library logging.

    Args:
        log_level (str): The minimum level of logs to display.
        log_file (str): Optional file to which logs should also be written.
    """
    logger.remove()  # Remove default handler

    # Console logger
    logger.add(
        sys.stderr,
        level=log_level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        colorize=True,
    )

    # File logger
    if log_file:
        logger.add(
            log_file,
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            rotation="10 MB",
            retention="7 days",
            enqueue=True,
            backtrace=True,
            diagnose=False,
        )

    logger.enable(LIBRARY_NAME)
    return logger


# Silent unless the embedding application opts in via setup_logger().
logger.disable(LIBRARY_NAME)
