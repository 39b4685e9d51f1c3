"""
Logging configuration using Loguru.

Provides structured, colorized logging with automatic rotation and retention.
"""
import sys
from pathlib import Path
from loguru import logger

from flowstudio.config import settings


def setup_logging() -> None:
    """
    Configure loguru logger with appropriate handlers and formatting.

    Development mode:
    - Colorized console output with file:line info

    Production mode:
    - Plain console output (for container logs)
    - Rotating file output
    """

    # Remove default handler
    logger.remove()

    dev_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{extra[logger_name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<level>{message}</level>"
    )

    prod_format = (
        "{time:YYYY-MM-DD HH:mm:ss} | "
        "{level: <8} | "
        "{extra[logger_name]}:{function}:{line} | "
        "{message}"
    )

    logger.configure(extra={"logger_name": "flowstudio"})

    logger.add(
        sys.stdout,
        format=dev_format if settings.debug else prod_format,
        level=settings.log_level,
        colorize=settings.debug,
        backtrace=settings.debug,
        diagnose=settings.debug,
    )

    # File handler (production only)
    if not settings.debug:
        log_dir = Path(settings.log_directory)
        log_dir.mkdir(exist_ok=True)

        logger.add(
            log_dir / "flow-service.log",
            format=prod_format,
            level="INFO",
            rotation="100 MB",
            retention="10 days",
            compression="zip",
            enqueue=True,
        )

    logger.info(f"Logging configured - Level: {settings.log_level}")
    logger.debug(f"Debug mode: {settings.debug}")
