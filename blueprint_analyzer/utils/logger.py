from loguru import logger
from pathlib import Path
from typing import Optional
import sys

from ..config import settings


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    """Setup logging configuration."""
    # Remove default logger
    logger.remove()
    logger.configure(extra={"component": "blueprint_analyzer"})

    # Console logger, stdout is left to report output
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{extra[component]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=log_level,
        colorize=True,
    )

    # File logger
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[component]}:{function}:{line} - {message}",
            level=log_level,
            rotation="10 MB",
            retention="30 days",
            compression="zip",
        )

    return logger.bind(component="blueprint_analyzer")


# Initialize logger
app_logger = setup_logging(settings.log_level, settings.log_file)
