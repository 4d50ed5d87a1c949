import logging
import sys
from loguru import logger
from pathlib import Path
from typing import Optional

_configured = False

# Third-party loggers that go through stdlib logging
_INTERCEPTED = ("google_genai", "httpx", "uvicorn", "uvicorn.error")


class _InterceptHandler(logging.Handler):
    """Forward stdlib logging records from the Gemini SDK and httpx to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def setup_logger(log_level: str = "INFO", log_file: Optional[Path] = None):
    global _configured

    if _configured and log_file is None:
        return logger

    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=log_level,
        colorize=True,
    )

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level="DEBUG",
            rotation="10 MB",
            retention="7 days",
        )

    handler = _InterceptHandler()
    for name in _INTERCEPTED:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [handler]
        std_logger.propagate = False

    _configured = True
    return logger
