"""
Logging setup for the payroll pipeline.

Staging loads and sink writes run on worker threads ("load_0", "sink_1", ...),
so the thread name is part of every record.
"""

import logging
import os
import sys
from pathlib import Path
from datetime import datetime
from typing import Iterable, Optional, Union


DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] [%(threadName)s] %(name)s: %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Chatty third-party loggers kept at WARNING unless running at DEBUG
NOISY_LOGGERS = ("sqlalchemy.engine", "urllib3", "minio")


def resolve_log_level(level: Union[int, str, None] = None) -> int:
    """
    Turn a level name ("debug", "INFO") or number into a logging level.
    Falls back to the LOG_LEVEL environment variable, then INFO.
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if isinstance(level, int):
        return level

    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def configure_logging(
    level: Union[int, str, None] = None,
    log_file: Optional[str] = None,
    log_format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    quiet_loggers: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """
    Configure root logging for a pipeline run.

    Args:
        level: Logging level or level name (default: LOG_LEVEL or INFO)
        log_file: Optional path of a file that receives the same records
        log_format: Log message format
        date_format: Date format in log messages
        quiet_loggers: Logger names raised to WARNING below DEBUG
    """
    level = resolve_log_level(level)
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=handlers,
        force=True,
    )

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(level if level <= logging.DEBUG else logging.WARNING)


def log_banner(logger: logging.Logger, title: str, width: int = 60) -> None:
    """Log a stage banner framed by separator lines."""
    logger.info("=" * width)
    logger.info(title)
    logger.info("=" * width)


def create_run_log_file(base_dir: str = "logs") -> str:
    """Return a new timestamped log file path (payroll_run_YYYYmmdd_HHMMSS.log) under ``base_dir``."""
    log_dir = Path(base_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    return str(log_dir / f"payroll_run_{datetime.now():%Y%m%d_%H%M%S}.log")
