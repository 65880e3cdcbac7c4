"""
Logging utilities for alphacrop.
"""

import logging
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: Union[int, str] = logging.INFO, log_file: Optional[Path] = None) -> logging.Logger:
    """
    Configure console (and optional file) logging for a run.

    Args:
        level: Log level name or number
        log_file: Also write the log to this file when given

    Returns:
        The package logger
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    handlers = [logging.StreamHandler()]
    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, mode='w'))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True  # Force reconfiguration
    )
    logger = logging.getLogger('alphacrop')
    if log_file is not None:
        logger.info(f"Logging initialized - log file: {log_file}")
    return logger
