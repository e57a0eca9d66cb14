"""
Logging setup shared by the dashboard API, the helper server and the
inventory script.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    component_name: str,
    level: int | str = logging.INFO,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configure the root logger for one process.

    Args:
        component_name: Component identifier (e.g. 'api', 'helper')
        level: Logging level name or number
        log_file: Optional file path for log output
        format_string: Custom format string (default provided)
        stream: Console stream, stdout unless given
    """
    if format_string is None:
        format_string = f"[%(asctime)s] [{component_name.upper()}] %(levelname)s - %(message)s"

    handlers: list[logging.Handler] = [logging.StreamHandler(stream or sys.stdout)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(
        level=level,
        format=format_string,
        datefmt=DATE_FORMAT,
        handlers=handlers,
        force=True,
    )

    logger = logging.getLogger(component_name)
    logger.info(
        "%s logging initialized (level=%s)",
        component_name.upper(),
        logging.getLevelName(logging.getLogger().level),
    )
    return logger
