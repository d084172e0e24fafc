"""Logging setup shared by the CLI and the HTTP server."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from utils.config import Config


def setup_logging(
    log_dir: Optional[Path] = None,
    verbose: bool = False,
    log_file_name: Optional[str] = None,
) -> Path:
    """Setup logging to both console and file.

    Args:
        log_dir: Directory for log files (default: Config.LOG_DIR)
        verbose: If True, set DEBUG level; otherwise Config.LOG_LEVEL
        log_file_name: Custom log file name (default: auto-generated with timestamp)

    Returns:
        Path to the log file
    """
    if log_dir is None:
        Config.ensure_directories()
        log_dir = Config.LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)

    if log_file_name is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file_name = f"litreview_{timestamp}.log"
    log_file = log_dir / log_file_name

    if verbose:
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO)

    file_formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(message)s",
        datefmt="%H:%M:%S",
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    # File handler (always DEBUG to capture everything)
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(file_formatter)
    root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    for noisy in ("httpx", "httpcore", "urllib3", "LiteLLM", "arxiv"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.info(f"Logging initialized. Log file: {log_file}")
    return log_file
