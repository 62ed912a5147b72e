"""
Shotwright Logging Configuration

Package-wide logging for provider decisions, fallbacks and model loading. Console
output goes to stderr because the CLI prints results as JSON on stdout.
"""

import logging
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional


class LogLevel(Enum):
    """Log level enumeration."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
VERBOSE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(funcName)s | %(message)s"

# Libraries that log every request or download chunk at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "transformers", "huggingface_hub")

_initialized: bool = False


def setup_logging(
    level: LogLevel = LogLevel.INFO,
    log_file: Optional[Path] = None,
    verbose: bool = False,
    console_output: bool = True
) -> None:
    """
    Configure the `shotwright` logger tree.

    Safe to call more than once; each call replaces the previous handlers.

    Args:
        level: Minimum log level to capture
        log_file: Optional file receiving the same records as the console
        verbose: Use the format with line numbers and let third-party loggers through
        console_output: Write records to stderr
    """
    global _initialized

    root_logger = logging.getLogger("shotwright")
    root_logger.setLevel(level.value)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(
        VERBOSE_FORMAT if verbose else DEFAULT_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    handlers = []
    if console_output:
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setLevel(level.value)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    third_party_level = level.value if verbose else max(level.value, logging.WARNING)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)

    _initialized = True
    root_logger.debug(f"Logging initialized - Level: {level.name}, Verbose: {verbose}, File: {log_file}")


def get_logger(name: str) -> logging.Logger:
    """Logger under the `shotwright.` namespace, e.g. get_logger("llm.orchestrator")."""
    if not _initialized:
        setup_logging()
    return logging.getLogger(name if name.startswith("shotwright") else f"shotwright.{name}")


def create_session_log(base_dir: Path, prefix: str = "session") -> Path:
    """
    Path for a timestamped session log under base_dir.

    The directory is created; pass the result to setup_logging(log_file=...).
    """
    base_dir = Path(base_dir)
    base_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return base_dir / f"{prefix}_{timestamp}.log"
