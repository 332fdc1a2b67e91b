"""
Model Logging

Structured logging for machine-model construction with optional file output.
A log file is written to the configured log directory, named after the model.

Usage:
    from schedmodel.logging import ModelLogger, get_logger

    # Log the build of a model to logs/power9.log
    logger = ModelLogger(output_dir=Path("logs/"), filename_prefix="power9")

    # Get the logger instance from any module
    log = get_logger()
    log.debug("resource ALU capacity=4")      # file only
    log.section("POWER9 scheduling model")
    log.summary("Resources", total=24, groups=2)
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, TextIO


# Module-level logger instance
_model_logger: Optional['ModelLogger'] = None


def get_logger() -> 'ModelLogger':
    """
    Get the current model logger instance.

    Returns:
        The active ModelLogger, or a default console-only logger if none set.
    """
    global _model_logger
    if _model_logger is None:
        _model_logger = ModelLogger()
    return _model_logger


def set_logger(logger: Optional['ModelLogger']):
    """Set (or clear, with None) the module-level model logger."""
    global _model_logger
    _model_logger = logger


@dataclass
class LogConfig:
    """Configuration for model logging."""

    # Output directory for log files
    output_dir: Optional[Path] = None

    # Prefix for log filename (e.g., "power9")
    filename_prefix: Optional[str] = None

    # Messages below this level are not printed to the console
    console_level: int = logging.INFO

    # Messages below this level are not written to the file
    file_level: int = logging.DEBUG

    # Whether to include timestamps in file output
    file_timestamps: bool = True

    # Width for section separators
    separator_width: int = 80


class ModelLogger:
    """
    Structured logger for model construction.

    Provides:
    - Dual output to console and file, with independent levels
    - Section headers and key/value summaries
    - An in-memory record of everything logged (get_content)
    """

    def __init__(
        self,
        output_dir: Optional[Path] = None,
        filename_prefix: Optional[str] = None,
        config: Optional[LogConfig] = None,
        register: bool = True,
    ):
        """
        Initialize the model logger.

        Args:
            output_dir: Directory to save log file. If None, logs to console only.
            filename_prefix: Prefix for log filename; the file is "{prefix}.log".
            config: Optional LogConfig for advanced configuration.
            register: If True, become the module-level logger.
        """
        self.config = config or LogConfig()
        self.output_dir = output_dir or self.config.output_dir
        self.filename_prefix = filename_prefix or self.config.filename_prefix

        self._log_file: Optional[TextIO] = None
        self._log_path: Optional[Path] = None
        self._lines: List[str] = []

        if self.output_dir and self.filename_prefix:
            self._setup_file_logging()

        if register:
            set_logger(self)

    def _setup_file_logging(self):
        """Set up file logging."""
        self.output_dir = Path(self.output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._log_path = self.output_dir / f"{self.filename_prefix}.log"
        self._log_file = open(self._log_path, 'w')

    @property
    def log_path(self) -> Optional[Path]:
        """Get the path to the log file, if any."""
        return self._log_path

    def _write(self, message: str, level: int = logging.INFO):
        """Write a message to console and/or file according to level."""
        to_console = level >= self.config.console_level
        to_file = self._log_file is not None and level >= self.config.file_level

        if to_console:
            print(message)
        if to_console or to_file:
            self._lines.append(message)

        if to_file:
            timestamp = ""
            if self.config.file_timestamps:
                timestamp = f"[{datetime.now().strftime('%H:%M:%S.%f')[:-3]}] "
            self._log_file.write(f"{timestamp}{message}\n")
            self._log_file.flush()

    def info(self, message: str):
        """Log an informational message."""
        self._write(message)

    def debug(self, message: str):
        """Log a debug message (file only by default)."""
        self._write(message, level=logging.DEBUG)

    def warning(self, message: str):
        """Log a warning message."""
        self._write(f"WARNING: {message}", level=logging.WARNING)

    def error(self, message: str):
        """Log an error message."""
        self._write(f"ERROR: {message}", level=logging.ERROR)

    def section(self, title: str, level: int = 1):
        """
        Print a section header.

        Args:
            title: Section title
            level: Header level (1=major, 2=minor)
        """
        width = self.config.separator_width
        if level == 1:
            self._write("")
            self._write("=" * width)
            self._write(title)
            self._write("=" * width)
        else:
            self._write("")
            self._write(title)
            self._write("-" * width)

    def summary(self, title: str, **metrics):
        """
        Log a summary with key-value metrics.

        Args:
            title: Summary title
            **metrics: Key-value pairs to display
        """
        self._write(f"{title}:")
        for key, value in metrics.items():
            formatted_key = key.replace("_", " ").title()
            self._write(f"  {formatted_key}: {value}")

    def get_content(self) -> str:
        """Get all logged content as a string."""
        return "\n".join(self._lines)

    def close(self):
        """Close the log file."""
        if self._log_file:
            self._log_file.close()
            self._log_file = None

    def __enter__(self) -> 'ModelLogger':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def create_model_logger(
    model_name: str,
    output_dir: Optional[Path] = None,
    console_level: int = logging.INFO,
    register: bool = True,
) -> ModelLogger:
    """
    Create a model logger with the standard naming convention.

    The log file will be named: {model_name}_{YYYYmmdd}.log

    Args:
        model_name: Name of the machine model being built
        output_dir: Directory to save the log file (None for console only)
        console_level: Minimum level printed to the console
        register: If True, become the module-level logger
    """
    import re

    name_clean = re.sub(r'[^a-zA-Z0-9_]', '', model_name) or "model"
    filename_prefix = f"{name_clean}_{datetime.now().strftime('%Y%m%d')}"

    return ModelLogger(
        output_dir=output_dir,
        filename_prefix=filename_prefix,
        config=LogConfig(console_level=console_level),
        register=register,
    )
