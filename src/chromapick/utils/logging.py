"""Logging configuration for Chromapick."""

import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

import colorlog


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    enable_colors: bool = True,
    format_string: Optional[str] = None,
) -> None:
    """Setup logging configuration for Chromapick.

    Args:
        level: Logging level
        log_file: Optional log file path
        enable_colors: Whether to use colored output
        format_string: Custom format string
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    use_colors = enable_colors and sys.stderr.isatty()

    if format_string is None:
        if use_colors:
            format_string = "%(log_color)s%(levelname)-8s%(reset)s %(blue)s%(name)s%(reset)s: %(message)s"
        else:
            format_string = "%(asctime)s - %(levelname)-8s - %(name)s - %(message)s"

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)

    if use_colors:
        formatter = colorlog.ColoredFormatter(
            format_string,
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "red,bg_white",
            },
        )
    else:
        formatter = logging.Formatter(format_string, datefmt="%Y-%m-%d %H:%M:%S")

    console_handler.setFormatter(formatter)

    handlers = [console_handler]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(logging.DEBUG)  # Always debug level for file
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(levelname)-8s - %(name)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    _configure_library_loggers(level)


def _configure_library_loggers(level: int) -> None:
    """Configure logging levels for third-party libraries."""
    logging.getLogger("PIL").setLevel(logging.WARNING)

    logging.getLogger("chromapick").setLevel(level)


class PaletteLogger:
    """Logger for reporting extracted palettes."""

    def __init__(self, name: str = "chromapick.palette"):
        self.logger = logging.getLogger(name)

    def log_palette(self, source: str, entries: Sequence) -> None:
        """Log the swatches extracted from ``source``.

        Args:
            source: Human readable name of the analyzed image
            entries: Palette entries in output order
        """
        if not entries:
            self.logger.info(f"{source}: no opaque pixels, empty palette")
            return

        self.logger.info(f"{source}: extracted {len(entries)} colors")
        for i, entry in enumerate(entries):
            self.logger.debug(f"  {i+1}. {entry.hex} ({entry.percentage:.4f})")


class PerformanceLogger:
    """Logger for tracking performance metrics."""

    def __init__(self, name: str = "chromapick.performance"):
        """Initialize performance logger."""
        self.logger = logging.getLogger(name)
        self.timers = {}

    def start_timer(self, name: str) -> None:
        """Start a performance timer.

        Args:
            name: Timer name
        """
        import time

        self.timers[name] = time.perf_counter()

    def end_timer(self, name: str) -> float:
        """End a performance timer and log result.

        Args:
            name: Timer name

        Returns:
            Elapsed time in seconds
        """
        import time

        if name not in self.timers:
            self.logger.warning(f"Timer '{name}' was not started")
            return 0.0

        elapsed = time.perf_counter() - self.timers.pop(name)
        self.logger.debug(f"{name}: {elapsed:.3f}s")
        return elapsed


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
