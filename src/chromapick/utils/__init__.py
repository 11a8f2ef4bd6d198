"""Utility modules for Chromapick."""

from .color import readable_text_color, rgb_to_hex
from .config import ConfigManager, ExtractionConfig
from .logging import setup_logging

__all__ = [
    "ConfigManager",
    "ExtractionConfig",
    "setup_logging",
    "readable_text_color",
    "rgb_to_hex",
]
