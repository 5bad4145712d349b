"""Configuration for arcview readers."""

from .reader_config import ReaderConfig

__all__ = ["ReaderConfig"]
