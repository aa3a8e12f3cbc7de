# capture/__init__.py
"""Capture package: OpenCV video source and synthetic null source."""

from .reader import (
    FrameSource,
    NullSource,
    ReaderConfig,
    ReaderFactory,
    SourceError,
    SourceUnavailable,
)

__all__ = [
    "FrameSource",
    "NullSource",
    "ReaderConfig",
    "ReaderFactory",
    "SourceError",
    "SourceUnavailable",
]

__version__ = "0.1.0"
