from __future__ import annotations
from pathlib import Path


class PixelToneError(Exception):
    """Base class for every error raised by pixeltone."""


class DecodeFailure(PixelToneError, OSError):
    """The source file could not be read or decoded into a bitmap."""

    def __init__(self, path, reason: str = "unreadable or unsupported image"):
        self.path = Path(path) if path is not None else None
        self.reason = reason
        super().__init__(f"Failed to decode image {self.path}: {reason}")


class NoImageLoaded(PixelToneError):
    """An operation was requested before any image was loaded."""

    def __init__(self):
        super().__init__("No image selected")


class UnknownOperation(PixelToneError, ValueError):
    def __init__(self, name):
        self.name = name
        super().__init__(f"Unknown operation: {name!r}")
