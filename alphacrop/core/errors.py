"""
Error types raised by the cropping engine.

Per-item errors (format, load, crop, save) are caught by the batch layer and
reported; configuration and discovery errors surface to the caller.
Filesystem failures are plain OSError and are propagated unchanged.
"""

from typing import List, Tuple


class CropError(Exception):
    """Base class for all alphacrop errors."""


class UnsupportedFormatError(CropError):
    """Raised when a file extension has no codec in the registry."""

    def __init__(self, ext: str):
        self.ext = ext
        super().__init__(f"unsupported format: {ext!r}" if ext else "unsupported format: file has no extension")


class ImageLoadError(CropError):
    """Raised when a codec fails to decode an image."""

    def __init__(self, path, reason: str = ""):
        self.path = path
        message = f"unable to load image {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ImageUncroppableError(CropError):
    """Raised when a decoded image does not support sub-rectangle extraction."""


class ImageSaveError(CropError):
    """Raised when a codec fails to encode an image."""


class InvalidFilterError(CropError, ValueError):
    """Raised when a file-name filter pattern does not compile."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        super().__init__(f"invalid regex {pattern!r}: {reason}")


class DiscoveryError(CropError):
    """
    Combined error for roots that could not be listed or walked.

    Attributes:
        failures: (root, exception) pairs, one per failed root or sub-directory
    """

    def __init__(self, failures: List[Tuple[str, OSError]]):
        self.failures = list(failures)
        lines = [f"{root}: {exc}" for root, exc in self.failures]
        super().__init__("; ".join(lines))
