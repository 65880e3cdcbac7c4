"""
Alpha Bounding-Box Detection for alphacrop

This module finds the smallest rectangle enclosing every pixel whose alpha
exceeds a threshold. The top-left and bottom-right corners are searched by two
independent scans running on separate threads; the detector waits for both.

Conventions:
- Rectangles are half-open: max_x and max_y are exclusive.
- Threshold is given in 8-bit units (0-255) and scaled to the image dtype.
- An image with no qualifying pixel yields its full bounds (no-op crop).
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class Rectangle:
    """Axis-aligned, half-open pixel rectangle."""
    min_x: int
    min_y: int
    max_x: int
    max_y: int

    @classmethod
    def from_shape(cls, shape: Tuple[int, ...]) -> "Rectangle":
        """Full bounds of an image with the given array shape."""
        height, width = shape[:2]
        return cls(0, 0, width, height)

    @property
    def width(self) -> int:
        return self.max_x - self.min_x

    @property
    def height(self) -> int:
        return self.max_y - self.min_y

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height)"""
        return (self.width, self.height)

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def grow(self, amount: int) -> "Rectangle":
        """Return the rectangle extended by amount pixels on every side."""
        return Rectangle(
            self.min_x - amount,
            self.min_y - amount,
            self.max_x + amount,
            self.max_y + amount,
        )

    def contains(self, other: "Rectangle") -> bool:
        return (
            self.min_x <= other.min_x
            and self.min_y <= other.min_y
            and other.max_x <= self.max_x
            and other.max_y <= self.max_y
        )

    def slack_within(self, bounds: "Rectangle") -> int:
        """Smallest margin between this rectangle and the edges of bounds."""
        return min(
            self.min_x - bounds.min_x,
            self.min_y - bounds.min_y,
            bounds.max_x - self.max_x,
            bounds.max_y - self.max_y,
        )

    def to_slices(self) -> Tuple[slice, slice]:
        """Row and column slices selecting this rectangle from an array."""
        return (slice(self.min_y, self.max_y), slice(self.min_x, self.max_x))


def opaque_alpha(dtype: np.dtype):
    """Alpha value of a fully opaque pixel: the integer maximum, or 1.0 for floats."""
    if np.issubdtype(dtype, np.integer):
        return np.iinfo(dtype).max
    return 1.0


def alpha_channel(image: np.ndarray) -> np.ndarray:
    """
    Get the alpha plane of an image array.

    Images without an alpha channel (grey or BGR) are treated as fully
    opaque and get a constant plane at the dtype maximum.

    Args:
        image: Grey (H, W) or (H, W, 1), grey+alpha (H, W, 2), BGR (H, W, 3)
            or BGRA (H, W, 4) array

    Returns:
        (H, W) alpha array with the image dtype
    """
    if image.ndim == 3 and image.shape[2] in (2, 4):
        return image[:, :, -1]

    return np.full(image.shape[:2], opaque_alpha(image.dtype), dtype=image.dtype)


def scaled_threshold(threshold: int, dtype: np.dtype) -> int:
    """Scale an 8-bit threshold to the alpha range of dtype."""
    if np.issubdtype(dtype, np.integer):
        return int(threshold) * (int(np.iinfo(dtype).max) // 255)
    return threshold / 255.0


def _scan_min(alpha: np.ndarray, level) -> Tuple[Optional[int], Optional[int]]:
    # Rows top to bottom; first qualifying column of each row.
    min_x: Optional[int] = None
    min_y: Optional[int] = None
    for y in range(alpha.shape[0]):
        row = alpha[y] > level
        if not row.any():
            continue
        x = int(row.argmax())
        if min_x is None or x < min_x:
            min_x = x
        if min_y is None:
            min_y = y
    return min_x, min_y


def _scan_max(alpha: np.ndarray, level) -> Tuple[Optional[int], Optional[int]]:
    # Rows bottom to top; last qualifying column of each row.
    width = alpha.shape[1]
    max_x: Optional[int] = None
    max_y: Optional[int] = None
    for y in range(alpha.shape[0] - 1, -1, -1):
        row = alpha[y] > level
        if not row.any():
            continue
        x = width - 1 - int(row[::-1].argmax())
        if max_x is None or x + 1 > max_x:
            max_x = x + 1
        if max_y is None:
            max_y = y + 1
    return max_x, max_y


def find_alpha_bounds(image: np.ndarray, threshold: int = 0) -> Rectangle:
    """
    Find the cropping rectangle of an image, without padding.

    Every pixel with alpha strictly greater than threshold lies inside the
    returned rectangle. If no pixel qualifies, the full image bounds are
    returned.

    Args:
        image: Image array (grey, BGR or BGRA)
        threshold: Alpha threshold in 8-bit units (0-255)

    Returns:
        Half-open Rectangle in pixel coordinates
    """
    bounds = Rectangle.from_shape(image.shape)
    if bounds.is_empty:
        return bounds

    alpha = alpha_channel(image)
    level = scaled_threshold(threshold, alpha.dtype)

    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="alpha-scan") as pool:
        min_future = pool.submit(_scan_min, alpha, level)
        max_future = pool.submit(_scan_max, alpha, level)
        min_x, min_y = min_future.result()
        max_x, max_y = max_future.result()

    if min_x is None or max_x is None:
        return bounds

    return Rectangle(min_x, min_y, max_x, max_y)
