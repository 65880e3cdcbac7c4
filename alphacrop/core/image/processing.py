"""
Crop and Pad Compositing for alphacrop

This module turns a detected content rectangle into the final pixel buffer:
- Returns the source untouched when the crop is a no-op
- Extracts a sub-rectangle (array view) when the source has room for padding
- Draws the content centered on a new transparent canvas otherwise
"""

from typing import Tuple

import numpy as np

from .bounds import Rectangle, find_alpha_bounds, opaque_alpha


def ensure_alpha_channel(image: np.ndarray) -> np.ndarray:
    """
    Promote an image to BGRA with an opaque alpha channel.

    Works for any pixel dtype. A grey+alpha image keeps its alpha plane.

    Args:
        image: Grey, grey+alpha, BGR or BGRA image array

    Returns:
        BGRA image array (the input itself if it already is BGRA)

    Raises:
        ValueError: If the image has more than 4 channels
    """
    if image.ndim == 2:
        image = image[:, :, np.newaxis]

    channels = image.shape[2]
    if channels == 4:
        return image
    if channels > 4:
        raise ValueError(f"Unsupported channel count: {channels}")

    if channels == 3:
        colour = image
    else:
        colour = np.repeat(image[:, :, :1], 3, axis=2)

    if channels == 2:
        alpha = image[:, :, 1]
    else:
        alpha = np.full(image.shape[:2], opaque_alpha(image.dtype), dtype=image.dtype)

    return np.dstack([colour, alpha])


def pad_to_canvas(image: np.ndarray, rect: Rectangle, padding: int) -> np.ndarray:
    """
    Draw a region of the image centered on a new transparent canvas.

    Args:
        image: Source image array
        rect: Region of the source to draw
        padding: Margin in pixels on every side of the region

    Returns:
        BGRA array of size (rect.height + 2*padding, rect.width + 2*padding)
    """
    region = ensure_alpha_channel(image[rect.to_slices()])

    # Zeroed canvas is fully transparent
    canvas = np.zeros(
        (rect.height + 2 * padding, rect.width + 2 * padding, 4),
        dtype=region.dtype,
    )
    canvas[padding:padding + rect.height, padding:padding + rect.width, :] = region
    return canvas


def compose(image: np.ndarray, rect: Rectangle, padding: int = 0) -> Tuple[np.ndarray, bool]:
    """
    Produce the cropped (and optionally padded) version of an image.

    Args:
        image: Source image array
        rect: Content rectangle, as returned by find_alpha_bounds
        padding: Pixels of margin to keep around the content

    Returns:
        tuple: (result image, changed flag). When changed is False the
        result is the source array itself.
    """
    bounds = Rectangle.from_shape(image.shape)

    if padding == 0:
        if rect == bounds:
            return image, False
        return image[rect.to_slices()], True

    # Enough room around the content: crop a larger rectangle from the source
    if rect.slack_within(bounds) >= padding:
        return image[rect.grow(padding).to_slices()], True

    return pad_to_canvas(image, rect, padding), True


def crop_to_content(image: np.ndarray, threshold: int = 0, padding: int = 0) -> np.ndarray:
    """
    Crop an image to its alpha content in one call.

    Args:
        image: Input image array
        threshold: Alpha threshold in 8-bit units
        padding: Margin in pixels around the content

    Returns:
        Cropped image array
    """
    rect = find_alpha_bounds(image, threshold)
    result, _ = compose(image, rect, padding)
    return result
