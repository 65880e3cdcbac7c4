"""
Image Processing Module
Alpha bounding-box detection, cropping and padding.
"""

from .bounds import (
    Rectangle,
    alpha_channel,
    opaque_alpha,
    scaled_threshold,
    find_alpha_bounds
)
from .processing import (
    compose,
    crop_to_content,
    ensure_alpha_channel,
    pad_to_canvas
)

__all__ = [
    'Rectangle',
    'alpha_channel',
    'opaque_alpha',
    'scaled_threshold',
    'find_alpha_bounds',
    'compose',
    'crop_to_content',
    'ensure_alpha_channel',
    'pad_to_canvas'
]
