"""
alphacrop - crop images to the bounding box of their visible (alpha) content.
"""

__version__ = "1.0.0"

from .core import (
    BatchCropper,
    Croppable,
    CroppableFinder,
    Cropper,
    CropperConfig,
    FinderConfig,
    load_croppable
)

__all__ = [
    "BatchCropper",
    "Croppable",
    "CroppableFinder",
    "Cropper",
    "CropperConfig",
    "FinderConfig",
    "load_croppable"
]
