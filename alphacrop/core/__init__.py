"""
alphacrop Core Module
Cropping engine shared by the command line and library users.

- image: alpha bounding-box detection and crop/pad compositing
- codecs: format registry (decode/encode per extension)
- croppable: image units with path metadata
- cropper: cropping configuration, crop and save
- finder: directory discovery and lazy loading
- batch: concurrent batch processing
"""

from . import image
from .batch import BatchCropper, BatchReport
from .codecs import Codec, get_codec, is_supported, register_codec, supported_formats
from .config import CropConfig, load_config
from .croppable import Croppable, load_croppable, split_path
from .cropper import Cropper, CropperConfig
from .errors import (
    CropError,
    DiscoveryError,
    ImageLoadError,
    ImageSaveError,
    ImageUncroppableError,
    InvalidFilterError,
    UnsupportedFormatError
)
from .finder import CroppableFinder, CroppableLoadIterator, FinderConfig, FindResult
from .utils import setup_logging

__all__ = [
    "image",
    "BatchCropper",
    "BatchReport",
    "Codec",
    "get_codec",
    "is_supported",
    "register_codec",
    "supported_formats",
    "CropConfig",
    "load_config",
    "Croppable",
    "load_croppable",
    "split_path",
    "Cropper",
    "CropperConfig",
    "CropError",
    "DiscoveryError",
    "ImageLoadError",
    "ImageSaveError",
    "ImageUncroppableError",
    "InvalidFilterError",
    "UnsupportedFormatError",
    "CroppableFinder",
    "CroppableLoadIterator",
    "FinderConfig",
    "FindResult",
    "setup_logging"
]
