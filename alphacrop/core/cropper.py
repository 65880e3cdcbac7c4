"""
Cropper for alphacrop

Owns the cropping configuration and applies detection, compositing and saving
to individual Croppables. Safe to share between worker threads: the only
mutable state is the enumeration counter, which is taken under a lock.
"""

import logging
import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Tuple

import numpy as np

from .croppable import Croppable
from .errors import ImageUncroppableError
from .image import Rectangle, compose, find_alpha_bounds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CropperConfig:
    """
    Settings for a Cropper.

    Fields:
        threshold: Pixels with alpha > threshold (0-255) count as content.
        padding: Transparent margin in pixels around the content.
        out_dir: Output directory; None writes next to the source file.
        prefix: Inserted before the output file name.
        suffix: Inserted after the output file name, before the extension.
        skip_unchanged: Do not save images the crop left unchanged.
        enumerate: Append "_<n>" to output names, n unique per Cropper.
    """
    threshold: int = 0
    padding: int = 0
    out_dir: Optional[Path] = None
    prefix: str = ""
    suffix: str = ""
    skip_unchanged: bool = False
    enumerate: bool = False

    def __post_init__(self):
        if not 0 <= self.threshold <= 255:
            raise ValueError(f"threshold must be between 0 and 255, got {self.threshold}")
        if self.padding < 0:
            raise ValueError(f"padding must not be negative, got {self.padding}")
        if self.out_dir is not None and not isinstance(self.out_dir, Path):
            object.__setattr__(self, "out_dir", Path(self.out_dir) if str(self.out_dir) else None)


class Cropper:
    """
    Crops and saves images.

    With the default configuration a Cropper uses an alpha threshold of 0 and
    no padding, and saves every image under its own name in its own
    directory, overwriting the source even when cropping changed nothing.
    """

    def __init__(self, config: Optional[CropperConfig] = None, **overrides):
        """
        Initialize the cropper.

        Args:
            config: Base configuration (defaults if None)
            **overrides: CropperConfig fields replacing those of config
        """
        config = config or CropperConfig()
        self.config = replace(config, **overrides) if overrides else config
        self._counter = 0
        self._counter_lock = threading.Lock()

    def rect(self, image: np.ndarray) -> Rectangle:
        """Cropping rectangle of the image, without padding."""
        return find_alpha_bounds(image, self.config.threshold)

    def crop(self, croppable: Croppable) -> Tuple[Croppable, bool]:
        """
        Crop a loaded Croppable.

        Returns:
            tuple: (cropped Croppable, changed flag). When nothing changed the
            given Croppable is returned as is.
        """
        if croppable.image is None:
            raise ImageUncroppableError(f"image not loaded: {croppable.path}")

        rect = self.rect(croppable.image)
        result, changed = compose(croppable.image, rect, self.config.padding)
        if not changed:
            return croppable, False

        logger.debug(f"Cropped {croppable.path} to {rect.size} (padding {self.config.padding})")
        return croppable.with_image(result), True

    def ensure_out_dir(self) -> None:
        """Create the output directory if one is configured."""
        if self.config.out_dir is not None:
            self.config.out_dir.mkdir(parents=True, exist_ok=True)

    def next_number(self) -> int:
        """Take the next enumeration number."""
        with self._counter_lock:
            number = self._counter
            self._counter += 1
        return number

    def output_path(self, croppable: Croppable) -> Path:
        """
        Build the destination path of a Croppable.

        Pattern: <out_dir or source dir>/<prefix><name>[_<n>]<suffix>.<ext>
        Takes an enumeration number when enumeration is enabled.
        """
        directory = self.config.out_dir if self.config.out_dir is not None else croppable.directory

        number = f"_{self.next_number()}" if self.config.enumerate else ""
        file_name = f"{self.config.prefix}{croppable.name}{number}{self.config.suffix}"
        if croppable.ext:
            file_name = f"{file_name}.{croppable.ext}"

        return directory / file_name

    def save(self, croppable: Croppable) -> Path:
        """
        Encode and write a Croppable, creating the output directory if needed.

        Returns:
            Path of the written file

        Raises:
            OSError: If the directory or file cannot be written
            ImageSaveError: If encoding fails
        """
        self.ensure_out_dir()
        return self._write(croppable)

    def _write(self, croppable: Croppable) -> Path:
        data = croppable.encode()
        out_path = self.output_path(croppable)
        out_path.write_bytes(data)
        logger.debug(f"Saved {out_path}")
        return out_path

    def crop_and_save(self, croppable: Croppable) -> Optional[Path]:
        """
        Crop a loaded Croppable and save the result.

        Returns:
            Path of the written file, or None when the crop made no change and
            skip_unchanged is enabled
        """
        self.ensure_out_dir()

        cropped, changed = self.crop(croppable)
        if not changed and self.config.skip_unchanged:
            logger.debug(f"Unchanged, skipping {croppable.path}")
            return None

        return self._write(cropped)
