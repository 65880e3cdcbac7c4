"""
Croppable image units.

A Croppable keeps the source directory, base name and extension apart so the
output destination is easy to rebuild, together with the codec for its format
and, once loaded, the decoded pixels.
"""

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np

from .codecs import Codec, get_codec, normalize_format
from .errors import ImageLoadError, ImageUncroppableError

PathLike = Union[str, Path]


def split_path(path: PathLike) -> Tuple[Path, str, str]:
    """
    Split a file path into directory, base name and extension.

    The extension is whatever follows the last dot of the file name, without
    the dot; it is empty when the name has no dot.

    Examples:
        "foo/bar/test.png"  -> (Path("foo/bar"), "test", "png")
        "test.png.jpg"      -> (Path("."), "test.png", "jpg")
        "test"              -> (Path("."), "test", "")
    """
    path = Path(path)
    name, dot, ext = path.name.rpartition(".")
    if not dot:
        return path.parent, path.name, ""
    return path.parent, name, ext


@dataclass(frozen=True, eq=False)
class Croppable:
    """
    One image to crop.

    Fields:
        directory: Directory of the source file.
        name: File name without extension.
        ext: Extension as spelled in the source file name (no dot).
        codec: Codec bound to the extension.
        image: Decoded pixels, or None until load() is called.
    """
    directory: Path
    name: str
    ext: str
    codec: Codec
    image: Optional[np.ndarray] = None

    @classmethod
    def from_path(cls, path: PathLike) -> "Croppable":
        """
        Create an unloaded Croppable for a path.

        Raises:
            UnsupportedFormatError: If the extension has no registered codec
        """
        directory, name, ext = split_path(path)
        return cls(directory=directory, name=name, ext=ext, codec=get_codec(ext))

    @property
    def path(self) -> Path:
        file_name = f"{self.name}.{self.ext}" if self.ext else self.name
        return self.directory / file_name

    @property
    def format(self) -> str:
        return normalize_format(self.ext)

    @property
    def is_loaded(self) -> bool:
        return self.image is not None

    def load(self) -> "Croppable":
        """
        Read and decode the source file.

        Returns:
            New Croppable with image set

        Raises:
            OSError: If the file cannot be read
            ImageLoadError: If the codec fails to decode the data
            ImageUncroppableError: If the decoded image cannot be cropped
        """
        data = self.path.read_bytes()

        try:
            image = self.codec.decode(data)
        except Exception as e:
            raise ImageLoadError(self.path, str(e)) from e

        if not self.codec.supports_crop:
            raise ImageUncroppableError(f"{self.codec.name} images do not support cropping: {self.path}")
        if not isinstance(image, np.ndarray) or image.ndim not in (2, 3):
            raise ImageUncroppableError(f"decoded image does not support cropping: {self.path}")
        if image.ndim == 3 and not 1 <= image.shape[2] <= 4:
            raise ImageUncroppableError(f"unsupported channel count {image.shape[2]}: {self.path}")

        return self.with_image(image)

    def with_image(self, image: np.ndarray) -> "Croppable":
        """Return a copy of this Croppable holding the given image."""
        return replace(self, image=image)

    def encode(self) -> bytes:
        """Encode the current image with the bound codec."""
        if self.image is None:
            raise ImageUncroppableError(f"image not loaded: {self.path}")
        return self.codec.encode(self.image)

    def __repr__(self) -> str:
        state = "loaded" if self.is_loaded else "unloaded"
        return f"Croppable({str(self.path)!r}, {state})"


def load_croppable(path: PathLike) -> Croppable:
    """Validate the format of path and load it into a Croppable."""
    return Croppable.from_path(path).load()
