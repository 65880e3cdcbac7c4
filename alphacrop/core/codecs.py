"""
Codec Registry for alphacrop

Maps a normalized file extension to a decode/encode pair. Decoded images are
numpy arrays in OpenCV channel order (grey, BGR or BGRA) so every codec feeds
the same cropping code.

Built-in formats:
- png, tiff/tif, webp: OpenCV (cv2.imdecode / cv2.imencode)
- gif: Pillow (first frame, converted to/from BGRA)
"""

import io
from dataclasses import dataclass
from typing import Callable, Dict, List

import cv2
import numpy as np
from PIL import Image

from .errors import ImageSaveError, UnsupportedFormatError
from .image.processing import ensure_alpha_channel


@dataclass(frozen=True)
class Codec:
    """
    Decode/encode capability for one image format.

    Fields:
        name: Canonical format name, e.g. "png".
        decode: Callable turning raw file bytes into an image array.
        encode: Callable turning an image array into raw file bytes.
        supports_crop: Whether decoded images allow sub-rectangle extraction.
    """
    name: str
    decode: Callable[[bytes], np.ndarray]
    encode: Callable[[np.ndarray], bytes]
    supports_crop: bool = True


def _opencv_decoder(data: bytes) -> np.ndarray:
    buffer = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED)
    if image is None:
        raise ValueError("OpenCV could not decode the data")
    return image


def _opencv_encoder(ext: str) -> Callable[[np.ndarray], bytes]:
    def encode(image: np.ndarray) -> bytes:
        try:
            ok, buffer = cv2.imencode(ext, np.ascontiguousarray(image))
        except cv2.error as e:
            raise ImageSaveError(f"OpenCV could not encode image as {ext}: {e}") from e
        if not ok:
            raise ImageSaveError(f"OpenCV could not encode image as {ext}")
        return buffer.tobytes()

    return encode


def _to_bgra8(image: np.ndarray) -> np.ndarray:
    """Convert any supported array layout to 8-bit BGRA."""
    if image.dtype == np.uint16:
        image = (image >> 8).astype(np.uint8)
    elif image.dtype != np.uint8:
        raise ImageSaveError(f"Unsupported pixel type for GIF: {image.dtype}")

    return ensure_alpha_channel(image)


def _gif_decode(data: bytes) -> np.ndarray:
    with Image.open(io.BytesIO(data)) as pil_image:
        pil_image.seek(0)
        rgba = np.asarray(pil_image.convert("RGBA"))
    return cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGRA)


_GIF_TRANSPARENT_INDEX = 255


def _gif_encode(image: np.ndarray) -> bytes:
    bgra = np.ascontiguousarray(_to_bgra8(image))
    rgb = cv2.cvtColor(bgra, cv2.COLOR_BGRA2RGB)

    # 255 colours for pixels, the last palette slot for transparency
    quantized = Image.fromarray(rgb).quantize(colors=_GIF_TRANSPARENT_INDEX)
    indices = np.array(quantized, dtype=np.uint8)
    indices[bgra[..., 3] < 128] = _GIF_TRANSPARENT_INDEX

    palette = quantized.getpalette()[:_GIF_TRANSPARENT_INDEX * 3]
    palette += [0] * (256 * 3 - len(palette))

    paletted = Image.frombytes("P", (indices.shape[1], indices.shape[0]), indices.tobytes())
    paletted.putpalette(palette)

    out = io.BytesIO()
    paletted.save(out, format="GIF", transparency=_GIF_TRANSPARENT_INDEX)
    return out.getvalue()


_REGISTRY: Dict[str, Codec] = {
    "png": Codec("png", _opencv_decoder, _opencv_encoder(".png")),
    "tiff": Codec("tiff", _opencv_decoder, _opencv_encoder(".tiff")),
    "tif": Codec("tiff", _opencv_decoder, _opencv_encoder(".tiff")),
    "webp": Codec("webp", _opencv_decoder, _opencv_encoder(".webp")),
    "gif": Codec("gif", _gif_decode, _gif_encode),
}


def normalize_format(ext: str) -> str:
    """Normalize an extension: strip a leading dot and lower-case it."""
    return ext.lstrip(".").lower()


def is_supported(ext: str) -> bool:
    """Check whether a codec is registered for the extension."""
    return normalize_format(ext) in _REGISTRY


def get_codec(ext: str) -> Codec:
    """
    Look up the codec for an extension.

    Raises:
        UnsupportedFormatError: If no codec is registered for ext
    """
    try:
        return _REGISTRY[normalize_format(ext)]
    except KeyError:
        raise UnsupportedFormatError(ext) from None


def register_codec(ext: str, codec: Codec) -> None:
    """Register (or replace) the codec used for an extension."""
    _REGISTRY[normalize_format(ext)] = codec


def unregister_codec(ext: str) -> None:
    """Remove an extension from the registry, if present."""
    _REGISTRY.pop(normalize_format(ext), None)


def supported_formats() -> List[str]:
    """List registered extensions."""
    return sorted(_REGISTRY)
