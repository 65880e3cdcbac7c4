#!/usr/bin/env python3
"""
Tests for the Cropper: cropping, naming, saving and enumeration.
"""

import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import cv2
import numpy as np
import pytest

# Add the project root to path to import alphacrop
sys.path.append(str(Path(__file__).parent.parent.parent))

from alphacrop.core.croppable import Croppable, load_croppable
from alphacrop.core.cropper import Cropper, CropperConfig
from alphacrop.core.errors import ImageUncroppableError


def write_test_png(path, width=10, height=10, painted=None):
    """Write a transparent PNG with an opaque painted rectangle (x0, y0, x1, y1)."""
    img = np.zeros((height, width, 4), dtype=np.uint8)
    x0, y0, x1, y1 = painted if painted is not None else (0, 0, width, height)
    img[y0:y1, x0:x1] = (10, 200, 30, 255)
    assert cv2.imwrite(str(path), img)
    return Path(path)


def read_png(path):
    return cv2.imread(str(path), cv2.IMREAD_UNCHANGED)


def test_config_validation():
    with pytest.raises(ValueError):
        CropperConfig(threshold=256)
    with pytest.raises(ValueError):
        CropperConfig(threshold=-1)
    with pytest.raises(ValueError):
        CropperConfig(padding=-2)

    assert CropperConfig(out_dir="out").out_dir == Path("out")
    assert CropperConfig(out_dir="").out_dir is None


def test_overrides_replace_config_fields():
    cropper = Cropper(CropperConfig(threshold=5), padding=2)
    assert cropper.config.threshold == 5
    assert cropper.config.padding == 2


def test_crop_returns_new_croppable(tmp_path):
    src = write_test_png(tmp_path / "b.png", painted=(4, 4, 6, 6))
    croppable = load_croppable(src)
    original = croppable.image.copy()

    cropped, changed = Cropper().crop(croppable)

    assert changed
    assert cropped is not croppable
    assert cropped.image.shape == (2, 2, 4)
    assert cropped.path == croppable.path
    assert np.array_equal(croppable.image, original)


def test_crop_unchanged_returns_same_croppable(tmp_path):
    croppable = load_croppable(write_test_png(tmp_path / "a.png"))
    cropped, changed = Cropper().crop(croppable)

    assert not changed
    assert cropped is croppable


def test_crop_requires_loaded_image(tmp_path):
    croppable = Croppable.from_path(write_test_png(tmp_path / "a.png"))
    with pytest.raises(ImageUncroppableError):
        Cropper().crop(croppable)


def test_output_path_naming(tmp_path):
    croppable = Croppable.from_path(tmp_path / "src" / "image1.png")

    assert Cropper().output_path(croppable) == tmp_path / "src" / "image1.png"

    cropper = Cropper(out_dir=tmp_path / "out", prefix="cropped_", suffix="_small", enumerate=True)
    assert cropper.output_path(croppable) == tmp_path / "out" / "cropped_image1_0_small.png"
    assert cropper.output_path(croppable) == tmp_path / "out" / "cropped_image1_1_small.png"


def test_output_path_keeps_extension_spelling(tmp_path):
    croppable = Croppable.from_path(tmp_path / "Photo.PNG")
    assert Cropper(suffix="-c").output_path(croppable).name == "Photo-c.PNG"


def test_crop_and_save_writes_cropped_image(tmp_path):
    src = write_test_png(tmp_path / "b.png", painted=(4, 4, 6, 6))
    out_dir = tmp_path / "nested" / "out"

    out_path = Cropper(out_dir=out_dir).crop_and_save(load_croppable(src))

    assert out_path == out_dir / "b.png"
    saved = read_png(out_path)
    assert saved.shape == (2, 2, 4)
    assert (saved[:, :, 3] == 255).all()


def test_crop_and_save_with_padding(tmp_path):
    src = write_test_png(tmp_path / "b.png", painted=(1, 4, 3, 6))
    out_path = Cropper(out_dir=tmp_path / "out", padding=2).crop_and_save(load_croppable(src))

    saved = read_png(out_path)
    assert saved.shape == (6, 6, 4)
    assert (saved[2:4, 2:4, 3] == 255).all()
    assert saved[0, 0, 3] == 0


def test_skip_unchanged_suppresses_save(tmp_path):
    src = write_test_png(tmp_path / "a.png")
    out_dir = tmp_path / "out"

    result = Cropper(out_dir=out_dir, skip_unchanged=True).crop_and_save(load_croppable(src))

    assert result is None
    assert not (out_dir / "a.png").exists()


def test_unchanged_image_is_saved_by_default(tmp_path):
    src = write_test_png(tmp_path / "a.png")
    out_path = Cropper(out_dir=tmp_path / "out").crop_and_save(load_croppable(src))

    assert out_path.exists()
    assert np.array_equal(read_png(out_path), read_png(src))


def test_overwrites_source_without_out_dir(tmp_path):
    src = write_test_png(tmp_path / "b.png", painted=(4, 4, 6, 6))
    out_path = Cropper().crop_and_save(load_croppable(src))

    assert out_path == src
    assert read_png(src).shape == (2, 2, 4)


def test_concurrent_enumeration_is_unique(tmp_path):
    src = write_test_png(tmp_path / "b.png", painted=(4, 4, 6, 6))
    croppable = load_croppable(src)
    cropper = Cropper(out_dir=tmp_path / "out", enumerate=True)

    with ThreadPoolExecutor(max_workers=8) as pool:
        paths = list(pool.map(lambda _: cropper.crop_and_save(croppable), range(40)))

    assert len(set(paths)) == 40
    numbers = sorted(int(p.stem.rsplit("_", 1)[1]) for p in paths)
    assert numbers == list(range(40))
    assert len(list((tmp_path / "out").iterdir())) == 40
