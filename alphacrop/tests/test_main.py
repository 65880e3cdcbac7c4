#!/usr/bin/env python3
"""
Tests for the command line interface.
"""

import sys
from pathlib import Path

import cv2
import numpy as np
import pytest
import yaml

# Add the project root to path to import alphacrop
sys.path.append(str(Path(__file__).parent.parent.parent))

from alphacrop.core.config import CropConfig, load_config
from alphacrop.main import build_parser, main


def create_test_directory(root):
    root.mkdir(parents=True, exist_ok=True)
    square = np.zeros((10, 10, 4), dtype=np.uint8)
    square[4:6, 4:6] = (0, 0, 255, 255)
    cv2.imwrite(str(root / "b.png"), square)
    cv2.imwrite(str(root / "a.png"), np.full((10, 10, 4), 255, dtype=np.uint8))
    (root / "c.txt").write_text("not an image")
    return root


def test_directory_command(tmp_path):
    src = create_test_directory(tmp_path / "src")
    out = tmp_path / "out"

    code = main(["directory", str(src), "--out_dir", str(out), "--regex", "^b", "--prefix", "cropped_"])

    assert code == 0
    assert [p.name for p in out.iterdir()] == ["cropped_b.png"]
    assert cv2.imread(str(out / "cropped_b.png"), cv2.IMREAD_UNCHANGED).shape == (2, 2, 4)


def test_image_command_alias_with_padding(tmp_path):
    src = create_test_directory(tmp_path / "src")
    out = tmp_path / "out"

    code = main(["i", str(src / "b.png"), str(src / "c.txt"), "--out_dir", str(out), "--padding", "1"])

    assert code == 0
    assert cv2.imread(str(out / "b.png"), cv2.IMREAD_UNCHANGED).shape == (4, 4, 4)


def test_missing_paths_is_a_usage_error():
    with pytest.raises(SystemExit) as excinfo:
        main(["image"])
    assert excinfo.value.code == 2


@pytest.mark.parametrize("flag", ["--prefix", "--suffix", "--out_dir", "--regex"])
def test_empty_flag_values_are_rejected(tmp_path, flag):
    with pytest.raises(SystemExit) as excinfo:
        main(["directory", str(tmp_path), flag, ""])
    assert excinfo.value.code == 2


def test_invalid_regex_fails_before_processing(tmp_path):
    src = create_test_directory(tmp_path / "src")
    out = tmp_path / "out"

    assert main(["d", str(src), "--out_dir", str(out), "--regex", "(b"]) == 1
    assert not out.exists()


def test_threshold_out_of_range(tmp_path):
    src = create_test_directory(tmp_path / "src")
    assert main(["image", str(src / "b.png"), "--threshold", "300"]) == 1


def test_yaml_config_with_flag_precedence(tmp_path):
    src = create_test_directory(tmp_path / "src")
    out = tmp_path / "out"
    config_file = tmp_path / "crop.yaml"
    config_file.write_text(yaml.safe_dump({
        "crop": {"padding": 3},
        "output": {"out_dir": str(out), "suffix": "_yaml"},
        "finder": {"regex": "^b"},
    }))

    code = main(["dir", str(src), "--config", str(config_file), "--padding", "1"])

    assert code == 0
    assert [p.name for p in out.iterdir()] == ["b_yaml.png"]
    assert cv2.imread(str(out / "b_yaml.png"), cv2.IMREAD_UNCHANGED).shape == (4, 4, 4)


def test_missing_config_file(tmp_path):
    src = create_test_directory(tmp_path / "src")
    assert main(["image", str(src / "b.png"), "--config", str(tmp_path / "nope.yaml")]) == 1


def test_config_defaults_and_round_trip(tmp_path):
    config = load_config()
    assert config.get("crop", "threshold") == 0
    assert config.cropper_config().out_dir is None
    assert config.finder_config().regex is None

    config.set("output", "prefix", value="p_")
    config.to_yaml(tmp_path / "saved.yaml")
    assert CropConfig.from_yaml(tmp_path / "saved.yaml").cropper_config().prefix == "p_"
    # Defaults are not shared between instances
    assert CropConfig().get("output", "prefix") == ""


def test_parser_aliases():
    parser = build_parser()
    args = parser.parse_args(["dir", "x", "--recursive"])
    assert args.recursive is True
    args = parser.parse_args(["img", "x.png", "--enumerate"])
    assert args.enumerate is True
    assert args.skip_unchanged is None


def test_item_failures_are_logged_without_changing_exit_code(tmp_path):
    src = create_test_directory(tmp_path / "src")
    log_file = tmp_path / "crop.log"

    code = main(["image", str(src / "b.png"), str(src / "c.txt"),
                 "--out_dir", str(tmp_path / "out"), "--log-file", str(log_file)])

    assert code == 0
    log = log_file.read_text()
    assert "Some images were not cropped" in log
    assert "1 failed" in log


def test_config_merge_keeps_unset_keys(tmp_path):
    config = CropConfig({"crop": {"padding": 4}, "output": {"prefix": "c_"}})
    assert config.get("crop", "threshold") == 0
    assert config.get("crop", "padding") == 4
    assert config.get("output", "suffix") == ""

    assert load_config(tmp_path / "absent.yaml").get("crop", "padding") == 0
