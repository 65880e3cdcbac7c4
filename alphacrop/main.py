"""
alphacrop command line

Usage:
    alphacrop image <paths...> [--threshold N] [--padding N] [--out_dir DIR]
                               [--prefix P] [--suffix S] [--enumerate]
    alphacrop directory <dirs...> [same flags] [--recursive] [--regex RE]

Per-image failures are logged and do not change the exit status. Invalid
settings or an output directory that cannot be created exit with status 1.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from . import __version__
from .core.batch import BatchCropper
from .core.config import CropConfig, load_config
from .core.cropper import Cropper
from .core.errors import CropError
from .core.finder import CroppableFinder
from .core.utils import setup_logging

logger = logging.getLogger("alphacrop")


def _non_empty(flag: str):
    def parse(value: str) -> str:
        if value == "":
            raise argparse.ArgumentTypeError(f"{flag} value cannot be empty")
        return value
    return parse


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {value}")
    return number


def _add_image_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--threshold",
        type=_non_negative_int,
        help="Alpha threshold for cropping (0-255). Pixels with alpha above it are kept. Default: 0"
    )
    parser.add_argument(
        "--padding",
        type=_non_negative_int,
        help="Number of transparent pixels surrounding the cropped content. Default: 0"
    )
    parser.add_argument(
        "--out_dir", "--out-dir",
        dest="out_dir",
        type=_non_empty("out_dir"),
        help="Output directory for cropped images (default: next to the source image)"
    )
    parser.add_argument(
        "--prefix",
        type=_non_empty("prefix"),
        help="Prefix of the cropped image name: [prefix]filename.png"
    )
    parser.add_argument(
        "--suffix",
        type=_non_empty("suffix"),
        help="Suffix of the cropped image name, placed before the extension: filename[suffix].png"
    )
    parser.add_argument(
        "--enumerate",
        action="store_true",
        default=None,
        help="Append _<n> to every output name, n unique within the run"
    )
    parser.add_argument(
        "--skip_unchanged", "--skip-unchanged",
        dest="skip_unchanged",
        action="store_true",
        default=None,
        help="Do not save images that cropping left unchanged"
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Number of worker threads (default: chosen by the thread pool)"
    )
    parser.add_argument(
        "--progress",
        action="store_true",
        default=None,
        help="Show a progress bar"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML configuration file; command line flags take precedence"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level. Default: INFO"
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Also write the log to this file"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="alphacrop",
        description="Crop images to the bounding box of their non-transparent pixels"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    image_parser = subparsers.add_parser(
        "image",
        aliases=["img", "i"],
        help="crop selected images"
    )
    image_parser.add_argument("paths", nargs="*", help="Image files to crop")
    _add_image_flags(image_parser)

    directory_parser = subparsers.add_parser(
        "directory",
        aliases=["dir", "d"],
        help="crop images in directories"
    )
    directory_parser.add_argument("paths", nargs="*", help="Directories to search")
    _add_image_flags(directory_parser)
    directory_parser.add_argument(
        "--recursive",
        action="store_true",
        default=None,
        help="Search all sub-directories as well"
    )
    directory_parser.add_argument(
        "--regex",
        type=_non_empty("regex"),
        help="Only crop files whose name matches this regular expression"
    )

    return parser


def build_config(args: argparse.Namespace) -> CropConfig:
    """Merge defaults, the optional YAML file and command line flags."""
    if args.config is not None and not args.config.exists():
        raise FileNotFoundError(f"Configuration file not found: {args.config}")
    config = load_config(args.config)

    config.update("crop", threshold=args.threshold, padding=args.padding)
    config.update(
        "output",
        out_dir=args.out_dir,
        prefix=args.prefix,
        suffix=args.suffix,
        skip_unchanged=args.skip_unchanged,
        enumerate=args.enumerate,
    )
    config.update("batch", max_workers=args.workers, show_progress=args.progress)
    config.update("logging", level=args.log_level, file=args.log_file)
    if args.command in ("directory", "dir", "d"):
        config.update("finder", recursive=args.recursive, regex=args.regex)
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main function."""
    parser = build_parser()
    args = parser.parse_args(argv)
    directory_mode = args.command in ("directory", "dir", "d")

    if not args.paths:
        parser.error("no directories specified" if directory_mode else "no images specified")

    try:
        config = build_config(args)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging(config.get("logging", "level"), config.get("logging", "file"))

    try:
        cropper = Cropper(config.cropper_config())
        batch = BatchCropper(cropper, **config.batch_options())
        if directory_mode:
            finder = CroppableFinder(config.finder_config())
            report = batch.crop_directories(args.paths, finder)
        else:
            report = batch.crop_images(args.paths)
    except (CropError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 1
    except OSError as e:
        logger.error(f"Unable to start cropping: {e}")
        return 1

    # Item failures are reported but do not change the exit code
    if not report.ok:
        logger.warning(f"Some images were not cropped: {report.summary()}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
