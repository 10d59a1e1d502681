#!/usr/bin/env -S uv run
# /// script
# requires-python = ">=3.11"
# dependencies = [
#   "pillow>=10",
#   "pillow-heif>=0.18"
# ]
# ///
"""
resize_to_fit.py

Crop an image to a target aspect ratio and scale it so its longest side stays
within a maximum, writing the result next to the source as
<name>_<W>x<H>.<ext> in the source's own format (GIF, JPEG, PNG or BMP).

Images whose sides are both at or below --min-size are left untouched.
Sources wider than the target aspect are not cropped; their own aspect is kept.

Usage examples:

  # Defaults: min 200 px, max 1200 px, aspect 3/4
  ./resize_to_fit.py photo.jpg

  # Square thumbnails, at most 512 px, JSON report
  ./resize_to_fit.py a.png b.gif --aspect 1:1 --max-size 512 --json
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import dataclass
from fractions import Fraction
from typing import Dict, List, Optional, Union

import crop_geometry
import image_codecs


IMAGE_SIZE_MIN = 200
IMAGE_SIZE_MAX = 1200
IMAGE_ASPECT = 3 / 4


@dataclass(frozen=True)
class TransformResult:
    file_name: str
    path: str
    width: int
    height: int

    def as_dict(self) -> Dict[str, Union[str, int]]:
        return {
            "image": self.file_name,
            "path": self.path,
            "width": self.width,
            "height": self.height,
        }


def destination_path(source_path: str, width: int, height: int) -> str:
    """
    Insert _<width>x<height> before the last extension of the file name.

    photo.jpg -> photo_600x450.jpg; archive.tar.gz -> archive.tar_600x450.gz.
    Dots in directory names are ignored; a name without extension gets the
    suffix appended.
    """
    directory, file_name = os.path.split(source_path)
    stem, extension = os.path.splitext(file_name)
    return os.path.join(directory, f"{stem}_{width}x{height}{extension}")


def transform(
        source_path: str,
        min_size: int = IMAGE_SIZE_MIN,
        max_size: int = IMAGE_SIZE_MAX,
        dest_aspect: float = IMAGE_ASPECT,
) -> Optional[TransformResult]:
    """
    Crop source_path to dest_aspect and bound it to max_size.

    Args:
        source_path: Path to a GIF, JPEG, PNG or BMP image.
        min_size: Images with both sides <= min_size are returned unchanged.
        max_size: Longest side of the written image.
        dest_aspect: Width / height the crop aims for.

    Returns:
        TransformResult for the written file, or for the source itself when it
        is already small enough. None when the format is not supported.

    Raises:
        FileNotFoundError: if source_path does not exist.
        crop_geometry.GeometryError: if the crop or output size degenerates.
        OSError: if decoding or encoding fails.
    """
    metadata = image_codecs.detect(source_path)
    if metadata is None:
        return None

    if crop_geometry.should_skip(metadata.width, metadata.height, min_size):
        return TransformResult(
            file_name=os.path.basename(source_path),
            path=source_path,
            width=metadata.width,
            height=metadata.height,
        )

    transform_plan = crop_geometry.plan(metadata.width, metadata.height, min_size, max_size, dest_aspect)

    source_buffer = image_codecs.decode(source_path, metadata.format)
    cropped_buffer = image_codecs.crop_copy(source_buffer, transform_plan.crop_rect)
    scaled_buffer = image_codecs.resample(
        cropped_buffer,
        transform_plan.output_width,
        transform_plan.output_height,
    )

    output_path = destination_path(source_path, transform_plan.output_width, transform_plan.output_height)
    image_codecs.encode(scaled_buffer, metadata.format, output_path)

    return TransformResult(
        file_name=os.path.basename(output_path),
        path=output_path,
        width=transform_plan.output_width,
        height=transform_plan.output_height,
    )


def parse_aspect(text: str) -> float:
    """Accept 0.75, 3/4 or 3:4."""
    try:
        aspect_value = float(Fraction(text.strip().replace(":", "/")))
    except (ValueError, ZeroDivisionError) as error:
        raise argparse.ArgumentTypeError(f"invalid aspect ratio: {text!r}") from error
    if aspect_value <= 0:
        raise argparse.ArgumentTypeError(f"aspect ratio must be positive: {text!r}")
    return aspect_value


def positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError as error:
        raise argparse.ArgumentTypeError(f"invalid integer: {text!r}") from error
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {text!r}")
    return value


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Crop images to an aspect ratio and bound their longest side.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("images", nargs="+", help="Paths to GIF/JPEG/PNG/BMP images.")
    parser.add_argument(
        "--min-size",
        type=positive_int,
        default=IMAGE_SIZE_MIN,
        help="Images with both sides at or below this are left unchanged.",
    )
    parser.add_argument(
        "--max-size",
        type=positive_int,
        default=IMAGE_SIZE_MAX,
        help="Maximum length of the longest side after cropping.",
    )
    parser.add_argument(
        "--aspect",
        type=parse_aspect,
        default=IMAGE_ASPECT,
        help="Target width/height ratio, e.g. 0.75, 3/4 or 3:4.",
    )
    parser.add_argument("--json", action="store_true", help="Print results as a JSON array.")
    arguments = parser.parse_args(argv)
    if arguments.min_size >= arguments.max_size:
        parser.error("--min-size must be smaller than --max-size")
    return arguments


def main(argv: Optional[List[str]] = None) -> int:
    arguments = parse_arguments(argv)

    failure_count = 0
    json_results: List[Optional[Dict[str, Union[str, int]]]] = []
    for source_path in arguments.images:
        try:
            result = transform(
                source_path,
                min_size=arguments.min_size,
                max_size=arguments.max_size,
                dest_aspect=arguments.aspect,
            )
        except Exception as error:
            print(f"Error: {source_path}: {error}", file=sys.stderr)
            failure_count += 1
            continue

        if arguments.json:
            json_results.append(result.as_dict() if result else None)
        elif result is None:
            print(f"INFO: {source_path} has an unsupported format, skipped")
        elif result.path == source_path:
            print(f"INFO: {source_path} already within {arguments.min_size} px, left unchanged")
        else:
            print(f"SUCCESS: wrote {result.path} ({result.width}x{result.height})")

    if arguments.json:
        print(json.dumps(json_results, indent=2))
    return 1 if failure_count else 0


if __name__ == "__main__":
    sys.exit(main())
