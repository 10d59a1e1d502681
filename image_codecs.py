"""
image_codecs.py

Pillow-backed codec capability used by resize_to_fit:

  detect     – read format and size from the header only
  decode     – load the full pixel buffer as true colour (RGB / RGBA)
  crop_copy  – copy a rectangle into a new buffer at (0, 0)
  resample   – Lanczos resize into a new buffer
  encode     – write a buffer in the source format, atomically

Decode/encode dispatch goes through CODECS, a table keyed by ImageFormat.
HEIF/HEIC files are identified via pillow-heif and reported as unsupported.
"""

from __future__ import annotations

import contextlib
import enum
import os
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from PIL import Image, UnidentifiedImageError
from pillow_heif import register_heif_opener

from crop_geometry import Rect


register_heif_opener()


class ImageFormat(enum.Enum):
    GIF = "GIF"
    JPEG = "JPEG"
    PNG = "PNG"
    BMP = "BMP"


# Pillow reports multi-picture JPEGs (many camera files) as MPO.
FORMAT_BY_PILLOW_NAME: Dict[str, ImageFormat] = {
    "GIF": ImageFormat.GIF,
    "JPEG": ImageFormat.JPEG,
    "MPO": ImageFormat.JPEG,
    "PNG": ImageFormat.PNG,
    "BMP": ImageFormat.BMP,
}


@dataclass(frozen=True)
class ImageMetadata:
    width: int
    height: int
    format: ImageFormat


@dataclass(frozen=True)
class Codec:
    decode: Callable[[str], Image.Image]
    encode: Callable[[Image.Image, str], None]


def has_alpha(image: Image.Image) -> bool:
    return image.mode in ("RGBA", "LA", "PA") or "transparency" in image.info


def to_true_color(image: Image.Image) -> Image.Image:
    """Convert palette / greyscale / CMYK buffers so resampling can interpolate."""
    return image.convert("RGBA" if has_alpha(image) else "RGB")


def _make_decoder(pillow_formats: Tuple[str, ...]) -> Callable[[str], Image.Image]:
    def decode_with_pillow(image_path: str) -> Image.Image:
        with Image.open(image_path, formats=list(pillow_formats)) as source_image:
            source_image.load()
            return to_true_color(source_image)

    return decode_with_pillow


def _make_encoder(pillow_format: str, keep_alpha: bool) -> Callable[[Image.Image, str], None]:
    def encode_with_pillow(buffer: Image.Image, output_path: str) -> None:
        if not keep_alpha and buffer.mode != "RGB":
            buffer = buffer.convert("RGB")
        buffer.save(output_path, format=pillow_format)

    return encode_with_pillow


CODECS: Dict[ImageFormat, Codec] = {
    ImageFormat.GIF: Codec(_make_decoder(("GIF",)), _make_encoder("GIF", keep_alpha=True)),
    ImageFormat.JPEG: Codec(_make_decoder(("JPEG", "MPO")), _make_encoder("JPEG", keep_alpha=False)),
    ImageFormat.PNG: Codec(_make_decoder(("PNG",)), _make_encoder("PNG", keep_alpha=True)),
    ImageFormat.BMP: Codec(_make_decoder(("BMP",)), _make_encoder("BMP", keep_alpha=False)),
}


def detect(image_path: str) -> Optional[ImageMetadata]:
    """
    Read format and size without decoding pixel data.

    Returns None when the file is not one of the supported formats, including
    files Pillow cannot identify at all. A missing file raises FileNotFoundError.
    """
    try:
        with Image.open(image_path) as probe_image:
            pillow_format = probe_image.format
            width, height = probe_image.size
    except UnidentifiedImageError:
        return None

    image_format = FORMAT_BY_PILLOW_NAME.get(pillow_format or "")
    if image_format is None:
        return None
    return ImageMetadata(width=width, height=height, format=image_format)


def decode(image_path: str, image_format: ImageFormat) -> Image.Image:
    return CODECS[image_format].decode(image_path)


def crop_copy(buffer: Image.Image, rect: Rect) -> Image.Image:
    return buffer.crop(rect.box)


def resample(buffer: Image.Image, width: int, height: int) -> Image.Image:
    if buffer.size == (width, height):
        return buffer.copy()
    return buffer.resize((width, height), Image.LANCZOS)


def encode(buffer: Image.Image, image_format: ImageFormat, output_path: str) -> None:
    """
    Encode buffer to output_path in image_format.

    The data is written to a hidden file next to output_path and renamed over
    it once the encoder has finished, so output_path is either the old file or
    the complete new one. Encoder errors propagate after the temporary file is
    removed.
    """
    output_directory = os.path.dirname(os.path.abspath(output_path))
    temporary_path = os.path.join(
        output_directory,
        f".{os.path.basename(output_path)}.{uuid.uuid4().hex}.tmp",
    )
    try:
        CODECS[image_format].encode(buffer, temporary_path)
        os.replace(temporary_path, output_path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.remove(temporary_path)
        raise
