# imgcache/core/media/downsample.py
"""
Downsampling planner, bounded decode and display fit.

- `read_bounds` / `plan_sample_factor` only parse the image header (Pillow opens
  lazily), so an oversized image is never fully decoded before we decide how much
  to shrink it.
- `decode_image` performs the real decode with the planned integer factor.
- `fit_to_display` is the final aspect-preserving downscale to the display bounds.
"""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from imgcache.core.fetch.errors import DecodeError
from imgcache.schemas.models import DownsampleOptions

try:
    _RESAMPLE_BOX = Image.Resampling.BOX  # Pillow >= 9.1
    _RESAMPLE_LANCZOS = Image.Resampling.LANCZOS
except AttributeError:  # Pillow < 9.1
    _RESAMPLE_BOX = Image.BOX
    _RESAMPLE_LANCZOS = Image.LANCZOS

_LOGGER = logging.getLogger(__name__)


def read_bounds(path: Path) -> tuple[int, int]:
    """Return (width, height) from the image header without decoding pixels."""
    try:
        with Image.open(path) as im:
            return int(im.width), int(im.height)
    except (OSError, UnidentifiedImageError, Image.DecompressionBombError, ValueError) as e:
        raise DecodeError(f"cannot read image bounds of {path}: {type(e).__name__}: {e}") from e


def sample_factor_for(width: int, height: int, max_width: int, max_height: int) -> int:
    """
    Integer downscale for an image of (width, height) shown within (max_width, max_height).

    Floor division: the decoded image never ends up smaller than the display in
    the dimension that constrains it; `fit_to_display` trims the rest.
    """
    if height > max_height or width > max_width:
        return max(1, height // max_height, width // max_width)
    return 1


def plan_sample_factor(path: Path, max_width: int, max_height: int) -> int:
    try:
        width, height = read_bounds(path)
    except DecodeError as e:
        # let the full decode fail explicitly
        _LOGGER.warning("%s; planning with sample factor 1", e)
        return 1
    return sample_factor_for(width, height, max_width, max_height)


def plan_options(path: Path, max_width: int, max_height: int) -> DownsampleOptions:
    return DownsampleOptions(
        max_width=max_width,
        max_height=max_height,
        sample_factor=plan_sample_factor(path, max_width, max_height),
    )


def decode_image(path: Path, options: DownsampleOptions) -> Image.Image:
    """Fully decode `path`, shrunk by `options.sample_factor`. Raises DecodeError."""
    factor = options.sample_factor
    try:
        with Image.open(path) as im:
            width, height = im.size
            target = (max(1, width // factor), max(1, height // factor))
            if factor > 1:
                # JPEG can scale during decode; other formats ignore the request
                im.draft(im.mode, target)
            im.load()
            img = im if im.size == target else im.resize(target, _RESAMPLE_BOX)
            img = ImageOps.exif_transpose(img)
            # detach from the file handle before the context closes it
            return img.copy() if img is im else img
    except (OSError, UnidentifiedImageError, Image.DecompressionBombError, ValueError, SyntaxError) as e:
        raise DecodeError(f"cannot decode {path}: {type(e).__name__}: {e}") from e


def fit_to_display(image: Image.Image, max_width: int, max_height: int) -> Image.Image:
    """Aspect-preserving downscale so the image fits (max_width, max_height); never upscales."""
    width, height = image.size
    if width <= max_width and height <= max_height:
        return image
    ratio = min(max_height / height, max_width / width)
    size = (max(1, min(max_width, int(width * ratio))), max(1, min(max_height, int(height * ratio))))
    return image.resize(size, _RESAMPLE_LANCZOS)


__all__ = [
    "decode_image",
    "fit_to_display",
    "plan_options",
    "plan_sample_factor",
    "read_bounds",
    "sample_factor_for",
]
