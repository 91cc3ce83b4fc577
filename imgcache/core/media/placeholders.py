# imgcache/core/media/placeholders.py
"""Stand-in images returned instead of real content. Every call returns a new image."""

from __future__ import annotations

from PIL import Image, ImageDraw

ERROR_IMAGE_SIZE = (64, 64)
_ERROR_BACKGROUND = (224, 224, 224, 255)
_ERROR_BORDER = (160, 160, 160, 255)
_ERROR_CROSS = (200, 40, 40, 255)


def transparent_placeholder() -> Image.Image:
    """1x1 fully transparent image (blocked, blank or silently failed references)."""
    return Image.new("RGBA", (1, 1), (0, 0, 0, 0))


def error_placeholder() -> Image.Image:
    """Grey tile with a red cross: an image was expected but could not be loaded."""
    w, h = ERROR_IMAGE_SIZE
    img = Image.new("RGBA", ERROR_IMAGE_SIZE, _ERROR_BACKGROUND)
    draw = ImageDraw.Draw(img)
    draw.rectangle((0, 0, w - 1, h - 1), outline=_ERROR_BORDER, width=2)
    pad = w // 4
    draw.line((pad, pad, w - pad, h - pad), fill=_ERROR_CROSS, width=4)
    draw.line((pad, h - pad, w - pad, pad), fill=_ERROR_CROSS, width=4)
    return img


def is_transparent_placeholder(image: Image.Image | None) -> bool:
    return image is not None and image.size == (1, 1) and image.mode == "RGBA" and image.getpixel((0, 0))[3] == 0


def is_error_placeholder(image: Image.Image | None) -> bool:
    if image is None or image.size != ERROR_IMAGE_SIZE or image.mode != "RGBA":
        return False
    return image.getpixel((ERROR_IMAGE_SIZE[0] // 2, ERROR_IMAGE_SIZE[1] // 2)) == _ERROR_CROSS
