# imgcache/core/fetch/errors.py
"""
Typed errors + utilities for the image resolver.

None of these ever reach the caller of `ImageResolver.resolve`: every failure is
logged and degrades to a placeholder or a no-op. They exist so that the internal
steps can signal *what* went wrong and the facade can decide how to degrade.

Exports
-------
- ImageCacheError, DecodeError, NetworkError, ResolutionError, TimestampRefreshError
- RESOLVER_ERRORS
- classify_resolver_error(exc)
- resolver_error_guard()
"""

from __future__ import annotations

import binascii
from collections.abc import Iterator
from contextlib import contextmanager

# =========================
# Exception types
# =========================


class ImageCacheError(RuntimeError):
    """Base class for image resolver failures."""


class DecodeError(ImageCacheError):
    """Corrupt or unsupported image file, or an undecodable inline payload."""


class NetworkError(ImageCacheError):
    """Non-2xx/non-304 status, transport failure or timeout while fetching."""


class ResolutionError(ImageCacheError):
    """No absolute URL could be derived for a relative reference."""


class TimestampRefreshError(ImageCacheError):
    """The file's mtime could not be reset, neither in place nor via a fresh copy."""


RESOLVER_ERRORS = (
    DecodeError,
    NetworkError,
    ResolutionError,
    TimestampRefreshError,
)

# =========================
# Classification helpers
# =========================


def classify_resolver_error(exc: Exception) -> ImageCacheError:
    """
    Map arbitrary exceptions raised inside the resolver to a typed ImageCacheError.

    Heuristics:
      - ImageCacheError subclasses → passed through
      - requests.* errors → NetworkError
      - Pillow UnidentifiedImageError, binascii.Error, decompression bombs → DecodeError
      - TimeoutError / ConnectionError → NetworkError
      - Fallback → ImageCacheError
    """
    if isinstance(exc, ImageCacheError):
        return exc

    msg = f"{type(exc).__name__}: {exc}"

    try:
        import requests

        if isinstance(exc, requests.RequestException):
            return NetworkError(msg)
    except ImportError:  # pragma: no cover
        pass

    try:
        from PIL import Image, UnidentifiedImageError

        if isinstance(exc, (UnidentifiedImageError, Image.DecompressionBombError)):
            return DecodeError(msg)
    except ImportError:  # pragma: no cover
        pass

    if isinstance(exc, binascii.Error):
        return DecodeError(msg)
    if isinstance(exc, (TimeoutError, ConnectionError)):
        return NetworkError(msg)

    return ImageCacheError(msg)


@contextmanager
def resolver_error_guard() -> Iterator[None]:
    """Context manager to normalize unexpected exceptions from resolver internals."""
    try:
        yield
    except RESOLVER_ERRORS:
        raise
    except Exception as exc:  # noqa: BLE001
        raise classify_resolver_error(exc) from exc


__all__ = [
    "ImageCacheError",
    "DecodeError",
    "NetworkError",
    "ResolutionError",
    "TimestampRefreshError",
    "RESOLVER_ERRORS",
    "classify_resolver_error",
    "resolver_error_guard",
]
