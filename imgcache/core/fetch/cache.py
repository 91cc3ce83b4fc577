# imgcache/core/fetch/cache.py
"""
Deterministic on-disk cache layout for resolved images.

Layout:
  <primary_root>/<container>/<sha256(url)[:32]><ext>     (written by fetches)
  <secondary_root>/<container>/<sha256(url)[:32]><ext>   (long-lived copies, read only)

File existence and mtime are the only cache metadata; there is no index file.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
import time
from hashlib import sha256 as _sha256lib
from pathlib import Path
from urllib.parse import urlparse

from imgcache.schemas.models import StorageLocation

_LOGGER = logging.getLogger(__name__)

_IMAGE_EXTS = {"jpg", "jpeg", "png", "gif", "bmp", "webp", "tif", "tiff"}
_DEFAULT_EXT = ".img"
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def _sha256(data: bytes | str) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8", errors="ignore")
    return _sha256lib(data).hexdigest()


def _extension_for(url: str) -> str:
    if url.startswith("data:"):
        # data:image/png;base64,...
        subtype = url[len("data:") :].split(";", 1)[0].split("/", 1)[-1].lower()
        return f".{subtype}" if subtype in _IMAGE_EXTS else _DEFAULT_EXT
    suf = Path(urlparse(url).path).suffix.lower().lstrip(".")
    return f".{suf}" if suf in _IMAGE_EXTS else _DEFAULT_EXT


def safe_container_name(container_id: str) -> str:
    """
    Filesystem-safe directory name for a container id.

    Ids that are already safe are used verbatim; anything else is sanitised and
    suffixed with a short hash of the original so two ids never share a directory.
    """
    cleaned = _UNSAFE_CHARS.sub("_", container_id)
    if cleaned == container_id and container_id not in ("", ".", ".."):
        return container_id
    return f"{cleaned.strip('.') or '_'}-{_sha256(container_id)[:8]}"


def image_file_name(url: str) -> str:
    return f"{_sha256(url)[:32]}{_extension_for(url)}"


def probe_mtime_update(directory: Path) -> bool:
    """
    Return True if files in `directory` accept an in-place mtime update.

    Some storage (certain FUSE/FAT mounts, some network shares) silently ignores
    utime. We create a scratch file, push its mtime into the past and check it took.
    """
    try:
        directory.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(prefix=".mtime-probe-", dir=str(directory))
        os.close(fd)
    except OSError as e:
        _LOGGER.warning("mtime probe could not create a file in %s: %s", directory, e)
        return False
    probe = Path(name)
    try:
        target = time.time() - 3600.0
        os.utime(probe, (target, target))
        return abs(probe.stat().st_mtime - target) < 2.0
    except OSError:
        return False
    finally:
        probe.unlink(missing_ok=True)


class DiskStorageLocator:
    """Default two-tier StorageLocator rooted at a primary and a secondary directory."""

    def __init__(self, primary_root: Path, secondary_root: Path, *, supports_mtime_update: bool | None = None):
        self.primary_root = Path(primary_root)
        self.secondary_root = Path(secondary_root)
        self._mtime_capability = supports_mtime_update

    def locate(self, container_id: str, url: str) -> StorageLocation:
        folder = safe_container_name(container_id)
        name = image_file_name(url)
        return StorageLocation(
            primary=self.primary_root / folder / name,
            secondary=self.secondary_root / folder / name,
        )

    def ensure_parent(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def supports_mtime_update(self) -> bool:
        # resolved once; never re-probed
        if self._mtime_capability is None:
            self._mtime_capability = probe_mtime_update(self.primary_root)
            _LOGGER.debug("in-place mtime update supported under %s: %s", self.primary_root, self._mtime_capability)
        return self._mtime_capability


__all__ = [
    "DiskStorageLocator",
    "image_file_name",
    "probe_mtime_update",
    "safe_container_name",
    "_sha256",
]
