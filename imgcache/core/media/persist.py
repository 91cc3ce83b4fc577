# imgcache/core/media/persist.py
"""
Fetch-and-Persist: get image bytes onto disk at the primary path.

Two mutually exclusive paths:
  - inline `data:image/...;base64,` payloads are decoded and written directly
  - everything else is absolutized and fetched with a conditional GET

This step never returns pixels and never raises; the Cache Loader is the only
place that turns files into images.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
import shutil
import tempfile
import time
from datetime import datetime
from pathlib import Path

from imgcache.core.fetch.errors import (
    DecodeError,
    ImageCacheError,
    NetworkError,
    ResolutionError,
    TimestampRefreshError,
    resolver_error_guard,
)
from imgcache.schemas.models import FetchOutcome

from .base import HostResolver, NetworkClient, StorageLocator

_LOGGER = logging.getLogger(__name__)

_INLINE_PREFIX = "data:"
_INLINE_IMAGE_PREFIX = "data:image/"
_BASE64_MARKER = ";base64,"
# tolerance when checking that an in-place mtime update took effect
_MTIME_SLACK_S = 2.0


def is_inline(url: str) -> bool:
    return url[: len(_INLINE_PREFIX)].lower() == _INLINE_PREFIX


def decode_inline_payload(url: str) -> bytes:
    """Decode a `data:image/<type>;base64,<payload>` reference. Raises DecodeError."""
    if url[: len(_INLINE_IMAGE_PREFIX)].lower() != _INLINE_IMAGE_PREFIX:
        raise DecodeError("inline reference is not an image")
    if _BASE64_MARKER not in url:
        raise DecodeError("unable to decode non-base64 inline image")
    payload = "".join(url.split(_BASE64_MARKER, 1)[1].split())
    payload += "=" * (-len(payload) % 4)
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"invalid base64 inline payload: {e}") from e
    if not data:
        raise DecodeError("empty inline payload")
    return data


def write_atomic(dest: Path, data: bytes) -> None:
    """Write `data` to a temp file next to `dest`, then rename it into place."""
    tf = tempfile.NamedTemporaryFile(prefix=".inline_", suffix=".part", delete=False, dir=str(dest.parent))
    tmp_path = Path(tf.name)
    try:
        with tf:
            tf.write(data)
        tmp_path.replace(dest)
    finally:
        tmp_path.unlink(missing_ok=True)


def make_fresh_copy(path: Path) -> None:
    """
    Reset the timestamp of `path` by recreating the file.

    On some storage the modification time cannot be changed after the fact, so a
    brand new file is the only way to use the time as a validity hint: copy to
    `<name>-temp` next to it, then replace the original with the copy. Readers
    see either the old file or the new one, never a gap.
    """
    temp = path.with_name(path.name + "-temp")
    try:
        shutil.copyfile(path, temp)
        os.replace(temp, path)
    except OSError as e:
        raise TimestampRefreshError(f"could not reset timestamp of {path}: {e}") from e
    finally:
        temp.unlink(missing_ok=True)


class Persister:
    def __init__(
        self,
        locator: StorageLocator,
        network: NetworkClient,
        hosts: HostResolver,
        *,
        allow_network: bool = True,
    ):
        self.locator = locator
        self.network = network
        self.hosts = hosts
        self.allow_network = allow_network

    # ---------- public ----------

    def fetch(self, url: str, container_id: str, dest: Path) -> FetchOutcome:
        if is_inline(url):
            return self.save_inline(url, dest)
        return self.download_or_refresh(url, container_id, dest)

    def save_inline(self, url: str, dest: Path) -> FetchOutcome:
        try:
            data = decode_inline_payload(url)
        except DecodeError as e:
            _LOGGER.error("inline image: %s", e)
            return FetchOutcome.failed(str(e), unrecoverable=True)
        try:
            self.locator.ensure_parent(dest)
            write_atomic(dest, data)
        except OSError as e:
            _LOGGER.error("cannot write file for decoded inline image %s: %s", dest, e)
            return FetchOutcome.failed(f"write failed: {e}", unrecoverable=True)
        return FetchOutcome.success(len(data))

    def download_or_refresh(self, url: str, container_id: str, dest: Path) -> FetchOutcome:
        absolute = self.hosts.absolutize(container_id, url)
        if absolute is None:
            err = ResolutionError(f"no host known to resolve {url!r} for container {container_id!r}")
            _LOGGER.warning("%s", err)
            return FetchOutcome.failed(str(err))
        if not self.allow_network:
            _LOGGER.debug("network disabled; not fetching %s", absolute)
            return FetchOutcome.failed("network disabled by policy")

        try:
            with resolver_error_guard():
                self.locator.ensure_parent(dest)
                response = self.network.fetch(absolute, dest)
        except ImageCacheError as e:
            _LOGGER.error("fetching %s failed: %s", absolute, e)
            return FetchOutcome.failed(str(e))

        if response.status == 200 and response.wrote_bytes:
            if response.last_modified is not None:
                self._apply_mtime(dest, response.last_modified)
            return FetchOutcome.success(response.bytes_written)

        if response.status == 304 and dest.exists():
            try:
                self.refresh_timestamp(dest)
            except TimestampRefreshError as e:
                _LOGGER.error("%s", e)
            return FetchOutcome.not_modified()

        err = NetworkError(f"HTTP {response.status} for {absolute}")
        _LOGGER.warning("%s", err)
        return FetchOutcome.failed(str(err))

    def refresh_timestamp(self, path: Path) -> None:
        """Advance the mtime of `path` to now; falls back to a fresh copy. Raises TimestampRefreshError."""
        now = time.time()
        if self.locator.supports_mtime_update:
            try:
                os.utime(path, None)
                if path.stat().st_mtime >= now - _MTIME_SLACK_S:
                    return
                _LOGGER.debug("in-place mtime update of %s did not take", path)
            except OSError as e:
                _LOGGER.debug("in-place mtime update of %s failed: %s", path, e)
        make_fresh_copy(path)

    # ---------- internals ----------

    def _apply_mtime(self, path: Path, when: datetime) -> None:
        ts = when.timestamp()
        try:
            os.utime(path, (ts, ts))
        except OSError as e:
            _LOGGER.warning("could not apply Last-Modified to %s: %s", path, e)


__all__ = [
    "Persister",
    "decode_inline_payload",
    "is_inline",
    "make_fresh_copy",
    "write_atomic",
]
