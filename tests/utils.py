# tests/utils.py
"""
Single source of truth for test data, factories, and fake collaborators.
Update values here to cascade across the test suite.
"""

from __future__ import annotations

import base64
import io
import os
import tempfile
import threading
import time
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from PIL import Image

from imgcache.core.media.resolver import ImageResolver
from imgcache.schemas.models import DisplayBounds, NetworkResponse, ResolverPolicy

# -----------------------------
# Global defaults (edit once)
# -----------------------------

DEFAULT_CONTAINER = "GC1234"
DEFAULT_URL = "http://host/img/cache.jpg"
DEFAULT_DISPLAY = DisplayBounds(max_width=200, max_height=100)
DAY_S = 24 * 60 * 60

# -----------------------------
# Image factories
# -----------------------------


def image_bytes(width: int, height: int, *, fmt: str = "PNG", color: tuple[int, int, int] = (30, 120, 200)) -> bytes:
    """Encode a solid-colour image of the given size."""
    img = Image.new("RGB", (width, height), color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def png_bytes(width: int = 16, height: int = 16) -> bytes:
    return image_bytes(width, height, fmt="PNG")


def jpeg_bytes(width: int = 16, height: int = 16) -> bytes:
    return image_bytes(width, height, fmt="JPEG")


def write_image(path: Path, width: int, height: int, *, fmt: str = "PNG", age_s: float | None = None) -> bytes:
    """Write an image to `path` (creating parents) and optionally backdate its mtime."""
    data = image_bytes(width, height, fmt=fmt)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    if age_s is not None:
        backdate(path, age_s)
    return data


def backdate(path: Path, age_s: float) -> float:
    ts = time.time() - age_s
    os.utime(path, (ts, ts))
    return ts


def data_url(data: bytes, media_type: str = "image/png") -> str:
    return f"data:{media_type};base64,{base64.b64encode(data).decode('ascii')}"


# -----------------------------
# Policy / resolver factories
# -----------------------------


def make_policy(base_dir: Path, **overrides: Any) -> ResolverPolicy:
    fields: dict[str, Any] = {
        "primary_dir": base_dir / "primary",
        "secondary_dir": base_dir / "secondary",
        "display": DEFAULT_DISPLAY,
        "hosts": {"GC": "www.geocaching.com"},
        "supports_mtime_update": True,
    }
    fields.update(overrides)
    return ResolverPolicy(**fields)


def make_resolver(base_dir: Path, network: Any = None, **overrides: Any) -> ImageResolver:
    return ImageResolver(make_policy(base_dir, **overrides), network=network or FakeNetwork())


# -----------------------------
# Fake collaborators
# -----------------------------


class FakeNetwork:
    """
    In-memory NetworkClient.

    `routes` maps absolute URL -> (status, body, last_modified). Unknown URLs answer 404.
    A 200 writes `body` into the destination; 304 leaves it untouched. Every call is
    recorded in `calls` as (url, dest, had_file).
    """

    def __init__(
        self,
        routes: dict[str, tuple[int, bytes, datetime | None]] | None = None,
        *,
        default: tuple[int, bytes, datetime | None] | None = None,
        delay_s: float = 0.0,
        raises: Exception | None = None,
    ):
        self.routes = dict(routes or {})
        self.default = default
        self.delay_s = delay_s
        self.raises = raises
        self.calls: list[tuple[str, Path, bool]] = []
        self._lock = threading.Lock()

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def fetch(self, absolute_url: str, dest: Path) -> NetworkResponse:
        with self._lock:
            self.calls.append((absolute_url, dest, dest.exists()))
        if self.delay_s:
            time.sleep(self.delay_s)
        if self.raises is not None:
            raise self.raises
        status, body, last_modified = self.routes.get(absolute_url) or self.default or (404, b"", None)
        if status != 200:
            return NetworkResponse(status=status)
        tf = tempfile.NamedTemporaryFile(dir=str(dest.parent), suffix=".part", delete=False)
        tmp = Path(tf.name)
        try:
            with tf:
                tf.write(body)
            tmp.replace(dest)
        finally:
            tmp.unlink(missing_ok=True)
        return NetworkResponse(status=200, wrote_bytes=True, bytes_written=len(body), last_modified=last_modified)


class RecordingLocator:
    """Wraps a StorageLocator and counts directory creations (i.e. attempted writes)."""

    def __init__(self, inner: Any):
        self.inner = inner
        self.ensure_calls: list[Path] = []

    def locate(self, container_id: str, url: str):
        return self.inner.locate(container_id, url)

    def ensure_parent(self, path: Path) -> None:
        self.ensure_calls.append(path)
        self.inner.ensure_parent(path)

    @property
    def supports_mtime_update(self) -> bool:
        return self.inner.supports_mtime_update


def files_under(root: Path) -> list[Path]:
    if not root.exists():
        return []
    return sorted(p for p in root.rglob("*") if p.is_file())


def run_threads(n: int, target: Callable[[int], Any]) -> list[Any]:
    """Run `target(i)` in `n` threads released at the same moment; return results by index."""
    results: list[Any] = [None] * n
    barrier = threading.Barrier(n)

    def _runner(i: int) -> None:
        barrier.wait()
        results[i] = target(i)

    threads = [threading.Thread(target=_runner, args=(i,)) for i in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return results
