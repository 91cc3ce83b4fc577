# imgcache/core/media/base.py
"""
Collaborator contracts for the image resolver.

The resolver owns policy (tiers, freshness, fetch-once, fallbacks); the actual
HTTP transfer, the on-disk layout and host resolution are pluggable. This module
defines the three seams as Protocols:

- `NetworkClient`:  conditional GET streamed into a destination file
- `StorageLocator`: (container, url) -> primary + secondary path
- `HostResolver`:   relative reference -> absolute URL (or None)

Default implementations live in `imgcache/core/fetch/` (network.py, cache.py,
hosts.py). Tests use small fakes that implement the same methods.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from imgcache.schemas.models import NetworkResponse, StorageLocation


@runtime_checkable
class NetworkClient(Protocol):
    """
    Performs a conditional GET of `absolute_url` into `dest`.

    Implementations must:
      - send validators derived from `dest` when it already exists (If-Modified-Since)
      - stream a 200 body to disk without buffering it fully in memory
      - never expose a partially written `dest` to readers (temp file + rename)
      - raise on transport errors; report HTTP errors through `status`
    """

    def fetch(self, absolute_url: str, dest: Path) -> NetworkResponse: ...


@runtime_checkable
class StorageLocator(Protocol):
    """
    Maps (container_id, url) to a StorageLocation. Must be pure and deterministic,
    and distinct inputs must never share a path.
    """

    def locate(self, container_id: str, url: str) -> StorageLocation: ...

    def ensure_parent(self, path: Path) -> None: ...

    @property
    def supports_mtime_update(self) -> bool: ...


@runtime_checkable
class HostResolver(Protocol):
    """Turns a relative reference into an absolute URL for the given container."""

    def absolutize(self, container_id: str, url: str) -> str | None: ...
