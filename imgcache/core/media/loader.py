# imgcache/core/media/loader.py
"""
Cache Loader: turns files on disk into decoded images.

Storage tiers are an ordered chain of (tier, validity rule) pairs. The default
chain is:

  1. primary:   freshness policy, honouring the caller's `force_keep`
  2. secondary: always valid (long-lived reference copies)

The first tier whose file exists, passes its rule and decodes wins. Stale or
corrupt files are never deleted here; a later fetch overwrites them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from PIL import Image

from imgcache.core.fetch.errors import DecodeError
from imgcache.schemas.models import DisplayBounds, StorageLocation

from .base import StorageLocator
from .downsample import decode_image, plan_options
from .freshness import FreshnessPolicy

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheTier:
    name: str
    path_of: Callable[[StorageLocation], Path]
    always_keep: bool = False


DEFAULT_TIERS: tuple[CacheTier, ...] = (
    CacheTier("primary", lambda loc: loc.primary),
    CacheTier("secondary", lambda loc: loc.secondary, always_keep=True),
)


class CacheLoader:
    def __init__(
        self,
        locator: StorageLocator,
        freshness: FreshnessPolicy,
        display: DisplayBounds,
        tiers: Sequence[CacheTier] = DEFAULT_TIERS,
    ):
        self.locator = locator
        self.freshness = freshness
        self.display = display
        self.tiers = tuple(tiers)

    def _mtime(self, path: Path) -> float | None:
        try:
            return path.stat().st_mtime if path.is_file() else None
        except OSError:
            return None

    def is_valid(self, tier: CacheTier, path: Path, container_id: str, force_keep: bool) -> bool:
        mtime = self._mtime(path)
        if mtime is None:
            return False
        return self.freshness.is_fresh(container_id, mtime, force_keep or tier.always_keep)

    def has_fresh_primary(self, url: str, container_id: str, force_keep: bool = False) -> bool:
        """Stat-only check of the first tier; no decoding."""
        loc = self.locator.locate(container_id, url)
        tier = self.tiers[0]
        return self.is_valid(tier, tier.path_of(loc), container_id, force_keep)

    def decode(self, path: Path) -> Image.Image:
        options = plan_options(path, self.display.max_width, self.display.max_height)
        return decode_image(path, options)

    def load(self, url: str, container_id: str, force_keep: bool = False) -> Image.Image | None:
        loc = self.locator.locate(container_id, url)
        for tier in self.tiers:
            path = tier.path_of(loc)
            if not self.is_valid(tier, path, container_id, force_keep):
                continue
            try:
                image = self.decode(path)
            except DecodeError as e:
                _LOGGER.error("%s tier: %s", tier.name, e)
                continue
            _LOGGER.debug("cache hit (%s) for %s in %s", tier.name, url, container_id)
            return image
        return None
