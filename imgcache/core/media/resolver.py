# imgcache/core/media/resolver.py
"""
Resolver facade: the single entry point used by the rendering side.

Per call:
  1. blank or denylisted URL            → transparent placeholder (no I/O at all)
  2. shared assets go to the shared bucket
  3. try the cache (primary, then secondary)
  4. miss → fetch once per (container, url); save-only calls stop here
  5. try the cache again (unless the fetch cannot have produced a file)
  6. still nothing → error placeholder or transparent placeholder
  7. fit to display and return

Fetch-and-Persist only produces files; the Cache Loader is the only place that
turns files into images. Nothing raised inside ever reaches the caller.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from PIL import Image

from imgcache.core.fetch.cache import DiskStorageLocator
from imgcache.core.fetch.hosts import ConnectorHostResolver
from imgcache.core.fetch.inflight import PROCESS_FETCHES, FutureTimeout, InflightFetches
from imgcache.core.fetch.network import RequestsNetworkClient
from imgcache.schemas.models import FetchOutcome, ImageRequest, ResolverPolicy

from .base import HostResolver, NetworkClient, StorageLocator
from .denylist import Denylist
from .downsample import fit_to_display
from .freshness import FreshnessPolicy
from .loader import CacheLoader
from .persist import Persister
from .placeholders import error_placeholder, transparent_placeholder

_LOGGER = logging.getLogger(__name__)


def _mtime_ns(path: Path) -> int | None:
    try:
        return path.stat().st_mtime_ns
    except OSError:
        return None


class ImageResolver:
    """
    Resolves embedded image references to decoded, display-sized Pillow images.

    Collaborators default to the disk locator, `requests` client and connector host
    map described by `policy`; pass your own to override any of them. One instance
    may serve concurrent calls: decode options are per call and fetches are
    coordinated per primary file across every resolver in the process.
    """

    def __init__(
        self,
        policy: ResolverPolicy | None = None,
        *,
        locator: StorageLocator | None = None,
        network: NetworkClient | None = None,
        hosts: HostResolver | None = None,
        denylist: Denylist | None = None,
    ):
        pol = policy or ResolverPolicy()
        self.policy = pol
        self.locator = locator or DiskStorageLocator(
            pol.primary_dir, pol.secondary_dir, supports_mtime_update=pol.supports_mtime_update
        )
        self.network = network or RequestsNetworkClient(user_agent=pol.user_agent, timeout_s=pol.timeout_s)
        self.hosts = hosts or ConnectorHostResolver(pol.hosts, pol.default_scheme)
        self.denylist = denylist or Denylist(pol.denylist)
        self.freshness = FreshnessPolicy(pol.ungrouped_container, pol.max_age_s)
        self.loader = CacheLoader(self.locator, self.freshness, pol.display)
        self.persister = Persister(self.locator, self.network, self.hosts, allow_network=pol.allow_network)
        self._inflight: InflightFetches = PROCESS_FETCHES

    # ---------- public API ----------

    def resolve(
        self,
        request: ImageRequest | str,
        container_id: str | None = None,
        *,
        return_placeholder_on_error: bool | None = None,
        save_only: bool | None = None,
    ) -> Image.Image | None:
        """
        Resolve one reference.

        Args:
            request:       an ImageRequest, or a raw URL (then `container_id` applies)
            container_id:  caller's container when `request` is a raw URL
            return_placeholder_on_error: on failure return the error image instead of
                           the 1x1 transparent one (default from policy)
            save_only:     only make sure the file is on disk; return None (default from policy)

        Returns:
            A display-fitted image, a placeholder, or None in save-only mode.
        """
        error_image = self.policy.return_error_image if return_placeholder_on_error is None else return_placeholder_on_error
        only_save = self.policy.save_only if save_only is None else save_only

        url = request.url if isinstance(request, ImageRequest) else request
        if not url or not url.strip() or self.denylist.is_blocked(url):
            return transparent_placeholder()

        req = request if isinstance(request, ImageRequest) else self.policy.request_for(url, container_id)
        try:
            return self._resolve(req, error_image=error_image, save_only=only_save)
        except Exception:
            # nothing escapes resolve()
            _LOGGER.exception("unexpected failure resolving %s", req.url)
            return None if only_save else self._fallback(error_image)

    def resolve_url(self, url: str, container_id: str | None = None) -> Image.Image | None:
        return self.resolve(url, container_id)

    def prewarm(self, urls: Iterable[str], container_id: str | None = None) -> int:
        """Store every reference without decoding it. Returns how many are now available on disk."""
        stored = 0
        for url in urls:
            self.resolve(url, container_id, save_only=True)
            if not url or not url.strip() or self.denylist.is_blocked(url):
                continue
            req = self.policy.request_for(url, container_id)
            loc = self.locator.locate(req.container_id, req.url)
            if loc.primary.is_file() or loc.secondary.is_file():
                stored += 1
        return stored

    # ---------- steps ----------

    def _resolve(self, req: ImageRequest, *, error_image: bool, save_only: bool) -> Image.Image | None:
        primary = self.locator.locate(req.container_id, req.url).primary
        seen_at_miss = _mtime_ns(primary)
        image = self.loader.load(req.url, req.container_id, force_keep=req.is_shared)

        if image is None:
            outcome = self._fetch(req, primary, seen_at_miss)
            if save_only:
                return None
            validated = outcome is None or outcome.validated
            if outcome is None or not outcome.unrecoverable:
                image = self.loader.load(req.url, req.container_id, force_keep=req.is_shared or validated)
        elif save_only:
            return None

        if image is None:
            _LOGGER.debug("failed to obtain image %s", req.url)
            return self._fallback(error_image)

        display = self.policy.display
        return fit_to_display(image, display.max_width, display.max_height)

    def _fetch(self, req: ImageRequest, dest: Path, seen_at_miss: int | None) -> FetchOutcome | None:
        """
        Fetch into the primary path, at most once per file at a time process-wide.

        `seen_at_miss` is the mtime of `dest` before our cache lookup. Returns None
        when another caller stored a fresh file since then, i.e. there was nothing
        left to fetch.
        """

        def work() -> FetchOutcome | None:
            if _mtime_ns(dest) != seen_at_miss and self.loader.has_fresh_primary(req.url, req.container_id, req.is_shared):
                return None
            return self.persister.fetch(req.url, req.host_container, dest)

        try:
            return self._inflight.run(os.path.abspath(dest), work, timeout=self.policy.inflight_wait_s)
        except FutureTimeout:
            _LOGGER.warning("timed out waiting for in-flight fetch of %s", req.url)
            return FetchOutcome.failed("timed out waiting for in-flight fetch")

    def _fallback(self, error_image: bool) -> Image.Image:
        return error_placeholder() if error_image else transparent_placeholder()


__all__ = ["ImageResolver"]
