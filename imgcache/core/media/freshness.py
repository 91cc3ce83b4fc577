# imgcache/core/media/freshness.py

from __future__ import annotations

import time
from dataclasses import dataclass


@dataclass(frozen=True)
class FreshnessPolicy:
    """
    Decides whether a cached file can be used without revalidation.

    Only the ungrouped pseudo-container expires; files of any real container, and
    files read with `force_keep` (shared assets, secondary tier), stay valid forever.
    """

    ungrouped_container: str = "ungrouped"
    max_age_s: float = 24 * 60 * 60

    def is_fresh(self, container_id: str, mtime: float, force_keep: bool = False, *, now: float | None = None) -> bool:
        if force_keep or container_id != self.ungrouped_container:
            return True
        current = time.time() if now is None else now
        return mtime > current - self.max_age_s
