# imgcache/core/media/__init__.py
from .base import HostResolver, NetworkClient, StorageLocator
from .denylist import Denylist
from .downsample import decode_image, fit_to_display, plan_options, plan_sample_factor, read_bounds, sample_factor_for
from .freshness import FreshnessPolicy
from .loader import DEFAULT_TIERS, CacheLoader, CacheTier
from .persist import Persister, decode_inline_payload, is_inline, make_fresh_copy
from .placeholders import error_placeholder, is_error_placeholder, is_transparent_placeholder, transparent_placeholder
from .resolver import ImageResolver

__all__ = [
    "NetworkClient",
    "StorageLocator",
    "HostResolver",
    "Denylist",
    "FreshnessPolicy",
    "CacheLoader",
    "CacheTier",
    "DEFAULT_TIERS",
    "Persister",
    "decode_inline_payload",
    "is_inline",
    "make_fresh_copy",
    "decode_image",
    "fit_to_display",
    "plan_options",
    "plan_sample_factor",
    "read_bounds",
    "sample_factor_for",
    "transparent_placeholder",
    "error_placeholder",
    "is_transparent_placeholder",
    "is_error_placeholder",
    "ImageResolver",
]
