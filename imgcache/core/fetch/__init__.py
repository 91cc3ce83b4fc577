# imgcache/core/fetch/__init__.py
from .cache import DiskStorageLocator, _sha256, image_file_name, probe_mtime_update, safe_container_name
from .errors import (
    RESOLVER_ERRORS,
    DecodeError,
    ImageCacheError,
    NetworkError,
    ResolutionError,
    TimestampRefreshError,
    classify_resolver_error,
    resolver_error_guard,
)
from .hosts import ConnectorHostResolver
from .inflight import InflightFetches
from .network import RequestsNetworkClient, parse_last_modified

__all__ = [
    "ImageCacheError",
    "DecodeError",
    "NetworkError",
    "ResolutionError",
    "TimestampRefreshError",
    "RESOLVER_ERRORS",
    "classify_resolver_error",
    "resolver_error_guard",
    "DiskStorageLocator",
    "image_file_name",
    "probe_mtime_update",
    "safe_container_name",
    "_sha256",
    "ConnectorHostResolver",
    "InflightFetches",
    "RequestsNetworkClient",
    "parse_last_modified",
]
