# imgcache/core/fetch/hosts.py
"""
Default HostResolver: turns relative image references into absolute URLs.

Rules (explicit, no guessing):
  - A reference with a scheme (`http://...`, `https://...`) is returned unchanged.
  - A protocol-relative reference (`//cdn.example.com/a.png`) gets `scheme`.
  - Anything else is a path on the container's host. The host is picked by the
    longest container-id prefix in `hosts` (case-insensitive). Paths are always
    resolved against the host root, so `img/a.png` and `/img/a.png` both become
    `<scheme>://<host>/img/a.png`.
  - No matching host → None (the caller must not attempt any network I/O).
"""

from __future__ import annotations

from collections.abc import Mapping
from urllib.parse import urljoin, urlparse


class ConnectorHostResolver:
    def __init__(self, hosts: Mapping[str, str], scheme: str = "https"):
        # longest prefix first so "GCX" beats "GC"
        self._hosts = sorted(((k.upper(), v) for k, v in hosts.items()), key=lambda kv: len(kv[0]), reverse=True)
        self.scheme = scheme

    def host_for(self, container_id: str) -> str | None:
        cid = (container_id or "").upper()
        for prefix, host in self._hosts:
            if cid.startswith(prefix):
                return host
        return None

    def absolutize(self, container_id: str, url: str) -> str | None:
        url = url.strip()
        if not url:
            return None
        parsed = urlparse(url)
        if parsed.scheme and parsed.netloc:
            return url
        if url.startswith("//"):
            return f"{self.scheme}:{url}"

        host = self.host_for(container_id)
        if not host:
            return None
        path = url if url.startswith("/") else "/" + url
        return urljoin(f"{self.scheme}://{host}/", path)


__all__ = ["ConnectorHostResolver"]
