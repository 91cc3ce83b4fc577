# imgcache/core/fetch/network.py
"""
Default NetworkClient backed by `requests`.

- Conditional GET: `If-Modified-Since` is derived from the destination file's mtime.
- 200: body is streamed into a temp file next to `dest`, then atomically renamed.
- 304 / other statuses: `dest` is left untouched; the status is reported.
- Transport errors are raised as NetworkError.
"""

from __future__ import annotations

import logging
import tempfile
from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from pathlib import Path

import requests

from imgcache.schemas.models import NetworkResponse

from .errors import NetworkError

_LOGGER = logging.getLogger(__name__)

_STREAM_CHUNK = 64 * 1024


def _if_modified_since(dest: Path) -> str | None:
    try:
        mtime = dest.stat().st_mtime
    except OSError:
        return None
    return format_datetime(datetime.fromtimestamp(mtime, tz=timezone.utc), usegmt=True)


def parse_last_modified(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class RequestsNetworkClient:
    """Streams conditional GETs to disk with `requests.get(..., stream=True)`."""

    def __init__(self, *, user_agent: str, timeout_s: float = 15.0):
        self.user_agent = user_agent
        self.timeout_s = timeout_s

    def _headers_for(self, dest: Path) -> dict[str, str]:
        hdrs = {"User-Agent": self.user_agent, "Accept": "image/*,*/*;q=0.8"}
        ims = _if_modified_since(dest)
        if ims:
            hdrs["If-Modified-Since"] = ims
        return hdrs

    def fetch(self, absolute_url: str, dest: Path) -> NetworkResponse:
        try:
            resp = requests.get(
                absolute_url,
                headers=self._headers_for(dest),
                timeout=self.timeout_s,
                stream=True,
            )
        except requests.RequestException as e:
            raise NetworkError(f"{type(e).__name__}: {e}") from e

        try:
            status = int(resp.status_code)
            if status != 200:
                return NetworkResponse(status=status)

            dest.parent.mkdir(parents=True, exist_ok=True)
            written = 0
            with tempfile.NamedTemporaryFile(prefix=".dl_", suffix=".part", delete=False, dir=str(dest.parent)) as tf:
                tmp_path = Path(tf.name)
            try:
                with tmp_path.open("wb") as out:
                    for chunk in resp.iter_content(chunk_size=_STREAM_CHUNK):
                        if chunk:
                            out.write(chunk)
                            written += len(chunk)
                tmp_path.replace(dest)
            except requests.RequestException as e:
                raise NetworkError(f"transfer of {absolute_url} interrupted: {e}") from e
            finally:
                tmp_path.unlink(missing_ok=True)
            _LOGGER.debug("stored %d bytes from %s into %s", written, absolute_url, dest)
            return NetworkResponse(
                status=status,
                wrote_bytes=True,
                bytes_written=written,
                last_modified=parse_last_modified(resp.headers.get("Last-Modified")),
            )
        finally:
            resp.close()


__all__ = ["RequestsNetworkClient", "parse_last_modified"]
