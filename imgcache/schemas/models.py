# imgcache/schemas/models.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# =========================
# Defaults
# =========================

DEFAULT_DENYLIST: tuple[str, ...] = (
    "gccounter.de",
    "gccounter.com",
    "cachercounter/?",
    "gccounter/imgcount.php",
    "flagcounter.com",
    "compteur-blog.net",
    "counter.digits.com",
    "andyhoppe",
    "besucherzaehler-homepage.de",
    "hitwebcounter.com",
    "kostenloser-counter.eu",
    "trendcounter.com",
    "hit-counter-download.com",
    "gcwetterau.de/counter",
)

DEFAULT_SHARED_PATTERNS: tuple[str, ...] = ("/images/icons/icon_",)

DEFAULT_HOSTS: dict[str, str] = {
    "GC": "www.geocaching.com",
    "OC": "www.opencaching.de",
}

# Pixels kept free around the image when fitting it to the display.
DISPLAY_MARGIN = 25


# =========================
# Requests & storage
# =========================


class ImageRequest(BaseModel):
    """
    One embedded image reference to resolve.

    `container_id` is the *effective* cache container: for shared assets it is the
    shared bucket, not the caller's container. `origin_container` always keeps the
    caller's container (used for host resolution of relative URLs).
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    url: str = Field(..., description="Reference as found in the content (absolute, relative, or data: URL).")
    container_id: str = Field(..., description="Effective cache container for this request.")
    is_shared: bool = Field(False, description="True when the URL matched a shared-asset pattern.")
    origin_container: str | None = Field(None, description="Caller's container before shared-bucket override.")

    @property
    def host_container(self) -> str:
        return self.origin_container or self.container_id

    @property
    def cache_key(self) -> tuple[str, str]:
        return (self.container_id, self.url)


class StorageLocation(BaseModel):
    """Primary (per-container, writable) and secondary (long-lived, read-only) paths for one image."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, extra="ignore")

    primary: Path = Field(..., description="Per-container cache file; the only path ever written.")
    secondary: Path = Field(..., description="Long-lived reference copy; read fallback only.")


class DownsampleOptions(BaseModel):
    """Per-call decode parameters. Never shared between concurrent decodes."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    max_width: int = Field(..., gt=0, description="Maximum display width in pixels.")
    max_height: int = Field(..., gt=0, description="Maximum display height in pixels.")
    sample_factor: int = Field(1, ge=1, description="Integer downscale applied during decode.")


class DisplayBounds(BaseModel):
    """Largest image size the caller can display."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    max_width: int = Field(1895, gt=0, description="Maximum width in pixels (display width minus margin).")
    max_height: int = Field(1055, gt=0, description="Maximum height in pixels (display height minus margin).")

    @classmethod
    def from_display(cls, width: int, height: int, margin: int = DISPLAY_MARGIN) -> DisplayBounds:
        return cls(max_width=max(1, width - margin), max_height=max(1, height - margin))

    def options(self, sample_factor: int = 1) -> DownsampleOptions:
        return DownsampleOptions(max_width=self.max_width, max_height=self.max_height, sample_factor=sample_factor)


# =========================
# Fetch results
# =========================

FetchKind = Literal["success", "not_modified", "failed"]


class NetworkResponse(BaseModel):
    """What a network client reports after a conditional GET into a destination file."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    status: int = Field(..., description="HTTP status code (0 when no response was received).")
    wrote_bytes: bool = Field(False, description="True when the body replaced the destination file.")
    bytes_written: int = Field(0, ge=0, description="Size of the body written to disk.")
    last_modified: datetime | None = Field(None, description="Parsed Last-Modified header, if the origin sent one.")


class FetchOutcome(BaseModel):
    """
    Result of Fetch-and-Persist.

    - success:      bytes were written to the primary path
    - not_modified: origin confirmed the cached copy; its timestamp was refreshed
    - failed:       nothing usable was written (see `reason`)
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    kind: FetchKind
    bytes_written: int = Field(0, ge=0)
    reason: str | None = None
    unrecoverable: bool = Field(
        False, description="Failure that re-reading the cache cannot fix (e.g. undecodable inline payload)."
    )

    @classmethod
    def success(cls, bytes_written: int) -> FetchOutcome:
        return cls(kind="success", bytes_written=bytes_written)

    @classmethod
    def not_modified(cls) -> FetchOutcome:
        return cls(kind="not_modified")

    @classmethod
    def failed(cls, reason: str, *, unrecoverable: bool = False) -> FetchOutcome:
        return cls(kind="failed", reason=reason, unrecoverable=unrecoverable)

    @property
    def validated(self) -> bool:
        """True when the primary file was just confirmed against the origin."""
        return self.kind in ("success", "not_modified")


# =========================
# Configuration
# =========================


class ResolverPolicy(BaseModel):
    """
    Configuration for the image resolver.

    Mirrors how a fetch policy is expressed elsewhere: one frozen, validated bundle
    that the resolver and its collaborators read from. Everything that used to be a
    compiled-in constant (denylist, container ids, host map) lives here.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, extra="ignore")

    allow_network: bool = Field(True, description="If False, remote fetches fail without any network I/O.")
    timeout_s: float = Field(15.0, gt=0, description="HTTP timeout in seconds for remote fetches.")
    user_agent: str = Field("imgcache/0.1 (+image-resolver)", description="User-Agent string used in HTTP requests.")
    inflight_wait_s: float = Field(
        30.0, gt=0, description="How long a caller waits on another caller's in-flight fetch of the same image."
    )

    primary_dir: Path = Field(default=Path("data/images"), description="Root of the per-container primary cache.")
    secondary_dir: Path = Field(default=Path("data/images-sec"), description="Root of the long-lived secondary tier.")
    supports_mtime_update: bool | None = Field(
        None,
        description="Whether the primary filesystem can update mtime in place. None = probe once on first use.",
    )

    ungrouped_container: str = Field(
        "ungrouped", description="Pseudo-container whose files expire after `max_age_s`; all others never expire."
    )
    shared_container: str = Field("shared", description="Bucket for assets shared across all containers.")
    shared_patterns: tuple[str, ...] = Field(
        DEFAULT_SHARED_PATTERNS, description="URL substrings that route an image into the shared bucket."
    )
    max_age_s: float = Field(24 * 60 * 60, gt=0, description="Retention window for the ungrouped container.")

    denylist: tuple[str, ...] = Field(DEFAULT_DENYLIST, description="Case-insensitive URL fragments never fetched.")

    hosts: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_HOSTS),
        description="Container-id prefix -> host used to absolutize relative URLs.",
    )
    default_scheme: Literal["http", "https"] = Field("https", description="Scheme for relative and protocol-relative URLs.")

    display: DisplayBounds = Field(default_factory=DisplayBounds, description="Display bounds used for downsampling.")
    return_error_image: bool = Field(False, description="Default for returning the error placeholder on failure.")
    save_only: bool = Field(False, description="Default for pre-warming the cache without decoding.")

    @field_validator("denylist", "shared_patterns", mode="before")
    @classmethod
    def _clean_patterns(cls, v: object) -> tuple[str, ...]:
        if isinstance(v, str):
            v = [v]
        items = [str(p).strip() for p in (v or [])]  # type: ignore[union-attr]
        return tuple(p for p in items if p)

    @field_validator("hosts")
    @classmethod
    def _clean_hosts(cls, v: dict[str, str]) -> dict[str, str]:
        out: dict[str, str] = {}
        for prefix, host in v.items():
            prefix, host = prefix.strip().upper(), host.strip().strip("/")
            if prefix and host:
                out[prefix] = host
        return out

    def is_shared_url(self, url: str) -> bool:
        return any(p in url for p in self.shared_patterns)

    def request_for(self, url: str, container_id: str | None = None) -> ImageRequest:
        """Build the request for `url`, routing shared assets into the shared bucket."""
        origin = container_id or self.ungrouped_container
        shared = self.is_shared_url(url)
        return ImageRequest(
            url=url,
            container_id=self.shared_container if shared else origin,
            is_shared=shared,
            origin_container=origin,
        )
