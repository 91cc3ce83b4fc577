# imgcache/inputs/config.py
"""
Policy loader for the image resolver.

Goals
-----
- File-first configuration validated via Pydantic (`ResolverPolicy`).
- Accept either the policy at the JSON root or nested under a "resolver" key.
- Minimal environment-variable overrides for CI/CLI convenience.

Supported JSON shapes
---------------------
1) Flat (root = ResolverPolicy)
   { "primary_dir": "cache/img", "allow_network": false, ... }

2) Nested
   { "resolver": { ... ResolverPolicy ... } }

Environment overrides (optional)
--------------------------------
- IMGCACHE_PRIMARY_DIR    -> primary_dir
- IMGCACHE_SECONDARY_DIR  -> secondary_dir
- IMGCACHE_ONLINE         -> allow_network ("1"/"0", "true"/"false")
- IMGCACHE_TIMEOUT        -> timeout_s (float)
- IMGCACHE_DENYLIST_FILE  -> denylist (one pattern per line, replaces the list)

Public API
----------
- class PolicyLoader:
    - load(path: str | Path | None) -> ResolverPolicy
    - load_json(text: str) -> ResolverPolicy
    - with_overrides(policy, **kwargs) -> ResolverPolicy (non-destructive copies)
- function load_policy(path: str | Path | None) -> ResolverPolicy  (convenience)
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

from pydantic import ValidationError

from imgcache.core.media.denylist import Denylist
from imgcache.schemas.models import ResolverPolicy

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class PolicyLoader:
    """
    File-first policy loader with light env overrides.

    Default search (when path=None):
        1) ./imgcache.json
        2) built-in defaults (no file required)
    """

    env_prefix: str = "IMGCACHE_"

    # ---------- Public API ----------

    def load(self, path: str | Path | None = None) -> ResolverPolicy:
        p = self._resolve_path(path)
        raw: dict[str, Any] = self._read_json_file(p) if p is not None else {}
        policy = self._parse_root(raw)
        return self._apply_env_overrides(policy)

    def load_json(self, text: str) -> ResolverPolicy:
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON payload: {e}") from e
        if not isinstance(raw, dict):
            raise ValueError("Policy JSON must be an object.")
        policy = self._parse_root(raw)
        return self._apply_env_overrides(policy)

    def with_overrides(self, policy: ResolverPolicy, **updates: Any) -> ResolverPolicy:
        """
        Return a *new* ResolverPolicy with the non-null `updates` applied and re-validated.
        Does not mutate the original instance.
        """
        clean = {k: v for k, v in updates.items() if v is not None}
        if not clean:
            return policy
        merged = policy.model_dump()
        merged.update(clean)
        return self._parse_root(merged)

    # ---------- Internals ----------

    def _resolve_path(self, path: str | Path | None) -> Path | None:
        if path is not None:
            p = Path(path)
            if not p.exists():
                raise FileNotFoundError(f"Policy file not found: {p}")
            return p
        default = Path("imgcache.json")
        return default if default.exists() else None

    def _read_json_file(self, p: Path) -> dict[str, Any]:
        if p.suffix.lower() != ".json":
            raise ValueError(f"Unsupported policy format for {p.name}; only .json is supported.")
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {p}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Policy JSON in {p} must be an object.")
        return cast(dict[str, Any], data)

    def _parse_root(self, data: dict[str, Any]) -> ResolverPolicy:
        if isinstance(data.get("resolver"), dict):
            data = data["resolver"]
        try:
            return ResolverPolicy.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Policy validation failed:\n{e}") from e

    def _apply_env_overrides(self, policy: ResolverPolicy) -> ResolverPolicy:
        prefix = self.env_prefix
        updates: dict[str, Any] = {}

        primary = os.getenv(f"{prefix}PRIMARY_DIR")
        if primary:
            updates["primary_dir"] = Path(primary)

        secondary = os.getenv(f"{prefix}SECONDARY_DIR")
        if secondary:
            updates["secondary_dir"] = Path(secondary)

        online = os.getenv(f"{prefix}ONLINE", "").strip().lower()
        if online in _TRUE:
            updates["allow_network"] = True
        elif online in _FALSE:
            updates["allow_network"] = False

        timeout = os.getenv(f"{prefix}TIMEOUT")
        if timeout:
            try:
                updates["timeout_s"] = float(timeout)
            except ValueError:
                # Ignore bad value; keep validated timeout
                pass

        denylist_file = os.getenv(f"{prefix}DENYLIST_FILE")
        if denylist_file:
            updates["denylist"] = Denylist.from_file(Path(denylist_file)).patterns

        return self.with_overrides(policy, **updates)


def load_policy(path: str | Path | None = None) -> ResolverPolicy:
    """Convenience wrapper around PolicyLoader().load(path)."""
    return PolicyLoader().load(path)


__all__ = ["PolicyLoader", "load_policy"]
