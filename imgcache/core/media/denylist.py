# imgcache/core/media/denylist.py
"""Counter/tracker URL denylist (case-insensitive substring match)."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from imgcache.schemas.models import DEFAULT_DENYLIST


class Denylist:
    def __init__(self, patterns: Iterable[str] = DEFAULT_DENYLIST):
        self._patterns = tuple(p.strip().lower() for p in patterns if p and p.strip())

    @classmethod
    def from_file(cls, path: Path) -> Denylist:
        """One pattern per line; blank lines and `#` comments are ignored."""
        lines = path.read_text(encoding="utf-8").splitlines()
        return cls(line.split("#", 1)[0] for line in lines)

    @property
    def patterns(self) -> tuple[str, ...]:
        return self._patterns

    def is_blocked(self, url: str) -> bool:
        low = url.lower()
        return any(p in low for p in self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)
