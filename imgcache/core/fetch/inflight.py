# imgcache/core/fetch/inflight.py
"""
Per-key fetch coordination.

At most one fetch runs per cache key. The first caller for a key becomes the
leader and runs the work; callers arriving while it runs join the same Future and
receive the leader's result. Once the leader finishes, the key is released and a
later caller starts fresh (it will normally find the file on disk first).
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Hashable
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Generic, TypeVar

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class InflightFetches(Generic[T]):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._inflight: dict[Hashable, Future[T]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._inflight)

    def run(self, key: Hashable, work: Callable[[], T], *, timeout: float | None = None) -> T:
        """
        Run `work` for `key` unless an identical run is already in flight.

        Waiters block up to `timeout` seconds and get FutureTimeout (a TimeoutError)
        if the leader has not finished by then. Exceptions raised by `work` are
        re-raised in the leader and in every waiter.
        """
        with self._lock:
            fut = self._inflight.get(key)
            leader = fut is None
            if fut is None:
                fut = Future()
                self._inflight[key] = fut

        if not leader:
            _LOGGER.debug("joining in-flight fetch for %s", key)
            return fut.result(timeout=timeout)

        try:
            result = work()
        except BaseException as exc:
            fut.set_exception(exc)
            raise
        else:
            fut.set_result(result)
            return result
        finally:
            with self._lock:
                self._inflight.pop(key, None)


# One coordinator per process: resolvers sharing a storage root also share fetches.
PROCESS_FETCHES: InflightFetches = InflightFetches()


__all__ = ["InflightFetches", "FutureTimeout", "PROCESS_FETCHES"]
