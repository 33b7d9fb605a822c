"""Per-organization import locks."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class OrganizationLockRegistry:
    """Each organization_id corresponds to a threading.Lock.

    Serializes imports into the same organization within one process, so the
    collision check and the writes that depend on it cannot interleave.
    An entry lives only while some thread holds or waits for its lock.
    """

    def __init__(self) -> None:
        self._locks: dict[str, threading.Lock] = {}
        self._holders: dict[str, int] = {}
        self._guard = threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def is_locked(self, organization_id: str) -> bool:
        with self._guard:
            lock = self._locks.get(organization_id)
            return lock is not None and lock.locked()

    @contextmanager
    def hold(self, organization_id: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(organization_id, threading.Lock())
            self._holders[organization_id] = self._holders.get(organization_id, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._holders[organization_id] -= 1
                if not self._holders[organization_id]:
                    del self._holders[organization_id]
                    del self._locks[organization_id]
