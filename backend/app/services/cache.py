import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable


@dataclass
class _Entry:
    expires_at: float
    role: str


class RoleCache:
    """Process-wide ``user_id -> role`` lookups with a time-to-live.

    Entries are kept in insertion order; when full, expired entries go
    first and then the oldest ones.
    """

    def __init__(
        self,
        *,
        max_items: int = 5000,
        ttl_s: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_items = max(1, int(max_items or 1))
        self._ttl_s = max(1, int(ttl_s or 1))
        self._clock = clock
        self._items: "OrderedDict[str, _Entry]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def get_role(self, user_id: str) -> str | None:
        with self._lock:
            entry = self._items.get(user_id)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                del self._items[user_id]
                return None
            return entry.role

    def remember(self, user_id: str, role: str) -> None:
        with self._lock:
            self._items.pop(user_id, None)
            self._make_room()
            self._items[user_id] = _Entry(expires_at=self._clock() + self._ttl_s, role=role)

    def forget(self, user_id: str) -> None:
        with self._lock:
            self._items.pop(user_id, None)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def _make_room(self) -> None:
        if len(self._items) < self._max_items:
            return
        now = self._clock()
        for user_id in [k for k, e in self._items.items() if e.expires_at <= now]:
            del self._items[user_id]
        while len(self._items) >= self._max_items:
            self._items.popitem(last=False)
