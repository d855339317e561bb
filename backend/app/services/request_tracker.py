from __future__ import annotations

import hashlib
import json
import threading
from dataclasses import dataclass
from typing import Any


def params_key(category: str, params: Any) -> str:
    """Stable digest of a load's parameters; dict key order does not matter."""
    blob = json.dumps(params, ensure_ascii=False, sort_keys=True, separators=(",", ":"), default=str)
    digest = hashlib.sha256(blob.encode("utf-8")).hexdigest()
    return f"{category}:{digest}"


@dataclass(frozen=True)
class RequestTag:
    category: str
    key: str
    seq: int


class RequestTracker:
    """Last-response-wins bookkeeping for overlapping loads.

    Every outgoing query is tagged with its category, a digest of the
    parameters it was issued with and a sequence number. A response may be
    applied only while its tag is still the latest one issued for the
    category.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._seq = 0
        self._latest: dict[str, RequestTag] = {}

    def issue(self, category: str, params: Any = None) -> RequestTag:
        with self._lock:
            self._seq += 1
            tag = RequestTag(category=category, key=params_key(category, params), seq=self._seq)
            self._latest[category] = tag
            return tag

    def is_current(self, tag: RequestTag) -> bool:
        with self._lock:
            return self._latest.get(tag.category) == tag
