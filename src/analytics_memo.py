"""
analytics_memo.py – Training Lab · Explicit recomputation memo
===============================================================
Caller-owned cache for the analytics functions. Keys are stable SHA-256
hashes of JSON-serialisable parts, e.g.
(history version, x metric, y metric, smoothing, lag).
Least-recently-used entries are evicted beyond ``max_entries``.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import sys
from collections import OrderedDict
from typing import Any, Callable, TypeVar

# ── Project root on sys.path for config import ────────────────────────────────
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from config.settings import MEMO_MAX_ENTRIES

log = logging.getLogger(__name__)

T = TypeVar("T")


def memo_key(*parts: Any) -> str:
    payload = json.dumps(parts, sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class AnalyticsMemo:
    def __init__(self, max_entries: int = MEMO_MAX_ENTRIES) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self.max_entries = max_entries
        self.hits = 0
        self.misses = 0
        self._entries: OrderedDict[str, Any] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get_or_compute(self, key: str, compute: Callable[[], T]) -> T:
        if key in self._entries:
            self._entries.move_to_end(key)
            self.hits += 1
            return self._entries[key]

        self.misses += 1
        value = compute()
        self._entries[key] = value
        if len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            log.debug("Memo full – evicted %s", evicted[:12])
        return value

    def clear(self) -> None:
        self._entries.clear()
