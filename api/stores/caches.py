"""
Result caches for sentiment and recommendations.
"""

import hashlib
import json
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, Any, List, Optional

from lead_scoring.ranking import Recommendations
from lead_scoring.sentiment import SentimentResult

logger = logging.getLogger(__name__)


def content_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class SentimentCache:
    """
    Content-addressed sentiment cache.

    Keys are SHA-256 of the text. The first result stored for a text is
    kept; when full, the oldest inserted entry is evicted (FIFO).
    """

    def __init__(self, max_entries: int = 10000):
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, SentimentResult]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, text: str) -> Optional[SentimentResult]:
        with self._lock:
            return self._entries.get(content_hash(text))

    def set(self, text: str, result: SentimentResult):
        key = content_hash(text)
        with self._lock:
            if key in self._entries:
                return
            while len(self._entries) >= self.max_entries and self._entries:
                self._entries.popitem(last=False)
            self._entries[key] = result

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class _CacheEntry:
    result: Recommendations
    expires_at: float


class RecommendationCache:
    """
    TTL cache for recommendation results.

    The key covers the sorted lead ids, the team metrics and the
    (leadId, id) pairs of the interactions, so the same inputs map to the
    same recommendations regardless of ordering.
    """

    MIN_TTL_MINUTES = 5
    MAX_TTL_MINUTES = 15

    def __init__(self, ttl_minutes: float = 10, max_entries: int = 1000):
        ttl_minutes = max(self.MIN_TTL_MINUTES, min(self.MAX_TTL_MINUTES, ttl_minutes))
        self.ttl_seconds = ttl_minutes * 60
        self.max_entries = max_entries
        self._entries: Dict[str, _CacheEntry] = {}
        self._lock = threading.Lock()

    @staticmethod
    def make_key(
        lead_ids: List[str],
        team_metrics: Optional[Dict[str, Any]],
        interaction_keys: List[tuple],
    ) -> str:
        payload = {
            "leads": sorted(lead_ids),
            "teamMetrics": team_metrics or {},
            "interactions": sorted([list(pair) for pair in interaction_keys]),
        }
        encoded = json.dumps(payload, sort_keys=True, default=str)
        return hashlib.sha256(encoded.encode("utf-8")).hexdigest()

    def get(self, key: str, now: Optional[float] = None) -> Optional[Recommendations]:
        now = time.time() if now is None else now
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if now > entry.expires_at:
                del self._entries[key]
                return None
            return entry.result

    def set(self, key: str, result: Recommendations, now: Optional[float] = None):
        """Store a result. Expired entries are dropped first, then the oldest beyond max_entries."""
        now = time.time() if now is None else now
        with self._lock:
            self._purge_locked(now)
            self._entries.pop(key, None)
            while len(self._entries) >= self.max_entries and self._entries:
                del self._entries[next(iter(self._entries))]
            self._entries[key] = _CacheEntry(result=result, expires_at=now + self.ttl_seconds)

    def _purge_locked(self, now: float) -> List[str]:
        expired = [k for k, e in self._entries.items() if now > e.expires_at]
        for key in expired:
            del self._entries[key]
        return expired

    def purge_expired(self, now: Optional[float] = None) -> int:
        """Drop expired entries; returns how many were removed."""
        now = time.time() if now is None else now
        with self._lock:
            expired = self._purge_locked(now)
        if expired:
            logger.debug(f"Purged {len(expired)} expired recommendation entries")
        return len(expired)
