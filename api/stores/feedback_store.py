"""
Append-only feedback store.
"""

import logging
import threading
import uuid
from datetime import datetime, timedelta
from typing import Dict, Any, List, Optional

from lead_scoring.models import FeedbackRecord, OutcomeType, utcnow

logger = logging.getLogger(__name__)

LEARNED_KEYS = ("stage", "source")


class FeedbackStore:
    """In-memory log of recommendation feedback."""

    def __init__(self):
        self._lock = threading.Lock()
        self._records: List[FeedbackRecord] = []

    def append(
        self,
        lead_id: str,
        outcome_type: OutcomeType,
        recommendation_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> FeedbackRecord:
        """Record feedback and return the stored record."""
        meta = {}
        for key, value in (metadata or {}).items():
            if key in LEARNED_KEYS:
                # stage/source become learned weight keys
                if isinstance(value, str) and value.strip():
                    meta[key] = value.strip()
            elif isinstance(value, (str, int, float)):
                meta[key] = str(value)
        record = FeedbackRecord(
            id=f"fb-{uuid.uuid4().hex[:12]}",
            lead_id=lead_id,
            outcome_type=outcome_type,
            recommendation_id=recommendation_id,
            metadata=meta,
        )
        with self._lock:
            self._records.append(record)
        logger.info(f"Feedback recorded: {record.id} lead={lead_id} outcome={outcome_type.value}")
        return record

    def recent(self, days: int = 7, now: Optional[datetime] = None) -> List[FeedbackRecord]:
        """Records from the last ``days`` days, oldest first."""
        cutoff = (now or utcnow()) - timedelta(days=days)
        with self._lock:
            return [r for r in self._records if r.timestamp >= cutoff]

    def __len__(self) -> int:
        return len(self._records)
