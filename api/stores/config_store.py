"""
Versioned scoring config store for LeadPulse.

Owns the single current ScoringConfig and a bounded history of published
versions. Patches are applied read-current -> compute-next -> publish-next
under one lock, so readers only ever see whole immutable snapshots.
"""

import logging
import math
import threading
from collections import deque
from dataclasses import replace
from typing import Deque, Dict, Any, List, Optional

from lead_scoring.models import AttributionMode, utcnow
from lead_scoring.scoring_config import ScoringConfig, ScoringWeights, clamp_context_weight

logger = logging.getLogger(__name__)

MAX_SYSTEM_PROMPT_CHARS = 2000


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _validated_context_weights(raw: Any, existing: Dict[str, float]) -> Dict[str, float]:
    """Merge a stage/source weight patch; values clamp to [0.5, 1.5], non-numbers drop."""
    merged = dict(existing)
    if not isinstance(raw, dict):
        return merged
    for key, value in raw.items():
        if _is_number(value) and key:
            merged[str(key)] = clamp_context_weight(float(value))
    return merged


class ConfigStore:
    """
    Current config plus FIFO history of the last ``history_size`` versions.

    Every applied patch publishes a new version one higher than the
    highest ever issued, even if no field in it was valid. Rollback makes
    an older snapshot current without touching history.
    """

    def __init__(self, history_size: int = 5, initial: Optional[ScoringConfig] = None):
        self._lock = threading.Lock()
        self._current = initial or ScoringConfig()
        self._history: Deque[ScoringConfig] = deque([self._current], maxlen=history_size)
        self._last_version = self._current.version

    def get_current(self) -> ScoringConfig:
        return self._current

    def get_history(self) -> List[Dict[str, Any]]:
        """Version summaries, oldest first."""
        with self._lock:
            return [
                {"version": c.version, "updatedAt": c.updated_at.isoformat()}
                for c in self._history
            ]

    def apply_patch(self, patch: Dict[str, Any]) -> ScoringConfig:
        """
        Validate each field independently and publish the next version.

        Args:
            patch: Partial config in wire (camelCase) form

        Returns:
            The newly published config
        """
        if not isinstance(patch, dict):
            patch = {}

        with self._lock:
            current = self._current
            changes: Dict[str, Any] = {}

            raw_weights = patch.get("scoringWeights")
            if isinstance(raw_weights, dict):
                weight_changes = {
                    attr: float(raw_weights[wire])
                    for wire, attr in ScoringWeights.FIELD_NAMES.items()
                    if _is_number(raw_weights.get(wire)) and raw_weights[wire] >= 0
                }
                if weight_changes:
                    changes["scoring_weights"] = replace(current.scoring_weights, **weight_changes)

            if "stageWeights" in patch:
                changes["stage_weights"] = _validated_context_weights(patch["stageWeights"], current.stage_weights)
            if "sourceWeights" in patch:
                changes["source_weights"] = _validated_context_weights(patch["sourceWeights"], current.source_weights)

            mode = patch.get("attributionMode")
            if mode is not None:
                try:
                    changes["attribution_mode"] = AttributionMode(mode)
                except ValueError:
                    logger.warning(f"Ignoring unknown attribution mode: {mode!r}")

            lam = patch.get("timeDecayLambda")
            if _is_number(lam) and 0 <= lam <= 1:
                changes["time_decay_lambda"] = float(lam)

            prompt = patch.get("systemPrompt")
            if isinstance(prompt, str) and prompt and len(prompt) <= MAX_SYSTEM_PROMPT_CHARS:
                changes["system_prompt"] = prompt

            self._last_version += 1
            published = replace(current, version=self._last_version, updated_at=utcnow(), **changes)
            self._current = published
            self._history.append(published)

        logger.info(f"Config v{published.version} published (fields: {sorted(changes) or 'none'})")
        return published

    def rollback(self, version: int) -> Optional[ScoringConfig]:
        """Make a version from history current again; None if it is not in history."""
        with self._lock:
            for snapshot in self._history:
                if snapshot.version == version:
                    self._current = snapshot
                    logger.info(f"Config rolled back to v{version}")
                    return snapshot
        logger.info(f"Rollback requested for unknown config v{version}")
        return None
