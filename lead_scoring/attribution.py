"""
Multi-touch Attribution for LeadPulse.

Distributes credit across a lead's interactions under a selectable model and
turns the result into the effective ranking score used to order leads.
"""

import logging
import math
from datetime import datetime
from typing import List, Optional

from .models import AttributionMode, Interaction, Lead, sort_oldest_first, utcnow
from .scoring_config import ScoringConfig

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


class AttributionEngine:
    """
    Attribution models:
    - first_touch: all credit to the earliest interaction
    - last_touch: all credit to the most recent interaction
    - linear: equal credit to every interaction
    - time_decay: credit exp(-lambda * age_days), normalized to sum to 1

    The attributed sentiment (mapped to 0-100) is then scaled by the
    learned stage and source multipliers. The result is a ranking key;
    the lead's engagement score itself is left untouched.
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or ScoringConfig()

    def weights(
        self,
        interactions: List[Interaction],
        mode: Optional[AttributionMode] = None,
        now: Optional[datetime] = None,
    ) -> List[float]:
        """
        Credit per interaction, aligned with ``sort_oldest_first(interactions)``.

        Returns an empty list for an empty history; otherwise weights sum to 1.
        """
        n = len(interactions)
        if n == 0:
            return []

        mode = mode or self.config.attribution_mode

        if mode == AttributionMode.FIRST_TOUCH:
            return [1.0] + [0.0] * (n - 1)
        if mode == AttributionMode.LAST_TOUCH:
            return [0.0] * (n - 1) + [1.0]
        if mode == AttributionMode.LINEAR:
            return [1.0 / n] * n

        return self._time_decay(sort_oldest_first(interactions), now or utcnow())

    def _time_decay(self, ordered: List[Interaction], now: datetime) -> List[float]:
        lam = self.config.time_decay_lambda
        raw = [math.exp(-lam * self.age_days(i, now)) for i in ordered]
        total = sum(raw)
        if total <= 0:
            return [1.0 / len(ordered)] * len(ordered)
        return [w / total for w in raw]

    @staticmethod
    def age_days(interaction: Interaction, now: datetime) -> float:
        """Age of an interaction in days; undated or future interactions are age 0."""
        if interaction.timestamp is None:
            return 0.0
        return max(0.0, (now - interaction.timestamp).total_seconds() / SECONDS_PER_DAY)

    def base_score(
        self,
        lead: Lead,
        interactions: List[Interaction],
        now: Optional[datetime] = None,
    ) -> float:
        """Attributed sentiment on a 0-100 scale; the engagement score when there is no history."""
        if not interactions:
            return lead.engagement_score

        ordered = sort_oldest_first(interactions)
        credits = self.weights(ordered, now=now)
        return sum(
            credit * (i.sentiment_score + 1) * 50
            for credit, i in zip(credits, ordered)
        )

    def effective_score(
        self,
        lead: Lead,
        interactions: List[Interaction],
        now: Optional[datetime] = None,
    ) -> float:
        """
        Ranking score for a lead.

        Args:
            lead: The lead being ranked
            interactions: That lead's interactions
            now: Reference time for time decay (defaults to the current time)

        Returns:
            Attributed base score times the stage and source multipliers
        """
        base = self.base_score(lead, interactions, now)
        stage = lead.stage.value if lead.stage else ""
        multiplier = self.config.stage_weight(stage) * self.config.source_weight(lead.source)
        return base * multiplier


def effective_score(
    lead: Lead,
    interactions: List[Interaction],
    config: ScoringConfig,
    now: Optional[datetime] = None,
) -> float:
    """Effective ranking score under the given config."""
    return AttributionEngine(config).effective_score(lead, interactions, now)


def attribution_weights(
    interactions: List[Interaction],
    mode: AttributionMode,
    time_decay_lambda: float = 0.1,
    now: Optional[datetime] = None,
) -> List[float]:
    """Credit per interaction in chronological order for one attribution model."""
    config = ScoringConfig(attribution_mode=mode, time_decay_lambda=time_decay_lambda)
    return AttributionEngine(config).weights(sort_oldest_first(interactions), mode, now)
