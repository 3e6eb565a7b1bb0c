"""
Preference learning from recommendation feedback.

Thumbs-up/down on recommendations, tagged with the lead's stage and source,
become bounded multiplicative weights that the attribution engine applies
when ranking leads.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Tuple

from .models import FeedbackRecord, OutcomeType
from .scoring_config import clamp_context_weight

logger = logging.getLogger(__name__)

LEARNING_RATE = 0.15
SMOOTHING = 2


@dataclass
class LearnedWeights:
    """Stage and source multipliers learned from one feedback batch."""
    stage_weights: Dict[str, float] = field(default_factory=dict)
    source_weights: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stageWeights": dict(self.stage_weights) or None,
            "sourceWeights": dict(self.source_weights) or None,
        }


class FeedbackWeightLearner:
    """
    Bandit-style weight update.

    Per stage/source key with pos helpful and neg not-helpful votes:
        delta  = (pos - neg) / (pos + neg + smoothing)
        weight = clamp(1 + learning_rate * delta, 0.5, 1.5)

    Smoothing damps small samples. Contacted/dismissed outcomes are
    recorded elsewhere but carry no vote here.
    """

    def __init__(self, learning_rate: float = LEARNING_RATE, smoothing: float = SMOOTHING):
        self.learning_rate = learning_rate
        self.smoothing = smoothing

    def compute(self, feedback: List[FeedbackRecord]) -> Optional[LearnedWeights]:
        """
        Learn weights from a feedback batch.

        Returns:
            LearnedWeights, or None when the batch has no helpful/not-helpful votes
        """
        votes = [
            f for f in feedback
            if f.outcome_type in (OutcomeType.HELPFUL, OutcomeType.NOT_HELPFUL)
        ]
        if not votes:
            return None

        stage_counts: Dict[str, List[int]] = defaultdict(lambda: [0, 0])
        source_counts: Dict[str, List[int]] = defaultdict(lambda: [0, 0])

        for record in votes:
            slot = 0 if record.outcome_type == OutcomeType.HELPFUL else 1
            if record.stage:
                stage_counts[record.stage][slot] += 1
            if record.source:
                source_counts[record.source][slot] += 1

        learned = LearnedWeights(
            stage_weights={k: self._weight(pos, neg) for k, (pos, neg) in stage_counts.items()},
            source_weights={k: self._weight(pos, neg) for k, (pos, neg) in source_counts.items()},
        )
        logger.info(
            f"Learned weights from {len(votes)} votes: "
            f"{len(learned.stage_weights)} stages, {len(learned.source_weights)} sources"
        )
        return learned

    def _weight(self, pos: int, neg: int) -> float:
        delta = (pos - neg) / (pos + neg + self.smoothing)
        return clamp_context_weight(1 + self.learning_rate * delta)


def compute_learned_weights(feedback: List[FeedbackRecord]) -> Optional[LearnedWeights]:
    """Learn stage/source weights with the default learning rate and smoothing."""
    return FeedbackWeightLearner().compute(feedback)


def merge_weights(
    existing_stage: Optional[Dict[str, float]],
    existing_source: Optional[Dict[str, float]],
    learned: Optional[LearnedWeights],
) -> Tuple[Dict[str, float], Dict[str, float]]:
    """
    Merge learned weights over existing ones.

    Learned keys overwrite; keys absent from the batch keep their value.
    """
    stage_weights = dict(existing_stage or {})
    source_weights = dict(existing_source or {})

    if learned:
        stage_weights.update(learned.stage_weights)
        source_weights.update(learned.source_weights)

    return stage_weights, source_weights
