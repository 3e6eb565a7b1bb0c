"""
Scoring configuration snapshot.

A ScoringConfig is immutable; the config store publishes a new instance for
every applied patch.
"""

from typing import Dict, Any
from dataclasses import dataclass, field
from datetime import datetime

from .models import AttributionMode, utcnow

DEFAULT_SYSTEM_PROMPT = (
    "You are a lead prioritization assistant. Given a list of leads with scores "
    "and context, suggest the top leads to contact and a brief recommended action for each."
)

MIN_CONTEXT_WEIGHT = 0.5
MAX_CONTEXT_WEIGHT = 1.5


def clamp_context_weight(value: float) -> float:
    """Clamp a stage/source multiplier into [0.5, 1.5]."""
    return max(MIN_CONTEXT_WEIGHT, min(MAX_CONTEXT_WEIGHT, value))


@dataclass(frozen=True)
class ScoringWeights:
    """Weights used by the engagement scorer."""
    recency_decay: float = 0.1
    email_weight: float = 1.2
    chat_weight: float = 1.0
    support_weight: float = 0.8
    engagement_bonus_cap: float = 20

    # Wire name -> attribute name
    FIELD_NAMES = {
        "recencyDecay": "recency_decay",
        "emailWeight": "email_weight",
        "chatWeight": "chat_weight",
        "supportWeight": "support_weight",
        "engagementBonusCap": "engagement_bonus_cap",
    }

    def to_dict(self) -> Dict[str, float]:
        return {wire: getattr(self, attr) for wire, attr in self.FIELD_NAMES.items()}


@dataclass(frozen=True)
class ScoringConfig:
    """Versioned scoring configuration."""
    version: int = 1
    scoring_weights: ScoringWeights = field(default_factory=ScoringWeights)
    stage_weights: Dict[str, float] = field(default_factory=dict)
    source_weights: Dict[str, float] = field(default_factory=dict)
    attribution_mode: AttributionMode = AttributionMode.TIME_DECAY
    time_decay_lambda: float = 0.1
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    updated_at: datetime = field(default_factory=utcnow)

    def stage_weight(self, stage: str) -> float:
        return self.stage_weights.get(stage, 1.0)

    def source_weight(self, source: str) -> float:
        return self.source_weights.get(source, 1.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "scoringWeights": self.scoring_weights.to_dict(),
            "stageWeights": dict(self.stage_weights),
            "sourceWeights": dict(self.source_weights),
            "attributionMode": self.attribution_mode.value,
            "timeDecayLambda": self.time_decay_lambda,
            "systemPrompt": self.system_prompt,
            "updatedAt": self.updated_at.isoformat(),
        }
