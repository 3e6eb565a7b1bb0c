"""
Lead Scoring Model for LeadPulse.

A linear (logistic) model over a fixed feature vector that produces an
explainable conversion-likelihood score. Every score comes with the
per-feature contributions that produced it.
"""

import logging
import math
from datetime import datetime
from typing import Dict, Any, Optional, List, Tuple
from dataclasses import dataclass, field

from .intent_classifier import aggregate_lead_intent
from .models import Interaction, IntentStrength, Lead, STAGES, group_by_lead, utcnow

logger = logging.getLogger(__name__)

FEATURE_KEYS: List[str] = [
    "stage_prospect",
    "stage_qualified",
    "stage_opportunity",
    "stage_customer",
    "recency",
    "count",
    "sentiment",
    "intent",
]

DEFAULT_BIAS = -0.8

# Hand-tuned so untrained scores spread roughly 20-80
DEFAULT_WEIGHTS: Dict[str, float] = {
    "bias": DEFAULT_BIAS,
    "stage_prospect": -0.2,
    "stage_qualified": 0.1,
    "stage_opportunity": 0.4,
    "stage_customer": 0.5,
    "recency": 0.6,
    "count": 0.3,
    "sentiment": 0.5,
    "intent": 0.8,
}

RECENCY_HALF_LIFE_DAYS = 30
COUNT_SATURATION = 20
SIGMOID_CLAMP = 500


def sigmoid(x: float) -> float:
    """Logistic function with the input clamped to avoid overflow."""
    t = max(-SIGMOID_CLAMP, min(SIGMOID_CLAMP, x))
    return 1 / (1 + math.exp(-t))


@dataclass
class MLScore:
    """Model score with its explanation."""
    lead_id: str
    ml_score: int  # 0-100
    contributions: Dict[str, float] = field(default_factory=dict)
    feature_vector: List[str] = field(default_factory=lambda: list(FEATURE_KEYS))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "leadId": self.lead_id,
            "mlScore": self.ml_score,
            "contributions": self.contributions,
            "featureVector": self.feature_vector,
        }


class LeadScoringModel:
    """
    Scores leads with a logistic model.

    Features (fixed order):
    - stage one-hot: prospect, qualified, opportunity, customer
    - recency: 1 / (1 + days_since_last / 30)
    - count: min(interactions / 20, 1)
    - sentiment: (mean sentiment + 1) / 2
    - intent: 1 for any high signal, 0.5 for any medium, else 0

    z = bias + sum(weight_k * feature_k); score = round(100 * sigmoid(z))
    """

    def __init__(self, weights: Optional[Dict[str, float]] = None):
        """
        Initialize the model.

        Args:
            weights: Optional weights keyed by feature name plus ``bias``.
                Missing features weigh 0; a missing bias is -0.8.
        """
        self.weights = dict(weights) if weights else dict(DEFAULT_WEIGHTS)

    def extract_features(
        self,
        lead: Lead,
        interactions: Optional[List[Interaction]] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[List[float], List[str]]:
        """
        Build the feature vector for a lead.

        Returns:
            Tuple of (values, keys) in FEATURE_KEYS order
        """
        interactions = interactions or []
        now = now or utcnow()

        last = lead.last_interaction or now
        recency_days = max(0.0, (now - last).total_seconds() / 86400)
        recency = 1 / (1 + recency_days / RECENCY_HALF_LIFE_DAYS)

        count = lead.total_interactions if lead.total_interactions is not None else len(interactions)
        count_norm = min(count / COUNT_SATURATION, 1.0)

        avg_sentiment = 0.0
        if interactions:
            avg_sentiment = sum(i.sentiment_score for i in interactions) / len(interactions)
        sentiment = (avg_sentiment + 1) / 2

        intent = self._intent_strength(lead, interactions)

        stage = lead.stage.value if lead.stage else None
        one_hot = [1.0 if s == stage else 0.0 for s in STAGES]

        return one_hot + [recency, count_norm, sentiment, intent], list(FEATURE_KEYS)

    @staticmethod
    def _intent_strength(lead: Lead, interactions: List[Interaction]) -> float:
        signals = lead.intent_signals
        if not signals and interactions:
            signals = aggregate_lead_intent(interactions).signals

        strengths = {s.strength for s in signals}
        if IntentStrength.HIGH in strengths:
            return 1.0
        if IntentStrength.MEDIUM in strengths:
            return 0.5
        return 0.0

    def score_from_features(self, vec: List[float], keys: List[str]) -> int:
        """Compute the 0-100 score for a prepared feature vector."""
        z = self.weights.get("bias", DEFAULT_BIAS)
        for key, value in zip(keys, vec):
            z += self.weights.get(key, 0.0) * value
        return int(round(100 * sigmoid(z)))

    def score(
        self,
        lead: Lead,
        interactions: Optional[List[Interaction]] = None,
        now: Optional[datetime] = None,
    ) -> MLScore:
        """
        Score one lead.

        Args:
            lead: Lead to score
            interactions: That lead's interactions
            now: Reference time for recency

        Returns:
            MLScore with per-feature contributions rounded to 2 decimals
        """
        vec, keys = self.extract_features(lead, interactions, now)

        z = self.weights.get("bias", DEFAULT_BIAS)
        contributions: Dict[str, float] = {}
        for key, value in zip(keys, vec):
            term = self.weights.get(key, 0.0) * value
            contributions[key] = round(term, 2)
            z += term

        ml_score = int(round(100 * sigmoid(z)))
        return MLScore(lead_id=lead.id, ml_score=ml_score, contributions=contributions, feature_vector=keys)

    def score_batch(
        self,
        leads: List[Lead],
        interactions: List[Interaction],
        now: Optional[datetime] = None,
    ) -> List[MLScore]:
        """Score several leads, matching interactions by lead id."""
        by_lead = group_by_lead(interactions)
        return [self.score(lead, by_lead.get(lead.id, []), now) for lead in leads]

    def feature_importance(self) -> Dict[str, float]:
        """Absolute weight per feature."""
        return {key: abs(self.weights.get(key, 0.0)) for key in FEATURE_KEYS}


def score_lead(
    lead: Lead,
    interactions: Optional[List[Interaction]] = None,
    weights: Optional[Dict[str, float]] = None,
    now: Optional[datetime] = None,
) -> MLScore:
    """Score one lead with the given (or default) weights."""
    return LeadScoringModel(weights).score(lead, interactions, now)


def score_leads_batch(
    leads: List[Lead],
    interactions: List[Interaction],
    weights: Optional[Dict[str, float]] = None,
    now: Optional[datetime] = None,
) -> List[MLScore]:
    return LeadScoringModel(weights).score_batch(leads, interactions, now)


def feature_importance(weights: Optional[Dict[str, float]] = None) -> Dict[str, float]:
    return LeadScoringModel(weights).feature_importance()
