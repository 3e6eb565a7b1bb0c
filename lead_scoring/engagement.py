"""
Engagement Scoring for LeadPulse.

Turns a lead's interaction history into a 0-100 engagement score.
"""

import logging
import math
from dataclasses import replace
from typing import List, Optional

from .models import Interaction, InteractionType, Lead, Trend, sort_oldest_first
from .scoring_config import ScoringWeights
from .sentiment import KeywordSentimentAnalyzer

logger = logging.getLogger(__name__)


class EngagementScorer:
    """
    Scores engagement from sentiment, recency, channel and volume.

    For the interaction at position i (oldest first) out of n:
        recency = exp(-(n - i - 1) * recency_decay)
        weight  = recency * channel_weight * sentiment_confidence
        value   = (sentiment_score + 1) * 50

    score = weighted mean of value + min(n * 2, bonus_cap), clamped to [0, 100].
    """

    NEUTRAL_SCORE = 50.0
    BONUS_PER_INTERACTION = 2
    TREND_THRESHOLD = 3

    def __init__(
        self,
        weights: Optional[ScoringWeights] = None,
        analyzer: Optional[KeywordSentimentAnalyzer] = None,
    ):
        self.weights = weights or ScoringWeights()
        self.analyzer = analyzer or KeywordSentimentAnalyzer()

    def score(self, interactions: List[Interaction]) -> float:
        """
        Calculate the engagement score for an interaction history.

        Args:
            interactions: The lead's interactions, any order

        Returns:
            Score in [0, 100]; 50 for an empty history
        """
        if not interactions:
            return self.NEUTRAL_SCORE

        ordered = sort_oldest_first(interactions)
        n = len(ordered)
        total = 0.0
        weight_sum = 0.0

        for index, interaction in enumerate(ordered):
            sentiment = self.analyzer.analyze(interaction.content)
            recency = math.exp(-(n - index - 1) * self.weights.recency_decay)
            weight = recency * self.channel_weight(interaction.type) * sentiment.confidence

            total += (sentiment.score + 1) * 50 * weight
            weight_sum += weight

        average = total / weight_sum if weight_sum > 0 else self.NEUTRAL_SCORE
        bonus = min(n * self.BONUS_PER_INTERACTION, self.weights.engagement_bonus_cap)

        return max(0.0, min(100.0, average + bonus))

    def channel_weight(self, interaction_type: Optional[InteractionType]) -> float:
        """Weight for an interaction channel; calls count like support tickets."""
        if interaction_type == InteractionType.EMAIL:
            return self.weights.email_weight
        if interaction_type == InteractionType.CHAT:
            return self.weights.chat_weight
        return self.weights.support_weight

    def score_lead(self, lead: Lead, interactions: List[Interaction]) -> Lead:
        """Return a copy of the lead with a fresh engagement score and trend."""
        current = self.score(interactions)
        previous = lead.engagement_score
        trend = get_score_trend(current, previous)
        logger.debug(f"Lead {lead.id} engagement {previous:.1f} -> {current:.1f} ({trend.value})")
        return replace(
            lead,
            engagement_score=current,
            previous_score=previous,
            trend=trend,
        )


def get_score_trend(current: float, previous: Optional[float]) -> Trend:
    """Classify a score change; moves under 3 points are stable."""
    if previous is None:
        return Trend.STABLE
    difference = current - previous
    if abs(difference) < EngagementScorer.TREND_THRESHOLD:
        return Trend.STABLE
    return Trend.UP if difference > 0 else Trend.DOWN


def calculate_engagement_score(
    interactions: List[Interaction],
    weights: Optional[ScoringWeights] = None,
) -> float:
    """Score an interaction history with the given (or default) weights."""
    return EngagementScorer(weights).score(interactions)


def score_lead_engagement(
    lead: Lead,
    interactions: List[Interaction],
    weights: Optional[ScoringWeights] = None,
) -> Lead:
    """Rescore a lead from its history, carrying the old score into previous_score."""
    return EngagementScorer(weights).score_lead(lead, interactions)
