"""
Lead Scoring Module for LeadPulse.

This module provides the engagement scoring and intent pipeline:
- Keyword sentiment analysis
- Buyer intent extraction and aggregation
- Engagement scoring (0-100 scale) with trend detection
- Multi-touch attribution (first/last touch, linear, time decay)
- Explainable logistic lead scoring
- Stage/source weight learning from feedback
"""

from .models import (
    Interaction,
    Lead,
    IntentSignal,
    AggregatedIntent,
    FeedbackRecord,
    AttributionMode,
    OutcomeType,
)
from .sentiment import KeywordSentimentAnalyzer, SentimentResult, analyze_sentiment
from .intent_classifier import IntentClassifier, extract_intent, aggregate_lead_intent
from .engagement import (
    EngagementScorer,
    calculate_engagement_score,
    get_score_trend,
    score_lead_engagement,
)
from .attribution import AttributionEngine, attribution_weights, effective_score
from .scoring_model import (
    LeadScoringModel,
    MLScore,
    feature_importance,
    score_lead,
    score_leads_batch,
)
from .feedback_learning import FeedbackWeightLearner, compute_learned_weights, merge_weights
from .scoring_config import ScoringConfig, ScoringWeights
from .ranking import RuleBasedRanker, Recommendations, Suggestion

__all__ = [
    "Interaction",
    "Lead",
    "IntentSignal",
    "AggregatedIntent",
    "FeedbackRecord",
    "AttributionMode",
    "OutcomeType",
    "KeywordSentimentAnalyzer",
    "SentimentResult",
    "analyze_sentiment",
    "IntentClassifier",
    "extract_intent",
    "aggregate_lead_intent",
    "EngagementScorer",
    "calculate_engagement_score",
    "get_score_trend",
    "score_lead_engagement",
    "AttributionEngine",
    "attribution_weights",
    "effective_score",
    "LeadScoringModel",
    "MLScore",
    "score_lead",
    "score_leads_batch",
    "feature_importance",
    "FeedbackWeightLearner",
    "compute_learned_weights",
    "merge_weights",
    "ScoringConfig",
    "ScoringWeights",
    "RuleBasedRanker",
    "Recommendations",
    "Suggestion",
]
