"""
In-process state stores for the LeadPulse API.
"""

from .config_store import ConfigStore
from .feedback_store import FeedbackStore
from .caches import SentimentCache, RecommendationCache

__all__ = ["ConfigStore", "FeedbackStore", "SentimentCache", "RecommendationCache"]
