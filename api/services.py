"""
Service initialization and dependency injection for the LeadPulse API.

Creates and manages all service instances used by the API.
"""

import logging
from typing import Optional

from config.settings import get_settings, Settings
from lead_scoring.intent_classifier import IntentClassifier
from lead_scoring.scoring_model import LeadScoringModel
from lead_scoring.sentiment import KeywordSentimentAnalyzer
from llm.providers.openai_provider import OpenAIProvider
from llm.recommender import AgentRun, RecommendationAgent, RecommendationService
from llm.sentiment_llm import LLMSentimentAnalyzer

from .middleware.metrics import record_agent_rounds
from .sentiment_service import SentimentService
from .stores.caches import RecommendationCache, SentimentCache
from .stores.config_store import ConfigStore
from .stores.feedback_store import FeedbackStore

logger = logging.getLogger(__name__)


def _record_agent_run(run: AgentRun):
    record_agent_rounds(run.rounds, "success" if run.succeeded else "failure")


class Services:
    """Container for all application services."""

    def __init__(self):
        self.settings: Optional[Settings] = None
        self.config_store: Optional[ConfigStore] = None
        self.feedback_store: Optional[FeedbackStore] = None
        self.sentiment_cache: Optional[SentimentCache] = None
        self.recommend_cache: Optional[RecommendationCache] = None
        self.sentiment: Optional[SentimentService] = None
        self.recommender: Optional[RecommendationService] = None
        self.intent_classifier: Optional[IntentClassifier] = None
        self.ml_model: Optional[LeadScoringModel] = None
        self._initialized = False

    def initialize(self, settings: Optional[Settings] = None, openai_client=None):
        """
        Initialize all services.

        Args:
            settings: Settings override (defaults to the cached environment settings)
            openai_client: Pre-built OpenAI client; tests pass a fake here
        """
        if self._initialized:
            return

        self.settings = settings or get_settings()
        logger.info(
            f"Initializing services (sentiment={self.settings.sentiment_provider}, "
            f"llm={'on' if self.settings.llm_enabled else 'off'})"
        )

        self._init_stores()
        self._init_scoring()
        self._init_sentiment(openai_client)
        self._init_recommender(openai_client)
        self._initialized = True
        logger.info("All services initialized successfully")

    def _init_stores(self):
        s = self.settings
        self.config_store = ConfigStore(history_size=s.config_history_size)
        self.feedback_store = FeedbackStore()
        self.sentiment_cache = SentimentCache(max_entries=s.sentiment_cache_max_entries)
        self.recommend_cache = RecommendationCache(ttl_minutes=s.recommend_cache_ttl_minutes)

    def _init_scoring(self):
        self.intent_classifier = IntentClassifier()
        self.ml_model = LeadScoringModel()
        logger.info("Lead scoring services ready")

    def _init_sentiment(self, openai_client):
        s = self.settings
        llm = None
        if s.use_llm_sentiment:
            provider = OpenAIProvider(
                api_key=s.openai_api_key,
                model_id=s.openai_sentiment_model,
                client=openai_client,
            )
            llm = LLMSentimentAnalyzer(provider)
        self.sentiment = SentimentService(self.sentiment_cache, KeywordSentimentAnalyzer(), llm)
        logger.info(f"Sentiment service ready: {self.sentiment.provider_name}")

    def _init_recommender(self, openai_client):
        s = self.settings
        agent = None
        if s.llm_enabled:
            provider = OpenAIProvider(
                api_key=s.openai_api_key,
                model_id=s.openai_recommend_model,
                client=openai_client,
            )
            agent = RecommendationAgent(provider, max_rounds=s.agent_max_rounds)
        self.recommender = RecommendationService(agent, on_agent_run=_record_agent_run)
        logger.info(f"Recommendation service ready: {self.recommender.provider_name}")

    def reset(self):
        """Drop all state; the next initialize() starts fresh."""
        self.__init__()

    @property
    def is_ready(self) -> bool:
        return self._initialized and self.config_store is not None

    def health(self) -> dict:
        """Return health status of all services."""
        return {
            "initialized": self._initialized,
            "sentimentProvider": self.sentiment.provider_name if self.sentiment else None,
            "recommendationProvider": self.recommender.provider_name if self.recommender else None,
            "configVersion": self.config_store.get_current().version if self.config_store else None,
        }


# Singleton
_services = Services()


def get_services() -> Services:
    """Get the global services instance."""
    return _services


def initialize_services(settings: Optional[Settings] = None, openai_client=None):
    """Initialize all services (called at startup)."""
    _services.initialize(settings, openai_client)
