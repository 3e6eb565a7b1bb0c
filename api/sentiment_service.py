"""
Sentiment service for the LeadPulse API.

Cache first, then the configured provider. The LLM provider is optional
and always backed by the keyword analyzer: any LLM failure is logged and
the keyword result is returned instead.
"""

import logging
from typing import Optional

from lead_scoring.sentiment import KeywordSentimentAnalyzer, SentimentResult
from llm.errors import SentimentProviderError
from llm.sentiment_llm import LLMSentimentAnalyzer

from .middleware.metrics import record_cache_hit, record_cache_miss, record_sentiment_provider
from .stores.caches import SentimentCache

logger = logging.getLogger(__name__)


class SentimentService:
    """Keyword or LLM sentiment with mandatory keyword fallback."""

    def __init__(
        self,
        cache: SentimentCache,
        keyword: Optional[KeywordSentimentAnalyzer] = None,
        llm: Optional[LLMSentimentAnalyzer] = None,
    ):
        self.cache = cache
        self.keyword = keyword or KeywordSentimentAnalyzer()
        self.llm = llm

    @property
    def provider_name(self) -> str:
        return "llm" if self.llm else "keyword"

    def analyze(self, text: str) -> SentimentResult:
        cached = self.cache.get(text)
        if cached is not None:
            record_cache_hit("sentiment")
            return cached
        record_cache_miss("sentiment")

        if self.llm is not None:
            try:
                result = self.llm.analyze(text)
                record_sentiment_provider("llm")
            except SentimentProviderError as e:
                logger.warning(f"LLM sentiment failed, falling back to keyword: {e}")
                result = self.keyword.analyze(text)
                record_sentiment_provider("fallback")
        else:
            result = self.keyword.analyze(text)
            record_sentiment_provider("keyword")

        self.cache.set(text, result)
        return result
