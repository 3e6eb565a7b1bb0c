"""
Errors raised by LLM-backed collaborators.

Callers catch these at the boundary and degrade to the deterministic
keyword sentiment analyzer or rule-based ranker.
"""


class LLMProviderError(Exception):
    """Base class for LLM collaborator failures."""


class SentimentProviderError(LLMProviderError):
    """The LLM sentiment provider returned nothing usable."""


class RecommendationError(LLMProviderError):
    """The recommendation agent ended without valid recommendations."""
