"""
LLM Module for LeadPulse.

This module handles:
- OpenAI provider (JSON mode and tool calling)
- Aspect-based LLM sentiment
- The tool-calling recommendation agent with rule-based fallback
"""

from .errors import LLMProviderError, SentimentProviderError, RecommendationError
from .prompt_templates import PromptTemplates, PromptType
from .sentiment_llm import LLMSentimentAnalyzer
from .recommender import (
    AgentRun,
    AgentState,
    RecommendationAgent,
    RecommendationService,
    ToolAccessors,
    parse_recommendation_response,
)

__all__ = [
    "LLMProviderError",
    "SentimentProviderError",
    "RecommendationError",
    "PromptTemplates",
    "PromptType",
    "LLMSentimentAnalyzer",
    "AgentRun",
    "AgentState",
    "RecommendationAgent",
    "RecommendationService",
    "ToolAccessors",
    "parse_recommendation_response",
]
