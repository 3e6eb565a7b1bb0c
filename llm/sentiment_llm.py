"""
LLM aspect-based sentiment for LeadPulse.

Uses OpenAI JSON mode for overall sentiment plus a product / price /
urgency / general breakdown. Any failure raises SentimentProviderError;
the caller is responsible for falling back to keyword sentiment.
"""

import json
import logging
from typing import Dict, Any, Optional

from lead_scoring.sentiment import AspectSentiment, SentimentLabel, SentimentResult

from .errors import SentimentProviderError
from .prompt_templates import PromptTemplates, PromptType
from .providers.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)

ASPECTS = ["product", "price", "urgency", "general"]


def _clamp_score(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return max(-1.0, min(1.0, float(value)))


def _label(value: Any) -> SentimentLabel:
    try:
        return SentimentLabel(value)
    except ValueError:
        return SentimentLabel.NEUTRAL


class LLMSentimentAnalyzer:
    """Aspect sentiment through an OpenAI chat model."""

    DEFAULT_CONFIDENCE = 0.8

    def __init__(self, provider: OpenAIProvider):
        self.provider = provider

    def analyze(self, text: str) -> SentimentResult:
        """
        Analyze text with the LLM.

        Raises:
            SentimentProviderError: on transport errors, empty or non-JSON output
        """
        try:
            content = self.provider.generate_json(
                PromptTemplates.sentiment_prompt(text),
                system=PromptTemplates.get_system_prompt(PromptType.SENTIMENT),
            )
        except Exception as e:
            raise SentimentProviderError(f"LLM sentiment request failed: {e}") from e

        if not content:
            raise SentimentProviderError("No LLM response")

        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as e:
            raise SentimentProviderError("Invalid JSON from LLM") from e
        if not isinstance(parsed, dict):
            raise SentimentProviderError("LLM response is not a JSON object")

        return self._to_result(parsed)

    def _to_result(self, parsed: Dict[str, Any]) -> SentimentResult:
        confidence = parsed.get("confidence")
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            confidence = self.DEFAULT_CONFIDENCE
        confidence = max(0.0, min(1.0, float(confidence)))

        raw_aspects = parsed.get("aspects")
        if not isinstance(raw_aspects, dict):
            raw_aspects = {}

        aspects: Dict[str, AspectSentiment] = {}
        for key in ASPECTS:
            aspect: Optional[Dict[str, Any]] = raw_aspects.get(key)
            if not isinstance(aspect, dict):
                aspect = {}
            aspects[key] = AspectSentiment(
                sentiment=_label(aspect.get("sentiment")),
                score=_clamp_score(aspect.get("score")),
            )

        return SentimentResult(
            sentiment=_label(parsed.get("sentiment")),
            score=_clamp_score(parsed.get("score")),
            confidence=confidence,
            keywords=[],
            aspects=aspects,
        )
