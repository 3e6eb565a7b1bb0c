"""
Keyword Sentiment Analysis for LeadPulse.

Deterministic baseline used for every interaction and as the mandatory
fallback when the LLM sentiment provider is unavailable.
"""

import logging
from enum import Enum
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


class SentimentLabel(Enum):
    """Overall sentiment label."""
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


@dataclass
class AspectSentiment:
    """Sentiment for one aspect of an interaction (LLM provider only)."""
    sentiment: SentimentLabel = SentimentLabel.NEUTRAL
    score: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"sentiment": self.sentiment.value, "score": self.score}


@dataclass
class SentimentResult:
    """Result of sentiment analysis."""
    sentiment: SentimentLabel
    score: float  # -1 to 1
    confidence: float  # 0 to 1
    keywords: List[str] = field(default_factory=list)
    aspects: Optional[Dict[str, AspectSentiment]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result = {
            "sentiment": self.sentiment.value,
            "score": self.score,
            "confidence": self.confidence,
            "keywords": list(self.keywords),
        }
        if self.aspects is not None:
            result["aspects"] = {k: v.to_dict() for k, v in self.aspects.items()}
        return result


class KeywordSentimentAnalyzer:
    """
    Scores text by counting sentiment keywords.

    Each whitespace token is matched by substring against the positive,
    negative and neutral lists in that order; the first list that matches
    claims the token.

    score      = (positive - negative) / matched
    confidence = min(matched / tokens * 4, 1)

    Labels use a +/-0.1 dead band around zero.
    """

    POSITIVE_KEYWORDS = [
        "excellent", "great", "awesome", "fantastic", "love", "amazing", "perfect",
        "wonderful", "outstanding", "impressed", "excited", "interested", "yes",
        "definitely", "absolutely", "looking forward", "thank you", "appreciate",
    ]

    NEGATIVE_KEYWORDS = [
        "terrible", "awful", "hate", "horrible", "disappointed", "frustrated",
        "angry", "upset", "no", "never", "not interested", "waste of time",
        "expensive", "overpriced", "complicated", "difficult", "problem", "issue",
    ]

    NEUTRAL_KEYWORDS = [
        "okay", "fine", "maybe", "perhaps", "consider", "think about",
        "let me check", "not sure", "unclear", "question", "information",
    ]

    LABEL_THRESHOLD = 0.1
    CONFIDENCE_MULTIPLIER = 4

    def analyze(self, text: str) -> SentimentResult:
        """
        Analyze the sentiment of a piece of text.

        Args:
            text: Free text (email body, chat message, ticket)

        Returns:
            SentimentResult with score in [-1, 1] and confidence in [0, 1]
        """
        words = text.lower().split()

        positive = negative = neutral = 0
        found: List[str] = []

        for word in words:
            if self._matches(word, self.POSITIVE_KEYWORDS):
                positive += 1
                found.append(word)
            elif self._matches(word, self.NEGATIVE_KEYWORDS):
                negative += 1
                found.append(word)
            elif self._matches(word, self.NEUTRAL_KEYWORDS):
                neutral += 1
                found.append(word)

        matched = positive + negative + neutral
        if matched > 0:
            score = (positive - negative) / matched
            confidence = min(matched / len(words) * self.CONFIDENCE_MULTIPLIER, 1.0)
            return SentimentResult(
                sentiment=self._label(score),
                score=score,
                confidence=confidence,
                keywords=found,
            )

        return self._heuristic(text)

    def _label(self, score: float) -> SentimentLabel:
        if score > self.LABEL_THRESHOLD:
            return SentimentLabel.POSITIVE
        if score < -self.LABEL_THRESHOLD:
            return SentimentLabel.NEGATIVE
        return SentimentLabel.NEUTRAL

    def _heuristic(self, text: str) -> SentimentResult:
        """Punctuation fallback when no keyword matched."""
        if "!" in text and "?" not in text:
            return SentimentResult(SentimentLabel.POSITIVE, 0.3, 0.3)
        if "?" in text and len(text) < 50:
            return SentimentResult(SentimentLabel.NEUTRAL, 0.1, 0.4)
        return SentimentResult(SentimentLabel.NEUTRAL, 0.0, 0.0)

    @staticmethod
    def _matches(word: str, keywords: List[str]) -> bool:
        return any(keyword in word for keyword in keywords)


_default_analyzer = KeywordSentimentAnalyzer()


def analyze_sentiment(text: str) -> SentimentResult:
    """Analyze text with the shared keyword analyzer."""
    return _default_analyzer.analyze(text)
