"""
Buyer Intent Detection for LeadPulse.

Classifies B2B interactions into tiered buyer-intent signals:
- Hand-raise (high): explicit requests such as demos, trials and quotes
- Subtle (medium): implicit interest such as pricing or case-study questions
- Low: hesitation, postponement or opting out
"""

import logging
import re
from typing import List, Dict, Optional, Pattern, Tuple

from .models import (
    Interaction,
    IntentSignal,
    IntentCount,
    IntentStrength,
    AggregatedIntent,
)

logger = logging.getLogger(__name__)


def _compile(*patterns: str) -> List[Pattern]:
    return [re.compile(p, re.IGNORECASE) for p in patterns]


class IntentClassifier:
    """
    Rule-based buyer intent extraction.

    Patterns run against the interaction content joined with its subject
    and channel. A single interaction can yield several signals, including
    a hand-raise and a hesitation signal at the same time.
    """

    HAND_RAISE_PATTERNS: List[Tuple[str, List[Pattern]]] = [
        ("demo_request", _compile(
            r"request.*demo", r"schedule.*demo", r"book.*demo", r"demo.*request",
            r"would like.*demo", r"interested in.*demo",
        )),
        ("trial_signup", _compile(
            r"start.*trial", r"sign up.*trial", r"free trial", r"try.*free", r"trial.*account",
        )),
        ("quote_request", _compile(
            r"request.*quote", r"get.*quote", r"pricing quote", r"send.*quote",
        )),
        ("webinar_attendance", _compile(
            r"register.*webinar", r"attend.*webinar", r"signed up.*webinar",
        )),
        ("contact_request", _compile(
            r"contact me", r"call me", r"reach out", r"get in touch", r"someone.*contact",
        )),
    ]

    SUBTLE_PATTERNS: List[Tuple[str, List[Pattern]]] = [
        ("pricing_view", _compile(
            r"pricing", r"how much", r"cost", r"price", r"budget", r"\$|usd|dollars",
        )),
        ("case_study", _compile(
            r"case study", r"success story", r"customer story", r"similar.*company",
        )),
        ("competitor_research", _compile(
            r"compared to", r"vs\.?\s+\w+", r"alternative to", r"instead of", r"migration from",
        )),
        ("feature_inquiry", _compile(
            r"tell me more about", r"how does.*work", r"does it support", r"can it.*do",
        )),
        ("implementation_interest", _compile(
            r"implementation", r"onboarding", r"setup", r"integration", r"api",
        )),
    ]

    LOW_INTENT_PATTERNS: List[Tuple[str, List[Pattern]]] = [
        ("not_interested", _compile(
            r"not interested", r"no thanks", r"remove.*list", r"unsubscribe",
        )),
        ("postpone", _compile(
            r"postpone", r"next quarter", r"next year", r"budget.*constraint", r"not.*right now",
        )),
    ]

    SUBJECT_DEMO = re.compile(r"demo|schedule|book", re.IGNORECASE)
    SUBJECT_PRICING = re.compile(r"pricing|quote|cost", re.IGNORECASE)

    SUMMARY_HIGH = "Strong buying signals (demo, trial, or quote interest)"
    SUMMARY_NONE = "No clear intent signals"
    SUMMARY_HESITATION = "; some hesitation or postponement signals"

    def extract(self, interaction: Interaction) -> List[IntentSignal]:
        """
        Extract intent signals from a single interaction.

        Args:
            interaction: The interaction to classify

        Returns:
            Signals in tier order (high, medium, low, then subject heuristics)
        """
        meta = interaction.metadata
        combined = " ".join(
            part for part in (interaction.content, meta.subject, meta.channel) if part
        )
        return self.extract_from_text(combined, subject=meta.subject)

    def extract_from_text(self, text: str, subject: Optional[str] = None) -> List[IntentSignal]:
        """Extract intent signals from raw text plus an optional subject line."""
        signals: List[IntentSignal] = []
        seen = set()

        for intent, patterns in self.HAND_RAISE_PATTERNS:
            if self._any_match(patterns, text):
                signals.append(IntentSignal(intent, IntentStrength.HIGH, "content"))
                seen.add(intent)

        for intent, patterns in self.SUBTLE_PATTERNS:
            if intent not in seen and self._any_match(patterns, text):
                signals.append(IntentSignal(intent, IntentStrength.MEDIUM, "content"))
                seen.add(intent)

        for intent, patterns in self.LOW_INTENT_PATTERNS:
            if self._any_match(patterns, text):
                signals.append(IntentSignal(intent, IntentStrength.LOW, "content"))
                seen.add(intent)

        if subject:
            if "demo_request" not in seen and self.SUBJECT_DEMO.search(subject):
                signals.append(IntentSignal("demo_request", IntentStrength.HIGH, "subject"))
                seen.add("demo_request")
            if "pricing_view" not in seen and self.SUBJECT_PRICING.search(subject):
                signals.append(IntentSignal("pricing_view", IntentStrength.MEDIUM, "subject"))
                seen.add("pricing_view")

        return signals

    def aggregate(self, interactions: List[Interaction]) -> AggregatedIntent:
        """
        Fold a lead's interaction history into a ranked intent summary.

        The first strength seen for a category is kept for that category.
        Categories are ranked by occurrence count; ties keep first-seen order.
        """
        counts: Dict[str, int] = {}
        strengths: Dict[str, IntentStrength] = {}
        has_high = False
        has_low = False

        for interaction in interactions or []:
            for signal in self.extract(interaction):
                if signal.intent not in counts:
                    counts[signal.intent] = 0
                    strengths[signal.intent] = signal.strength
                counts[signal.intent] += 1
                if signal.strength == IntentStrength.HIGH:
                    has_high = True
                elif signal.strength == IntentStrength.LOW:
                    has_low = True

        ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
        signals = [IntentCount(intent, strengths[intent], count) for intent, count in ranked]
        top_intent = signals[0].intent if signals else None

        if has_high:
            summary = self.SUMMARY_HIGH
        elif signals:
            names = ", ".join(s.intent.replace("_", " ") for s in signals[:3])
            summary = f"Interest in: {names}"
        else:
            summary = self.SUMMARY_NONE
        if has_low:
            summary += self.SUMMARY_HESITATION

        return AggregatedIntent(signals=signals, summary=summary, top_intent=top_intent)

    @staticmethod
    def _any_match(patterns: List[Pattern], text: str) -> bool:
        return any(p.search(text) for p in patterns)


_default_classifier = IntentClassifier()


def extract_intent(interaction: Interaction) -> List[IntentSignal]:
    """Extract intent signals with the shared classifier."""
    return _default_classifier.extract(interaction)


def aggregate_lead_intent(interactions: List[Interaction]) -> AggregatedIntent:
    """Aggregate a lead's intent with the shared classifier."""
    return _default_classifier.aggregate(interactions)
