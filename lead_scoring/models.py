"""
Canonical data model for the LeadPulse scoring core.

Raw lead and interaction payloads arrive from the dashboard in loosely
shaped JSON (camelCase keys, the legacy ``vibeScore`` field, ISO strings
or epoch millis for timestamps). The ``from_dict`` constructors here are
the only place that leniency is handled; every scoring function works on
the dataclasses below.
"""

import logging
import math
from enum import Enum
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


class InteractionType(Enum):
    """Channel an interaction was recorded on."""
    EMAIL = "email"
    CHAT = "chat"
    SUPPORT_TICKET = "support_ticket"
    CALL = "call"


class LeadStage(Enum):
    """Funnel stage of a lead."""
    PROSPECT = "prospect"
    QUALIFIED = "qualified"
    OPPORTUNITY = "opportunity"
    CUSTOMER = "customer"


class Trend(Enum):
    """Direction of the latest score change."""
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class IntentStrength(Enum):
    """Strength tier of a buyer-intent signal."""
    HIGH = "high"        # Hand-raise
    MEDIUM = "medium"    # Subtle interest
    LOW = "low"          # Hesitation / not interested


class OutcomeType(Enum):
    """Human feedback on a recommendation."""
    HELPFUL = "helpful"
    NOT_HELPFUL = "not_helpful"
    CONTACTED = "contacted"
    DISMISSED = "dismissed"


class AttributionMode(Enum):
    """Credit distribution policy across a lead's interactions."""
    FIRST_TOUCH = "first_touch"
    LAST_TOUCH = "last_touch"
    LINEAR = "linear"
    TIME_DECAY = "time_decay"


STAGES: List[str] = [s.value for s in LeadStage]


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a timestamp from the shapes the dashboard sends.

    Accepts datetimes, ISO-8601 strings (with or without ``Z``) and epoch
    milliseconds. Naive values are taken as UTC. Returns None for anything
    that cannot be parsed.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            dt = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            logger.debug(f"Unparseable timestamp: {value!r}")
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _is_number(value: Any) -> bool:
    """Finite int or float; JSON like 1e400 or NaN parses to inf/nan."""
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _to_float(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else default
    if isinstance(value, str):
        try:
            parsed = float(value)
        except ValueError:
            return default
        return parsed if math.isfinite(parsed) else default
    return default


def _enum_or_none(enum_cls, value: Any):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


def _first(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


@dataclass(frozen=True)
class InteractionMetadata:
    """Optional channel details attached to an interaction."""
    subject: Optional[str] = None
    channel: Optional[str] = None
    duration: Optional[float] = None


@dataclass(frozen=True)
class Interaction:
    """A single recorded touch with a lead. Read-only for the core."""
    id: str
    lead_id: str
    type: Optional[InteractionType] = None
    content: str = ""
    sentiment: str = "neutral"
    sentiment_score: float = 0.0
    timestamp: Optional[datetime] = None
    source: str = ""
    metadata: InteractionMetadata = field(default_factory=InteractionMetadata)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Interaction":
        """Build an interaction from a raw payload, defaulting what is missing."""
        meta = data.get("metadata") or {}
        if not isinstance(meta, dict):
            meta = {}

        score = _to_float(_first(data, "sentimentScore", "sentiment_score"), 0.0)
        score = max(-1.0, min(1.0, score))

        content = data.get("content")
        return cls(
            id=str(data.get("id") or ""),
            lead_id=str(_first(data, "leadId", "lead_id") or ""),
            type=_enum_or_none(InteractionType, data.get("type")),
            content=content if isinstance(content, str) else "",
            sentiment=str(data.get("sentiment") or "neutral"),
            sentiment_score=score,
            timestamp=parse_timestamp(data.get("timestamp")),
            source=str(data.get("source") or ""),
            metadata=InteractionMetadata(
                subject=meta.get("subject") if isinstance(meta.get("subject"), str) else None,
                channel=meta.get("channel") if isinstance(meta.get("channel"), str) else None,
                duration=_to_float(meta.get("duration"), None),
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "leadId": self.lead_id,
            "type": self.type.value if self.type else None,
            "content": self.content,
            "sentiment": self.sentiment,
            "sentimentScore": self.sentiment_score,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "source": self.source,
            "metadata": {
                "subject": self.metadata.subject,
                "channel": self.metadata.channel,
                "duration": self.metadata.duration,
            },
        }


@dataclass(frozen=True)
class IntentSignal:
    """One buyer-intent signal extracted from an interaction."""
    intent: str
    strength: IntentStrength
    source: str = "content"  # content | subject

    def to_dict(self) -> Dict[str, Any]:
        return {"intent": self.intent, "strength": self.strength.value, "source": self.source}


@dataclass(frozen=True)
class IntentCount:
    """Occurrences of one intent category across a lead's history."""
    intent: str
    strength: IntentStrength
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"intent": self.intent, "strength": self.strength.value, "count": self.count}


@dataclass(frozen=True)
class AggregatedIntent:
    """Ranked intent summary for a lead."""
    signals: List[IntentCount] = field(default_factory=list)
    summary: str = "No clear intent signals"
    top_intent: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signals": [s.to_dict() for s in self.signals],
            "summary": self.summary,
            "topIntent": self.top_intent,
        }


@dataclass(frozen=True)
class Lead:
    """Canonical lead record consumed by the scorers."""
    id: str
    engagement_score: float = 50.0
    previous_score: Optional[float] = None
    trend: Trend = Trend.STABLE
    stage: Optional[LeadStage] = None
    source: str = ""
    last_interaction: Optional[datetime] = None
    total_interactions: Optional[int] = None
    intent_signals: List[IntentCount] = field(default_factory=list)
    ml_score: Optional[int] = None
    name: Optional[str] = None
    email: Optional[str] = None
    company: Optional[str] = None
    position: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Lead":
        """
        Build a lead from a raw payload.

        ``engagementScore`` wins over the legacy ``vibeScore``; an absent score
        becomes the neutral 50. Unknown stages are kept as None so they drop
        out of the stage one-hot.
        """
        score = _to_float(_first(data, "engagementScore", "engagement_score", "vibeScore"), 50.0)
        previous = _to_float(_first(data, "previousScore", "previous_score"), None)

        total = _first(data, "totalInteractions", "total_interactions")
        total_int: Optional[int] = None
        if _is_number(total):
            total_int = max(0, int(total))

        signals = []
        for raw in _first(data, "intentSignals", "intent_signals") or []:
            if not isinstance(raw, dict) or not raw.get("intent"):
                continue
            strength = _enum_or_none(IntentStrength, raw.get("strength"))
            if strength is None:
                continue
            count = raw.get("count")
            signals.append(IntentCount(
                intent=str(raw["intent"]),
                strength=strength,
                count=int(count) if _is_number(count) else 1,
            ))

        ml = _first(data, "mlScore", "ml_score")
        return cls(
            id=str(data.get("id") or ""),
            engagement_score=max(0.0, min(100.0, score)),
            previous_score=previous,
            trend=_enum_or_none(Trend, data.get("trend")) or Trend.STABLE,
            stage=_enum_or_none(LeadStage, data.get("stage")),
            source=str(data.get("source") or ""),
            last_interaction=parse_timestamp(_first(data, "lastInteraction", "last_interaction")),
            total_interactions=total_int,
            intent_signals=signals,
            ml_score=int(ml) if _is_number(ml) else None,
            name=data.get("name"),
            email=data.get("email"),
            company=data.get("company"),
            position=data.get("position"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "company": self.company,
            "position": self.position,
            "engagementScore": self.engagement_score,
            "previousScore": self.previous_score,
            "trend": self.trend.value,
            "stage": self.stage.value if self.stage else None,
            "source": self.source,
            "lastInteraction": self.last_interaction.isoformat() if self.last_interaction else None,
            "totalInteractions": self.total_interactions,
            "intentSignals": [s.to_dict() for s in self.intent_signals],
            "mlScore": self.ml_score,
        }


@dataclass(frozen=True)
class FeedbackRecord:
    """A thumbs-up/down (or contacted/dismissed) event on a recommendation."""
    lead_id: str
    outcome_type: OutcomeType
    id: str = ""
    recommendation_id: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utcnow)

    @property
    def stage(self) -> Optional[str]:
        return self.metadata.get("stage") or None

    @property
    def source(self) -> Optional[str]:
        return self.metadata.get("source") or None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "leadId": self.lead_id,
            "outcomeType": self.outcome_type.value,
            "recommendationId": self.recommendation_id,
            "metadata": dict(self.metadata),
            "timestamp": self.timestamp.isoformat(),
        }


def group_by_lead(interactions: List[Interaction]) -> Dict[str, List[Interaction]]:
    """Group interactions by lead id, preserving input order."""
    grouped: Dict[str, List[Interaction]] = {}
    for interaction in interactions:
        grouped.setdefault(interaction.lead_id, []).append(interaction)
    return grouped


def sort_oldest_first(interactions: List[Interaction]) -> List[Interaction]:
    """
    Order interactions chronologically.

    Undated interactions keep their relative input position ahead of dated
    ones; the sort is stable so equal timestamps keep input order.
    """
    floor = datetime.min.replace(tzinfo=timezone.utc)
    return sorted(interactions, key=lambda i: i.timestamp or floor)
