"""
Rule-based lead ranking.

Deterministic recommendation provider used when no LLM is configured and
whenever the tool-calling agent fails.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field

from .attribution import AttributionEngine
from .models import Interaction, Lead, group_by_lead
from .scoring_config import ScoringConfig

logger = logging.getLogger(__name__)


@dataclass
class Suggestion:
    """Recommended next step for one lead."""
    lead_id: str
    action: str
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"leadId": self.lead_id, "action": self.action, "reason": self.reason}


@dataclass
class Recommendations:
    """Prioritized leads with suggested actions."""
    prioritized_lead_ids: List[str] = field(default_factory=list)
    suggestions: List[Suggestion] = field(default_factory=list)
    summary: Optional[str] = None
    provider: str = "rules"  # rules | agent

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "prioritizedLeadIds": list(self.prioritized_lead_ids),
            "suggestions": [s.to_dict() for s in self.suggestions],
        }
        if self.summary is not None:
            result["summary"] = self.summary
        return result


class RuleBasedRanker:
    """
    Ranks leads by effective score, most recent contact breaking ties.

    Thresholds on the engagement score pick the action:
    - >= 80: schedule a call or demo
    - < 50: nurture
    - otherwise: follow-up email
    """

    HIGH_THRESHOLD = 80
    LOW_THRESHOLD = 50
    MAX_LEADS = 10

    def __init__(self, config: Optional[ScoringConfig] = None, max_leads: int = MAX_LEADS):
        self.engine = AttributionEngine(config)
        self.max_leads = max_leads

    def rank(
        self,
        leads: List[Lead],
        interactions: Optional[List[Interaction]] = None,
        now: Optional[datetime] = None,
    ) -> Recommendations:
        """
        Build recommendations for a set of leads.

        Args:
            leads: Candidate leads
            interactions: Interactions for those leads
            now: Reference time for time-decay attribution
        """
        by_lead = group_by_lead(interactions or [])
        floor = datetime.min.replace(tzinfo=timezone.utc)

        scored = [
            (self.engine.effective_score(lead, by_lead.get(lead.id, []), now), lead)
            for lead in leads
        ]
        scored.sort(key=lambda item: (item[0], item[1].last_interaction or floor), reverse=True)
        top = [lead for _, lead in scored[: self.max_leads]]

        suggestions = [self._suggest(lead) for lead in top]
        return Recommendations(
            prioritized_lead_ids=[lead.id for lead in top],
            suggestions=suggestions,
            summary=f"Top {len(top)} leads to contact by engagement score.",
            provider="rules",
        )

    def _suggest(self, lead: Lead) -> Suggestion:
        score = lead.engagement_score
        if score >= self.HIGH_THRESHOLD:
            return Suggestion(lead.id, "Schedule call or demo", "High engagement - prioritize conversion")
        if score < self.LOW_THRESHOLD:
            return Suggestion(lead.id, "Nurture with content or check-in", "Lower engagement - re-engage")
        return Suggestion(lead.id, "Send follow-up email", f"Lead score {round(score)}")
