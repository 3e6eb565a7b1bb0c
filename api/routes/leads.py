"""
Lead Scoring API Routes for LeadPulse.
"""

import logging
from dataclasses import replace
from typing import List, Dict, Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from lead_scoring.attribution import AttributionEngine
from lead_scoring.engagement import EngagementScorer
from lead_scoring.models import Interaction, Lead, group_by_lead, utcnow

from ..middleware.metrics import record_intent, record_lead_score
from ..services import get_services

logger = logging.getLogger(__name__)

router = APIRouter()


# Models
class ScoreLeadsRequest(BaseModel):
    """Leads and their interactions, in the dashboard's raw shape."""
    leads: List[Dict[str, Any]] = []
    interactions: List[Dict[str, Any]] = []


class IntentRequest(BaseModel):
    interactions: List[Dict[str, Any]] = []


@router.post("/leads/score")
async def score_leads(request: ScoreLeadsRequest):
    """
    Score a batch of leads.

    For each lead:
    - engagement score and trend from its interaction history (leads
      without interactions keep the score they were sent with)
    - effective ranking score under the current attribution config
    - logistic ML score with per-feature contributions
    - aggregated buyer intent

    Results are ordered by effective score, highest first.
    """
    if not request.leads:
        raise HTTPException(status_code=400, detail="Missing or invalid leads array")

    services = get_services()
    try:
        config = services.config_store.get_current()
        scorer = EngagementScorer(config.scoring_weights)
        engine = AttributionEngine(config)
        now = utcnow()

        by_lead = group_by_lead([Interaction.from_dict(raw) for raw in request.interactions])

        results = []
        for raw in request.leads:
            lead = Lead.from_dict(raw)
            history = by_lead.get(lead.id, [])

            if history:
                lead = scorer.score_lead(lead, history)
            intent = services.intent_classifier.aggregate(history)
            if not lead.intent_signals:
                lead = replace(lead, intent_signals=list(intent.signals))

            ml = services.ml_model.score(lead, history, now)
            lead = replace(lead, ml_score=ml.ml_score)
            effective = engine.effective_score(lead, history, now)

            record_lead_score(lead.engagement_score)
            for signal in intent.signals:
                record_intent(signal.intent, signal.strength.value)

            results.append({
                "leadId": lead.id,
                "engagementScore": round(lead.engagement_score, 2),
                "previousScore": lead.previous_score,
                "trend": lead.trend.value,
                "effectiveScore": round(effective, 2),
                "mlScore": ml.ml_score,
                "contributions": ml.contributions,
                "intent": intent.to_dict(),
                "lead": lead.to_dict(),
            })
    except Exception as e:
        logger.error(f"Lead scoring failed: {e}")
        raise HTTPException(status_code=500, detail="Lead scoring failed")

    results.sort(key=lambda r: r["effectiveScore"], reverse=True)
    return {
        "leads": results,
        "configVersion": config.version,
        "attributionMode": config.attribution_mode.value,
    }


@router.post("/intent")
async def aggregate_intent(request: IntentRequest):
    """Aggregate buyer intent across a set of interactions."""
    try:
        interactions = [Interaction.from_dict(raw) for raw in request.interactions]
        intent = get_services().intent_classifier.aggregate(interactions)
    except Exception as e:
        logger.error(f"Intent aggregation failed: {e}")
        raise HTTPException(status_code=500, detail="Intent aggregation failed")
    return intent.to_dict()
