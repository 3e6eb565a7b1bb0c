"""
Recommendation Agent API Routes for LeadPulse.

Recommendations, feedback capture, feedback-driven config improvement,
and config history / rollback.
"""

import asyncio
import logging
from typing import List, Dict, Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from lead_scoring.feedback_learning import compute_learned_weights, merge_weights
from lead_scoring.models import Interaction, Lead, OutcomeType

from ..middleware.metrics import record_cache_hit, record_cache_miss, record_recommendation
from ..services import get_services

logger = logging.getLogger(__name__)

router = APIRouter()


# Models
class RecommendRequest(BaseModel):
    """Recommendation request; leads stay loosely typed and are normalized per item."""
    model_config = ConfigDict(populate_by_name=True)

    leads: Any = None
    interactions: Optional[List[Dict[str, Any]]] = None
    team_metrics: Optional[Dict[str, Any]] = Field(default=None, alias="teamMetrics")


class FeedbackRequest(BaseModel):
    """Feedback on a recommendation."""
    model_config = ConfigDict(populate_by_name=True)

    lead_id: Optional[str] = Field(default=None, alias="leadId")
    outcome_type: Optional[str] = Field(default=None, alias="outcomeType")
    recommendation_id: Optional[str] = Field(default=None, alias="recommendationId")
    metadata: Optional[Dict[str, Any]] = None


class RollbackRequest(BaseModel):
    version: Optional[int] = None


@router.post("/agent/recommend")
async def recommend(request: RecommendRequest):
    """
    Prioritized leads with suggested actions.

    Served from the TTL cache when the same leads, team metrics and
    interactions were seen under the current config version.
    """
    if not isinstance(request.leads, list) or not request.leads:
        raise HTTPException(status_code=400, detail="Missing or invalid leads array")

    services = get_services()
    try:
        leads = [Lead.from_dict(raw) for raw in request.leads if isinstance(raw, dict)]
        interactions = [Interaction.from_dict(raw) for raw in request.interactions or []]
        config = services.config_store.get_current()

        key = services.recommend_cache.make_key(
            [lead.id for lead in leads] + [f"config:v{config.version}"],
            request.team_metrics,
            [(i.lead_id, i.id) for i in interactions],
        )
        cached = services.recommend_cache.get(key)
        if cached is not None:
            record_cache_hit("recommend")
            return cached.to_dict()
        record_cache_miss("recommend")

        result = await asyncio.to_thread(
            services.recommender.recommend, leads, interactions, request.team_metrics, config
        )
        services.recommend_cache.set(key, result)
        record_recommendation(result.provider)
    except Exception as e:
        logger.error(f"Recommend error: {e}")
        raise HTTPException(status_code=500, detail="Recommendations failed")
    return result.to_dict()


@router.post("/agent/feedback", status_code=201)
async def record_feedback(request: FeedbackRequest):
    """Record helpful / not_helpful / contacted / dismissed feedback."""
    if not request.lead_id:
        raise HTTPException(status_code=400, detail="Missing leadId")
    try:
        outcome = OutcomeType(request.outcome_type)
    except ValueError:
        raise HTTPException(
            status_code=422,
            detail=f"Invalid outcomeType: {request.outcome_type!r}",
        )

    record = get_services().feedback_store.append(
        lead_id=request.lead_id,
        outcome_type=outcome,
        recommendation_id=request.recommendation_id,
        metadata=request.metadata,
    )
    return record.to_dict()


@router.post("/agent/improve")
async def improve():
    """
    Learn stage/source weights from recent feedback and publish them.

    Learned keys overwrite the current weights; every other key keeps
    its value.
    """
    services = get_services()
    try:
        recent = services.feedback_store.recent(services.settings.feedback_window_days)
        if not recent:
            return {"success": True, "message": "No recent feedback to improve from"}

        learned = compute_learned_weights(recent)
        if learned is None:
            return {"success": True, "message": "No helpful or not_helpful feedback to learn from"}

        current = services.config_store.get_current()
        stage_weights, source_weights = merge_weights(
            current.stage_weights, current.source_weights, learned
        )
        config = services.config_store.apply_patch({
            "stageWeights": stage_weights,
            "sourceWeights": source_weights,
        })
    except Exception as e:
        logger.error(f"Improve error: {e}")
        raise HTTPException(status_code=500, detail="Improve failed")

    return {
        "success": True,
        "message": "Config updated",
        "config": config.to_dict(),
        "learned": learned.to_dict(),
    }


@router.get("/agent/config/history")
async def config_history():
    """Version summaries of the retained config history, oldest first."""
    return get_services().config_store.get_history()


@router.post("/agent/config/rollback")
async def rollback(request: RollbackRequest):
    """Make a retained config version current again."""
    if request.version is None:
        raise HTTPException(status_code=400, detail="Missing version")

    rolled = get_services().config_store.rollback(request.version)
    if rolled is None:
        raise HTTPException(status_code=404, detail="Version not found")
    return rolled.to_dict()
