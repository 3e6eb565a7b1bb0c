"""
Scoring Config API Routes for LeadPulse.
"""

import logging
from typing import Dict, Any

from fastapi import APIRouter, Body, HTTPException

from ..services import get_services

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/config")
async def get_config():
    """Current scoring config."""
    try:
        return get_services().config_store.get_current().to_dict()
    except Exception as e:
        logger.error(f"Failed to get config: {e}")
        raise HTTPException(status_code=500, detail="Failed to get config")


@router.patch("/config")
async def patch_config(patch: Dict[str, Any] = Body(...)):
    """
    Apply a partial config.

    Fields are validated independently; invalid ones are dropped and the
    rest applied. Every call publishes a new version.
    """
    try:
        config = get_services().config_store.apply_patch(patch)
    except Exception as e:
        logger.error(f"Config patch failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to update config")
    return config.to_dict()
