"""
Sentiment API Routes for LeadPulse.
"""

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ..services import get_services

logger = logging.getLogger(__name__)

router = APIRouter()


class SentimentRequest(BaseModel):
    """Sentiment request; ``text`` is checked by hand so non-strings map to 400."""
    text: Any = None


@router.post("/sentiment")
async def analyze_sentiment(request: SentimentRequest):
    """
    Analyze the sentiment of a piece of interaction text.

    Uses the LLM aspect provider when configured, falling back to keyword
    analysis on any failure. Results are cached by content hash.
    """
    if not isinstance(request.text, str):
        raise HTTPException(status_code=400, detail="Missing or invalid text")

    try:
        result = await asyncio.to_thread(get_services().sentiment.analyze, request.text)
    except Exception as e:
        logger.error(f"Sentiment error: {e}")
        raise HTTPException(status_code=500, detail="Sentiment analysis failed")
    return result.to_dict()
