"""
Prompt Templates for LeadPulse.

Prompts for the aspect sentiment provider and the recommendation agent.
"""

import json
from enum import Enum
from typing import Dict, Any, List, Optional


class PromptType(Enum):
    """Types of prompts."""
    SENTIMENT = "sentiment"
    RECOMMEND = "recommend"


class PromptTemplates:
    """
    Prompt templates for the LLM collaborators.

    The recommendation system prompt comes from the live scoring config so
    it can be edited and rolled back; the tool instructions are appended here.
    """

    SENTIMENT_SYSTEM = """You analyze B2B sales/customer interaction text for sentiment. Return a JSON object with:
- sentiment: "positive" | "neutral" | "negative" (overall)
- score: number from -1 to 1 (negative to positive)
- confidence: number from 0 to 1
- aspects: object with keys "product", "price", "urgency", "general" - each has { sentiment, score } where score is -1 to 1

Be concise. Focus on buyer intent and engagement signals."""

    RECOMMEND_TOOL_SUFFIX = (
        " You have access to get_lead_details(leadId), get_recent_interactions(leadId), "
        "and get_intent_signals(leadId). Use intent signals to prioritize leads with strong "
        "buying interest. End by returning the JSON object only."
    )

    MAX_SENTIMENT_CHARS = 2000

    @classmethod
    def sentiment_prompt(cls, text: str) -> str:
        """User prompt for aspect sentiment; text is truncated to 2000 chars."""
        return f'Analyze sentiment for this B2B interaction:\n\n"{text[:cls.MAX_SENTIMENT_CHARS]}"'

    @classmethod
    def recommend_system(cls, config_prompt: str) -> str:
        return config_prompt + cls.RECOMMEND_TOOL_SUFFIX

    @staticmethod
    def recommend_user(
        lead_summary: List[Dict[str, Any]],
        team_metrics: Optional[Dict[str, Any]] = None,
    ) -> str:
        """User prompt listing the leads the agent should inspect."""
        return (
            f"You are given a list of {len(lead_summary)} leads. Use the tools "
            "get_lead_details(leadId), get_recent_interactions(leadId), and "
            "get_intent_signals(leadId) to inspect the leads. Consider buyer intent signals "
            "(demo request, pricing interest, trial signup = high intent; pricing_view, "
            "case_study = medium intent) when prioritizing. Base recommendations on scores, "
            "stage, interaction content, sentiment, and intent. "
            f"Team context: {json.dumps(team_metrics or {})}. "
            f"Lead summary: {json.dumps(lead_summary)}. "
            'Respond with a single JSON object: { "prioritizedLeadIds": ["id1", "id2", ...], '
            '"suggestions": [ { "leadId": "id1", "action": "...", "reason": "..." }, ... ], '
            '"summary": "Brief sentence." }'
        )

    @classmethod
    def get_system_prompt(cls, prompt_type: PromptType, config_prompt: str = "") -> str:
        """Get the system prompt for a prompt type."""
        if prompt_type == PromptType.SENTIMENT:
            return cls.SENTIMENT_SYSTEM
        return cls.recommend_system(config_prompt)
