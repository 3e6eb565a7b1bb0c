"""
Recommendation Agent for LeadPulse.

A tool-calling agent that inspects leads through three read-only tools
before answering with prioritized leads and suggested actions. The loop is
an explicit state machine with a hard round ceiling; every failure path
ends in TERMINAL_FAILURE and the service falls back to the rule-based
ranker.
"""

import json
import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Dict, Any, Optional

from lead_scoring.intent_classifier import IntentClassifier
from lead_scoring.models import Interaction, Lead, group_by_lead
from lead_scoring.ranking import Recommendations, RuleBasedRanker, Suggestion
from lead_scoring.scoring_config import ScoringConfig

from .errors import RecommendationError
from .prompt_templates import PromptTemplates, PromptType
from .providers.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROUNDS = 10
DEFAULT_INTERACTION_LIMIT = 10
MAX_TOOL_CONTENT_CHARS = 500

TOOLS: List[Dict[str, Any]] = [
    {
        "type": "function",
        "function": {
            "name": "get_lead_details",
            "description": (
                "Get full details for a single lead by ID. Use this to inspect score, stage, "
                "company, and contact info before recommending an action."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "leadId": {"type": "string", "description": "The lead ID (e.g. lead1, lead2)"},
                },
                "required": ["leadId"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "get_recent_interactions",
            "description": (
                "Get recent interactions for a lead (emails, chats, support tickets). Use this "
                "to tailor the recommendation based on what was said and sentiment."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "leadId": {"type": "string", "description": "The lead ID"},
                    "limit": {
                        "type": "number",
                        "description": "Max number of interactions to return (default 10)",
                        "default": DEFAULT_INTERACTION_LIMIT,
                    },
                },
                "required": ["leadId"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "get_intent_signals",
            "description": (
                "Get buyer intent signals for a lead (demo request, pricing interest, trial "
                "signup, etc.). High-strength signals indicate strong buying interest."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "leadId": {"type": "string", "description": "The lead ID"},
                },
                "required": ["leadId"],
            },
        },
    },
]


class AgentState(Enum):
    """States of the recommendation loop."""
    AWAITING_MODEL_RESPONSE = "awaiting_model_response"
    EXECUTING_TOOL_CALLS = "executing_tool_calls"
    TERMINAL_SUCCESS = "terminal_success"
    TERMINAL_FAILURE = "terminal_failure"


@dataclass
class AgentRun:
    """Outcome of one agent run."""
    state: AgentState
    rounds: int
    recommendations: Optional[Recommendations] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state == AgentState.TERMINAL_SUCCESS


class ToolAccessors:
    """
    Read-only views over the request's leads and interactions.

    Interactions are indexed per lead, newest first, once at construction.
    """

    def __init__(self, leads: List[Lead], interactions: List[Interaction]):
        self.leads: Dict[str, Lead] = {lead.id: lead for lead in leads}
        self.interactions = group_by_lead(interactions)
        floor = datetime.min.replace(tzinfo=timezone.utc)
        for items in self.interactions.values():
            items.sort(key=lambda i: i.timestamp or floor, reverse=True)
        self.classifier = IntentClassifier()

    def get_lead_details(self, lead_id: str) -> Dict[str, Any]:
        lead = self.leads.get(lead_id)
        if lead is None:
            return {"error": "Lead not found", "leadId": lead_id}

        intent = self.classifier.aggregate(self.interactions.get(lead_id, []))
        details = lead.to_dict()
        details.update({
            "intentSignals": [s.to_dict() for s in intent.signals],
            "intentSummary": intent.summary,
            "topIntent": intent.top_intent,
        })
        details.pop("mlScore", None)
        return details

    def get_recent_interactions(self, lead_id: str, limit: Any = DEFAULT_INTERACTION_LIMIT) -> Dict[str, Any]:
        """Most recent interactions for a lead, content truncated to 500 chars."""
        if isinstance(limit, bool) or not isinstance(limit, (int, float)):
            limit = DEFAULT_INTERACTION_LIMIT
        elif not math.isfinite(limit) or limit < 0:
            limit = DEFAULT_INTERACTION_LIMIT

        recent = []
        for interaction in self.interactions.get(lead_id, [])[: int(limit)]:
            recent.append({
                "type": interaction.type.value if interaction.type else None,
                "content": interaction.content[:MAX_TOOL_CONTENT_CHARS],
                "sentiment": interaction.sentiment,
                "sentimentScore": interaction.sentiment_score,
                "timestamp": interaction.timestamp.isoformat() if interaction.timestamp else None,
                "source": interaction.source,
                "subject": interaction.metadata.subject,
                "intentSignals": [s.to_dict() for s in self.classifier.extract(interaction)],
            })
        return {"leadId": lead_id, "count": len(recent), "interactions": recent}

    def get_intent_signals(self, lead_id: str) -> Dict[str, Any]:
        intent = self.classifier.aggregate(self.interactions.get(lead_id, []))
        return {"leadId": lead_id, **intent.to_dict()}

    def dispatch(self, name: str, args: Dict[str, Any]) -> Dict[str, Any]:
        """Run a tool by name; unknown tools return an error payload."""
        lead_id = str(args.get("leadId") or "")
        if name == "get_lead_details":
            return self.get_lead_details(lead_id)
        if name == "get_recent_interactions":
            return self.get_recent_interactions(lead_id, args.get("limit", DEFAULT_INTERACTION_LIMIT))
        if name == "get_intent_signals":
            return self.get_intent_signals(lead_id)
        return {"error": "Unknown tool", "name": name}


def parse_recommendation_response(content: Optional[str]) -> Optional[Recommendations]:
    """
    Extract recommendations from the model's final message.

    Takes the outermost ``{...}`` span, so prose around the JSON is
    tolerated. Returns None when no JSON object can be parsed.
    """
    if not content or not isinstance(content, str):
        return None

    match = re.search(r"\{[\s\S]*\}", content.strip())
    if not match:
        return None

    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, dict):
        return None

    raw_suggestions = parsed.get("suggestions")
    if not isinstance(raw_suggestions, list):
        raw_suggestions = []

    suggestions = []
    for item in raw_suggestions:
        if not isinstance(item, dict):
            continue
        suggestions.append(Suggestion(
            lead_id=str(item.get("leadId") or item.get("lead_id") or ""),
            action=item.get("action") or "Follow up",
            reason=item.get("reason") or "",
        ))

    prioritized = parsed.get("prioritizedLeadIds")
    if not isinstance(prioritized, list):
        prioritized = [s.lead_id for s in suggestions]

    summary = parsed.get("summary")
    return Recommendations(
        prioritized_lead_ids=[str(lead_id) for lead_id in prioritized],
        suggestions=suggestions,
        summary=summary if isinstance(summary, str) else None,
        provider="agent",
    )


def _assistant_message(message: Any) -> Dict[str, Any]:
    """Echo an assistant tool-call message back into the conversation."""
    return {
        "role": "assistant",
        "content": getattr(message, "content", None),
        "tool_calls": [
            {
                "id": call.id,
                "type": "function",
                "function": {"name": call.function.name, "arguments": call.function.arguments},
            }
            for call in message.tool_calls
        ],
    }


class RecommendationAgent:
    """
    Bounded tool-calling loop.

    Transitions:
    - AWAITING_MODEL_RESPONSE -> EXECUTING_TOOL_CALLS when the model requests tools
    - EXECUTING_TOOL_CALLS -> AWAITING_MODEL_RESPONSE after every tool result is appended
    - AWAITING_MODEL_RESPONSE -> TERMINAL_SUCCESS on parseable JSON content
    - anything else, or the round ceiling, -> TERMINAL_FAILURE
    """

    def __init__(self, provider: OpenAIProvider, max_rounds: int = DEFAULT_MAX_ROUNDS):
        self.provider = provider
        self.max_rounds = max_rounds

    def run(
        self,
        leads: List[Lead],
        interactions: List[Interaction],
        team_metrics: Optional[Dict[str, Any]] = None,
        config: Optional[ScoringConfig] = None,
    ) -> AgentRun:
        """Run the loop to a terminal state. Never raises."""
        config = config or ScoringConfig()
        tools = ToolAccessors(leads, interactions)
        lead_summary = [
            {
                "id": lead.id,
                "name": lead.name,
                "company": lead.company,
                "engagementScore": lead.engagement_score,
                "stage": lead.stage.value if lead.stage else None,
                "trend": lead.trend.value,
            }
            for lead in leads
        ]
        messages: List[Dict[str, Any]] = [
            {"role": "system", "content": PromptTemplates.get_system_prompt(PromptType.RECOMMEND, config.system_prompt)},
            {"role": "user", "content": PromptTemplates.recommend_user(lead_summary, team_metrics)},
        ]

        state = AgentState.AWAITING_MODEL_RESPONSE
        rounds = 0
        message = None

        while rounds < self.max_rounds:
            if state == AgentState.AWAITING_MODEL_RESPONSE:
                rounds += 1
                try:
                    message = self.provider.complete_with_tools(messages, TOOLS)
                except Exception as e:
                    return AgentRun(AgentState.TERMINAL_FAILURE, rounds, error=f"Model call failed: {e}")

                if message is None:
                    return AgentRun(AgentState.TERMINAL_FAILURE, rounds, error="No completion choice")

                if getattr(message, "tool_calls", None):
                    state = AgentState.EXECUTING_TOOL_CALLS
                    continue

                parsed = parse_recommendation_response(getattr(message, "content", None))
                if parsed is None:
                    return AgentRun(AgentState.TERMINAL_FAILURE, rounds, error="No valid recommendations JSON")
                return AgentRun(AgentState.TERMINAL_SUCCESS, rounds, recommendations=parsed)

            # EXECUTING_TOOL_CALLS
            messages.append(_assistant_message(message))
            for call in message.tool_calls:
                try:
                    args = json.loads(call.function.arguments or "{}")
                except json.JSONDecodeError:
                    args = {}
                if not isinstance(args, dict):
                    args = {}
                try:
                    result = tools.dispatch(call.function.name, args)
                except Exception as e:
                    logger.warning(f"Agent tool {call.function.name} failed: {e}")
                    result = {"error": "Tool failed", "name": call.function.name}
                logger.debug(f"Agent tool {call.function.name}({args}) -> {len(json.dumps(result))} bytes")
                messages.append({
                    "role": "tool",
                    "tool_call_id": call.id,
                    "content": json.dumps(result),
                })
            state = AgentState.AWAITING_MODEL_RESPONSE

        return AgentRun(AgentState.TERMINAL_FAILURE, rounds, error=f"Round limit {self.max_rounds} reached")

    def recommend(
        self,
        leads: List[Lead],
        interactions: List[Interaction],
        team_metrics: Optional[Dict[str, Any]] = None,
        config: Optional[ScoringConfig] = None,
    ) -> Recommendations:
        """
        Run the agent and return its recommendations.

        Raises:
            RecommendationError: if the run ended in TERMINAL_FAILURE
        """
        run = self.run(leads, interactions, team_metrics, config)
        if not run.succeeded:
            raise RecommendationError(run.error or "Agent did not return valid recommendations JSON")
        return run.recommendations


class RecommendationService:
    """
    Recommendation provider with mandatory rule-based fallback.

    Without an agent (no API key configured) the rule-based ranker answers
    directly. With one, any agent failure is logged and the ranker answers
    instead; callers always receive recommendations.
    """

    def __init__(
        self,
        agent: Optional[RecommendationAgent] = None,
        on_agent_run: Optional[Callable[[AgentRun], None]] = None,
    ):
        self.agent = agent
        self.on_agent_run = on_agent_run

    @property
    def provider_name(self) -> str:
        return "agent" if self.agent else "rules"

    def recommend(
        self,
        leads: List[Lead],
        interactions: Optional[List[Interaction]] = None,
        team_metrics: Optional[Dict[str, Any]] = None,
        config: Optional[ScoringConfig] = None,
        now: Optional[datetime] = None,
    ) -> Recommendations:
        interactions = interactions or []
        config = config or ScoringConfig()

        if self.agent is not None:
            try:
                run = self.agent.run(leads, interactions, team_metrics, config)
            except Exception as e:
                logger.exception("Recommendation agent crashed")
                run = AgentRun(AgentState.TERMINAL_FAILURE, 0, error=str(e))
            if self.on_agent_run:
                self.on_agent_run(run)
            if run.succeeded:
                logger.info(f"Agent recommended {len(run.recommendations.prioritized_lead_ids)} leads in {run.rounds} rounds")
                return run.recommendations
            logger.warning(f"Recommendation agent failed, falling back to rules: {run.error}")

        return RuleBasedRanker(config).rank(leads, interactions, now)
