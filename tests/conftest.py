"""Shared fixtures for LeadPulse tests."""

import json
import os
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

# Keep tests offline regardless of the developer's .env
os.environ["OPENAI_API_KEY"] = ""
os.environ.setdefault("SENTIMENT_PROVIDER", "keyword")

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeCompletions:
    """Returns scripted chat completion messages in order and records each call."""

    def __init__(self, messages):
        self._messages = list(messages)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if not self._messages:
            raise RuntimeError("no scripted response left")
        message = self._messages.pop(0)
        if isinstance(message, Exception):
            raise message
        if message is None:
            return SimpleNamespace(choices=[])
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeOpenAIClient:
    def __init__(self, messages):
        self.completions = FakeCompletions(messages)
        self.chat = SimpleNamespace(completions=self.completions)


def text_message(content):
    return SimpleNamespace(content=content, tool_calls=None)


def tool_message(*calls):
    """Assistant message requesting tools; each call is (id, name, args)."""
    return SimpleNamespace(
        content=None,
        tool_calls=[
            SimpleNamespace(
                id=call_id,
                type="function",
                function=SimpleNamespace(name=name, arguments=json.dumps(args)),
            )
            for call_id, name, args in calls
        ],
    )


@pytest.fixture
def fake_openai():
    """Factory for a fake OpenAI client scripted with messages."""
    return FakeOpenAIClient


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def raw_interactions():
    """Dashboard-shaped interactions for two leads."""
    return [
        {
            "id": "i1",
            "leadId": "lead1",
            "type": "email",
            "content": "I love this, please schedule a demo!",
            "sentiment": "positive",
            "sentimentScore": 0.8,
            "timestamp": (NOW - timedelta(days=3)).isoformat(),
            "source": "website",
            "metadata": {"subject": "Demo request"},
        },
        {
            "id": "i2",
            "leadId": "lead1",
            "type": "chat",
            "content": "How much does the enterprise plan cost?",
            "sentiment": "neutral",
            "sentimentScore": 0.1,
            "timestamp": (NOW - timedelta(days=1)).isoformat(),
            "source": "website",
        },
        {
            "id": "i3",
            "leadId": "lead2",
            "type": "support_ticket",
            "content": "This is a terrible problem, very frustrated with the issue.",
            "sentiment": "negative",
            "sentimentScore": -0.7,
            "timestamp": (NOW - timedelta(days=10)).isoformat(),
            "source": "referral",
        },
    ]


@pytest.fixture
def raw_leads():
    return [
        {
            "id": "lead1",
            "name": "Ada Park",
            "company": "Acme",
            "engagementScore": 72,
            "stage": "opportunity",
            "source": "website",
            "trend": "up",
            "lastInteraction": (NOW - timedelta(days=1)).isoformat(),
        },
        {
            "id": "lead2",
            "name": "Sam Lee",
            "company": "Globex",
            "vibeScore": 35,
            "stage": "prospect",
            "source": "referral",
            "lastInteraction": (NOW - timedelta(days=10)).isoformat(),
        },
        {
            "id": "lead3",
            "name": "Kim Ortiz",
            "company": "Initech",
            "engagementScore": 88,
            "stage": "qualified",
            "source": "event",
            "lastInteraction": (NOW - timedelta(days=5)).isoformat(),
        },
    ]


@pytest.fixture
def interactions(raw_interactions):
    from lead_scoring.models import Interaction
    return [Interaction.from_dict(raw) for raw in raw_interactions]


@pytest.fixture
def leads(raw_leads):
    from lead_scoring.models import Lead
    return [Lead.from_dict(raw) for raw in raw_leads]


@pytest.fixture
def services():
    """Fresh, offline service container."""
    from api.services import get_services
    from config.settings import Settings

    svc = get_services()
    svc.reset()
    svc.initialize(Settings(openai_api_key=None, sentiment_provider="keyword"))
    yield svc
    svc.reset()


@pytest.fixture
def client(services):
    """Create a FastAPI test client backed by fresh services."""
    from api.main import app
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def msg():
    """Builders for scripted assistant messages."""
    return SimpleNamespace(text=text_message, tools=tool_message)
