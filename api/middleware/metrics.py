"""
Prometheus metrics middleware for the LeadPulse API.

Exposes /metrics endpoint with request counters, latency histograms,
and scoring/recommendation business metrics.
"""

import logging
import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from prometheus_client import (
    Counter, Histogram, Gauge,
    generate_latest, CONTENT_TYPE_LATEST,
)

logger = logging.getLogger(__name__)

# Request metrics
REQUEST_COUNT = Counter(
    "leadpulse_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "leadpulse_http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)
ACTIVE_REQUESTS = Gauge(
    "leadpulse_http_active_requests",
    "Currently active HTTP requests",
)

# Business metrics
LEAD_SCORE_HIST = Histogram(
    "leadpulse_lead_score",
    "Engagement score distribution",
    buckets=[10, 20, 30, 40, 50, 60, 70, 80, 90, 100],
)
SENTIMENT_PROVIDER_COUNT = Counter(
    "leadpulse_sentiment_requests_total",
    "Sentiment analyses by provider that produced the result",
    ["provider"],
)
INTENT_COUNT = Counter(
    "leadpulse_intent_signals_total",
    "Aggregated intent signals",
    ["intent", "strength"],
)
AGENT_ROUNDS = Histogram(
    "leadpulse_agent_rounds",
    "Model rounds used by the recommendation agent",
    ["outcome"],
    buckets=[1, 2, 3, 4, 5, 6, 8, 10],
)
RECOMMENDATION_COUNT = Counter(
    "leadpulse_recommendations_total",
    "Recommendations served by provider",
    ["provider"],
)
CACHE_HITS = Counter("leadpulse_cache_hits_total", "Cache hits", ["cache_type"])
CACHE_MISSES = Counter("leadpulse_cache_misses_total", "Cache misses", ["cache_type"])


def record_lead_score(score: float):
    """Record an engagement score."""
    LEAD_SCORE_HIST.observe(score)


def record_sentiment_provider(provider: str):
    """Record which provider answered a sentiment request (keyword, llm, fallback)."""
    SENTIMENT_PROVIDER_COUNT.labels(provider=provider).inc()


def record_intent(intent: str, strength: str):
    """Record an aggregated intent signal."""
    INTENT_COUNT.labels(intent=intent, strength=strength).inc()


def record_agent_rounds(rounds: int, outcome: str):
    """Record how many model rounds an agent run took."""
    AGENT_ROUNDS.labels(outcome=outcome).observe(rounds)


def record_recommendation(provider: str):
    RECOMMENDATION_COUNT.labels(provider=provider).inc()


def record_cache_hit(cache_type: str):
    """Record a cache hit."""
    CACHE_HITS.labels(cache_type=cache_type).inc()


def record_cache_miss(cache_type: str):
    """Record a cache miss."""
    CACHE_MISSES.labels(cache_type=cache_type).inc()


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware that records HTTP request metrics."""

    async def dispatch(self, request: Request, call_next):
        ACTIVE_REQUESTS.inc()
        start = time.time()

        try:
            response = await call_next(request)
        except Exception:
            ACTIVE_REQUESTS.dec()
            raise

        duration = time.time() - start
        endpoint = request.url.path

        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()
        REQUEST_LATENCY.labels(
            method=request.method,
            endpoint=endpoint,
        ).observe(duration)
        ACTIVE_REQUESTS.dec()

        return response


async def metrics_endpoint(request: Request) -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
