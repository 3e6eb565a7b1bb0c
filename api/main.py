"""
Main FastAPI application for LeadPulse.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import agent, config, leads, sentiment
from .services import get_services, initialize_services
from .middleware.metrics import MetricsMiddleware, metrics_endpoint
from config.settings import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("LeadPulse API starting up...")
    initialize_services()
    logger.info("LeadPulse API ready")
    yield
    logger.info("LeadPulse API shutting down...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    app = FastAPI(
        title="LeadPulse Scoring API",
        description="Lead engagement scoring, buyer intent, sentiment and agent recommendations.",
        version=settings.api_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Prometheus metrics middleware
    app.add_middleware(MetricsMiddleware)

    # --- Routers ---
    app.include_router(config.router, prefix="/api", tags=["Config"])
    app.include_router(sentiment.router, prefix="/api", tags=["Sentiment"])
    app.include_router(agent.router, prefix="/api", tags=["Agent"])
    app.include_router(leads.router, prefix="/api", tags=["Leads"])

    # --- Prometheus metrics endpoint ---
    app.get("/metrics", tags=["Monitoring"])(metrics_endpoint)

    # Root endpoint
    @app.get("/")
    async def root():
        return {
            "service": settings.app_name,
            "version": settings.api_version,
            "status": "operational",
            "docs": "/docs",
        }

    # Health check
    @app.get("/api/health")
    async def health():
        services = get_services()
        return {
            "ok": services.is_ready,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "sentimentProvider": settings.sentiment_provider,
            "services": services.health(),
        }

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
