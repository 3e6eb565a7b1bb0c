"""
API Module for LeadPulse.

FastAPI application with routes for:
- Lead scoring and intent
- Sentiment analysis
- Agent recommendations, feedback and config versioning
"""

from .main import create_app, app

__all__ = ["create_app", "app"]
