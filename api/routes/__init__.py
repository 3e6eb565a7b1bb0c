"""
API Routes for LeadPulse.
"""

from . import agent, config, leads, sentiment

__all__ = ["agent", "config", "leads", "sentiment"]
