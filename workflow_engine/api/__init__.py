"""
HTTP API

FastAPI routes for running registered workflows and managing checkpoints.
"""

from .routes import router

__all__ = ["router"]
