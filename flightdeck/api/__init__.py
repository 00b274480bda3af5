"""
API Module — FastAPI Dashboard Backend

Public API:
- app: FastAPI application instance
- create_app: application factory (isolated apps for tests)
"""

from .main import app, create_app

__all__ = [
    "app",
    "create_app",
]
