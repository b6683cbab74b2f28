"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.machines import router as machines_router
from routes.planning import router as planning_router
from routes.recommendations import router as recommendations_router
from routes.dyehouse import router as dyehouse_router

__all__ = [
    "machines_router",
    "planning_router",
    "recommendations_router",
    "dyehouse_router",
]
