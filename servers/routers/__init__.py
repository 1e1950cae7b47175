"""API routers for the SFL Studio backend."""

from .sessions import router as sessions_router
from .personas import router as personas_router
from .show import router as show_router
from .script import router as script_router
from .resources import router as resources_router

__all__ = [
    "sessions_router",
    "personas_router",
    "show_router",
    "script_router",
    "resources_router"
]
