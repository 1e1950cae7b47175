"""
SFL Studio API Server

Modular FastAPI server with separation of concerns.
Uses routers for endpoints and services for business logic; a browser front
end drives the persona -> show -> generate -> refine -> review steps.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from sfl_studio import __version__

from servers.config import config
from servers.logging_config import get_logger

# Import routers
from servers.routers import (
    sessions_router,
    personas_router,
    show_router,
    script_router,
    resources_router
)

logger = get_logger(__name__)

# Create FastAPI app
app = FastAPI(
    title="SFL Studio",
    description="Backend API for SFL-profiled persona podcast dialogue generation",
    version=__version__
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(sessions_router)
app.include_router(personas_router)
app.include_router(show_router)
app.include_router(script_router)
app.include_router(resources_router)


if __name__ == "__main__":
    base_url = f"http://localhost:{config.port}"
    logger.info("=" * 50)
    logger.info("SFL Studio - Persona Dialogue Generator")
    logger.info("=" * 50)
    logger.info(f"Starting server at: {base_url}")
    logger.info("API Documentation:")
    logger.info(f"  - Interactive API docs: {base_url}/docs")
    logger.info(f"  - ReDoc documentation: {base_url}/redoc")
    logger.info("Key Endpoints:")
    logger.info("  - POST /api/sessions                          New session")
    logger.info("  - POST /api/sessions/{id}/personas/{p}/analyze SFL analysis")
    logger.info("  - POST /api/sessions/{id}/script/generate     Generate script")
    logger.info("  - GET  /api/sessions/{id}/script/export       Download JSON")
    logger.info("  - GET  /api/health                            Health check")
    logger.info("=" * 50)

    uvicorn.run(app, host=config.host, port=config.port)
