"""
TimeFlow API Server - REST API for the planner UI.
"""
# ruff: noqa: S104
# S104: Development server binding (guarded by __name__ check)

import logging
import os

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.planner_router import get_planner, router as planner_router
from timeflow import __version__, config
from timeflow.observability import configure_logging

logger = logging.getLogger(__name__)

# FastAPI app initialization
app = FastAPI(
    title="TimeFlow API",
    description="Daily task planner - tasks, non-negotiables and the day timeline",
    version=__version__,
)

# CORS middleware - configurable via CORS_ORIGINS env var
cors_origins_env = os.getenv("CORS_ORIGINS", "*")
cors_origins = (
    ["*"] if cors_origins_env == "*" else [o.strip() for o in cors_origins_env.split(",")]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(planner_router, prefix="/api")


@app.get("/health")
async def health():
    """Liveness check with the planner's current date."""
    return {
        "status": "healthy",
        "version": __version__,
        "current_date": get_planner().state.current_date,
    }


# ==== Main ====


def main():
    """Run the server."""
    configure_logging(config.LOG_LEVEL)
    port = int(os.environ.get("PORT", 8420))
    logger.info("Starting TimeFlow API on port %d", port)
    uvicorn.run(app, host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
