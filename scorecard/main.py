"""Scorecard — FastAPI Application Entry Point.

PowerBrief Scorecard: cache-aware Meta ads metric aggregation.
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from scorecard.database import init_db, test_connection
from scorecard.scheduler.jobs import start_scheduler, stop_scheduler
from scorecard.api.insights_routes import router as insights_router
from scorecard.api.refresh_routes import router as refresh_router
from scorecard.api.metrics_routes import router as metrics_router
from scorecard.api.meta_routes import router as meta_router
from scorecard.core.logging import get_logger

logger = get_logger("main")

IS_SERVERLESS = bool(
    os.environ.get("VERCEL") or os.environ.get("AWS_LAMBDA_FUNCTION_NAME")
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("🚀 Scorecard starting up...")
    logger.info(f"🌍 Environment: {'SERVERLESS' if IS_SERVERLESS else 'LOCAL'}")
    if test_connection():
        try:
            init_db()
        except Exception as e:
            logger.error(f"❌ Table creation failed: {e}")
    else:
        logger.error("❌ Database NOT connected — endpoints will fail")
    if not IS_SERVERLESS:
        start_scheduler()
    yield
    if not IS_SERVERLESS:
        stop_scheduler()
    logger.info("Scorecard shut down")


app = FastAPI(
    title="PowerBrief Scorecard",
    description="Cache-aware Meta ads insight aggregation and user-defined scorecard metrics.",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(insights_router)
app.include_router(refresh_router)
app.include_router(metrics_router)
app.include_router(meta_router)


@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "scorecard",
        "version": "1.0.0",
    }
