"""
PEPL Stdlib API - FastAPI Application

Run with: uvicorn api.main:app --reload
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from pepl import __version__
from api.routes.functions import router as functions_router
from api.routes.health import router as health_router
from api.routes.invoke import router as invoke_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("PEPL stdlib API starting...")
    yield
    logger.info("PEPL stdlib API shutting down...")


app = FastAPI(
    title="PEPL Stdlib API",
    description="Deterministic PEPL standard library calls under a gas budget",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health_router, prefix="/api/v1", tags=["Health"])
app.include_router(invoke_router, prefix="/api/v1", tags=["Invoke"])
app.include_router(functions_router, prefix="/api/v1", tags=["Functions"])


@app.get("/")
async def root():
    """API root endpoint."""
    return {
        "name": "PEPL Stdlib API",
        "version": __version__,
        "docs": "/docs",
        "health": "/api/v1/health",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
