"""
FitMerge FastAPI Application
============================
Main entry point for the REST API.
"""

from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fitmerge import __version__
from fitmerge.api.routes import combine, demo, metrics
from fitmerge.api.schemas import HealthResponse
from fitmerge.config import get_config
from fitmerge.logging_setup import setup_logging


setup_logging(get_config().log_level)

# Create FastAPI app
app = FastAPI(
    title="FitMerge API",
    description="Combines fitness-sensor recordings onto one time-aligned grid",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS for the charting frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(combine.router, prefix="/combine", tags=["Combine"])
app.include_router(metrics.router, prefix="/metrics", tags=["Metrics"])
app.include_router(demo.router, prefix="/demo", tags=["Demo"])


@app.get("/", tags=["Health"])
async def root():
    """API root - points at the docs."""
    return {
        "message": "FitMerge API",
        "docs": "/docs",
        "version": __version__
    }


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
    )


if __name__ == "__main__":
    import uvicorn

    config = get_config()
    uvicorn.run(app, host=config.api.host, port=config.api.port)
