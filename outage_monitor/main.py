"""
Outage Monitor - FastAPI Application
Heartbeat, registration and reporting endpoints
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn
import structlog
from contextlib import asynccontextmanager

from outage_monitor.api.routes import devices, health, outages, ping, weekly
from outage_monitor.core.config import settings
from outage_monitor.core.logging import configure_logging
from outage_monitor.database.connection import init_database

configure_logging()

logger = structlog.get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting Outage Monitor API")
    init_database()
    yield
    logger.info("Shutting down Outage Monitor API")

# Create FastAPI application
app = FastAPI(
    title="Outage Monitor API",
    description="Power availability monitoring with outage schedule reconciliation",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.cors_origin],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

# Include routers
app.include_router(health.router, prefix="/api/v1", tags=["health"])
app.include_router(ping.router, tags=["ping"])
app.include_router(devices.router, prefix="/api", tags=["devices"])
app.include_router(outages.router, prefix="/api", tags=["outages"])
app.include_router(weekly.router, prefix="/api", tags=["weekly"])

@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Outage Monitor API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health"
    }

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler"""
    logger.error("Unhandled exception", exc_info=exc, path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )

if __name__ == "__main__":
    uvicorn.run(
        "outage_monitor.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower()
    )
