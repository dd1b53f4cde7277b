"""
FastAPI application for the BillSync API.

Provides endpoints for raw session datasets, bill version diffs, and bill
summaries.

Responsibility: Main API application setup and configuration
"""

# Load .env BEFORE importing settings (critical for pydantic-settings)
from dotenv import load_dotenv
load_dotenv('.env')

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from billsync.config import settings
from api.dependencies import close_sync_service
from api.errors import register_exception_handlers
from api.v1.endpoints import bills, datasets

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.app.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=f"{settings.app.app_name} API",
    description="Legislative dataset retrieval, bill version diffs, and bill summaries",
    version=settings.app.app_version,
    docs_url="/docs",
    redoc_url="/redoc"
)

logger.info(f"CORS Origins configured: {settings.app.cors_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.app.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,  # Cache preflight for 1 hour
)

register_exception_handlers(app)


@app.on_event("startup")
async def startup_event():
    """Log configuration on startup"""
    logger.info(f"Starting {settings.app.app_name} API...")
    logger.info(f"Environment: {settings.app.environment}")
    logger.info(f"Debug mode: {settings.app.debug}")
    logger.info(f"Summary backend: {settings.summary.backend.value}")
    if not settings.legiscan.api_key:
        logger.warning("LEGISCAN_API_KEY is not set; upstream requests will be rejected")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    logger.info(f"Shutting down {settings.app.app_name} API...")
    await close_sync_service()


@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "name": f"{settings.app.app_name} API",
        "version": settings.app.app_version,
        "status": "operational",
        "endpoints": {
            "raw_dataset": "/api/datasets/raw?id={session_id}&access_key={access_key}",
            "bill_diff": "/api/bills/{bill_id}/diff?amendmentId={version_id}",
            "bill_summary": "/api/bills/{bill_id}/summary",
            "docs": "/docs"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "service": "billsync-api"
    }


app.include_router(
    datasets.router,
    prefix="/api",
    tags=["datasets"]
)

app.include_router(
    bills.router,
    prefix="/api",
    tags=["bills"]
)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.app.debug
    )
