"""
FastAPI application entry point.
"""

from fastapi import FastAPI
from teamcity_relay.config import settings
from teamcity_relay.api import webhooks
from teamcity_relay.utils.logging import setup_logging, get_logger

VERSION = "0.1.0"

# Configure structured logging
setup_logging(settings.log_level)

logger = get_logger(__name__)

# Create FastAPI application
app = FastAPI(
    title="TeamCity Build Relay",
    description="Relays TeamCity build events to an event-ingestion webhook",
    version=VERSION
)


@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "healthy", "version": VERSION}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "TeamCity Build Relay API",
        "version": VERSION,
        "docs": "/docs"
    }


app.include_router(webhooks.router)


@app.on_event("startup")
async def startup_event():
    """Log effective delivery settings on startup."""
    logger.info(
        "Starting TeamCity Build Relay API",
        extra={
            "webhook_base_url": settings.webhook_base_url,
            "provider": settings.provider_name,
        }
    )


@app.on_event("shutdown")
async def shutdown_event():
    """Release the shared HTTP client on shutdown."""
    logger.info("Shutting down TeamCity Build Relay API")
    await webhooks.deliverer.close()
    logger.info("Webhook deliverer closed")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
