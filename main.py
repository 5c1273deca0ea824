"""
FastAPI Application Entry Point

Integrates:
  - WhatsApp webhook (handshake, signed events, echo reply)
  - Health checks
  - Middleware for logging & error handling

Run: uvicorn main:app --reload --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config import Config, WhatsAppCredentials
from transport.whatsapp import router as whatsapp_router

# Setup logging
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

APP_NAME = "WhatsApp Echo Relay"
APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan: startup and shutdown handlers.
    """
    # Startup
    credentials = WhatsAppCredentials.from_env()
    logger.info("=" * 60)
    logger.info(f"{APP_NAME} starting up...")
    logger.info(f"Environment: {Config.ENVIRONMENT}")
    logger.info(f"WhatsApp API: {credentials.api_base_url}")
    missing = credentials.missing()
    if missing:
        logger.warning(f"Missing configuration: {', '.join(missing)}")
    logger.info("=" * 60)

    yield

    # Shutdown
    logger.info(f"{APP_NAME} shutting down...")


# Create FastAPI app
app = FastAPI(
    title=APP_NAME,
    description="Verifies WhatsApp Cloud API webhooks and echoes user text messages back",
    version=APP_VERSION,
    lifespan=lifespan,
)


# Middleware for logging
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests."""
    logger.debug(f"{request.method} {request.url.path}")
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"Request error: {str(e)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )


# Include routers
app.include_router(whatsapp_router)


# Health check endpoints
@app.get("/health/live")
async def health_live():
    """Live health check (Kubernetes liveness check)."""
    return {"status": "alive"}


@app.get("/health/ready")
async def health_ready():
    """Readiness health check: all WhatsApp credentials configured."""
    missing = WhatsAppCredentials.from_env().missing()
    if missing:
        return {"status": "not_ready", "missing": missing}
    return {"status": "ready"}


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "status": "running",
        "endpoints": {
            "whatsapp_verify": "GET /webhook/whatsapp",
            "whatsapp_events": "POST /webhook/whatsapp",
            "health_live": "GET /health/live",
            "health_ready": "GET /health/ready",
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=Config.PORT,
        reload=Config.ENVIRONMENT == "development",
    )
