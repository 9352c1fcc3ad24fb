"""
Affiliate Outreach Backend - FastAPI Application
TikTok creator discovery and collaboration invitations.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from affiliate_outreach.config import settings
from affiliate_outreach.core.clock import utcnow
from affiliate_outreach.database import init_db
from affiliate_outreach.core.exceptions import AffiliateOutreachException, status_code_for

# Import all API routers
from affiliate_outreach.api import auth, creators, campaigns, status

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    await init_db()
    logger.info("Database initialised")
    yield
    # Shutdown


app = FastAPI(
    title="Affiliate Outreach API",
    description="TikTok creator discovery and affiliate invitation campaigns",
    version="1.0.0",
    lifespan=lifespan
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AffiliateOutreachException)
async def affiliate_outreach_exception_handler(request: Request, exc: AffiliateOutreachException):
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=status_code, content={"detail": "Internal server error"})
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


# Include all routers
app.include_router(auth.router)
app.include_router(creators.router)
app.include_router(campaigns.router)
app.include_router(campaigns.analytics_router)
app.include_router(status.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Affiliate Outreach API is running",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
async def health():
    """Liveness check."""
    return {
        "status": "healthy",
        "version": "1.0.0",
        "timestamp": utcnow().isoformat()
    }
