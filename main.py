"""
Wedding Manager - FastAPI Backend
Main application entry point
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from wedding_manager.core.config import settings
from wedding_manager.core.db import engine, Base
from wedding_manager.api import routes_admin, routes_guest, routes_public, routes_lottery, routes_ledger
from wedding_manager.services.errors import WeddingError
from wedding_manager.utils.responses import domain_error_response

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    # Create the key-value store table
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")
    yield
    logger.info("Application shutdown")

# Create FastAPI application
app = FastAPI(
    title="Wedding Manager",
    description="Invitations, RSVPs, seating, check-in, lottery and ledger for a single wedding",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(WeddingError)
async def wedding_error_handler(request: Request, exc: WeddingError):
    """Domain errors become the standard error envelope; the store is left unsaved"""
    logger.info(f"{request.method} {request.url.path} rejected: {exc.error_code} ({exc.message})")
    return domain_error_response(exc)

# Include routers
app.include_router(routes_public.router, tags=["public"])
app.include_router(routes_guest.router, prefix="/guest", tags=["guest"])
app.include_router(routes_admin.router, prefix="/admin", tags=["admin"])
app.include_router(routes_lottery.router, prefix="/admin/lottery", tags=["lottery"])
app.include_router(routes_ledger.router, prefix="/admin/ledger", tags=["ledger"])

# Note: Run this ASGI app directly with Uvicorn or Hypercorn.

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8000,
        reload=True
    )
