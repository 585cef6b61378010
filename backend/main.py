"""FastAPI application entry point."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import lots, options
from api.errors import register_exception_handlers
from config import settings
from logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


app = FastAPI(
    title="Lot Ledger",
    description="Share lot and short option position accounting",
    version="0.1.0",
)

# CORS configuration for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include API routers
app.include_router(lots.router)
app.include_router(options.router)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}
