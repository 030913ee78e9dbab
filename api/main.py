#!/usr/bin/env python3
"""
Food Facts static server - serves the tree produced by the ETL build.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from core.config import settings
from api.middleware.logging import LoggingMiddleware
from api.routers import health, static

# Configure logging
logging.basicConfig(level=getattr(logging, settings.log_level))
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.project_name,
    version=settings.version,
    description="Static JSON server for product documents, paginated indexes and catalogs",
)

app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=False,
    allow_methods=settings.allowed_methods,
    allow_headers=settings.allowed_headers,
)

# Health routes must be registered before the static catch-all
app.include_router(health.router)
app.include_router(static.router)
logger.info(f"Serving static files from {settings.static_dir}")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
