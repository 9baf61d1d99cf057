# Copyright (c) US Inc. All rights reserved.
"""
Tuneforge Web API - Main Application

Run with:
  uvicorn tuneforge.main:app --host 0.0.0.0 --port 8000
  python -m tuneforge.main
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import api_router
from .core.config import settings
from .core.database import get_database

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Dataset validation, fine-tuning orchestration and competency generation API",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration"""
    return {"status": "healthy", "service": "tuneforge-api"}


@app.on_event("startup")
async def startup_event():
    """Initialize on startup"""
    settings.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    get_database().init()
    mode = f"remote host {settings.REMOTE_HOST}" if settings.remote_dispatch_enabled else "simulated training"
    logger.info("%s v%s started (%s)", settings.APP_NAME, settings.APP_VERSION, mode)


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    get_database().dispose()


def run():
    import uvicorn

    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("tuneforge.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)


if __name__ == "__main__":
    run()
