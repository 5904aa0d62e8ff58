"""
Hospital bed allocation service.
FastAPI application with WebSocket updates.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from typing import Optional
import asyncio
import logging

from bed_allocation.config import settings
from bed_allocation.core.database import create_db_and_tables, get_session_direct
from bed_allocation.core.background_tasks import cleaning_loop
from bed_allocation.api.router import api_router
from bed_allocation.utils.logger import configure_logging
from bed_allocation.utils.init_data import initialize_data

logger = logging.getLogger("bed_allocation.main")

# Create application
app = FastAPI(
    title=settings.APP_TITLE,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)

app.include_router(api_router, prefix="/api")

_cleaning_task: Optional[asyncio.Task] = None


# ============================================
# STARTUP / SHUTDOWN EVENTS
# ============================================

@app.on_event("startup")
async def on_startup():
    global _cleaning_task

    configure_logging()
    create_db_and_tables()

    if settings.SEED_ON_STARTUP:
        session = get_session_direct()
        try:
            if initialize_data(session):
                logger.info("Initial data created")
        finally:
            session.close()

    _cleaning_task = asyncio.create_task(cleaning_loop())
    logger.info(f"{settings.APP_TITLE} {settings.APP_VERSION} started")


@app.on_event("shutdown")
async def on_shutdown():
    global _cleaning_task

    if _cleaning_task:
        _cleaning_task.cancel()
        try:
            await _cleaning_task
        except asyncio.CancelledError:
            pass
        _cleaning_task = None
    logger.info("Shutdown complete")


@app.get("/")
def root():
    return {
        "service": settings.APP_TITLE,
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("bed_allocation.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
