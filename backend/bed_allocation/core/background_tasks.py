"""
Background tasks.
Periodic release of beds whose cleaning window has elapsed.
"""
import asyncio
import logging

from bed_allocation.config import settings
from bed_allocation.core.database import get_session_direct
from bed_allocation.core.websocket_manager import manager
from bed_allocation.services.cleaning_service import CleaningService

logger = logging.getLogger("bed_allocation.background")


async def run_cleaning_sweep() -> int:
    """
    Runs one cleaning sweep and publishes its events.

    Returns:
        Number of beds released
    """
    session = get_session_direct()
    try:
        result = CleaningService(session).release_ready_beds()
    finally:
        session.close()

    if result.events:
        await manager.publish_events(result.events)
    return len(result.released)


async def cleaning_loop() -> None:
    """
    Sweeps cleaning beds every CLEANING_SWEEP_INTERVAL seconds.

    Runs until cancelled on application shutdown. A failed sweep is
    logged and retried on the next tick.
    """
    logger.info("Starting cleaning sweep loop")

    while True:
        try:
            if settings.AUTO_CLEANING_ENABLED:
                await run_cleaning_sweep()
        except Exception as e:
            logger.error(f"Error in cleaning sweep: {e}")

        await asyncio.sleep(settings.CLEANING_SWEEP_INTERVAL)
