"""
Initialization - Shutdown Module.

Graceful shutdown of monitoring, scheduler and network sessions.
"""

from loguru import logger

from wallet_monitor.initialization.services import ServiceContainer


async def shutdown_handler(services: ServiceContainer) -> None:
    """Handle graceful shutdown."""
    logger.info("Graceful shutdown initiated...")

    try:
        await services.orchestrator.shutdown()
    except Exception as e:
        logger.warning(f"Error stopping monitoring: {e}")

    services.scheduler.shutdown()
    await services.cache.stop_sweeper()

    try:
        await services.balance_source.close()
        await services.sink.close()
    except Exception as e:
        logger.warning(f"Error closing HTTP sessions: {e}")

    try:
        await services.redis_client.aclose()
        logger.info("Redis connection closed")
    except Exception as e:
        logger.warning(f"Error closing Redis: {e}")

    logger.info("Graceful shutdown complete")
