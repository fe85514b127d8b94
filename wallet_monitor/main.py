"""
Wallet monitor main entry point.

Builds the services, initializes balance monitoring and runs until
SIGINT/SIGTERM.
"""

import asyncio
import signal
import sys

from loguru import logger

from jobs.health import start_health_server, stop_health_server
from wallet_monitor.config.settings import settings
from wallet_monitor.initialization.logging import setup_logging
from wallet_monitor.initialization.services import build_services
from wallet_monitor.initialization.shutdown import shutdown_handler
from wallet_monitor.initialization.storage import setup_redis


async def main() -> None:
    """Initialize and run balance monitoring."""
    setup_logging(settings)

    redis_client = await setup_redis(settings)
    services = build_services(settings, redis_client)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    services.scheduler.start()
    services.cache.start_sweeper()
    health_runner = None

    try:
        try:
            health_runner = await start_health_server(
                services.orchestrator,
                services.scheduler,
                port=settings.health_check_port,
            )
        except OSError as e:
            logger.warning(f"Failed to start health check server: {e}")

        if not await services.orchestrator.start_monitoring():
            logger.warning("Balance monitoring did not start, see previous messages")

        logger.info(f"Status: {services.orchestrator.get_status()}")
        await stop_event.wait()
    finally:
        if health_runner is not None:
            await stop_health_server(health_runner)
        await shutdown_handler(services)


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Wallet monitor stopped by user (KeyboardInterrupt)")
    except Exception as e:
        logger.exception(f"Wallet monitor crashed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    run()
