"""
Monitoring health endpoint.

Small aiohttp app exposing the state of the balance monitoring pipeline:
- /health: orchestrator state, last balance check outcome, scheduled jobs
- /readiness: 200 only while balance monitoring is running
- /liveness: process is up
"""

import asyncio

from aiohttp import web
from loguru import logger

from jobs.scheduler import BackgroundFetchResult, BackgroundTaskScheduler
from wallet_monitor.config.constants import BALANCE_MONITOR_TASK
from wallet_monitor.services.hybrid_balance_service import HybridBalanceService


ORCHESTRATOR_KEY = web.AppKey("orchestrator", HybridBalanceService)
SCHEDULER_KEY = web.AppKey("scheduler", BackgroundTaskScheduler)


def _monitoring_report(
    orchestrator: HybridBalanceService,
    scheduler: BackgroundTaskScheduler,
) -> dict:
    last_check = scheduler.last_result(BALANCE_MONITOR_TASK)
    return {
        **orchestrator.get_status(),
        "scheduler_available": scheduler.available,
        "scheduler_running": scheduler.running,
        "last_balance_check": str(last_check) if last_check else None,
        "jobs": scheduler.jobs(),
    }


async def health_handler(request: web.Request) -> web.Response:
    """
    Report pipeline state.

    Degraded (still 200) when monitoring runs but the last balance check
    failed; 503 when the report itself cannot be built.
    """
    orchestrator = request.app[ORCHESTRATOR_KEY]
    scheduler = request.app[SCHEDULER_KEY]

    try:
        report = _monitoring_report(orchestrator, scheduler)
    except Exception as e:
        logger.error(f"Health report failed: {e}")
        return web.json_response({"status": "error", "error": str(e)}, status=503)

    if not orchestrator.is_monitoring:
        report["status"] = "idle"
    elif report["last_balance_check"] == BackgroundFetchResult.FAILED:
        report["status"] = "degraded"
    else:
        report["status"] = "ok"
    return web.json_response(report)


async def readiness_handler(request: web.Request) -> web.Response:
    """Ready while balance monitoring is active on a running scheduler."""
    orchestrator = request.app[ORCHESTRATOR_KEY]
    scheduler = request.app[SCHEDULER_KEY]

    ready = orchestrator.is_monitoring and scheduler.running
    return web.json_response(
        {"ready": ready, "state": str(orchestrator.state)},
        status=200 if ready else 503,
    )


async def liveness_handler(request: web.Request) -> web.Response:
    return web.json_response({"alive": True})


def create_health_app(
    orchestrator: HybridBalanceService,
    scheduler: BackgroundTaskScheduler,
) -> web.Application:
    """Build the health app for one orchestrator and its scheduler."""
    app = web.Application()
    app[ORCHESTRATOR_KEY] = orchestrator
    app[SCHEDULER_KEY] = scheduler
    app.router.add_get("/health", health_handler)
    app.router.add_get("/readiness", readiness_handler)
    app.router.add_get("/liveness", liveness_handler)
    return app


async def start_health_server(
    orchestrator: HybridBalanceService,
    scheduler: BackgroundTaskScheduler,
    host: str = "0.0.0.0",
    port: int = 8081,
) -> web.AppRunner:
    """
    Serve the health app.

    Returns:
        AppRunner to pass to stop_health_server
    """
    runner = web.AppRunner(create_health_app(orchestrator, scheduler))
    await runner.setup()
    await web.TCPSite(runner, host, port).start()
    logger.info(f"Monitoring health endpoint listening on {host}:{port}")
    return runner


async def stop_health_server(runner: web.AppRunner, timeout: float = 5) -> None:
    """Shut the health app down, giving up after timeout seconds."""
    try:
        await asyncio.wait_for(runner.cleanup(), timeout=timeout)
    except TimeoutError:
        logger.warning(f"Health endpoint cleanup timed out after {timeout}s")
