"""
Tests for the monitoring health endpoint.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp import test_utils

from jobs.health import create_health_app
from jobs.scheduler import BackgroundFetchResult, BackgroundTaskScheduler
from wallet_monitor.config.constants import BALANCE_MONITOR_TASK
from wallet_monitor.services.hybrid_balance_service import MonitoringState


def make_scheduler(running=True):
    aps = MagicMock()
    aps.running = running
    job = MagicMock()
    job.id = BALANCE_MONITOR_TASK
    job.name = BALANCE_MONITOR_TASK
    job.next_run_time = None
    aps.get_jobs.return_value = [job]
    return BackgroundTaskScheduler(aps)


def make_orchestrator(state=MonitoringState.MONITORING):
    orchestrator = MagicMock()
    orchestrator.state = state
    orchestrator.is_monitoring = state == MonitoringState.MONITORING
    orchestrator.get_status.return_value = {
        "initialized": state != MonitoringState.UNINITIALIZED,
        "monitoring": state == MonitoringState.MONITORING,
        "state": str(state),
    }
    return orchestrator


def client_for(orchestrator, scheduler):
    app = create_health_app(orchestrator, scheduler)
    return test_utils.TestClient(test_utils.TestServer(app))


class TestHealthEndpoint:
    """Test /health."""

    @pytest.mark.asyncio
    async def test_reports_monitoring_state(self):
        scheduler = make_scheduler()
        scheduler.define_task(
            BALANCE_MONITOR_TASK, AsyncMock(return_value=BackgroundFetchResult.NEW_DATA)
        )
        await scheduler.run_task(BALANCE_MONITOR_TASK)

        async with client_for(make_orchestrator(), scheduler) as client:
            response = await client.get("/health")
            payload = await response.json()

        assert response.status == 200
        assert payload["status"] == "ok"
        assert payload["state"] == "monitoring"
        assert payload["last_balance_check"] == "new_data"
        assert payload["jobs"][0]["id"] == BALANCE_MONITOR_TASK

    @pytest.mark.asyncio
    async def test_failed_check_is_degraded(self):
        scheduler = make_scheduler()
        scheduler.define_task(BALANCE_MONITOR_TASK, AsyncMock(side_effect=RuntimeError("rpc")))
        await scheduler.run_task(BALANCE_MONITOR_TASK)

        async with client_for(make_orchestrator(), scheduler) as client:
            payload = await (await client.get("/health")).json()

        assert payload["status"] == "degraded"
        assert payload["last_balance_check"] == "failed"

    @pytest.mark.asyncio
    async def test_idle_before_monitoring(self):
        orchestrator = make_orchestrator(MonitoringState.INITIALIZED)

        async with client_for(orchestrator, make_scheduler()) as client:
            payload = await (await client.get("/health")).json()

        assert payload["status"] == "idle"
        assert payload["last_balance_check"] is None

    @pytest.mark.asyncio
    async def test_report_failure_is_503(self):
        orchestrator = make_orchestrator()
        orchestrator.get_status.side_effect = RuntimeError("boom")

        async with client_for(orchestrator, make_scheduler()) as client:
            response = await client.get("/health")

        assert response.status == 503


class TestReadinessAndLiveness:
    """Test /readiness and /liveness."""

    @pytest.mark.asyncio
    async def test_ready_while_monitoring(self):
        async with client_for(make_orchestrator(), make_scheduler()) as client:
            response = await client.get("/readiness")

        assert response.status == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("state", "running"),
        [
            (MonitoringState.INITIALIZED, True),
            (MonitoringState.UNINITIALIZED, True),
            (MonitoringState.MONITORING, False),
        ],
    )
    async def test_not_ready(self, state, running):
        async with client_for(make_orchestrator(state), make_scheduler(running)) as client:
            response = await client.get("/readiness")
            payload = await response.json()

        assert response.status == 503
        assert payload["ready"] is False

    @pytest.mark.asyncio
    async def test_liveness_without_scheduler(self):
        scheduler = BackgroundTaskScheduler(None)

        async with client_for(make_orchestrator(), scheduler) as client:
            payload = await (await client.get("/liveness")).json()

        assert payload["alive"] is True
