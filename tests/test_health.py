"""Tests for probe and metrics routes."""

import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

from etherblink.observability.health import (
    CheckResult,
    HealthCheck,
    HealthEndpoints,
    ReadinessReport,
)


class StaticCheck(HealthCheck):
    def __init__(self, name: str, detail: str | None = None):
        self.name = name
        self._detail = detail

    async def check(self) -> CheckResult:
        if self._detail is None:
            return CheckResult.passed(self.name)
        return CheckResult.failed(self.name, self._detail)


class RaisingCheck(HealthCheck):
    name = "rpc"

    async def check(self) -> CheckResult:
        raise ConnectionError("connection refused")


class HangingCheck(HealthCheck):
    name = "slow"

    async def check(self) -> CheckResult:
        await asyncio.sleep(10)
        return CheckResult.passed(self.name)


class TestReadinessReport:
    def test_empty_report_is_ready(self):
        report = ReadinessReport()

        assert report.ready
        assert report.to_dict() == {"status": "ok"}

    def test_one_failure_makes_it_not_ready(self):
        report = ReadinessReport(
            results=[
                CheckResult.passed("store"),
                CheckResult.failed("rpc", "unreachable"),
            ]
        )

        assert not report.ready
        assert report.to_dict() == {
            "status": "not_ready",
            "checks": {"store": "ok", "rpc": "unreachable"},
        }


class TestReadiness:
    async def test_runs_checks_in_registration_order(self):
        endpoints = HealthEndpoints()
        endpoints.add_check(StaticCheck("store"))
        endpoints.add_check(StaticCheck("rpc"))

        report = await endpoints.readiness()

        assert [result.name for result in report.results] == ["store", "rpc"]
        assert len(endpoints.checks) == 2

    async def test_exception_counts_as_failure(self):
        endpoints = HealthEndpoints()
        endpoints.add_check(RaisingCheck())

        (result,) = (await endpoints.readiness()).results

        assert not result.ok
        assert result.detail == "error: ConnectionError: connection refused"

    async def test_slow_check_times_out(self):
        endpoints = HealthEndpoints(check_timeout=0.05)
        endpoints.add_check(HangingCheck())
        endpoints.add_check(StaticCheck("store"))

        report = await endpoints.readiness()

        assert report.to_dict()["checks"] == {"slow": "timed out after 0.05s", "store": "ok"}


class TestRoutes:
    @pytest.fixture
    async def client_and_endpoints(self):
        endpoints = HealthEndpoints()
        app = web.Application()
        endpoints.add_routes(app)

        client = TestClient(TestServer(app))
        await client.start_server()
        yield client, endpoints
        await client.close()

    async def test_liveness(self, client_and_endpoints):
        client, _ = client_and_endpoints

        resp = await client.get("/health")

        assert resp.status == 200
        assert await resp.json() == {"status": "ok"}

    async def test_ready_without_checks(self, client_and_endpoints):
        client, _ = client_and_endpoints

        resp = await client.get("/ready")

        assert resp.status == 200
        assert await resp.json() == {"status": "ok"}

    async def test_ready_when_store_is_up(self, client_and_endpoints):
        client, endpoints = client_and_endpoints
        endpoints.add_check(StaticCheck("store"))

        resp = await client.get("/ready")

        assert resp.status == 200
        assert await resp.json() == {"status": "ok", "checks": {"store": "ok"}}

    async def test_not_ready_when_store_is_down(self, client_and_endpoints):
        client, endpoints = client_and_endpoints
        endpoints.add_check(StaticCheck("store", "redis unreachable"))

        resp = await client.get("/ready")

        assert resp.status == 503
        assert await resp.json() == {
            "status": "not_ready",
            "checks": {"store": "redis unreachable"},
        }

    async def test_metrics(self, client_and_endpoints):
        client, _ = client_and_endpoints

        resp = await client.get("/metrics")

        assert resp.status == 200
        assert resp.content_type == "text/plain"
        assert "etherblink_links_created_total" in await resp.text()
