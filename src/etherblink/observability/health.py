"""Liveness, readiness and metrics routes for the EtherBlink web app.

``/health`` answers 200 while the event loop serves requests.
``/ready`` answers 200 only when every registered check passes, and
503 with the failing checks otherwise. ``/metrics`` exposes the default
Prometheus registry.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one readiness check."""

    name: str
    ok: bool
    detail: str | None = None

    @classmethod
    def passed(cls, name: str) -> "CheckResult":
        return cls(name=name, ok=True)

    @classmethod
    def failed(cls, name: str, detail: str) -> "CheckResult":
        return cls(name=name, ok=False, detail=detail)


@dataclass
class ReadinessReport:
    """All check outcomes for one ``/ready`` request."""

    results: list[CheckResult] = field(default_factory=list)

    @property
    def ready(self) -> bool:
        return all(result.ok for result in self.results)

    def to_dict(self) -> dict:
        body: dict = {"status": "ok" if self.ready else "not_ready"}
        if self.results:
            body["checks"] = {
                result.name: "ok" if result.ok else (result.detail or "failed")
                for result in self.results
            }
        return body


class HealthCheck(ABC):
    """A dependency the service needs before it can take traffic."""

    name: str = "check"

    @abstractmethod
    async def check(self) -> CheckResult:
        """Probe the dependency.

        Implementations return ``CheckResult.failed`` for an expected
        outage. Exceptions are caught by ``HealthEndpoints`` and reported
        as failures too.
        """
        ...


class HealthEndpoints:
    """Route handlers for probes and metrics.

    Parameters
    ----------
    check_timeout : float
        Seconds each readiness check may take before it counts as failed.
    """

    def __init__(self, check_timeout: float = 2.0) -> None:
        self.check_timeout = check_timeout
        self._checks: list[HealthCheck] = []

    @property
    def checks(self) -> tuple[HealthCheck, ...]:
        return tuple(self._checks)

    def add_check(self, check: HealthCheck) -> None:
        self._checks.append(check)

    def add_routes(self, app: web.Application) -> None:
        app.router.add_get("/health", self._handle_health)
        app.router.add_get("/ready", self._handle_ready)
        app.router.add_get("/metrics", self._handle_metrics)

    async def readiness(self) -> ReadinessReport:
        """Run every check concurrently and collect the outcomes in order."""
        results = await asyncio.gather(*(self._run(check) for check in self._checks))
        return ReadinessReport(results=list(results))

    async def _run(self, check: HealthCheck) -> CheckResult:
        try:
            return await asyncio.wait_for(check.check(), timeout=self.check_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Readiness check timed out",
                extra={"check": check.name, "timeout": self.check_timeout},
            )
            return CheckResult.failed(check.name, f"timed out after {self.check_timeout}s")
        except Exception as e:
            logger.exception("Readiness check raised", extra={"check": check.name})
            return CheckResult.failed(check.name, f"error: {type(e).__name__}: {e}")

    async def _handle_health(self, _request: web.Request) -> web.Response:
        return web.json_response({"status": "ok"})

    async def _handle_ready(self, _request: web.Request) -> web.Response:
        report = await self.readiness()
        return web.json_response(report.to_dict(), status=200 if report.ready else 503)

    async def _handle_metrics(self, _request: web.Request) -> web.Response:
        return web.Response(
            body=generate_latest(REGISTRY), headers={"Content-Type": CONTENT_TYPE_LATEST}
        )
