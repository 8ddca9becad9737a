"""Scheduled health checks with an explicit interval and cancellation handle."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from beatschain.application.ports import HealthProbe

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HealthStatus:
    healthy: bool
    checked_at: datetime
    check_number: int


@dataclass(slots=True)
class HealthCheckHandle:
    """Cancellation handle for a running health-check task."""

    task: asyncio.Task

    def cancel(self) -> None:
        self.task.cancel()

    @property
    def running(self) -> bool:
        return not self.task.done()

    async def wait(self) -> None:
        try:
            await self.task
        except asyncio.CancelledError:
            if not self.task.cancelled():
                raise


@dataclass(slots=True)
class HealthCheckTask:
    """Probe a service every ``interval_seconds`` until cancelled.

    ``max_checks`` bounds the number of probes; ``None`` runs until the
    handle is cancelled.
    """

    probe: HealthProbe
    interval_seconds: float
    on_unhealthy: Callable[[HealthStatus], Awaitable[None] | None] | None = None
    max_checks: int | None = None
    last_status: HealthStatus | None = field(default=None, init=False)
    history: list[HealthStatus] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        if self.interval_seconds <= 0:
            raise ValueError("interval_seconds must be greater than zero.")
        if self.max_checks is not None and self.max_checks < 1:
            raise ValueError("max_checks must be at least 1 when provided.")

    def start(self) -> HealthCheckHandle:
        """Schedule the check loop on the running event loop."""

        return HealthCheckHandle(task=asyncio.get_running_loop().create_task(self._run()))

    async def check_once(self) -> HealthStatus:
        healthy = await self.probe.check()
        status = HealthStatus(
            healthy=healthy,
            checked_at=datetime.now(tz=timezone.utc),
            check_number=len(self.history) + 1,
        )
        self.last_status = status
        self.history.append(status)
        if healthy:
            logger.info("Health check passed", extra={"check_number": status.check_number})
        else:
            logger.warning("Health check failed", extra={"check_number": status.check_number})
            if self.on_unhealthy is not None:
                result = self.on_unhealthy(status)
                if asyncio.iscoroutine(result):
                    await result
        return status

    async def _run(self) -> None:
        checks = 0
        while self.max_checks is None or checks < self.max_checks:
            await self.check_once()
            checks += 1
            if self.max_checks is not None and checks >= self.max_checks:
                break
            await asyncio.sleep(self.interval_seconds)
