"""
Dependency telemetry.

A dependency call is any outbound call to a remote service. Each one is
reported exactly once, after it finished, to a `DependencyTelemetrySink`.
Sinks are fire-and-forget: a failing sink must never fail the call it reports.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable

import structlog

from armclient.shared.core.ops_metrics import DEPENDENCY_CALLS, DEPENDENCY_DURATION

logger = structlog.get_logger()


@dataclass(frozen=True)
class DependencyCall:
    """One finished outbound call."""

    name: str
    command: str
    start_time: datetime
    duration_seconds: float
    success: bool


@runtime_checkable
class DependencyTelemetrySink(Protocol):
    def track_dependency(self, call: DependencyCall) -> None: ...


class MetricsTelemetrySink:
    """Default sink: structured log line plus Prometheus series."""

    def track_dependency(self, call: DependencyCall) -> None:
        outcome = "success" if call.success else "failure"
        DEPENDENCY_CALLS.labels(
            dependency=call.name, command=call.command, outcome=outcome
        ).inc()
        DEPENDENCY_DURATION.labels(
            dependency=call.name, command=call.command
        ).observe(call.duration_seconds)
        logger.info(
            "dependency_call_tracked",
            dependency=call.name,
            command=call.command,
            start_time=call.start_time.isoformat(),
            duration_ms=round(call.duration_seconds * 1000, 2),
            success=call.success,
        )


class InMemoryTelemetrySink:
    """Collects calls in a list. Used by tests and local diagnostics."""

    def __init__(self) -> None:
        self.calls: list[DependencyCall] = []

    def track_dependency(self, call: DependencyCall) -> None:
        self.calls.append(call)
