"""
Resilient invocation of remote dependency calls.

Every outbound call goes through `ResilientInvoker.invoke`, which applies the
retry policy, opens a tracing span and reports one dependency record per call,
whatever its outcome.
"""
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, Optional, TypeVar

import structlog
from armclient.shared.core.config import Settings, get_settings
from armclient.shared.core.retry import build_retry_policy
from armclient.shared.core.telemetry import (
    DependencyCall,
    DependencyTelemetrySink,
    MetricsTelemetrySink,
)
from armclient.shared.core.tracing import get_tracer

logger = structlog.get_logger()
tracer = get_tracer(__name__)
T = TypeVar("T")


class ResilientInvoker:
    """
    Runs remote calls under retry/backoff with dependency telemetry.

    Errors are never swallowed or reclassified: the final error of the last
    attempt propagates unchanged, and `asyncio.CancelledError` propagates
    immediately without further attempts.
    """

    def __init__(
        self,
        telemetry: Optional[DependencyTelemetrySink] = None,
        settings: Optional[Settings] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ):
        self.telemetry = telemetry or MetricsTelemetrySink()
        self.settings = settings or get_settings()
        self._sleep = sleep

    async def invoke(
        self,
        dependency_name: str,
        command_name: str,
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        policy = build_retry_policy(
            dependency_name, command_name, settings=self.settings, sleep=self._sleep
        )
        start_time = datetime.now(timezone.utc)
        started = time.perf_counter()
        success = False

        with tracer.start_as_current_span(
            f"{dependency_name}.{command_name}",
            attributes={"dependency.name": dependency_name, "dependency.command": command_name},
        ):
            try:
                async for attempt in policy:
                    with attempt:
                        result = await operation()
                success = True
                return result
            finally:
                self._track(
                    DependencyCall(
                        name=dependency_name,
                        command=command_name,
                        start_time=start_time,
                        duration_seconds=time.perf_counter() - started,
                        success=success,
                    )
                )

    def _track(self, call: DependencyCall) -> None:
        try:
            self.telemetry.track_dependency(call)
        except Exception as exc:
            logger.warning(
                "dependency_telemetry_failed",
                dependency=call.name,
                command=call.command,
                error=str(exc),
            )
