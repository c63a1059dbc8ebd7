"""
Structured logging setup.

Nothing here runs on import. An application embedding armclient calls
`setup_logging()` once at startup, next to `tracing.setup_tracing()`, before
building a `ResourceManagerClient`.
"""
import re
import sys
import structlog
import logging
from typing import Any, cast
from armclient.shared.core.config import get_settings

_BEARER_REGEX = re.compile(r"(?i)bearer\s+[a-z0-9._~+/=-]+")

_SENSITIVE_FIELDS = {
    "password",
    "token",
    "secret",
    "authorization",
    "auth",
    "api_key",
    "access_token",
    "refresh_token",
    "client_secret",
    "private_key",
    "credential",
}
_SENSITIVE_SUFFIXES = ("_token", "_secret", "_password", "_key")


def _is_sensitive_key(key: Any) -> bool:
    key_norm = str(key).lower().strip().replace("-", "_")
    if key_norm in _SENSITIVE_FIELDS:
        return True
    return key_norm.endswith(_SENSITIVE_SUFFIXES)


def secret_redactor(
    _logger: Any, _method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """
    Recursively redact credentials and bearer tokens from log events.
    ARM requests carry access tokens, which must never reach log sinks.
    """

    def redact_recursive(data: Any) -> Any:
        if isinstance(data, dict):
            return {
                k: ("[REDACTED]" if _is_sensitive_key(k) else redact_recursive(v))
                for k, v in data.items()
            }
        elif isinstance(data, (list, tuple)):
            return [redact_recursive(item) for item in data]
        elif isinstance(data, str):
            return _BEARER_REGEX.sub("Bearer [REDACTED]", data)
        return data

    redacted = redact_recursive(event_dict)
    if isinstance(redacted, dict):
        return cast(dict[str, Any], redacted)
    return {}


def add_otel_trace_id(
    _logger: Any, _method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Integrate OTel Trace IDs into structured logs."""
    from armclient.shared.core.tracing import get_current_trace_id

    trace_id = get_current_trace_id()
    if trace_id:
        event_dict["trace_id"] = trace_id
    return event_dict


def setup_logging() -> None:
    settings = get_settings()

    # 1. Configure the common processors
    base_processors = [
        structlog.contextvars.merge_contextvars,  # Support async context
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_otel_trace_id,
        secret_redactor,
    ]

    # 2. Choose the renderer based on environment
    if settings.DEBUG:
        renderer: Any = structlog.dev.ConsoleRenderer()
        processors = base_processors + [renderer]
        min_level = logging.DEBUG
    else:
        renderer = structlog.processors.JSONRenderer()
        processors = base_processors + [structlog.processors.dict_tracebacks, renderer]
        min_level = logging.getLevelName(settings.LOG_LEVEL.upper())
        if not isinstance(min_level, int):
            min_level = logging.INFO

    # 3. Configure the logger or apply the configuration
    structlog.configure(
        processors=cast(Any, processors),
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # 4. Route standard logging (azure-core, httpx) to the same stream.
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=min_level,
    )
    # azure-core logs every request/response header at INFO.
    logging.getLogger("azure").setLevel(max(min_level, logging.WARNING))
