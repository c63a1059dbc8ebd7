"""
Global pytest fixtures for the armclient test suite.

Provides:
- Test settings with fast, deterministic retries
- In-memory dependency telemetry
- Fake azure-core pagers and SDK client factories
"""
import os
from contextlib import asynccontextmanager
from types import SimpleNamespace
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

# Set test environment BEFORE any armclient imports
os.environ["TESTING"] = "true"

from azure.core.async_paging import AsyncItemPaged, AsyncList  # noqa: E402

from armclient.shared.adapters.resilient_invoker import ResilientInvoker  # noqa: E402
from armclient.shared.core.config import Settings, get_settings  # noqa: E402
from armclient.shared.core.telemetry import InMemoryTelemetrySink  # noqa: E402


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, TESTING=True)


@pytest.fixture
def telemetry() -> InMemoryTelemetrySink:
    return InMemoryTelemetrySink()


@pytest.fixture
def no_sleep() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def invoker(telemetry, settings, no_sleep) -> ResilientInvoker:
    return ResilientInvoker(telemetry=telemetry, settings=settings, sleep=no_sleep)


def make_pager(pages: list[list[Any]], requested: Optional[list] = None) -> AsyncItemPaged:
    """
    Build an azure-core pager over *pages*.

    Continuation tokens are ``page-<index>``; the last page carries none.
    Every token passed to the service is appended to *requested*.
    """

    async def get_next(continuation_token):
        if requested is not None:
            requested.append(continuation_token)
        if continuation_token is None:
            return 0
        return int(continuation_token.split("-")[1])

    async def extract_data(index):
        next_token = f"page-{index + 1}" if index + 1 < len(pages) else None
        return next_token, AsyncList(pages[index])

    return AsyncItemPaged(get_next, extract_data)


def arm_items(*resource_ids: str) -> list[SimpleNamespace]:
    return [SimpleNamespace(id=resource_id) for resource_id in resource_ids]


def client_factory(client: Any, opened: Optional[list] = None):
    """Async context manager factory handing out *client*, recording each scope."""

    @asynccontextmanager
    async def factory(*args):
        if opened is not None:
            opened.append(args)
        yield client

    return factory


@pytest.fixture
def resource_client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def credential() -> MagicMock:
    cred = MagicMock()
    cred.get_token = AsyncMock(return_value=SimpleNamespace(token="test-token", expires_on=0))
    return cred


@pytest.fixture
def pager():
    return make_pager


@pytest.fixture
def scoped_factory():
    return client_factory


@pytest.fixture
def items():
    return arm_items
