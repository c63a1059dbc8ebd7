"""
Tests for armclient/shared/cache/provider_metadata.py - provider metadata cache
and API version resolution
"""
import asyncio
from types import MappingProxyType
from unittest.mock import AsyncMock

import pytest

from armclient.models.arm import ProviderMetadata
from armclient.shared.cache.provider_metadata import (
    ProviderMetadataCache,
    is_preview_version,
    select_latest_version,
    version_sort_key,
)
from armclient.shared.core.exceptions import UnsupportedProviderTypeError


def _metadata(provider_name="Microsoft.Compute", **versions) -> ProviderMetadata:
    return ProviderMetadata(
        provider_name=provider_name,
        resource_type_versions=MappingProxyType(
            {type_name.lower(): tuple(values) for type_name, values in versions.items()}
        ),
    )


class TestVersionSelection:
    def test_latest_by_date(self):
        assert select_latest_version(("2019-01-01", "2021-06-01", "2020-03-01")) == "2021-06-01"

    def test_numeric_parts_compare_as_numbers(self):
        assert version_sort_key("2021-10-01") > version_sort_key("2021-9-01")
        assert select_latest_version(("9.0", "10.0")) == "10.0"

    def test_stable_wins_over_newer_preview(self):
        versions = ("2021-06-01", "2023-01-01-preview", "2020-03-01")
        assert select_latest_version(versions) == "2021-06-01"

    def test_preview_used_when_nothing_is_stable(self):
        versions = ("2022-01-01-preview", "2023-05-01-preview")
        assert select_latest_version(versions) == "2023-05-01-preview"

    def test_empty(self):
        assert select_latest_version(()) is None

    def test_is_preview_version(self):
        assert is_preview_version("2020-01-01-Preview")
        assert not is_preview_version("2020-01-01")


@pytest.mark.asyncio
async def test_resolve_version_returns_latest():
    cache = ProviderMetadataCache()
    fetch = AsyncMock(return_value=_metadata(virtualMachines=["2019-01-01", "2021-06-01", "2020-03-01"]))

    version = await cache.resolve_version("Microsoft.Compute", "virtualMachines", fetch)

    assert version == "2021-06-01"


@pytest.mark.asyncio
async def test_resolve_version_unknown_type():
    cache = ProviderMetadataCache()
    fetch = AsyncMock(return_value=_metadata(virtualMachines=["2021-06-01"]))

    with pytest.raises(UnsupportedProviderTypeError) as exc:
        await cache.resolve_version("Microsoft.Compute", "disks", fetch)
    assert exc.value.type_name == "disks"


@pytest.mark.asyncio
async def test_resolve_version_type_without_versions():
    cache = ProviderMetadataCache()
    fetch = AsyncMock(return_value=_metadata(virtualMachines=[]))

    with pytest.raises(UnsupportedProviderTypeError):
        await cache.resolve_version("Microsoft.Compute", "virtualMachines", fetch)


@pytest.mark.asyncio
async def test_sequential_lookups_fetch_once():
    cache = ProviderMetadataCache()
    fetch = AsyncMock(return_value=_metadata(virtualMachines=["2021-06-01"]))

    first = await cache.get_or_fetch("Microsoft.Compute", fetch)
    second = await cache.get_or_fetch("microsoft.compute", fetch)

    assert fetch.await_count == 1
    assert first is second
    assert len(cache) == 1
    assert cache.get("MICROSOFT.COMPUTE") is first


@pytest.mark.asyncio
async def test_fetch_failure_is_not_cached():
    cache = ProviderMetadataCache()
    failing = AsyncMock(side_effect=RuntimeError("arm down"))

    with pytest.raises(RuntimeError):
        await cache.get_or_fetch("Microsoft.Compute", failing)

    assert len(cache) == 0
    fetch = AsyncMock(return_value=_metadata(virtualMachines=["2021-06-01"]))
    await cache.get_or_fetch("Microsoft.Compute", fetch)
    assert fetch.await_count == 1


@pytest.mark.asyncio
async def test_racing_misses_share_first_inserted_value():
    cache = ProviderMetadataCache()
    release = asyncio.Event()
    fetched = []

    async def fetch():
        value = _metadata(virtualMachines=[f"2021-0{len(fetched) + 1}-01"])
        fetched.append(value)
        await release.wait()
        return value

    racers = [asyncio.create_task(cache.get_or_fetch("Microsoft.Compute", fetch)) for _ in range(3)]
    await asyncio.sleep(0)
    release.set()
    results = await asyncio.gather(*racers)

    assert len(fetched) == 3
    assert all(result is results[0] for result in results)
    assert cache.get("Microsoft.Compute") is results[0]

    later = AsyncMock()
    assert await cache.get_or_fetch("Microsoft.Compute", later) is results[0]
    later.assert_not_awaited()
