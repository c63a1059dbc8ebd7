"""
Provider metadata cache.

Maps a provider namespace (case-insensitive) to the resource types it serves
and their API versions. Entries are created on first use and kept for the
lifetime of the cache: there is no TTL and no eviction. A provider that
publishes a new API version after the entry was cached is not seen until the
process restarts.
"""
import re
from collections.abc import Awaitable, Callable
from threading import Lock
from typing import Optional

import structlog

from armclient.models.arm import ProviderMetadata
from armclient.shared.core.exceptions import UnsupportedProviderTypeError
from armclient.shared.core.ops_metrics import PROVIDER_CACHE_LOOKUPS

logger = structlog.get_logger()

ProviderFetch = Callable[[], Awaitable[ProviderMetadata]]

_VERSION_PART_REGEX = re.compile(r"\d+|[a-z]+", re.IGNORECASE)


def is_preview_version(version: str) -> bool:
    return "preview" in version.lower()


def version_sort_key(version: str) -> tuple[tuple[int, int | str], ...]:
    """
    Ordering key for API version strings such as ``2021-06-01`` or ``7.0``.

    Numeric parts compare as integers, so ``2021-10-01`` sorts after
    ``2021-9-01`` and ``10.0`` after ``9.0``. Numbers sort before text parts.
    """
    key: list[tuple[int, int | str]] = []
    for part in _VERSION_PART_REGEX.findall(version):
        if part.isdigit():
            key.append((0, int(part)))
        else:
            key.append((1, part.lower()))
    return tuple(key)


def select_latest_version(versions: tuple[str, ...]) -> Optional[str]:
    """Latest stable version, or the latest preview when nothing is stable."""
    if not versions:
        return None
    stable = [v for v in versions if not is_preview_version(v)]
    return max(stable or versions, key=version_sort_key)


class ProviderMetadataCache:
    """
    Shared, long-lived provider metadata cache.

    Safe for concurrent coroutines and threads. Concurrent misses for the same
    provider may each fetch; the first insert wins and every caller, racing
    fetchers included, gets the cached value from then on.
    """

    def __init__(self) -> None:
        self._entries: dict[str, ProviderMetadata] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, provider_name: str) -> Optional[ProviderMetadata]:
        return self._entries.get(provider_name.lower())

    async def get_or_fetch(
        self, provider_name: str, fetch: ProviderFetch
    ) -> ProviderMetadata:
        key = provider_name.lower()
        cached = self._entries.get(key)
        if cached is not None:
            PROVIDER_CACHE_LOOKUPS.labels(result="hit").inc()
            return cached

        PROVIDER_CACHE_LOOKUPS.labels(result="miss").inc()
        fetched = await fetch()

        with self._lock:
            stored = self._entries.setdefault(key, fetched)

        if stored is fetched:
            logger.info(
                "provider_metadata_cached",
                provider=provider_name,
                resource_types=len(fetched.resource_type_versions),
            )
        return stored

    async def resolve_version(
        self, provider_name: str, type_name: str, fetch: ProviderFetch
    ) -> str:
        """
        Return the latest API version *provider_name* supports for *type_name*.

        Raises:
            UnsupportedProviderTypeError: the provider does not list the type,
                or lists it without any API version.
        """
        metadata = await self.get_or_fetch(provider_name, fetch)
        versions = metadata.versions_for(type_name)
        latest = select_latest_version(versions or ())
        if latest is None:
            raise UnsupportedProviderTypeError(provider_name, type_name)
        return latest
