from armclient.shared.cache.provider_metadata import (
    ProviderMetadataCache,
    select_latest_version,
    version_sort_key,
)

__all__ = ["ProviderMetadataCache", "select_latest_version", "version_sort_key"]
