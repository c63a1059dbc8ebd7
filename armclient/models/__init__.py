from armclient.models.arm import (
    AzureSubscription,
    ProviderMetadata,
    ResourceProperties,
    ResourceSku,
)
from armclient.models.resource_identity import (
    ResourceIdentity,
    StorageServiceType,
    format_resource_id,
    parse_resource_id,
)
from armclient.models.resource_types import ResourceType

__all__ = [
    "AzureSubscription",
    "ProviderMetadata",
    "ResourceIdentity",
    "ResourceProperties",
    "ResourceSku",
    "ResourceType",
    "StorageServiceType",
    "format_resource_id",
    "parse_resource_id",
]
