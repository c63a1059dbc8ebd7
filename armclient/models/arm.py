"""
Value types returned by the Azure Resource Manager client.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class ResourceSku:
    name: Optional[str] = None
    tier: Optional[str] = None
    size: Optional[str] = None
    family: Optional[str] = None
    model: Optional[str] = None
    capacity: Optional[int] = None

    @classmethod
    def from_sdk(cls, sku: Any) -> Optional["ResourceSku"]:
        """Convert an ``azure.mgmt.resource`` ``Sku`` model, if present."""
        if sku is None:
            return None
        return cls(
            name=getattr(sku, "name", None),
            tier=getattr(sku, "tier", None),
            size=getattr(sku, "size", None),
            family=getattr(sku, "family", None),
            model=getattr(sku, "model", None),
            capacity=getattr(sku, "capacity", None),
        )


@dataclass(frozen=True)
class ResourceProperties:
    """
    Properties of one resource, together with the API version used to read them.

    The payload schema depends on the resource type and API version, so it is
    returned as the raw JSON object.
    """

    sku: Optional[ResourceSku]
    properties: Optional[dict[str, Any]]
    api_version: str


@dataclass(frozen=True)
class AzureSubscription:
    subscription_id: str
    display_name: Optional[str] = None


@dataclass(frozen=True)
class ProviderMetadata:
    """
    Resource types of one provider namespace and the API versions each supports.

    Keys of ``resource_type_versions`` are lower-cased type names.
    """

    provider_name: str
    resource_type_versions: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def versions_for(self, type_name: str) -> Optional[tuple[str, ...]]:
        return self.resource_type_versions.get(type_name.lower())

    @classmethod
    def from_sdk(cls, provider: Any) -> "ProviderMetadata":
        """Convert an ``azure.mgmt.resource`` ``Provider`` model."""
        versions: dict[str, tuple[str, ...]] = {}
        for resource_type in provider.resource_types or []:
            if not resource_type.resource_type:
                continue
            versions[resource_type.resource_type.lower()] = tuple(
                resource_type.api_versions or ()
            )
        return cls(
            provider_name=provider.namespace,
            resource_type_versions=MappingProxyType(versions),
        )
