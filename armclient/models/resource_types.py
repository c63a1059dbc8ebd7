"""
Resource types and their Azure Resource Manager type strings.

The mapping is fixed at import time. Lookups by ARM type string are
case-insensitive, matching how ARM itself treats provider namespaces and type
names.
"""
from enum import Enum
from types import MappingProxyType

from armclient.shared.core.exceptions import UnsupportedResourceTypeError


class ResourceType(str, Enum):
    """Resource types that detectors can address."""

    SUBSCRIPTION = "Subscription"
    RESOURCE_GROUP = "ResourceGroup"
    VIRTUAL_MACHINE = "VirtualMachine"
    VIRTUAL_MACHINE_SCALE_SET = "VirtualMachineScaleSet"
    APPLICATION_INSIGHTS = "ApplicationInsights"
    LOG_ANALYTICS = "LogAnalytics"
    AZURE_STORAGE = "AzureStorage"
    COSMOS_DB = "CosmosDb"
    KEY_VAULT = "KeyVault"
    SERVICE_BUS = "ServiceBus"
    SQL_SERVER = "SqlServer"
    EVENT_HUB = "EventHub"
    WEB_SITE = "WebSite"
    LOGIC_APPS = "LogicApps"
    KUBERNETES_SERVICE = "KubernetesService"


SCOPE_TYPES = frozenset({ResourceType.SUBSCRIPTION, ResourceType.RESOURCE_GROUP})

RESOURCE_TYPE_TO_ARM_TYPE = MappingProxyType({
    ResourceType.VIRTUAL_MACHINE: "Microsoft.Compute/virtualMachines",
    ResourceType.VIRTUAL_MACHINE_SCALE_SET: "Microsoft.Compute/virtualMachineScaleSets",
    ResourceType.APPLICATION_INSIGHTS: "Microsoft.Insights/components",
    ResourceType.LOG_ANALYTICS: "Microsoft.OperationalInsights/workspaces",
    ResourceType.AZURE_STORAGE: "Microsoft.Storage/storageAccounts",
    ResourceType.COSMOS_DB: "Microsoft.DocumentDB/databaseAccounts",
    ResourceType.KEY_VAULT: "Microsoft.KeyVault/vaults",
    ResourceType.SERVICE_BUS: "Microsoft.ServiceBus/namespaces",
    ResourceType.SQL_SERVER: "Microsoft.Sql/servers",
    ResourceType.EVENT_HUB: "Microsoft.EventHub/namespaces",
    ResourceType.WEB_SITE: "Microsoft.Web/sites",
    ResourceType.LOGIC_APPS: "Microsoft.Logic/workflows",
    ResourceType.KUBERNETES_SERVICE: "Microsoft.ContainerService/managedClusters",
})

_ARM_TYPE_TO_RESOURCE_TYPE = MappingProxyType(
    {arm_type.lower(): resource_type for resource_type, arm_type in RESOURCE_TYPE_TO_ARM_TYPE.items()}
)


def is_scope_type(resource_type: ResourceType) -> bool:
    """Subscriptions and resource groups are scopes, not provider resources."""
    return resource_type in SCOPE_TYPES


def supported_resource_types() -> list[ResourceType]:
    return list(RESOURCE_TYPE_TO_ARM_TYPE)


def to_arm_type(resource_type: ResourceType) -> str:
    """Return the "Provider/TypeName" string of a resource type."""
    try:
        return RESOURCE_TYPE_TO_ARM_TYPE[resource_type]
    except KeyError:
        raise UnsupportedResourceTypeError(resource_type) from None


def from_arm_type(arm_type: str) -> ResourceType:
    """Return the resource type of a "Provider/TypeName" string, ignoring case."""
    try:
        return _ARM_TYPE_TO_RESOURCE_TYPE[arm_type.lower()]
    except KeyError:
        raise UnsupportedResourceTypeError(arm_type) from None


def split_arm_type(arm_type: str) -> tuple[str, str]:
    """Split "Microsoft.Compute/virtualMachines" into provider and type name."""
    provider, separator, type_name = arm_type.partition("/")
    if not separator or not provider or not type_name:
        raise UnsupportedResourceTypeError(
            arm_type, f"ARM type string {arm_type!r} is not of the form Provider/Type"
        )
    return provider, type_name
