"""
Resource identity and its canonical ARM resource ID form.

A resource ID addresses one of three scopes:

    /subscriptions/{subscriptionId}
    /subscriptions/{subscriptionId}/resourceGroups/{resourceGroupName}
    /subscriptions/{subscriptionId}/resourceGroups/{resourceGroupName}/providers/{provider}/{type}/{resourceName}

Formatting and parsing are mutual inverses for every supported resource type.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from armclient.models.resource_types import (
    ResourceType,
    from_arm_type,
    to_arm_type,
)
from armclient.shared.core.exceptions import (
    InvalidResourceIdentityError,
    MalformedResourceIdError,
)

_SUBSCRIPTION_PATTERN = r"/subscriptions/(?P<subscription_id>[^/]+)"
_RESOURCE_GROUP_PATTERN = _SUBSCRIPTION_PATTERN + r"/resourceGroups/(?P<resource_group_name>[^/]+)"
_RESOURCE_PATTERN = (
    _RESOURCE_GROUP_PATTERN + r"/providers/(?P<provider_and_type>.+)/(?P<resource_name>[^/]+)"
)

SUBSCRIPTION_REGEX = re.compile(_SUBSCRIPTION_PATTERN, re.IGNORECASE)
RESOURCE_GROUP_REGEX = re.compile(_RESOURCE_GROUP_PATTERN, re.IGNORECASE)
RESOURCE_REGEX = re.compile(_RESOURCE_PATTERN, re.IGNORECASE)


class StorageServiceType(str, Enum):
    """Sub-services of a storage account that can be addressed directly."""

    NONE = "None"
    BLOB = "Blob"
    TABLE = "Table"
    QUEUE = "Queue"
    FILE = "File"


STORAGE_SERVICE_SUFFIXES = {
    StorageServiceType.BLOB: "blobServices/default",
    StorageServiceType.TABLE: "tableServices/default",
    StorageServiceType.QUEUE: "queueServices/default",
    StorageServiceType.FILE: "fileServices/default",
}


def _is_blank(value: str) -> bool:
    return not value or not value.strip()


@dataclass(frozen=True)
class ResourceIdentity:
    """
    Structured address of a subscription, resource group or resource.

    Instances are validated on construction and immutable afterwards.
    """

    resource_type: ResourceType
    subscription_id: str
    resource_group_name: str = ""
    resource_name: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.resource_type, ResourceType):
            raise InvalidResourceIdentityError(
                f"Unknown resource type {self.resource_type!r}"
            )

        if _is_blank(self.subscription_id):
            raise InvalidResourceIdentityError("The subscription ID cannot be empty")

        if self.resource_type == ResourceType.SUBSCRIPTION:
            if self.resource_group_name:
                raise InvalidResourceIdentityError(
                    "The subscription's resource group name must be empty"
                )
            if self.resource_name:
                raise InvalidResourceIdentityError(
                    "The subscription's resource name must be empty"
                )
        elif self.resource_type == ResourceType.RESOURCE_GROUP:
            if _is_blank(self.resource_group_name):
                raise InvalidResourceIdentityError("The resource group name cannot be empty")
            if self.resource_name:
                raise InvalidResourceIdentityError(
                    "The resource group's resource name must be empty"
                )
        else:
            if _is_blank(self.resource_group_name):
                raise InvalidResourceIdentityError(
                    "The resource's resource group name cannot be empty"
                )
            if _is_blank(self.resource_name):
                raise InvalidResourceIdentityError("The resource's name cannot be empty")

        for field_name in ("subscription_id", "resource_group_name", "resource_name"):
            if "/" in getattr(self, field_name):
                raise InvalidResourceIdentityError(
                    f"{field_name} cannot contain '/'",
                    details={"field": field_name},
                )

    @classmethod
    def create_subscription(cls, subscription_id: str) -> "ResourceIdentity":
        return cls(ResourceType.SUBSCRIPTION, subscription_id)

    @classmethod
    def create_resource_group(
        cls, subscription_id: str, resource_group_name: str
    ) -> "ResourceIdentity":
        return cls(ResourceType.RESOURCE_GROUP, subscription_id, resource_group_name)

    @classmethod
    def create(
        cls,
        resource_type: ResourceType,
        subscription_id: str,
        resource_group_name: str,
        resource_name: str,
    ) -> "ResourceIdentity":
        return cls(resource_type, subscription_id, resource_group_name, resource_name)

    @classmethod
    def from_resource_id(cls, resource_id: str) -> "ResourceIdentity":
        return parse_resource_id(resource_id)

    def to_resource_id(
        self, storage_service: StorageServiceType = StorageServiceType.NONE
    ) -> str:
        return format_resource_id(self, storage_service)

    def to_dict(self) -> dict[str, Any]:
        return {
            "resourceType": self.resource_type.value,
            "subscriptionId": self.subscription_id,
            "resourceGroupName": self.resource_group_name,
            "resourceName": self.resource_name,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ResourceIdentity":
        try:
            resource_type = ResourceType(data["resourceType"])
        except (KeyError, ValueError) as exc:
            raise InvalidResourceIdentityError(
                f"Invalid resource type in {data!r}"
            ) from exc
        return cls(
            resource_type,
            data.get("subscriptionId") or "",
            data.get("resourceGroupName") or "",
            data.get("resourceName") or "",
        )


def _format_subscription(identity: ResourceIdentity) -> str:
    return f"/subscriptions/{identity.subscription_id}"


def _format_resource_group(identity: ResourceIdentity) -> str:
    return f"{_format_subscription(identity)}/resourceGroups/{identity.resource_group_name}"


def _format_resource(identity: ResourceIdentity) -> str:
    provider_and_type = to_arm_type(identity.resource_type)
    return (
        f"{_format_resource_group(identity)}/providers/"
        f"{provider_and_type}/{identity.resource_name}"
    )


def format_resource_id(
    identity: ResourceIdentity,
    storage_service: StorageServiceType = StorageServiceType.NONE,
) -> str:
    """
    Build the canonical resource ID of *identity*.

    Raises:
        UnsupportedResourceTypeError: the resource type has no ARM type string.
        InvalidResourceIdentityError: a storage service was requested for a
            resource that is not a storage account.
    """
    if identity.resource_type == ResourceType.SUBSCRIPTION:
        resource_id = _format_subscription(identity)
    elif identity.resource_type == ResourceType.RESOURCE_GROUP:
        resource_id = _format_resource_group(identity)
    else:
        resource_id = _format_resource(identity)

    if storage_service != StorageServiceType.NONE:
        if identity.resource_type != ResourceType.AZURE_STORAGE:
            raise InvalidResourceIdentityError(
                f"Unexpected resource type {identity.resource_type.value}, "
                f"expected type {ResourceType.AZURE_STORAGE.value}"
            )
        resource_id += "/" + STORAGE_SERVICE_SUFFIXES[storage_service]

    return resource_id


def parse_resource_id(resource_id: str) -> ResourceIdentity:
    """
    Parse a canonical resource ID.

    The resource template is tried first because a resource group ID is a
    prefix of every resource ID in that group.

    Raises:
        MalformedResourceIdError: no scope template matches.
        UnsupportedResourceTypeError: the provider/type string is unmapped.
    """
    try:
        return _parse_resource_id(resource_id)
    except InvalidResourceIdentityError as exc:
        # A template matched but a component is blank
        raise MalformedResourceIdError(resource_id) from exc


def _parse_resource_id(resource_id: str) -> ResourceIdentity:
    match = RESOURCE_REGEX.match(resource_id)
    if match:
        resource_type = from_arm_type(match.group("provider_and_type"))
        return ResourceIdentity(
            resource_type,
            match.group("subscription_id"),
            match.group("resource_group_name"),
            match.group("resource_name"),
        )

    match = RESOURCE_GROUP_REGEX.match(resource_id)
    if match:
        return ResourceIdentity.create_resource_group(
            match.group("subscription_id"), match.group("resource_group_name")
        )

    match = SUBSCRIPTION_REGEX.match(resource_id)
    if match:
        return ResourceIdentity.create_subscription(match.group("subscription_id"))

    raise MalformedResourceIdError(resource_id)

