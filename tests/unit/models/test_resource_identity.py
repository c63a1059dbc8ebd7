"""
Tests for armclient/models/resource_identity.py - resource ID formatting and parsing
"""
import pytest

from armclient.models.resource_identity import (
    ResourceIdentity,
    StorageServiceType,
    format_resource_id,
    parse_resource_id,
)
from armclient.models.resource_types import ResourceType, supported_resource_types
from armclient.shared.core.exceptions import (
    InvalidResourceIdentityError,
    MalformedResourceIdError,
    UnsupportedResourceTypeError,
)

SUBSCRIPTION_ID = "7904b7bd-5e6b-4415-99a8-355657b7da19"
VM_RESOURCE_ID = (
    "/subscriptions/7904b7bd-5e6b-4415-99a8-355657b7da19/resourceGroups/MyResourceGroupName"
    "/providers/Microsoft.Compute/virtualMachines/MyVM"
)


def test_virtual_machine_resource_id():
    identity = ResourceIdentity.create(
        ResourceType.VIRTUAL_MACHINE, SUBSCRIPTION_ID, "MyResourceGroupName", "MyVM"
    )
    assert identity.to_resource_id() == VM_RESOURCE_ID
    assert format_resource_id(identity) == VM_RESOURCE_ID


def test_subscription_and_resource_group_ids():
    subscription = ResourceIdentity.create_subscription(SUBSCRIPTION_ID)
    group = ResourceIdentity.create_resource_group(SUBSCRIPTION_ID, "rg")

    assert subscription.to_resource_id() == f"/subscriptions/{SUBSCRIPTION_ID}"
    assert group.to_resource_id() == f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/rg"


@pytest.mark.parametrize("resource_type", supported_resource_types())
def test_round_trip_for_every_resource_type(resource_type):
    identity = ResourceIdentity.create(resource_type, SUBSCRIPTION_ID, "group-1", "name.with-dots_1")
    assert parse_resource_id(identity.to_resource_id()) == identity


def test_round_trip_for_scopes():
    subscription = ResourceIdentity.create_subscription(SUBSCRIPTION_ID)
    group = ResourceIdentity.create_resource_group(SUBSCRIPTION_ID, "my group (1)")

    assert ResourceIdentity.from_resource_id(subscription.to_resource_id()) == subscription
    assert ResourceIdentity.from_resource_id(group.to_resource_id()) == group


def test_resource_group_id_is_not_parsed_as_resource():
    identity = parse_resource_id("/subscriptions/S/resourceGroups/G")
    assert identity.resource_type == ResourceType.RESOURCE_GROUP
    assert identity.subscription_id == "S"
    assert identity.resource_group_name == "G"
    assert identity.resource_name == ""


def test_parse_is_case_insensitive_on_keywords_and_type():
    identity = parse_resource_id(
        "/SUBSCRIPTIONS/s1/RESOURCEGROUPS/rg/PROVIDERS/microsoft.compute/VIRTUALMACHINES/vm1"
    )
    assert identity == ResourceIdentity.create(ResourceType.VIRTUAL_MACHINE, "s1", "rg", "vm1")


def test_parse_ignores_trailing_path_after_subscription():
    identity = parse_resource_id("/subscriptions/s1/providers/Microsoft.Insights/eventtypes")
    assert identity == ResourceIdentity.create_subscription("s1")


@pytest.mark.parametrize(
    "resource_id",
    ["", "subscriptions/s1", "/subscription/s1", "/subscriptions/", "not a resource id"],
)
def test_parse_malformed_ids(resource_id):
    with pytest.raises(MalformedResourceIdError) as exc:
        parse_resource_id(resource_id)
    assert exc.value.code == "malformed_resource_id"
    assert isinstance(exc.value, ValueError)


def test_parse_blank_component_is_malformed():
    with pytest.raises(MalformedResourceIdError):
        parse_resource_id("/subscriptions/ /resourceGroups/rg")


def test_parse_unknown_provider_type():
    with pytest.raises(UnsupportedResourceTypeError):
        parse_resource_id("/subscriptions/s1/resourceGroups/rg/providers/Contoso.Widgets/gizmos/g1")


def test_storage_service_suffix():
    storage = ResourceIdentity.create(ResourceType.AZURE_STORAGE, "s1", "rg", "acct")
    assert storage.to_resource_id(StorageServiceType.BLOB) == (
        "/subscriptions/s1/resourceGroups/rg/providers/Microsoft.Storage/storageAccounts/acct"
        "/blobServices/default"
    )
    assert storage.to_resource_id(StorageServiceType.QUEUE).endswith("/queueServices/default")


def test_storage_service_suffix_requires_storage_account():
    vm = ResourceIdentity.create(ResourceType.VIRTUAL_MACHINE, "s1", "rg", "vm")
    with pytest.raises(InvalidResourceIdentityError):
        vm.to_resource_id(StorageServiceType.TABLE)


class TestIdentityInvariants:
    def test_blank_subscription_rejected(self):
        with pytest.raises(InvalidResourceIdentityError):
            ResourceIdentity.create_subscription("  ")

    def test_subscription_with_group_rejected(self):
        with pytest.raises(InvalidResourceIdentityError):
            ResourceIdentity(ResourceType.SUBSCRIPTION, "s1", "rg")

    def test_resource_group_with_name_rejected(self):
        with pytest.raises(InvalidResourceIdentityError):
            ResourceIdentity(ResourceType.RESOURCE_GROUP, "s1", "rg", "name")

    def test_resource_requires_group_and_name(self):
        with pytest.raises(InvalidResourceIdentityError):
            ResourceIdentity.create(ResourceType.KEY_VAULT, "s1", "", "kv")
        with pytest.raises(InvalidResourceIdentityError):
            ResourceIdentity.create(ResourceType.KEY_VAULT, "s1", "rg", "")

    def test_path_separator_rejected(self):
        with pytest.raises(InvalidResourceIdentityError):
            ResourceIdentity.create(ResourceType.KEY_VAULT, "s1", "rg", "a/b")

    def test_equality_is_case_sensitive(self):
        lower = ResourceIdentity.create(ResourceType.KEY_VAULT, "s1", "rg", "kv")
        upper = ResourceIdentity.create(ResourceType.KEY_VAULT, "s1", "RG", "kv")
        assert lower != upper
        assert lower == ResourceIdentity.create(ResourceType.KEY_VAULT, "s1", "rg", "kv")
        assert hash(lower) == hash(ResourceIdentity.create(ResourceType.KEY_VAULT, "s1", "rg", "kv"))


def test_dict_round_trip():
    identity = ResourceIdentity.create(ResourceType.SQL_SERVER, "s1", "rg", "sql")
    data = identity.to_dict()
    assert data == {
        "resourceType": "SqlServer",
        "subscriptionId": "s1",
        "resourceGroupName": "rg",
        "resourceName": "sql",
    }
    assert ResourceIdentity.from_dict(data) == identity


def test_from_dict_unknown_type():
    with pytest.raises(InvalidResourceIdentityError):
        ResourceIdentity.from_dict({"resourceType": "Printer", "subscriptionId": "s1"})
