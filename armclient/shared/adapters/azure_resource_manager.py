"""
Azure Resource Manager client.

Read-only access to ARM for resource identities: enumeration of
subscriptions, resource groups and resources, resource property retrieval
and raw ARM GET queries. Every remote call runs through `ResilientInvoker`,
one call per page for paged listings.
"""
from collections.abc import Awaitable, Callable, Iterable
from contextlib import AbstractAsyncContextManager
from typing import Any, Optional, TypeVar

import httpx
import structlog
from azure.core.credentials_async import AsyncTokenCredential
from azure.core.exceptions import AzureError, HttpResponseError
from azure.mgmt.resource.resources.aio import ResourceManagementClient
from azure.mgmt.resource.subscriptions.aio import SubscriptionClient

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
from armclient.models.resource_types import ResourceType, split_arm_type, to_arm_type
from armclient.shared.adapters.arm_pagination import Page, collect_all, read_sdk_page
from armclient.shared.adapters.resilient_invoker import ResilientInvoker
from armclient.shared.cache.provider_metadata import ProviderMetadataCache
from armclient.shared.core.config import Settings, get_settings
from armclient.shared.core.exceptions import (
    DependencyFailureError,
    InvalidResourceIdentityError,
    ResourcePropertyMissingError,
)

logger = structlog.get_logger()
T = TypeVar("T")

ResourceClientFactory = Callable[[str], AbstractAsyncContextManager[Any]]
SubscriptionClientFactory = Callable[[], AbstractAsyncContextManager[Any]]

APPLICATION_INSIGHTS_APP_ID_PROPERTY = "AppId"
LOG_ANALYTICS_WORKSPACE_ID_PROPERTY = "customerId"


def build_resource_type_filter(resource_types: Iterable[ResourceType]) -> str:
    """
    OData filter selecting resources of any of *resource_types*.

    Raises:
        ValueError: no resource type was given.
        UnsupportedResourceTypeError: a type has no ARM type string.
    """
    clauses = []
    for resource_type in resource_types:
        arm_type = to_arm_type(resource_type).replace("'", "''")
        clauses.append(f"resourceType eq '{arm_type}'")
    if not clauses:
        raise ValueError("At least one resource type is required")
    return " or ".join(clauses)


class ResourceManagerClient:
    """
    Facade over Azure Resource Manager for resource identities.

    The provider metadata cache is shared by every call made through this
    client; pass the same cache to several clients to share it further.
    Use as an async context manager, or call `close()` when done.
    """

    def __init__(
        self,
        credential: AsyncTokenCredential,
        settings: Optional[Settings] = None,
        cache: Optional[ProviderMetadataCache] = None,
        invoker: Optional[ResilientInvoker] = None,
        resource_client_factory: Optional[ResourceClientFactory] = None,
        subscription_client_factory: Optional[SubscriptionClientFactory] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.credential = credential
        self.settings = settings or get_settings()
        self.cache = cache if cache is not None else ProviderMetadataCache()
        self.invoker = invoker or ResilientInvoker(settings=self.settings)
        self._resource_client_factory = (
            resource_client_factory or self._create_resource_client
        )
        self._subscription_client_factory = (
            subscription_client_factory or self._create_subscription_client
        )
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(
            timeout=self.settings.ARM_HTTP_TIMEOUT_SECONDS
        )

    async def __aenter__(self) -> "ResourceManagerClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_http_client:
            await self._http_client.aclose()

    def _create_resource_client(self, subscription_id: str) -> ResourceManagementClient:
        return ResourceManagementClient(
            credential=self.credential,
            subscription_id=subscription_id,
            base_url=self.settings.ARM_BASE_URL,
            credential_scopes=[self.settings.ARM_CREDENTIAL_SCOPE],
        )

    def _create_subscription_client(self) -> SubscriptionClient:
        return SubscriptionClient(
            credential=self.credential,
            base_url=self.settings.ARM_BASE_URL,
            credential_scopes=[self.settings.ARM_CREDENTIAL_SCOPE],
        )

    # Identity helpers

    @staticmethod
    def get_resource_id(
        identity: ResourceIdentity,
        storage_service: StorageServiceType = StorageServiceType.NONE,
    ) -> str:
        return format_resource_id(identity, storage_service)

    @staticmethod
    def get_resource_identity(resource_id: str) -> ResourceIdentity:
        return parse_resource_id(resource_id)

    # Enumeration

    async def list_resource_groups(self, subscription_id: str) -> list[ResourceIdentity]:
        """Every resource group in the subscription."""
        async with self._resource_client_factory(subscription_id) as client:
            groups = await self._collect_sdk_pages(
                "list_resource_groups",
                "resource groups",
                lambda: client.resource_groups.list(),
            )
        return [parse_resource_id(group.id) for group in groups]

    async def list_resources(
        self, subscription_id: str, resource_types: Iterable[ResourceType]
    ) -> list[ResourceIdentity]:
        """Every resource of the given types in the subscription."""
        query_filter = build_resource_type_filter(resource_types)
        async with self._resource_client_factory(subscription_id) as client:
            resources = await self._collect_sdk_pages(
                "list_resources",
                "resources",
                lambda: client.resources.list(filter=query_filter),
            )
        return [parse_resource_id(resource.id) for resource in resources]

    async def list_resources_in_group(
        self,
        subscription_id: str,
        resource_group_name: str,
        resource_types: Iterable[ResourceType],
    ) -> list[ResourceIdentity]:
        """Every resource of the given types in one resource group."""
        query_filter = build_resource_type_filter(resource_types)
        async with self._resource_client_factory(subscription_id) as client:
            resources = await self._collect_sdk_pages(
                "list_resources_in_group",
                "resources",
                lambda: client.resources.list_by_resource_group(
                    resource_group_name, filter=query_filter
                ),
            )
        return [parse_resource_id(resource.id) for resource in resources]

    async def list_subscriptions(self) -> list[AzureSubscription]:
        """Every subscription the credential can access."""

        async def list_all() -> list[Any]:
            async with self._subscription_client_factory() as client:
                return [sub async for sub in client.subscriptions.list()]

        subscriptions = await self._invoke("list_subscriptions", list_all)
        return [
            AzureSubscription(
                subscription_id=sub.subscription_id,
                display_name=sub.display_name,
            )
            for sub in subscriptions
        ]

    async def list_subscription_ids(self) -> list[str]:
        return [sub.subscription_id for sub in await self.list_subscriptions()]

    async def _collect_sdk_pages(
        self,
        command_name: str,
        label: str,
        list_call: Callable[[], Any],
    ) -> list[Any]:
        async def first_page() -> Page[Any]:
            return await self._invoke(command_name, lambda: read_sdk_page(list_call()))

        async def next_page(continuation_token: str) -> Page[Any]:
            return await self._invoke(
                command_name, lambda: read_sdk_page(list_call(), continuation_token)
            )

        return await collect_all(
            first_page,
            next_page,
            max_items=self.settings.ARM_MAX_RESOURCES_TO_ENUMERATE,
            label=label,
        )

    # Resource properties

    async def get_resource_properties(
        self, identity: ResourceIdentity, api_version: Optional[str] = None
    ) -> ResourceProperties:
        """
        Read the properties of a resource.

        The API version is, in order of precedence: *api_version*, the default
        configured for the provider in ARM_PROVIDER_DEFAULT_API_VERSIONS, or
        the latest version the provider publishes for the resource type.

        Raises:
            UnsupportedResourceTypeError: the identity is not a resource scope
                with an ARM type mapping.
            UnsupportedProviderTypeError: no API version could be resolved.
            DependencyFailureError: ARM failed after retries.
        """
        provider_name, type_name = split_arm_type(to_arm_type(identity.resource_type))

        async with self._resource_client_factory(identity.subscription_id) as client:
            if not api_version:
                api_version = self._default_api_version(provider_name)
            if not api_version:
                api_version = await self.cache.resolve_version(
                    provider_name,
                    type_name,
                    lambda: self._fetch_provider(client, provider_name),
                )

            resource = await self._invoke(
                "get_resource",
                lambda: client.resources.get(
                    identity.resource_group_name,
                    provider_name,
                    "",
                    type_name,
                    identity.resource_name,
                    api_version,
                ),
            )

        logger.debug(
            "arm_resource_properties_fetched",
            resource_type=identity.resource_type.value,
            resource_name=identity.resource_name,
            api_version=api_version,
        )
        return ResourceProperties(
            sku=ResourceSku.from_sdk(resource.sku),
            properties=resource.properties,
            api_version=api_version,
        )

    def _default_api_version(self, provider_name: str) -> Optional[str]:
        for provider, version in self.settings.ARM_PROVIDER_DEFAULT_API_VERSIONS.items():
            if provider.lower() == provider_name.lower():
                return version
        return None

    async def _fetch_provider(self, client: Any, provider_name: str) -> ProviderMetadata:
        provider = await self._invoke(
            "get_provider", lambda: client.providers.get(provider_name)
        )
        return ProviderMetadata.from_sdk(provider)

    async def get_application_insights_app_id(self, identity: ResourceIdentity) -> str:
        return await self._get_required_property(
            identity, ResourceType.APPLICATION_INSIGHTS, APPLICATION_INSIGHTS_APP_ID_PROPERTY
        )

    async def get_log_analytics_workspace_id(self, identity: ResourceIdentity) -> str:
        return await self._get_required_property(
            identity, ResourceType.LOG_ANALYTICS, LOG_ANALYTICS_WORKSPACE_ID_PROPERTY
        )

    async def _get_required_property(
        self, identity: ResourceIdentity, expected_type: ResourceType, property_name: str
    ) -> str:
        if identity.resource_type != expected_type:
            raise InvalidResourceIdentityError(
                f"The resource type must be {expected_type.value}",
                details={"resource_type": identity.resource_type.value},
            )

        resource = await self.get_resource_properties(identity)
        value = (resource.properties or {}).get(property_name)
        if value is None:
            raise ResourcePropertyMissingError(property_name, identity.resource_name)
        return str(value)

    # Raw ARM queries

    async def execute_arm_query_for_resource(
        self, identity: ResourceIdentity, suffix: str, query_string: str
    ) -> list[dict[str, Any]]:
        """
        GET a sub-path of a resource, for example the databases of a SQL server:
        ``execute_arm_query_for_resource(sql_server, "/databases", "api-version=2021-11-01")``.
        """
        relative_path = f"{format_resource_id(identity)}{suffix}?{query_string}"
        return await self.execute_arm_query(relative_path)

    async def execute_arm_query(self, relative_path: str) -> list[dict[str, Any]]:
        """
        GET an ARM path relative to ARM_BASE_URL and return every item.

        Follows ``nextLink`` until a page is empty or carries no link. A body
        without a ``value`` array is returned as a single item.
        """
        url = f"{self.settings.ARM_BASE_URL}/{relative_path.lstrip('/')}"

        async def first_page() -> Page[dict[str, Any]]:
            return await self._invoke("execute_arm_query", lambda: self._get_json_page(url))

        async def next_page(next_link: str) -> Page[dict[str, Any]]:
            return await self._invoke(
                "execute_arm_query", lambda: self._get_json_page(next_link)
            )

        return await collect_all(
            first_page,
            next_page,
            max_items=self.settings.ARM_QUERY_MAX_ITEMS,
            label="ARM query results",
        )

    async def _get_json_page(self, url: str) -> Page[dict[str, Any]]:
        logger.debug("arm_query_request", url=url)
        token = await self.credential.get_token(self.settings.ARM_CREDENTIAL_SCOPE)
        response = await self._http_client.get(
            url, headers={"Authorization": f"Bearer {token.token}"}
        )
        response.raise_for_status()
        try:
            body = response.json()
        except ValueError as exc:
            raise self._dependency_failure(
                self.settings.ARM_DEPENDENCY_NAME,
                "execute_arm_query",
                exc,
                response.status_code,
                "Response body is not valid JSON",
            ) from exc
        if not isinstance(body, dict):
            raise self._dependency_failure(
                self.settings.ARM_DEPENDENCY_NAME,
                "execute_arm_query",
                TypeError(f"expected a JSON object, got {type(body).__name__}"),
                response.status_code,
                "Response body is not a JSON object",
            )

        if "value" not in body:
            return Page(items=[body])
        return Page(items=list(body["value"] or []), continuation_token=body.get("nextLink"))

    # Error translation

    async def _invoke(self, command_name: str, operation: Callable[[], Awaitable[T]]) -> T:
        dependency_name = self.settings.ARM_DEPENDENCY_NAME
        try:
            return await self.invoker.invoke(dependency_name, command_name, operation)
        except HttpResponseError as exc:
            raise self._dependency_failure(
                dependency_name, command_name, exc, exc.status_code, exc.reason
            ) from exc
        except AzureError as exc:
            raise self._dependency_failure(dependency_name, command_name, exc) from exc
        except httpx.HTTPStatusError as exc:
            raise self._dependency_failure(
                dependency_name,
                command_name,
                exc,
                exc.response.status_code,
                exc.response.reason_phrase,
            ) from exc
        except httpx.HTTPError as exc:
            raise self._dependency_failure(dependency_name, command_name, exc) from exc

    @staticmethod
    def _dependency_failure(
        dependency_name: str,
        command_name: str,
        exc: Exception,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> DependencyFailureError:
        logger.error(
            "arm_call_failed",
            dependency=dependency_name,
            command=command_name,
            status_code=status_code,
            reason=reason,
            error=str(exc),
        )
        return DependencyFailureError(
            f"{dependency_name} call {command_name} failed: {exc}",
            dependency=dependency_name,
            command=command_name,
            status_code=status_code,
            reason=reason,
        )
