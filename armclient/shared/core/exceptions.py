from typing import Optional, Dict, Any


class ArmClientError(Exception):
    """Base exception for all resource manager client errors."""
    def __init__(
        self,
        message: str,
        code: str = "internal_error",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class InvalidResourceIdentityError(ArmClientError, ValueError):
    """Raised when resource identity fields violate the scope invariants."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="invalid_resource_identity", details=details)


class MalformedResourceIdError(ArmClientError, ValueError):
    """Raised when a resource ID string matches none of the scope templates."""
    def __init__(self, resource_id: str):
        super().__init__(
            f"Invalid resource ID provided: {resource_id}",
            code="malformed_resource_id",
            details={"resource_id": resource_id},
        )
        self.resource_id = resource_id


class UnsupportedResourceTypeError(ArmClientError, ValueError):
    """Raised when a resource type has no ARM type string mapping, or vice versa."""
    def __init__(self, resource_type: Any, message: Optional[str] = None):
        super().__init__(
            message or f"Resource type {resource_type} is not supported",
            code="unsupported_resource_type",
            details={"resource_type": str(resource_type)},
        )
        self.resource_type = resource_type


class UnsupportedProviderTypeError(ArmClientError):
    """Raised when provider metadata lacks the requested type or its versions."""
    def __init__(self, provider_name: str, type_name: str):
        super().__init__(
            f"Provider {provider_name} does not support type {type_name}",
            code="unsupported_provider_type",
            details={"provider": provider_name, "type": type_name},
        )
        self.provider_name = provider_name
        self.type_name = type_name


class TooManyResultsError(ArmClientError):
    """Raised when an enumeration crosses its hard item bound."""
    def __init__(self, label: str, max_items: int):
        super().__init__(
            f"Could not enumerate {label} - over {max_items} items found",
            code="too_many_results",
            details={"label": label, "max_items": max_items},
        )
        self.label = label
        self.max_items = max_items


class DependencyFailureError(ArmClientError):
    """Raised when a remote dependency call failed after retries were exhausted."""
    def __init__(
        self,
        message: str,
        dependency: str,
        command: str,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
    ):
        super().__init__(
            message,
            code="dependency_failure",
            details={
                "dependency": dependency,
                "command": command,
                "status_code": status_code,
                "reason": reason,
            },
        )
        self.dependency = dependency
        self.command = command
        self.status_code = status_code
        self.reason = reason


class ResourcePropertyMissingError(ArmClientError):
    """Raised when an expected property is absent from a resource payload."""
    def __init__(self, property_name: str, resource_name: str):
        super().__init__(
            f"No {property_name} found for resource {resource_name}",
            code="resource_property_missing",
            details={"property": property_name, "resource_name": resource_name},
        )
        self.property_name = property_name
        self.resource_name = resource_name
