"""Exceptions raised by tokenservice.

Every error carries a ``status_code`` the HTTP layer can return as-is.
"""
from __future__ import annotations


class TokenServiceError(Exception):
    """Base class for all tokenservice failures."""

    status_code = 400


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


class MissingTokenError(TokenServiceError):
    """No bearer credential was supplied where one is required."""

    status_code = 403

    def __init__(self, message: str = "Missing token in headers, query or cookie") -> None:
        super().__init__(message)


class InvalidTokenError(TokenServiceError):
    """The bearer token failed signature or format verification."""

    status_code = 403


class MissingClaimError(InvalidTokenError):
    def __init__(self, claim: str) -> None:
        super().__init__(f"Missing {claim} in JWT claims!")
        self.claim = claim


# ---------------------------------------------------------------------------
# Authorization and lookup
# ---------------------------------------------------------------------------


class PermissionDeniedError(TokenServiceError):
    status_code = 403

    def __init__(self, resource_id: str, operation: str) -> None:
        super().__init__(
            f"You do not have permission to {operation} resource {resource_id}!"
        )
        self.resource_id = resource_id
        self.operation = operation


class NotFoundError(TokenServiceError):
    status_code = 404


class ResourceNotFoundError(NotFoundError):
    def __init__(self, resource_id: str) -> None:
        super().__init__(f"Resource {resource_id} not found!")
        self.resource_id = resource_id


class SettingsNotFoundError(NotFoundError):
    def __init__(self, resource_type: str, tool: str) -> None:
        super().__init__(
            f"No resource settings for {resource_type} type with {tool} tool"
        )
        self.resource_type = resource_type
        self.tool = tool


class UnknownResourceTypeError(TokenServiceError):
    def __init__(self, value: object) -> None:
        super().__init__(f"Unknown resource type: {value}")
        self.value = value


class UnknownAccessRuleTypeError(TokenServiceError):
    def __init__(self, value: object) -> None:
        super().__init__(f"Unknown access rule type: {value}")
        self.value = value


class UnsupportedOperationError(TokenServiceError):
    """The operation exists but is not implemented for this resource type."""

    def __init__(self, resource_type: str, operation: str) -> None:
        super().__init__(f"{operation} is not supported for {resource_type} resources")
        self.resource_type = resource_type
        self.operation = operation


# ---------------------------------------------------------------------------
# Credential vending
# ---------------------------------------------------------------------------


class CredentialVendingError(TokenServiceError):
    """Raised when STS role assumption fails."""

    def __init__(self, message: str, error_code: str) -> None:
        super().__init__(message)
        self.error_code = error_code


class MissingCredentialsError(CredentialVendingError):
    def __init__(self) -> None:
        super().__init__(
            "Missing credentials in AWS STS assume role response!",
            error_code="MissingCredentials",
        )


class ConfigError(ValueError):
    """Configuration is missing or malformed."""
