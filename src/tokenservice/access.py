"""Access control decisions for resources. Pure functions, no I/O."""
from __future__ import annotations

from .errors import UnknownResourceTypeError
from .models import (
    READ_WRITE_TOKEN_PREFIX,
    AccessRuleRole,
    AthenaWorkgroupResource,
    AuthClaims,
    ContextAccessRule,
    IotOrganizationResource,
    JWTClaims,
    ReadWriteTokenAccessRule,
    ReadWriteTokenClaims,
    Resource,
    S3FolderResource,
    UserAccessRule,
)

OP_READ_ACCESS_RULES = "read-access-rules"
OP_UPDATE = "update"
OP_DELETE = "delete"
OP_CREATE_KEYS = "create-keys"
ALL_OPERATIONS = (OP_READ_ACCESS_RULES, OP_UPDATE, OP_DELETE, OP_CREATE_KEYS)


def can_read_access_rules(resource: Resource, claims: AuthClaims) -> bool:
    match claims:
        case ReadWriteTokenClaims(token=token):
            return is_read_write_token_valid(resource, token)
        case JWTClaims():
            return is_owner(resource, claims)
    return False


def can_update(resource: Resource, claims: AuthClaims) -> bool:
    """Only owners identified by a JWT may update; read-write tokens never can."""
    match claims:
        case JWTClaims():
            return is_owner(resource, claims)
    return False


def can_delete(resource: Resource, claims: AuthClaims) -> bool:
    """Only JWT owners may delete; a shared token holder may not."""
    match claims:
        case JWTClaims():
            return is_owner(resource, claims)
    return False


def can_create_keys(resource: Resource, claims: AuthClaims) -> bool:
    match resource:
        case S3FolderResource():
            match claims:
                case ReadWriteTokenClaims(token=token):
                    return is_read_write_token_valid(resource, token)
                case JWTClaims():
                    return (
                        is_owner_or_member(resource, claims)
                        or has_access_to_target_user_data(resource, claims)
                    )
            return False
        case AthenaWorkgroupResource():
            # No anonymous credentials for workgroups.
            match claims:
                case JWTClaims():
                    return is_owner_or_member(resource, claims)
            return False
        case IotOrganizationResource():
            return False
        case _:
            raise UnknownResourceTypeError(type(resource).__name__)


def allowed_operations(resource: Resource, claims: AuthClaims) -> tuple[str, ...]:
    """Return the names of every operation *claims* may perform on *resource*."""
    checks = {
        OP_READ_ACCESS_RULES: can_read_access_rules,
        OP_UPDATE: can_update,
        OP_DELETE: can_delete,
        OP_CREATE_KEYS: can_create_keys,
    }
    return tuple(op for op in ALL_OPERATIONS if checks[op](resource, claims))


# ---------------------------------------------------------------------------
# Rule matching
# ---------------------------------------------------------------------------


def has_user_role(resource: Resource, claims: JWTClaims, role: AccessRuleRole) -> bool:
    return any(
        isinstance(rule, UserAccessRule)
        and rule.role == role
        and rule.user_id == claims.user_id
        and rule.platform_id == claims.platform_id
        for rule in resource.access_rules
    )


def is_owner(resource: Resource, claims: JWTClaims) -> bool:
    return has_user_role(resource, claims, AccessRuleRole.OWNER)


def is_member(resource: Resource, claims: JWTClaims) -> bool:
    return has_user_role(resource, claims, AccessRuleRole.MEMBER)


def is_owner_or_member(resource: Resource, claims: JWTClaims) -> bool:
    """Owner or member by user rule, or member through a context rule."""
    return (
        is_owner(resource, claims)
        or is_member(resource, claims)
        or is_context_member(resource, claims)
    )


def is_context_member(resource: Resource, claims: JWTClaims) -> bool:
    if not claims.class_hash:
        return False
    return any(
        isinstance(rule, ContextAccessRule)
        and rule.platform_id == claims.platform_id
        and rule.context_id == claims.class_hash
        for rule in resource.access_rules
    )


def has_access_to_target_user_data(resource: Resource, claims: JWTClaims) -> bool:
    """True when the caller acts for a user who owns *resource*."""
    if not claims.target_user_id:
        return False
    return any(
        isinstance(rule, UserAccessRule)
        and rule.role == AccessRuleRole.OWNER
        and rule.user_id == claims.target_user_id
        and rule.platform_id == claims.platform_id
        for rule in resource.access_rules
    )


def is_read_write_token_valid(resource: Resource, token: str) -> bool:
    if not token.startswith(READ_WRITE_TOKEN_PREFIX):
        return False
    return any(
        isinstance(rule, ReadWriteTokenAccessRule) and rule.token == token
        for rule in resource.access_rules
    )
