"""Convert stored documents to models, and models to API results.

Documents use the camelCase field names of the resource database.
"""
from __future__ import annotations

from typing import Any, Optional

from .access import can_read_access_rules
from .errors import UnknownAccessRuleTypeError, UnknownResourceTypeError
from .models import (
    AccessRule,
    AccessRuleRole,
    AccessRuleType,
    AthenaWorkgroupResource,
    AuthClaims,
    ContextAccessRule,
    Credentials,
    IotOrganizationResource,
    ReadWriteTokenAccessRule,
    Resource,
    ResourceSettings,
    ResourceType,
    S3FolderResource,
    UserAccessRule,
)

_RESOURCE_CLASSES = {
    ResourceType.S3_FOLDER: S3FolderResource,
    ResourceType.IOT_ORGANIZATION: IotOrganizationResource,
    ResourceType.ATHENA_WORKGROUP: AthenaWorkgroupResource,
}


# ---------------------------------------------------------------------------
# Enum parsing
# ---------------------------------------------------------------------------


def parse_resource_type(value: Any) -> ResourceType:
    if isinstance(value, ResourceType):
        return value
    try:
        return ResourceType(value)
    except ValueError:
        raise UnknownResourceTypeError(value) from None


def parse_access_rule_type(value: Any) -> AccessRuleType:
    if isinstance(value, AccessRuleType):
        return value
    try:
        return AccessRuleType(value)
    except ValueError:
        raise UnknownAccessRuleTypeError(value) from None


def _parse_role(value: Any) -> AccessRuleRole:
    try:
        return AccessRuleRole(value)
    except ValueError:
        raise ValueError(f"Unknown access rule role: {value!r}") from None


def _field(doc: dict, name: str) -> str:
    value = doc.get(name)
    if not value:
        raise ValueError(f"Access rule of type {doc.get('type')!r} is missing {name}.")
    return value


# ---------------------------------------------------------------------------
# Access rules
# ---------------------------------------------------------------------------


def access_rule_from_document(doc: dict) -> AccessRule:
    rule_type = parse_access_rule_type(doc.get("type"))
    if rule_type == AccessRuleType.USER:
        return UserAccessRule(
            role=_parse_role(doc.get("role")),
            platform_id=_field(doc, "platformId"),
            user_id=_field(doc, "userId"),
        )
    if rule_type == AccessRuleType.CONTEXT:
        return ContextAccessRule(
            role=_parse_role(doc.get("role")),
            platform_id=_field(doc, "platformId"),
            context_id=_field(doc, "contextId"),
        )
    return ReadWriteTokenAccessRule(token=_field(doc, "readWriteToken"))


def access_rule_to_document(rule: AccessRule) -> dict:
    match rule:
        case UserAccessRule():
            return {
                "type": AccessRuleType.USER.value,
                "role": rule.role.value,
                "platformId": rule.platform_id,
                "userId": rule.user_id,
            }
        case ContextAccessRule():
            return {
                "type": AccessRuleType.CONTEXT.value,
                "role": rule.role.value,
                "platformId": rule.platform_id,
                "contextId": rule.context_id,
            }
        case ReadWriteTokenAccessRule():
            return {
                "type": AccessRuleType.READ_WRITE_TOKEN.value,
                "readWriteToken": rule.token,
            }
        case _:
            raise UnknownAccessRuleTypeError(type(rule).__name__)


# ---------------------------------------------------------------------------
# Resources and settings
# ---------------------------------------------------------------------------


def resource_from_document(resource_id: str, doc: dict) -> Resource:
    """
    Build the resource variant selected by ``doc["type"]``.

    Raises:
        UnknownResourceTypeError: the type is outside the known set.
        UnknownAccessRuleTypeError: an access rule has an unknown type.
    """
    resource_type = parse_resource_type(doc.get("type"))
    cls = _RESOURCE_CLASSES[resource_type]
    return cls(
        id=resource_id,
        name=doc.get("name", ""),
        description=doc.get("description", ""),
        tool=doc.get("tool", ""),
        access_rules=tuple(
            access_rule_from_document(r) for r in doc.get("accessRules") or []
        ),
    )


def settings_from_document(doc: dict) -> ResourceSettings:
    return ResourceSettings(
        type=parse_resource_type(doc.get("type")),
        tool=doc.get("tool", ""),
        allowed_access_rule_types=tuple(
            parse_access_rule_type(t) for t in doc.get("allowedAccessRuleTypes") or []
        ),
        bucket=doc.get("bucket"),
        folder=doc.get("folder"),
        region=doc.get("region"),
        domain=doc.get("domain"),
        domain_includes_folder=bool(doc.get("domainIncludesFolder", False)),
        account=doc.get("account"),
    )


# ---------------------------------------------------------------------------
# API results
# ---------------------------------------------------------------------------


def public_path(resource: S3FolderResource, settings: ResourceSettings) -> str:
    return f"{settings.folder}/{resource.id}/"


def public_url(resource: S3FolderResource, settings: ResourceSettings) -> str:
    # The domain may point at the bucket root or already include the folder.
    if settings.domain and settings.domain_includes_folder:
        return f"{settings.domain}/{resource.id}/"
    if settings.domain:
        return f"{settings.domain}/{public_path(resource, settings)}"
    return f"https://{settings.bucket}.s3.amazonaws.com/{public_path(resource, settings)}"


def api_result(
    resource: Resource,
    claims: Optional[AuthClaims],
    settings: Optional[ResourceSettings] = None,
) -> dict:
    """
    Shape *resource* for the caller identified by *claims*.

    ``accessRules`` is present only when the caller may read them; for
    anyone else the key is left out entirely.
    """
    result: dict[str, Any] = {
        "id": resource.id,
        "name": resource.name,
        "description": resource.description,
        "type": resource.type.value,
        "tool": resource.tool,
    }
    if claims is not None and can_read_access_rules(resource, claims):
        result["accessRules"] = [access_rule_to_document(r) for r in resource.access_rules]

    match resource:
        case S3FolderResource():
            if settings is None:
                raise ValueError(f"Settings are required to describe resource {resource.id}.")
            result["bucket"] = settings.bucket
            result["folder"] = settings.folder
            result["region"] = settings.region
            result["publicPath"] = public_path(resource, settings)
            result["publicUrl"] = public_url(resource, settings)
        case AthenaWorkgroupResource():
            if settings is None:
                raise ValueError(f"Settings are required to describe resource {resource.id}.")
            result["region"] = settings.region
            result["workgroupName"] = resource.workgroup_name
        case IotOrganizationResource():
            pass
        case _:
            raise UnknownResourceTypeError(type(resource).__name__)
    return result


def credentials_to_document(credentials: Credentials) -> dict:
    expiration = credentials.expiration
    doc: dict[str, Any] = {
        "accessKeyId": credentials.access_key_id,
        "secretAccessKey": credentials.secret_access_key,
        "sessionToken": credentials.session_token,
        "expiration": (
            expiration.isoformat() if hasattr(expiration, "isoformat") else str(expiration)
        ),
    }
    if credentials.bucket is not None:
        doc["bucket"] = credentials.bucket
    if credentials.key_prefix is not None:
        doc["keyPrefix"] = credentials.key_prefix
    return doc
