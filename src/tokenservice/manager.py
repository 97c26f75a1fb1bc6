"""Authorized resource operations on top of a repository.

Each function loads what it needs, asks the access evaluator, and raises
PermissionDeniedError when the caller is not allowed.
"""
from __future__ import annotations

import secrets
from datetime import datetime
from typing import Optional, Sequence

from . import credentials as _credentials
from .access import can_create_keys, can_delete, can_update, is_owner
from .config import Config
from .documents import (
    access_rule_to_document,
    api_result,
    parse_access_rule_type,
    parse_resource_type,
)
from .errors import MissingTokenError, PermissionDeniedError, UnknownAccessRuleTypeError
from .models import (
    READ_WRITE_TOKEN_PREFIX,
    AccessRule,
    AccessRuleRole,
    AccessRuleType,
    AuthClaims,
    Credentials,
    JWTClaims,
    ReadWriteTokenAccessRule,
    ReadWriteTokenClaims,
    Resource,
    ResourceType,
    UserAccessRule,
)
from .repository import ResourceRepository, SettingsProvider
from .settings import SettingsCache

# Marks tokens minted here, as opposed to tokens imported with old documents.
GENERATED_TOKEN_MARKER = "token-service-generated:"


def find_resource(repository: ResourceRepository, resource_id: str) -> Resource:
    return repository.find(resource_id)


def get_resource(
    repository: ResourceRepository,
    settings_provider: SettingsProvider,
    claims: Optional[AuthClaims],
    resource_id: str,
) -> dict:
    resource = repository.find(resource_id)
    settings = settings_provider.get_settings(resource.type, resource.tool)
    return api_result(resource, claims, settings)


def list_resources(
    repository: ResourceRepository,
    settings_provider: SettingsProvider,
    claims: Optional[JWTClaims],
    name: Optional[str] = None,
    resource_type: Optional[ResourceType] = None,
    tool: Optional[str] = None,
    am_owner: bool = False,
) -> list[dict]:
    """
    Return the API results of every matching resource.

    With *am_owner* only resources owned by the caller are kept (none for an
    anonymous caller). Settings are looked up once per (type, tool) for the
    whole listing.
    """
    cache = SettingsCache(settings_provider)
    results: list[dict] = []
    for resource in repository.find_all(name=name, resource_type=resource_type, tool=tool):
        if am_owner and (claims is None or not is_owner(resource, claims)):
            continue
        settings = cache.get(resource.type, resource.tool)
        results.append(api_result(resource, claims, settings))
    return results


def create_resource(
    repository: ResourceRepository,
    settings_provider: SettingsProvider,
    claims: Optional[JWTClaims],
    name: str,
    description: str,
    resource_type,
    tool: str,
    access_rule_type,
) -> dict:
    """
    Create a resource whose single access rule is built from *access_rule_type*.

    A ``user`` rule makes the caller the owner. A ``readWriteToken`` rule gets
    a freshly generated token, which is returned to the creator in the
    result's ``accessRules``.

    Raises:
        ValueError: a field is missing or the rule type is not allowed for
            the (type, tool) settings.
        MissingTokenError: a ``user`` rule was requested anonymously.
        UnknownResourceTypeError, UnknownAccessRuleTypeError,
        SettingsNotFoundError.
    """
    if not name or not description or not resource_type or not tool or not access_rule_type:
        raise ValueError("One or more missing resource fields!")
    resource_type = parse_resource_type(resource_type)
    access_rule_type = parse_access_rule_type(access_rule_type)

    settings = settings_provider.get_settings(resource_type, tool)
    if not settings.allowed_access_rule_types:
        raise ValueError(f"{tool} configuration is missing allowedAccessRuleTypes list!")
    if access_rule_type not in settings.allowed_access_rule_types:
        raise ValueError(
            f'"{access_rule_type.value}" access rule type is not allowed by {tool} settings!'
        )

    rule: AccessRule
    if access_rule_type == AccessRuleType.USER:
        if claims is None:
            raise MissingTokenError("JWT claims missing!")
        rule = UserAccessRule(
            role=AccessRuleRole.OWNER,
            platform_id=claims.platform_id,
            user_id=claims.user_id,
        )
    elif access_rule_type == AccessRuleType.READ_WRITE_TOKEN:
        rule = ReadWriteTokenAccessRule(token=generate_read_write_token())
    else:
        raise UnknownAccessRuleTypeError(access_rule_type.value)

    resource = repository.create(
        {
            "type": resource_type.value,
            "tool": tool,
            "name": name,
            "description": description,
            "accessRules": [access_rule_to_document(rule)],
        }
    )

    result_claims: Optional[AuthClaims] = claims
    if result_claims is None and isinstance(rule, ReadWriteTokenAccessRule):
        # Let the anonymous creator see the token that now guards the resource.
        result_claims = ReadWriteTokenClaims(token=rule.token)
    return api_result(resource, result_claims, settings)


def update_resource(
    repository: ResourceRepository,
    settings_provider: SettingsProvider,
    claims: AuthClaims,
    resource_id: str,
    name: Optional[str] = None,
    description: Optional[str] = None,
    access_rules: Optional[Sequence[AccessRule]] = None,
) -> dict:
    """Update the given fields; type and tool never change."""
    resource = repository.find(resource_id)
    if not can_update(resource, claims):
        raise PermissionDeniedError(resource_id, "update")

    patch: dict = {}
    if name:
        patch["name"] = name
    if description:
        patch["description"] = description
    if access_rules is not None:
        patch["accessRules"] = [access_rule_to_document(r) for r in access_rules]

    updated = repository.update(resource_id, patch)
    settings = settings_provider.get_settings(updated.type, updated.tool)
    return api_result(updated, claims, settings)


def delete_resource(
    repository: ResourceRepository, claims: AuthClaims, resource_id: str
) -> datetime:
    resource = repository.find(resource_id)
    if not can_delete(resource, claims):
        raise PermissionDeniedError(resource_id, "delete")
    return repository.delete(resource_id)


def create_keys(
    repository: ResourceRepository,
    settings_provider: SettingsProvider,
    claims: AuthClaims,
    resource_id: str,
    config: Config,
    sts_client=None,
) -> Credentials:
    resource = repository.find(resource_id)
    if not can_create_keys(resource, claims):
        raise PermissionDeniedError(resource_id, "create AWS keys for")
    settings = settings_provider.get_settings(resource.type, resource.tool)
    return _credentials.create_keys(resource, claims, settings, config, sts_client=sts_client)


def generate_read_write_token() -> str:
    return READ_WRITE_TOKEN_PREFIX + GENERATED_TOKEN_MARKER + secrets.token_hex(128)
