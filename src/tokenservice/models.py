"""Pure data models for tokenservice. No I/O, no AWS calls."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union

# Read-write tokens carry this marker so they can be told apart from a JWT.
READ_WRITE_TOKEN_PREFIX = "read-write-token:"


class ResourceType(Enum):
    S3_FOLDER = "s3Folder"
    IOT_ORGANIZATION = "iotOrganization"
    ATHENA_WORKGROUP = "athenaWorkgroup"


class AccessRuleType(Enum):
    USER = "user"
    CONTEXT = "context"
    READ_WRITE_TOKEN = "readWriteToken"


class AccessRuleRole(Enum):
    OWNER = "owner"
    MEMBER = "member"


# ---------------------------------------------------------------------------
# Access rules
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UserAccessRule:
    """Grants one externally authenticated identity a role on a resource."""

    role: AccessRuleRole
    platform_id: str
    user_id: str


@dataclass(frozen=True)
class ContextAccessRule:
    """Grants every member of a platform context (class) a role."""

    role: AccessRuleRole
    platform_id: str
    context_id: str


@dataclass(frozen=True)
class ReadWriteTokenAccessRule:
    """Anonymous capability: whoever presents *token* has access."""

    token: str


AccessRule = Union[UserAccessRule, ContextAccessRule, ReadWriteTokenAccessRule]


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class S3FolderResource:
    id: str
    name: str
    description: str
    tool: str
    access_rules: tuple[AccessRule, ...] = ()

    @property
    def type(self) -> ResourceType:
        return ResourceType.S3_FOLDER


@dataclass(frozen=True)
class IotOrganizationResource:
    id: str
    name: str
    description: str
    tool: str
    access_rules: tuple[AccessRule, ...] = ()

    @property
    def type(self) -> ResourceType:
        return ResourceType.IOT_ORGANIZATION


@dataclass(frozen=True)
class AthenaWorkgroupResource:
    id: str
    name: str
    description: str
    tool: str
    access_rules: tuple[AccessRule, ...] = ()

    @property
    def type(self) -> ResourceType:
        return ResourceType.ATHENA_WORKGROUP

    @property
    def workgroup_name(self) -> str:
        return f"{self.name}-{self.id}"


Resource = Union[S3FolderResource, IotOrganizationResource, AthenaWorkgroupResource]


@dataclass(frozen=True)
class ResourceSettings:
    """Provisioning configuration shared by every resource of a (type, tool) pair."""

    type: ResourceType
    tool: str
    allowed_access_rule_types: tuple[AccessRuleType, ...] = ()
    bucket: Optional[str] = None
    folder: Optional[str] = None
    region: Optional[str] = None
    domain: Optional[str] = None
    domain_includes_folder: bool = False
    account: Optional[str] = None


# ---------------------------------------------------------------------------
# Claims and credentials
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class JWTClaims:
    """Verified identity fields from a signed platform token.

    ``class_hash`` is the platform's name for the context id.
    ``target_user_id`` is set when the caller acts on another user's data
    (for example a researcher).
    """

    platform_user_id: str
    platform_id: str
    user_id: str
    class_hash: Optional[str] = None
    target_user_id: Optional[str] = None


@dataclass(frozen=True)
class ReadWriteTokenClaims:
    token: str


AuthClaims = Union[JWTClaims, ReadWriteTokenClaims]


@dataclass(frozen=True)
class Credentials:
    """Temporary AWS credentials returned by STS AssumeRole."""

    access_key_id: str
    secret_access_key: str
    session_token: str
    expiration: datetime
    bucket: Optional[str] = None
    key_prefix: Optional[str] = None
