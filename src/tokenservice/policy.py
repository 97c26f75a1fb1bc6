"""Build least-privilege session policies and STS session names for resources."""
from __future__ import annotations

import hashlib
import json

from .errors import UnknownResourceTypeError, UnsupportedOperationError
from .models import (
    AthenaWorkgroupResource,
    IotOrganizationResource,
    Resource,
    ResourceSettings,
    S3FolderResource,
)

POLICY_VERSION = "2012-10-17"
SESSION_NAME_PREFIX = "token-service"
# STS rejects a RoleSessionName longer than 64 characters.
MAX_SESSION_NAME_LENGTH = 64


def role_session_name(resource: Resource) -> str:
    """
    Return the RoleSessionName used when vending keys for *resource*.

    ``token-service-<type>-<tool>-<id>`` when it fits; otherwise the
    ``<type>-<tool>-<id>`` part is replaced by its md5 hex digest, so the
    same resource always maps to the same name.
    """
    session_name = f"{resource.type.value}-{resource.tool}-{resource.id}"
    name = f"{SESSION_NAME_PREFIX}-{session_name}"
    if len(name) > MAX_SESSION_NAME_LENGTH:
        digest = hashlib.md5(session_name.encode("utf-8")).hexdigest()
        name = f"{SESSION_NAME_PREFIX}-{digest}"
    return name


def s3_key_prefix(resource: S3FolderResource, settings: ResourceSettings) -> str:
    return f"{settings.folder}/{resource.id}/"


def athena_key_prefix(resource: AthenaWorkgroupResource, settings: ResourceSettings) -> str:
    return f"{settings.folder}/{resource.workgroup_name}/"


def s3_folder_policy(resource: S3FolderResource, settings: ResourceSettings) -> dict:
    """Bucket listing plus object CRUD limited to ``<folder>/<id>/*``."""
    _require(settings, "bucket", "folder")
    key_prefix = s3_key_prefix(resource, settings)
    return {
        "Version": POLICY_VERSION,
        "Statement": [
            {
                "Sid": "AllowBucketAccess",
                "Effect": "Allow",
                "Action": ["s3:ListBucket", "s3:ListBucketVersions"],
                "Resource": [f"arn:aws:s3:::{settings.bucket}"],
            },
            {
                "Sid": "AllowAllS3ActionsInResourceFolder",
                "Effect": "Allow",
                "Action": [
                    "s3:DeleteObject",
                    "s3:DeleteObjectVersion",
                    "s3:GetObject",
                    "s3:GetObjectVersion",
                    "s3:PutObject",
                ],
                "Resource": [f"arn:aws:s3:::{settings.bucket}/{key_prefix}*"],
            },
        ],
    }


def athena_workgroup_policy(
    resource: AthenaWorkgroupResource, settings: ResourceSettings
) -> dict:
    """Read-only access to the workgroup's result folder and its executions."""
    _require(settings, "bucket", "folder", "region", "account")
    key_prefix = athena_key_prefix(resource, settings)
    workgroup_arn = (
        f"arn:aws:athena:{settings.region}:{settings.account}"
        f":workgroup/{resource.workgroup_name}"
    )
    return {
        "Version": POLICY_VERSION,
        "Statement": [
            {
                "Sid": "AllowBucketAccess",
                "Effect": "Allow",
                "Action": ["s3:ListBucket"],
                "Resource": [f"arn:aws:s3:::{settings.bucket}"],
            },
            {
                "Sid": "AllowReadInWorkgroupFolder",
                "Effect": "Allow",
                "Action": ["s3:GetObject"],
                "Resource": [f"arn:aws:s3:::{settings.bucket}/{key_prefix}*"],
            },
            {
                "Sid": "AllowListExecutions",
                "Effect": "Allow",
                "Action": ["athena:ListQueryExecutions", "athena:GetQueryExecution"],
                "Resource": [workgroup_arn],
            },
        ],
    }


def build_policy(resource: Resource, settings: ResourceSettings) -> dict:
    """
    Return the session policy document for *resource*.

    Raises:
        UnsupportedOperationError: the resource type cannot receive keys.
        ValueError: *settings* lack a field the policy needs.
    """
    match resource:
        case S3FolderResource():
            return s3_folder_policy(resource, settings)
        case AthenaWorkgroupResource():
            return athena_workgroup_policy(resource, settings)
        case IotOrganizationResource():
            raise UnsupportedOperationError(resource.type.value, "create-keys")
        case _:
            raise UnknownResourceTypeError(type(resource).__name__)


def policy_json(policy: dict) -> str:
    return json.dumps(policy, separators=(",", ":"))


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _require(settings: ResourceSettings, *fields: str) -> None:
    missing = [f for f in fields if not getattr(settings, f)]
    if missing:
        raise ValueError(
            f"{settings.tool} settings are missing {', '.join(missing)}."
        )
