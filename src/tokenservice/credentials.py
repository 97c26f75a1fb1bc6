"""Vend temporary AWS credentials through STS AssumeRole."""
from __future__ import annotations

import boto3
from botocore.exceptions import ClientError

from .access import can_create_keys
from .config import Config
from .errors import (
    CredentialVendingError,
    MissingCredentialsError,
    PermissionDeniedError,
    UnknownResourceTypeError,
)
from .models import (
    AthenaWorkgroupResource,
    AuthClaims,
    Credentials,
    Resource,
    ResourceSettings,
    S3FolderResource,
)
from .policy import build_policy, policy_json, role_session_name, s3_key_prefix


def make_sts_client(region: str, config: Config):
    """Return an STS client bound to the regional endpoint of *region*."""
    kwargs = {
        "region_name": region,
        "endpoint_url": f"https://sts.{region}.amazonaws.com",
    }
    if config.aws_key and config.aws_secret:
        kwargs["aws_access_key_id"] = config.aws_key
        kwargs["aws_secret_access_key"] = config.aws_secret
    return boto3.client("sts", **kwargs)


def assume_role(
    policy: str,
    region: str,
    session_name: str,
    config: Config,
    sts_client=None,
) -> Credentials:
    """
    Exchange *policy* for temporary credentials of ``config.role_arn``.

    Not retried; the caller decides whether to try again.

    Raises:
        CredentialVendingError: STS returned an error (code and message kept).
        MissingCredentialsError: STS answered without a Credentials block.
    """
    if sts_client is None:
        sts_client = make_sts_client(region, config)
    try:
        resp = sts_client.assume_role(
            RoleArn=config.role_arn,
            RoleSessionName=session_name,
            DurationSeconds=config.duration,
            Policy=policy,
        )
    except ClientError as exc:
        _handle_client_error(exc)

    creds = resp.get("Credentials")
    if not creds:
        raise MissingCredentialsError()
    return Credentials(
        access_key_id=creds["AccessKeyId"],
        secret_access_key=creds["SecretAccessKey"],
        session_token=creds["SessionToken"],
        expiration=creds["Expiration"],
    )


def create_keys(
    resource: Resource,
    claims: AuthClaims,
    settings: ResourceSettings,
    config: Config,
    sts_client=None,
) -> Credentials:
    """
    Check that *claims* may create keys for *resource*, then vend them.

    Storage folder credentials also carry the bucket and key prefix they are
    scoped to.

    Raises:
        PermissionDeniedError: the evaluator rejected the caller.
        CredentialVendingError: the STS call failed.
    """
    if not can_create_keys(resource, claims):
        raise PermissionDeniedError(resource.id, "create AWS keys for")

    policy = build_policy(resource, settings)
    if not settings.region:
        raise ValueError(f"{settings.tool} settings are missing region.")
    creds = assume_role(
        policy_json(policy),
        settings.region,
        role_session_name(resource),
        config,
        sts_client=sts_client,
    )

    match resource:
        case S3FolderResource():
            return Credentials(
                access_key_id=creds.access_key_id,
                secret_access_key=creds.secret_access_key,
                session_token=creds.session_token,
                expiration=creds.expiration,
                bucket=settings.bucket,
                key_prefix=s3_key_prefix(resource, settings),
            )
        case AthenaWorkgroupResource():
            return creds
        case _:
            raise UnknownResourceTypeError(type(resource).__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _handle_client_error(exc: ClientError) -> None:
    code = exc.response["Error"]["Code"]
    msg = exc.response["Error"]["Message"]
    raise CredentialVendingError(message=msg, error_code=code) from exc
