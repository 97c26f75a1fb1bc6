"""Shared pytest fixtures for tokenservice tests."""
import boto3
import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from tokenservice.config import Config
from tokenservice.models import (
    READ_WRITE_TOKEN_PREFIX,
    AccessRuleRole,
    AccessRuleType,
    AthenaWorkgroupResource,
    JWTClaims,
    ReadWriteTokenAccessRule,
    ResourceSettings,
    ResourceType,
    S3FolderResource,
    UserAccessRule,
)

# moto is imported lazily inside fixtures so the import error surface is clear.

ROLE_ARN = "arn:aws:iam::123456789012:role/token-service"
PLATFORM_ID = "test-platform-id"
USER_ID = "test-user-id"
RW_TOKEN = READ_WRITE_TOKEN_PREFIX + "test-token-1"


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Prevent accidental real AWS calls by setting fake credentials."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def moto_sts():
    """Yield a real boto3 STS client inside a moto mock_aws context."""
    from moto import mock_aws

    with mock_aws():
        yield boto3.client("sts", region_name="us-east-1")


@pytest.fixture(scope="session")
def rsa_keys():
    """Return (private_pem, public_pem) for signing test JWTs."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("utf-8")
    return private_pem, public_pem


@pytest.fixture
def config(rsa_keys):
    return Config(public_key=rsa_keys[1], role_arn=ROLE_ARN, duration=3600)


@pytest.fixture
def sign(rsa_keys):
    """Return a function that signs a platform JWT carrying *claims*."""

    def _sign(claims: dict, key=None) -> str:
        return jwt.encode({"claims": claims}, key or rsa_keys[0], algorithm="RS256")

    return _sign


@pytest.fixture
def owner_claims():
    return JWTClaims(platform_user_id="1", platform_id=PLATFORM_ID, user_id=USER_ID)


@pytest.fixture
def s3_settings():
    return ResourceSettings(
        type=ResourceType.S3_FOLDER,
        tool="glossary",
        allowed_access_rule_types=(AccessRuleType.USER, AccessRuleType.READ_WRITE_TOKEN),
        bucket="test-bucket",
        folder="test-folder",
        region="us-east-1",
    )


@pytest.fixture
def athena_settings():
    return ResourceSettings(
        type=ResourceType.ATHENA_WORKGROUP,
        tool="athena-reports",
        allowed_access_rule_types=(AccessRuleType.USER,),
        bucket="test-bucket",
        folder="test-folder",
        region="us-east-1",
        account="123456789012",
    )


@pytest.fixture
def s3_resource():
    return S3FolderResource(
        id="test",
        name="test",
        description="test",
        tool="glossary",
        access_rules=(
            UserAccessRule(AccessRuleRole.OWNER, PLATFORM_ID, USER_ID),
            ReadWriteTokenAccessRule(RW_TOKEN),
        ),
    )


@pytest.fixture
def athena_resource():
    return AthenaWorkgroupResource(
        id="id1234",
        name="test",
        description="test",
        tool="athena-reports",
        access_rules=(
            UserAccessRule(AccessRuleRole.OWNER, PLATFORM_ID, USER_ID),
            ReadWriteTokenAccessRule(RW_TOKEN),
        ),
    )
