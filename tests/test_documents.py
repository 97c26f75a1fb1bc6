"""Tests for tokenservice.documents."""
from datetime import datetime, timezone

import pytest

from tokenservice.documents import (
    access_rule_from_document,
    access_rule_to_document,
    api_result,
    credentials_to_document,
    resource_from_document,
    settings_from_document,
)
from tokenservice.errors import UnknownAccessRuleTypeError, UnknownResourceTypeError
from tokenservice.models import (
    AccessRuleRole,
    AccessRuleType,
    AthenaWorkgroupResource,
    ContextAccessRule,
    Credentials,
    IotOrganizationResource,
    JWTClaims,
    ReadWriteTokenAccessRule,
    ReadWriteTokenClaims,
    ResourceSettings,
    ResourceType,
    S3FolderResource,
    UserAccessRule,
)

OWNER_DOC = {"type": "user", "role": "owner", "platformId": "p", "userId": "u"}
OWNER = JWTClaims(platform_user_id="1", platform_id="p", user_id="u")
STRANGER = JWTClaims(platform_user_id="2", platform_id="p", user_id="other")


def _s3_settings(**kwargs):
    defaults = dict(
        type=ResourceType.S3_FOLDER,
        tool="glossary",
        bucket="test-bucket",
        folder="test-folder",
        region="test-region",
    )
    defaults.update(kwargs)
    return ResourceSettings(**defaults)


def _s3(rules=()):
    return S3FolderResource(id="test", name="test", description="test", tool="glossary", access_rules=tuple(rules))


# ---------------------------------------------------------------------------
# Access rules
# ---------------------------------------------------------------------------

def test_access_rule_from_document_variants():
    assert access_rule_from_document(OWNER_DOC) == UserAccessRule(AccessRuleRole.OWNER, "p", "u")
    assert access_rule_from_document(
        {"type": "context", "role": "member", "platformId": "p", "contextId": "c"}
    ) == ContextAccessRule(AccessRuleRole.MEMBER, "p", "c")
    assert access_rule_from_document(
        {"type": "readWriteToken", "readWriteToken": "read-write-token:x"}
    ) == ReadWriteTokenAccessRule("read-write-token:x")


def test_access_rule_unknown_type():
    with pytest.raises(UnknownAccessRuleTypeError):
        access_rule_from_document({"type": "group"})


def test_access_rule_unknown_role():
    with pytest.raises(ValueError, match="role"):
        access_rule_from_document({**OWNER_DOC, "role": "admin"})


@pytest.mark.parametrize(
    "doc, field",
    [
        ({"type": "user", "role": "owner", "userId": "u"}, "platformId"),
        ({"type": "user", "role": "owner", "platformId": "p"}, "userId"),
        ({"type": "context", "role": "member", "platformId": "p"}, "contextId"),
        ({"type": "readWriteToken"}, "readWriteToken"),
    ],
)
def test_access_rule_missing_field(doc, field):
    with pytest.raises(ValueError, match=field):
        access_rule_from_document(doc)


def test_access_rule_to_document():
    assert access_rule_to_document(UserAccessRule(AccessRuleRole.OWNER, "p", "u")) == OWNER_DOC
    assert access_rule_to_document(ReadWriteTokenAccessRule("t")) == {
        "type": "readWriteToken",
        "readWriteToken": "t",
    }


# ---------------------------------------------------------------------------
# Resources and settings
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "type_value, cls",
    [
        ("s3Folder", S3FolderResource),
        ("iotOrganization", IotOrganizationResource),
        ("athenaWorkgroup", AthenaWorkgroupResource),
    ],
)
def test_resource_from_document_picks_variant(type_value, cls):
    r = resource_from_document("r1", {"type": type_value, "tool": "t", "name": "n", "description": "d"})
    assert isinstance(r, cls)
    assert r.id == "r1"
    assert r.access_rules == ()


def test_resource_from_document_parses_rules():
    r = resource_from_document("r1", {"type": "s3Folder", "tool": "glossary", "accessRules": [OWNER_DOC]})
    assert r.access_rules == (UserAccessRule(AccessRuleRole.OWNER, "p", "u"),)


def test_resource_from_document_unknown_type():
    with pytest.raises(UnknownResourceTypeError):
        resource_from_document("r1", {"type": "ec2Instance", "tool": "t"})


def test_settings_from_document():
    s = settings_from_document(
        {
            "type": "s3Folder",
            "tool": "glossary",
            "allowedAccessRuleTypes": ["user", "readWriteToken"],
            "bucket": "b",
            "folder": "f",
            "region": "r",
            "domain": "https://cdn",
            "domainIncludesFolder": True,
        }
    )
    assert s.type == ResourceType.S3_FOLDER
    assert s.allowed_access_rule_types == (AccessRuleType.USER, AccessRuleType.READ_WRITE_TOKEN)
    assert s.domain_includes_folder is True
    assert s.account is None


# ---------------------------------------------------------------------------
# api_result
# ---------------------------------------------------------------------------

def test_api_result_default_public_url():
    assert api_result(_s3(), None, _s3_settings()) == {
        "id": "test",
        "name": "test",
        "description": "test",
        "type": "s3Folder",
        "tool": "glossary",
        "bucket": "test-bucket",
        "folder": "test-folder",
        "region": "test-region",
        "publicPath": "test-folder/test/",
        "publicUrl": "https://test-bucket.s3.amazonaws.com/test-folder/test/",
    }


def test_api_result_custom_domain():
    result = api_result(_s3(), None, _s3_settings(domain="https://cloudfront.domain.com"))
    assert result["publicUrl"] == "https://cloudfront.domain.com/test-folder/test/"


def test_api_result_domain_includes_folder():
    settings = _s3_settings(domain="https://cloudfront.domain.with-folder.com", domain_includes_folder=True)
    result = api_result(_s3(), None, settings)
    assert result["publicUrl"] == "https://cloudfront.domain.with-folder.com/test/"
    assert result["publicPath"] == "test-folder/test/"


def test_api_result_includes_access_rules_for_owner():
    result = api_result(_s3([UserAccessRule(AccessRuleRole.OWNER, "p", "u")]), OWNER, _s3_settings())
    assert result["accessRules"] == [OWNER_DOC]


def test_api_result_omits_access_rules_key_for_others():
    resource = _s3([UserAccessRule(AccessRuleRole.OWNER, "p", "u")])
    assert "accessRules" not in api_result(resource, STRANGER, _s3_settings())
    assert "accessRules" not in api_result(resource, None, _s3_settings())


def test_api_result_token_holder_sees_rules():
    resource = _s3([ReadWriteTokenAccessRule("read-write-token:abc")])
    result = api_result(resource, ReadWriteTokenClaims("read-write-token:abc"), _s3_settings())
    assert result["accessRules"] == [{"type": "readWriteToken", "readWriteToken": "read-write-token:abc"}]


def test_api_result_athena():
    resource = AthenaWorkgroupResource(id="id1234", name="test", description="test", tool="athena-reports")
    settings = ResourceSettings(type=ResourceType.ATHENA_WORKGROUP, tool="athena-reports", region="test-region")
    assert api_result(resource, None, settings) == {
        "id": "id1234",
        "name": "test",
        "description": "test",
        "type": "athenaWorkgroup",
        "tool": "athena-reports",
        "region": "test-region",
        "workgroupName": "test-id1234",
    }


def test_api_result_iot_has_only_common_fields():
    resource = IotOrganizationResource(id="i1", name="n", description="d", tool="dataFlow")
    assert set(api_result(resource, None)) == {"id", "name", "description", "type", "tool"}


def test_api_result_s3_requires_settings():
    with pytest.raises(ValueError):
        api_result(_s3(), None, None)


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------

def test_credentials_to_document():
    exp = datetime(2030, 1, 1, tzinfo=timezone.utc)
    doc = credentials_to_document(Credentials("AK", "SK", "ST", exp, bucket="b", key_prefix="f/r1/"))
    assert doc == {
        "accessKeyId": "AK",
        "secretAccessKey": "SK",
        "sessionToken": "ST",
        "expiration": "2030-01-01T00:00:00+00:00",
        "bucket": "b",
        "keyPrefix": "f/r1/",
    }


def test_credentials_to_document_without_scope():
    exp = datetime(2030, 1, 1, tzinfo=timezone.utc)
    doc = credentials_to_document(Credentials("AK", "SK", "ST", exp))
    assert "bucket" not in doc
    assert "keyPrefix" not in doc
