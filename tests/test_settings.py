"""Tests for tokenservice.settings."""
import pytest

from tokenservice.errors import SettingsNotFoundError
from tokenservice.models import ResourceSettings, ResourceType
from tokenservice.repository import InMemorySettingsProvider
from tokenservice.settings import SettingsCache

GLOSSARY = ResourceSettings(type=ResourceType.S3_FOLDER, tool="glossary", bucket="b", folder="f")
DATA_FLOW = ResourceSettings(type=ResourceType.IOT_ORGANIZATION, tool="dataFlow")


def test_repeated_lookups_hit_provider_once():
    provider = InMemorySettingsProvider([GLOSSARY, DATA_FLOW])
    cache = SettingsCache(provider)

    for _ in range(3):
        assert cache.get(ResourceType.S3_FOLDER, "glossary") is GLOSSARY
    assert provider.lookups == 1

    assert cache.get(ResourceType.IOT_ORGANIZATION, "dataFlow") is DATA_FLOW
    assert provider.lookups == 2
    assert len(cache) == 2
    assert (ResourceType.S3_FOLDER, "glossary") in cache


def test_failed_lookup_is_not_cached():
    provider = InMemorySettingsProvider([GLOSSARY])
    cache = SettingsCache(provider)

    for _ in range(2):
        with pytest.raises(SettingsNotFoundError):
            cache.get(ResourceType.S3_FOLDER, "missing")
    assert provider.lookups == 2
    assert len(cache) == 0


def test_any_provider_with_get_settings():
    calls = []

    class Provider:
        def get_settings(self, resource_type, tool):
            calls.append((resource_type, tool))
            return GLOSSARY

    cache = SettingsCache(Provider())
    cache.get(ResourceType.S3_FOLDER, "glossary")
    cache.get(ResourceType.S3_FOLDER, "glossary")
    assert calls == [(ResourceType.S3_FOLDER, "glossary")]


def test_caches_are_independent():
    provider = InMemorySettingsProvider([GLOSSARY])
    SettingsCache(provider).get(ResourceType.S3_FOLDER, "glossary")
    SettingsCache(provider).get(ResourceType.S3_FOLDER, "glossary")
    assert provider.lookups == 2