"""Storage interfaces for resources and their settings.

Production deployments plug in their own document database; the in-memory
implementations back the CLI and the tests.
"""
from __future__ import annotations

import copy
import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional, Protocol

from .documents import parse_resource_type, resource_from_document, settings_from_document
from .errors import ResourceNotFoundError, SettingsNotFoundError
from .models import Resource, ResourceSettings, ResourceType


class ResourceRepository(Protocol):
    def find(self, resource_id: str) -> Resource: ...

    def find_all(
        self,
        name: Optional[str] = None,
        resource_type: Optional[ResourceType] = None,
        tool: Optional[str] = None,
    ) -> list[Resource]: ...

    def create(self, document: dict) -> Resource: ...

    def update(self, resource_id: str, patch: dict) -> Resource: ...

    def delete(self, resource_id: str) -> datetime: ...


class SettingsProvider(Protocol):
    def get_settings(self, resource_type: ResourceType, tool: str) -> ResourceSettings: ...


class InMemoryResourceRepository:
    """Resource documents kept in a dict, keyed by id."""

    def __init__(self, documents: Optional[dict[str, dict]] = None) -> None:
        self._docs: dict[str, dict] = copy.deepcopy(documents or {})

    def find(self, resource_id: str) -> Resource:
        doc = self._docs.get(resource_id)
        if doc is None:
            raise ResourceNotFoundError(resource_id)
        return resource_from_document(resource_id, doc)

    def find_all(
        self,
        name: Optional[str] = None,
        resource_type: Optional[ResourceType] = None,
        tool: Optional[str] = None,
    ) -> list[Resource]:
        resources: list[Resource] = []
        for resource_id, doc in self._docs.items():
            if name and doc.get("name") != name:
                continue
            if resource_type and doc.get("type") != resource_type.value:
                continue
            if tool and doc.get("tool") != tool:
                continue
            resources.append(resource_from_document(resource_id, doc))
        return resources

    def create(self, document: dict) -> Resource:
        resource_id = uuid.uuid4().hex
        self._docs[resource_id] = copy.deepcopy(document)
        return self.find(resource_id)

    def update(self, resource_id: str, patch: dict) -> Resource:
        if resource_id not in self._docs:
            raise ResourceNotFoundError(resource_id)
        self._docs[resource_id].update(copy.deepcopy(patch))
        return self.find(resource_id)

    def delete(self, resource_id: str) -> datetime:
        if self._docs.pop(resource_id, None) is None:
            raise ResourceNotFoundError(resource_id)
        return datetime.now(timezone.utc)

    def __len__(self) -> int:
        return len(self._docs)


class InMemorySettingsProvider:
    """Settings records looked up by (type, tool); counts lookups."""

    def __init__(self, settings: Iterable[ResourceSettings] = ()) -> None:
        self._settings = {(s.type, s.tool): s for s in settings}
        self.lookups = 0

    def get_settings(self, resource_type: ResourceType, tool: str) -> ResourceSettings:
        self.lookups += 1
        try:
            return self._settings[(resource_type, tool)]
        except KeyError:
            raise SettingsNotFoundError(resource_type.value, tool) from None


def load_store(path) -> tuple[InMemoryResourceRepository, InMemorySettingsProvider]:
    """
    Read a JSON store file into a repository and a settings provider.

    The file holds ``{"resources": {id: doc, ...}, "resourceSettings": [doc, ...]}``.

    Raises:
        ValueError: the file is not valid JSON or has the wrong shape.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid store file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Invalid store file {path}: expected a JSON object.")

    resources = data.get("resources") or {}
    if not isinstance(resources, dict):
        raise ValueError(f"Invalid store file {path}: 'resources' must map ids to documents.")
    for doc in resources.values():
        # Fail early on documents with an unknown type.
        parse_resource_type(doc.get("type"))

    settings = [settings_from_document(d) for d in data.get("resourceSettings") or []]
    return InMemoryResourceRepository(resources), InMemorySettingsProvider(settings)
