"""Per-operation memoization of resource settings lookups."""
from __future__ import annotations

from .models import ResourceSettings, ResourceType
from .repository import SettingsProvider


class SettingsCache:
    """
    Cache of (resource type, tool) -> ResourceSettings.

    Create one per top-level operation (e.g. one "list resources" call) and
    drop it afterwards; it must not outlive the request, since settings can
    change between requests. Failed lookups are not cached.
    """

    def __init__(self, provider: SettingsProvider) -> None:
        self._provider = provider
        self._entries: dict[tuple[ResourceType, str], ResourceSettings] = {}

    def get(self, resource_type: ResourceType, tool: str) -> ResourceSettings:
        key = (resource_type, tool)
        if key not in self._entries:
            self._entries[key] = self._provider.get_settings(resource_type, tool)
        return self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
