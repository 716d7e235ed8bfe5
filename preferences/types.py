"""Shared types for the preferences package."""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Protocol


class Channel(str, Enum):
    """Delivery channels, in canonical order."""

    EMAIL = "email"
    SMS = "sms"
    IN_APP = "in_app"
    CHAT = "chat"
    PUSH = "push"


ChannelMap = dict[str, bool]
Workflow = Mapping[str, Any]
Step = Mapping[str, Any]
Subscriber = Mapping[str, Any]
StoredPreference = Mapping[str, Any]
MessageTemplate = Mapping[str, Any]
Document = Mapping[str, Any]

MergedPreference = dict[str, Any]
PreferenceResponse = dict[str, Any]

FindMessageTemplatesFn = Callable[[str, Iterable[str]], list[MessageTemplate]]
TrackFn = Callable[[str, str, Mapping[str, Any]], None]


class PreferenceStorage(Protocol):
    """Read-side storage collaborator consumed by the resolution use-cases."""

    def find_subscriber_by_id(self, environment_id: str, subscriber_id: str) -> Subscriber | None: ...

    def find_stored_preference(
        self, environment_id: str, subscriber_id: str, workflow_id: str
    ) -> StoredPreference | None: ...

    def find_message_templates_by_ids(
        self, environment_id: str, ids: Iterable[str]
    ) -> list[MessageTemplate]: ...

    def list_active_workflows(self, organization_id: str, environment_id: str) -> list[Workflow]: ...

    def get_organization_admin(self, organization_id: str) -> Mapping[str, Any] | None: ...


class SubscriberCache(Protocol):
    def get_or_compute(
        self, key: str, compute: Callable[[], Subscriber | None]
    ) -> Subscriber | None: ...
