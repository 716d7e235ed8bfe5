"""In-memory storage adapter for local runs and tests.

Mental model refresher:
- This is outbound adapter code.
- In production, this is where database queries live.
- Use-cases call it through the `PreferenceStorage` protocol; they do not
  know which storage implementation is underneath.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

from ..types import Document, MessageTemplate, StoredPreference, Subscriber, Workflow
from .documents import (
    parse_message_template_document,
    parse_stored_preference_document,
    parse_subscriber_document,
    parse_workflow_document,
)


class InMemoryPreferenceStorage:
    """Dictionary-backed implementation of `PreferenceStorage`."""

    def __init__(
        self,
        *,
        subscribers: Iterable[Subscriber] = (),
        workflows: Iterable[Workflow] = (),
        stored_preferences: Iterable[StoredPreference] = (),
        message_templates: Iterable[MessageTemplate] = (),
        admins: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> None:
        self._subscribers = [dict(item) for item in subscribers]
        self._workflows = [dict(item) for item in workflows]
        self._stored_preferences = [dict(item) for item in stored_preferences]
        self._message_templates = [dict(item) for item in message_templates]
        self._admins = {str(key): dict(value) for key, value in (admins or {}).items()}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    @classmethod
    def from_documents(cls, documents: Mapping[str, Any]) -> "InMemoryPreferenceStorage":
        """Build storage from raw document collections (see `documents.py`)."""
        return cls(
            subscribers=[parse_subscriber_document(doc) for doc in _collection(documents, "subscribers")],
            workflows=[parse_workflow_document(doc) for doc in _collection(documents, "workflows")],
            stored_preferences=[
                parse_stored_preference_document(doc)
                for doc in _collection(documents, "subscriber_preferences")
            ],
            message_templates=[
                parse_message_template_document(doc)
                for doc in _collection(documents, "message_templates")
            ],
            admins={
                str(doc.get("_organizationId")): {"user_id": str(doc.get("_userId"))}
                for doc in _collection(documents, "organization_admins")
            },
        )

    def find_subscriber_by_id(self, environment_id: str, subscriber_id: str) -> Subscriber | None:
        self.calls.append(("find_subscriber_by_id", (environment_id, subscriber_id)))
        for subscriber in self._subscribers:
            if subscriber.get("subscriber_id") == subscriber_id and _in_environment(
                subscriber, environment_id
            ):
                return subscriber
        return None

    def find_stored_preference(
        self, environment_id: str, subscriber_id: str, workflow_id: str
    ) -> StoredPreference | None:
        self.calls.append(("find_stored_preference", (environment_id, subscriber_id, workflow_id)))
        for preference in self._stored_preferences:
            if (
                preference.get("subscriber_id") == subscriber_id
                and preference.get("workflow_id") == workflow_id
                and _in_environment(preference, environment_id)
            ):
                return preference
        return None

    def find_message_templates_by_ids(
        self, environment_id: str, ids: Iterable[str]
    ) -> list[MessageTemplate]:
        wanted = set(ids)
        self.calls.append(("find_message_templates_by_ids", (environment_id, tuple(sorted(wanted)))))
        return [
            template
            for template in self._message_templates
            if template.get("id") in wanted and _in_environment(template, environment_id)
        ]

    def list_active_workflows(self, organization_id: str, environment_id: str) -> list[Workflow]:
        self.calls.append(("list_active_workflows", (organization_id, environment_id)))
        return [
            workflow
            for workflow in self._workflows
            if workflow.get("active", True)
            and workflow.get("organization_id") in (None, organization_id)
            and _in_environment(workflow, environment_id)
        ]

    def get_organization_admin(self, organization_id: str) -> Mapping[str, Any] | None:
        self.calls.append(("get_organization_admin", (organization_id,)))
        return self._admins.get(organization_id)

    def call_count(self, name: str) -> int:
        return sum(1 for call_name, _args in self.calls if call_name == name)


def _in_environment(item: Mapping[str, Any], environment_id: str) -> bool:
    return item.get("environment_id") in (None, environment_id)


def _collection(documents: Mapping[str, Any], name: str) -> Sequence[Document]:
    items = documents.get(name) or []
    if not isinstance(items, list):
        raise ValueError(f"{name} must be a list of documents")
    return items
