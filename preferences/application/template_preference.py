"""Application use-case: one subscriber's preference for one workflow.

Mental model refresher:
- Application layer coordinates use-case flow across domain modules.
- In this module it:
  1) resolves the workflow's active channels
  2) resolves the subscriber (passed in, cached, or fetched)
  3) fetches the stored override and merges it with workflow defaults
  4) shapes the response returned to callers
- Storage and cache are injected; nothing here holds state between calls.
"""

from __future__ import annotations

from typing import Any

import structlog

from ..adapters.cache import build_subscriber_key
from ..domain.channels import resolve_active_channels
from ..domain.merge import merge_preferences
from ..errors import NotFoundError
from ..types import (
    PreferenceResponse,
    PreferenceStorage,
    Subscriber,
    SubscriberCache,
    Workflow,
)

logger = structlog.get_logger(__name__)


def get_subscriber_template_preference(
    environment_id: str,
    subscriber_id: str,
    workflow: Workflow,
    subscriber: Subscriber | None = None,
    *,
    storage: PreferenceStorage,
    subscriber_cache: SubscriberCache | None = None,
) -> PreferenceResponse:
    """Resolve the effective `{enabled, channels}` for one workflow.

    Raises `NotFoundError` when the subscriber does not exist. Storage errors
    propagate unchanged.
    """
    active_channels = resolve_active_channels(
        workflow,
        environment_id=environment_id,
        find_message_templates=storage.find_message_templates_by_ids,
    )

    if subscriber is None:
        subscriber = fetch_subscriber(
            environment_id,
            subscriber_id,
            storage=storage,
            subscriber_cache=subscriber_cache,
        )
    if subscriber is None:
        raise NotFoundError(environment_id, subscriber_id)

    stored_preference = storage.find_stored_preference(
        environment_id, str(subscriber["id"]), str(workflow["id"])
    )
    merged = merge_preferences(
        active_channels,
        workflow.get("preference_settings"),
        stored_preference,
    )

    logger.debug(
        "Resolved subscriber template preference",
        environment_id=environment_id,
        subscriber_id=subscriber_id,
        workflow_id=workflow["id"],
        active_channels=[channel.value for channel in active_channels],
        has_stored_preference=stored_preference is not None,
        enabled=merged["enabled"],
    )

    return {
        "template": map_response_template(workflow),
        "preference": merged,
    }


def fetch_subscriber(
    environment_id: str,
    subscriber_id: str,
    *,
    storage: PreferenceStorage,
    subscriber_cache: SubscriberCache | None = None,
) -> Subscriber | None:
    def load() -> Subscriber | None:
        return storage.find_subscriber_by_id(environment_id, subscriber_id)

    if subscriber_cache is None:
        return load()
    key = build_subscriber_key(environment_id=environment_id, subscriber_id=subscriber_id)
    return subscriber_cache.get_or_compute(key, load)


def map_response_template(workflow: Workflow) -> dict[str, Any]:
    critical = workflow.get("critical")
    return {
        "id": workflow["id"],
        "name": workflow.get("name", ""),
        "critical": True if critical is None else bool(critical),
    }
