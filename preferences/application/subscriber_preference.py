"""Application use-case: one subscriber's preferences across all workflows.

Mental model refresher:
- Fans out `get_subscriber_template_preference` over every active workflow
  of an organization/environment.
- Results keep the storage's workflow order, even when resolutions run on a
  thread pool.
- Reports one analytics event per batch. Analytics never blocks or fails the
  batch; resolution errors always propagate.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import os

import structlog

from ..adapters.cache import TTLSubscriberCache
from ..types import PreferenceResponse, PreferenceStorage, SubscriberCache, TrackFn, Workflow
from .template_preference import get_subscriber_template_preference

logger = structlog.get_logger(__name__)

FETCH_PREFERENCES_EVENT = "Fetch User Preferences - [Notification Center]"


def get_subscriber_preference(
    organization_id: str,
    environment_id: str,
    subscriber_id: str,
    *,
    storage: PreferenceStorage,
    track: TrackFn,
    subscriber_cache: SubscriberCache | None = None,
    max_workers: int | None = None,
) -> list[PreferenceResponse]:
    """Resolve preferences for every active workflow, in workflow order."""
    workflows = storage.list_active_workflows(organization_id, environment_id)
    _track_fetch(organization_id, len(workflows), storage=storage, track=track)

    if subscriber_cache is None:
        subscriber_cache = TTLSubscriberCache.from_env()
    if max_workers is None:
        max_workers = _max_workers_from_env()

    def resolve(workflow: Workflow) -> PreferenceResponse:
        return get_subscriber_template_preference(
            environment_id,
            subscriber_id,
            workflow,
            storage=storage,
            subscriber_cache=subscriber_cache,
        )

    if max_workers <= 1 or len(workflows) <= 1:
        results = [resolve(workflow) for workflow in workflows]
    else:
        with ThreadPoolExecutor(max_workers=min(max_workers, len(workflows))) as executor:
            results = list(executor.map(resolve, workflows))

    logger.info(
        "Resolved subscriber preferences",
        organization_id=organization_id,
        environment_id=environment_id,
        subscriber_id=subscriber_id,
        workflow_count=len(results),
    )
    return results


def _track_fetch(
    organization_id: str,
    workflow_count: int,
    *,
    storage: PreferenceStorage,
    track: TrackFn,
) -> None:
    try:
        admin = storage.get_organization_admin(organization_id)
        if not admin:
            return
        track(
            FETCH_PREFERENCES_EVENT,
            str(admin["user_id"]),
            {"_organization": organization_id, "templatesSize": workflow_count},
        )
    except Exception as exc:
        logger.warning(
            "Analytics tracking failed",
            organization_id=organization_id,
            event_name=FETCH_PREFERENCES_EVENT,
            error=str(exc),
        )


def _max_workers_from_env() -> int:
    raw = os.getenv("PREFERENCES_BATCH_MAX_WORKERS")
    if raw is None or not raw.strip():
        return 1
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"Invalid integer for PREFERENCES_BATCH_MAX_WORKERS: {raw!r}") from exc
    if value < 1:
        raise RuntimeError("PREFERENCES_BATCH_MAX_WORKERS must be >= 1")
    return value
