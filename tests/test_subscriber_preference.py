from __future__ import annotations

import threading
import time
import unittest
from typing import Any, Mapping
from unittest import mock

from preferences.adapters.cache import TTLSubscriberCache
from preferences.adapters.memory_storage import InMemoryPreferenceStorage
from preferences.application.subscriber_preference import (
    FETCH_PREFERENCES_EVENT,
    get_subscriber_preference,
)
from preferences.errors import NotFoundError

SUBSCRIBER = {"id": "sub-internal-1", "subscriber_id": "subscriber-1"}


def make_workflow(workflow_id: str, *channels: str) -> dict[str, Any]:
    return {
        "id": workflow_id,
        "organization_id": "org-1",
        "name": f"Workflow {workflow_id}",
        "steps": [
            {"id": f"{workflow_id}-{channel}", "active": True, "template": {"type": channel}}
            for channel in channels
        ],
        "preference_settings": None,
    }


class RecordingTracker:
    def __init__(self) -> None:
        self.events: list[tuple[str, str, dict[str, Any]]] = []

    def __call__(self, event_name: str, actor_id: str, properties: Mapping[str, Any]) -> None:
        self.events.append((event_name, actor_id, dict(properties)))


class SubscriberPreferenceTests(unittest.TestCase):
    def make_storage(self, **kwargs: Any) -> InMemoryPreferenceStorage:
        kwargs.setdefault("subscribers", [SUBSCRIBER])
        kwargs.setdefault(
            "workflows",
            [
                make_workflow("wf-a", "email"),
                make_workflow("wf-b", "sms", "push"),
                make_workflow("wf-c", "in_app"),
            ],
        )
        kwargs.setdefault("admins", {"org-1": {"user_id": "admin-user"}})
        return InMemoryPreferenceStorage(**kwargs)

    def test_results_follow_workflow_order(self) -> None:
        storage = self.make_storage()

        results = get_subscriber_preference(
            "org-1", "env-1", "subscriber-1", storage=storage, track=RecordingTracker()
        )

        self.assertEqual([item["template"]["id"] for item in results], ["wf-a", "wf-b", "wf-c"])
        self.assertEqual(results[1]["preference"]["channels"], {"sms": True, "push": True})

    def test_tracks_one_event_with_workflow_count(self) -> None:
        storage = self.make_storage()
        tracker = RecordingTracker()

        get_subscriber_preference("org-1", "env-1", "subscriber-1", storage=storage, track=tracker)

        self.assertEqual(
            tracker.events,
            [(FETCH_PREFERENCES_EVENT, "admin-user", {"_organization": "org-1", "templatesSize": 3})],
        )

    def test_no_admin_means_no_analytics_event(self) -> None:
        storage = self.make_storage(admins={})
        tracker = RecordingTracker()

        results = get_subscriber_preference(
            "org-1", "env-1", "subscriber-1", storage=storage, track=tracker
        )

        self.assertEqual(tracker.events, [])
        self.assertEqual(len(results), 3)

    def test_analytics_failure_does_not_fail_the_batch(self) -> None:
        storage = self.make_storage()

        def broken_track(event_name: str, actor_id: str, properties: Mapping[str, Any]) -> None:
            raise RuntimeError("analytics down")

        results = get_subscriber_preference(
            "org-1", "env-1", "subscriber-1", storage=storage, track=broken_track
        )

        self.assertEqual(len(results), 3)

    def test_admin_lookup_failure_is_absorbed(self) -> None:
        class NoAdminStorage(InMemoryPreferenceStorage):
            def get_organization_admin(self, organization_id: str):
                raise ConnectionError("members collection unavailable")

        storage = NoAdminStorage(
            subscribers=[SUBSCRIBER], workflows=[make_workflow("wf-a", "email")]
        )

        results = get_subscriber_preference(
            "org-1", "env-1", "subscriber-1", storage=storage, track=RecordingTracker()
        )

        self.assertEqual(len(results), 1)

    def test_missing_subscriber_propagates(self) -> None:
        storage = self.make_storage(subscribers=[])

        with self.assertRaises(NotFoundError):
            get_subscriber_preference(
                "org-1", "env-1", "subscriber-1", storage=storage, track=RecordingTracker()
            )

    def test_empty_workflow_list_returns_empty_results(self) -> None:
        storage = self.make_storage(workflows=[])
        tracker = RecordingTracker()

        results = get_subscriber_preference(
            "org-1", "env-1", "subscriber-1", storage=storage, track=tracker
        )

        self.assertEqual(results, [])
        self.assertEqual(tracker.events[0][2]["templatesSize"], 0)

    def test_subscriber_is_fetched_once_per_batch(self) -> None:
        storage = self.make_storage()

        get_subscriber_preference(
            "org-1",
            "env-1",
            "subscriber-1",
            storage=storage,
            track=RecordingTracker(),
            subscriber_cache=TTLSubscriberCache(ttl_seconds=60),
        )

        self.assertEqual(storage.call_count("find_subscriber_by_id"), 1)
        self.assertEqual(storage.call_count("find_stored_preference"), 3)

    def test_concurrent_resolution_keeps_workflow_order(self) -> None:
        delays = {"wf-a": 0.05, "wf-b": 0.0, "wf-c": 0.02}
        seen_threads: set[int] = set()

        class SlowStorage(InMemoryPreferenceStorage):
            def find_stored_preference(self, environment_id: str, subscriber_id: str, workflow_id: str):
                seen_threads.add(threading.get_ident())
                time.sleep(delays[workflow_id])
                return super().find_stored_preference(environment_id, subscriber_id, workflow_id)

        storage = SlowStorage(
            subscribers=[SUBSCRIBER],
            workflows=[
                make_workflow("wf-a", "email"),
                make_workflow("wf-b", "sms"),
                make_workflow("wf-c", "chat"),
            ],
        )

        results = get_subscriber_preference(
            "org-1",
            "env-1",
            "subscriber-1",
            storage=storage,
            track=RecordingTracker(),
            max_workers=3,
        )

        self.assertEqual([item["template"]["id"] for item in results], ["wf-a", "wf-b", "wf-c"])
        self.assertNotIn(threading.get_ident(), seen_threads)

    def test_max_workers_comes_from_env(self) -> None:
        storage = self.make_storage()

        with mock.patch.dict("os.environ", {"PREFERENCES_BATCH_MAX_WORKERS": "0"}, clear=True):
            with self.assertRaises(RuntimeError):
                get_subscriber_preference(
                    "org-1", "env-1", "subscriber-1", storage=storage, track=RecordingTracker()
                )

        with mock.patch.dict("os.environ", {"PREFERENCES_BATCH_MAX_WORKERS": "2"}, clear=True):
            results = get_subscriber_preference(
                "org-1", "env-1", "subscriber-1", storage=storage, track=RecordingTracker()
            )
        self.assertEqual(len(results), 3)


if __name__ == "__main__":
    unittest.main()
