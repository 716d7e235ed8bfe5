#!/usr/bin/env python3
"""Resolve a subscriber's notification preferences locally.

Reads storage documents from a JSON fixture (or a built-in sample), runs the
batch resolution and prints the effective channels per workflow. Analytics go
to the console unless `--kafka-analytics` is given.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any

# Allow running this file directly from repository root.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from preferences import (  # noqa: E402
    InMemoryPreferenceStorage,
    KafkaAnalyticsTracker,
    NotFoundError,
    TTLSubscriberCache,
    get_subscriber_preference,
    track_via_console,
)


def main() -> int:
    _load_env_file(REPO_ROOT / ".env")
    args = parse_args()
    storage = InMemoryPreferenceStorage.from_documents(load_documents(args.documents_file))

    tracker = KafkaAnalyticsTracker.from_env() if args.kafka_analytics else None
    try:
        results = get_subscriber_preference(
            args.organization_id,
            args.environment_id,
            args.subscriber_id,
            storage=storage,
            track=tracker.track if tracker is not None else track_via_console,
            subscriber_cache=TTLSubscriberCache.from_env(),
            max_workers=args.max_workers,
        )
    except NotFoundError as exc:
        print(f"[NOT FOUND] {exc}")
        return 1
    finally:
        if tracker is not None:
            tracker.close()

    print("")
    print("[PREFERENCES]")
    for item in results:
        template = item["template"]
        preference = item["preference"]
        channels = " ".join(
            f"{channel}={enabled}" for channel, enabled in preference["channels"].items()
        )
        print(
            f"workflow={template['id']} name={template['name']!r} "
            f"critical={template['critical']} enabled={preference['enabled']} "
            f"channels=[{channels}]"
        )
    return 0


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Resolve effective channel preferences for one subscriber."
    )
    parser.add_argument(
        "--documents-file",
        type=Path,
        default=None,
        help="Optional JSON file with subscribers/workflows/subscriber_preferences collections.",
    )
    parser.add_argument("--organization-id", default="org-demo")
    parser.add_argument("--environment-id", default="env-demo")
    parser.add_argument("--subscriber-id", default="subscriber-demo")
    parser.add_argument(
        "--max-workers",
        type=int,
        default=None,
        help="Resolve workflows concurrently (defaults to PREFERENCES_BATCH_MAX_WORKERS).",
    )
    parser.add_argument(
        "--kafka-analytics",
        action="store_true",
        help="Publish the analytics event to Kafka instead of printing it.",
    )
    return parser.parse_args()


def load_documents(documents_file: Path | None) -> dict[str, Any]:
    if documents_file is None:
        return sample_documents()
    with documents_file.open("r", encoding="utf-8") as file_handle:
        return json.load(file_handle)


def sample_documents() -> dict[str, Any]:
    return {
        "subscribers": [
            {"_id": "sub-1", "subscriberId": "subscriber-demo", "_environmentId": "env-demo"},
        ],
        "organization_admins": [{"_organizationId": "org-demo", "_userId": "user-admin"}],
        "workflows": [
            {
                "_id": "wf-welcome",
                "_organizationId": "org-demo",
                "_environmentId": "env-demo",
                "name": "Welcome",
                "critical": False,
                "preferenceSettings": {"email": True, "sms": False},
                "steps": [
                    {"_id": "s1", "active": True, "template": {"type": "email"}},
                    {"_id": "s2", "active": True, "template": {"type": "sms"}},
                    {"_id": "s3", "active": False, "template": {"type": "push"}},
                ],
            },
            {
                "_id": "wf-digest",
                "_organizationId": "org-demo",
                "_environmentId": "env-demo",
                "name": "Weekly digest",
                "steps": [
                    {"_id": "s4", "active": True, "_templateId": "mt-in-app"},
                    {"_id": "s5", "active": True, "_templateId": "mt-chat"},
                ],
            },
        ],
        "message_templates": [
            {"_id": "mt-in-app", "type": "in_app", "_environmentId": "env-demo"},
            {"_id": "mt-chat", "type": "chat", "_environmentId": "env-demo"},
        ],
        "subscriber_preferences": [
            {
                "_environmentId": "env-demo",
                "_subscriberId": "sub-1",
                "_templateId": "wf-welcome",
                "enabled": True,
                "channels": {"sms": True},
            },
        ],
    }


def _load_env_file(path: Path) -> None:
    if not path.exists():
        return

    for line in path.read_text(encoding="utf-8").splitlines():
        text = line.strip()
        if not text or text.startswith("#") or "=" not in text:
            continue
        key, value = text.split("=", 1)
        key = key.strip()
        value = value.strip()
        if not key:
            continue
        if value.startswith(("'", '"')) and value.endswith(("'", '"')) and len(value) >= 2:
            value = value[1:-1]
        os.environ.setdefault(key, value)


if __name__ == "__main__":
    sys.exit(main())
