"""Fake analytics adapter for local smoke tests.

Mental model refresher:
- This is outbound adapter code.
- In production, analytics events go to a real pipeline (see
  `kafka_analytics.py`); use-cases only see a `track` callable.
"""

from __future__ import annotations

import json
from typing import Any, Mapping


def track_via_console(event_name: str, actor_id: str, properties: Mapping[str, Any]) -> None:
    print("[ANALYTICS]")
    print(f"event={event_name}")
    print(f"actor_id={actor_id}")
    print(f"properties={json.dumps(dict(properties), sort_keys=True)}")
