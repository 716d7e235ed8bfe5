"""Adapter layer: storage documents, caching and analytics transports."""

from .cache import TTLSubscriberCache, build_subscriber_key
from .documents import (
    parse_message_template_document,
    parse_stored_preference_document,
    parse_subscriber_document,
    parse_workflow_document,
)
from .fake_analytics import track_via_console
from .kafka_analytics import KafkaAnalyticsTracker
from .memory_storage import InMemoryPreferenceStorage

__all__ = [
    "InMemoryPreferenceStorage",
    "KafkaAnalyticsTracker",
    "TTLSubscriberCache",
    "build_subscriber_key",
    "parse_message_template_document",
    "parse_stored_preference_document",
    "parse_subscriber_document",
    "parse_workflow_document",
    "track_via_console",
]
