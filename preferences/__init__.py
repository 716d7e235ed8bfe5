"""Subscriber notification preference resolution.

Module layout by abstraction layer:
- adapters: storage documents, subscriber cache and analytics transports
- domain: active channel and preference merge rules
- application: single-workflow and batch resolution use-cases
"""

from .adapters.cache import TTLSubscriberCache, build_subscriber_key
from .adapters.fake_analytics import track_via_console
from .adapters.kafka_analytics import KafkaAnalyticsTracker
from .adapters.memory_storage import InMemoryPreferenceStorage
from .application.subscriber_preference import get_subscriber_preference
from .application.template_preference import get_subscriber_template_preference
from .domain.channels import resolve_active_channels
from .domain.merge import merge_preferences
from .errors import NotFoundError, PreferenceError
from .types import Channel, PreferenceStorage

__all__ = [
    "Channel",
    "InMemoryPreferenceStorage",
    "KafkaAnalyticsTracker",
    "NotFoundError",
    "PreferenceError",
    "PreferenceStorage",
    "TTLSubscriberCache",
    "build_subscriber_key",
    "get_subscriber_preference",
    "get_subscriber_template_preference",
    "merge_preferences",
    "resolve_active_channels",
    "track_via_console",
]
