"""Application layer: preference resolution use-cases."""

from .subscriber_preference import get_subscriber_preference
from .template_preference import get_subscriber_template_preference

__all__ = [
    "get_subscriber_preference",
    "get_subscriber_template_preference",
]
