"""Domain layer: channel resolution and preference merge rules."""

from .channels import resolve_active_channels
from .merge import merge_preferences, stored_preference_is_whole

__all__ = [
    "merge_preferences",
    "resolve_active_channels",
    "stored_preference_is_whole",
]
