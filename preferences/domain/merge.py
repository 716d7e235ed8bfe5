"""Effective preference merge for one subscriber and one workflow.

Mental model refresher:
- Three sources feed the channel map, in precedence order:
  1) the subscriber's stored preference (overrides)
  2) the workflow's default preference (`preference_settings`)
  3) the all-enabled fallback for workflows that never configured preferences
- A channel missing from a map is "unspecified", never `False`.
- Only the workflow's active channels survive in the result.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from ..types import Channel, ChannelMap, MergedPreference, StoredPreference

SOURCE_TEMPLATE = "template"
SOURCE_SUBSCRIBER = "subscriber"

FALLBACK_CHANNELS: ChannelMap = {channel.value: True for channel in Channel}


def merge_preferences(
    active_channels: Sequence[Channel],
    default_preference: Mapping[str, bool] | None = None,
    stored_preference: StoredPreference | None = None,
) -> MergedPreference:
    """Resolve `{enabled, channels, overrides}` for the given active channels."""
    enabled = _stored_enabled(stored_preference)
    stored_channels = _stored_channels(stored_preference)

    if stored_preference_is_whole(stored_channels, active_channels):
        # A full-size override is authoritative, even with mismatched keys.
        layers = [(stored_channels, SOURCE_SUBSCRIBER)]
    elif default_preference is None:
        layers = [(FALLBACK_CHANNELS, SOURCE_TEMPLATE)]
    elif stored_channels is None:
        layers = [(default_preference, SOURCE_TEMPLATE)]
    else:
        layers = [(default_preference, SOURCE_TEMPLATE), (stored_channels, SOURCE_SUBSCRIBER)]

    channels, overrides = _overlay(layers, active_channels)
    return {"enabled": enabled, "channels": channels, "overrides": overrides}


def stored_preference_is_whole(
    stored_channels: Mapping[str, bool] | None,
    active_channels: Sequence[Channel] | None,
) -> bool:
    """Key-count check only; key identity is not compared."""
    if stored_channels is None or active_channels is None:
        return False
    return len(stored_channels) == len(active_channels)


def _overlay(
    layers: list[tuple[Mapping[str, bool], str]],
    active_channels: Sequence[Channel],
) -> tuple[ChannelMap, list[dict[str, str]]]:
    active = {Channel(channel) for channel in active_channels}
    channels: ChannelMap = {}
    overrides: list[dict[str, str]] = []

    for channel in Channel:
        if channel not in active:
            continue
        value: bool | None = None
        source = SOURCE_TEMPLATE
        for layer, layer_source in layers:
            if channel.value in layer:
                value = bool(layer[channel.value])
                source = layer_source
        if value is None:
            continue
        channels[channel.value] = value
        overrides.append({"channel": channel.value, "source": source})

    return channels, overrides


def _stored_enabled(stored_preference: StoredPreference | None) -> bool:
    if stored_preference is None:
        return True
    enabled = stored_preference.get("enabled")
    return True if enabled is None else bool(enabled)


def _stored_channels(stored_preference: StoredPreference | None) -> Mapping[str, bool] | None:
    if stored_preference is None:
        return None
    return stored_preference.get("channels")
