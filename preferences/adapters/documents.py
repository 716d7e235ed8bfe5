"""Storage document adapter functions.

Mental model refresher:
- This is an adapter/edge module.
- It translates storage-shaped documents (Mongo-style `_id`, camelCase keys)
  into the internal dictionaries used by application/domain code.
- It validates shape and required ids, but it does not decide which
  channels are enabled.
"""

from __future__ import annotations

from typing import Any, Mapping

from ..types import ChannelMap, Document


def parse_workflow_document(document: Document) -> dict[str, Any]:
    """Normalize a notification template document into a workflow dict."""
    steps = document.get("steps") or []
    if not isinstance(steps, list):
        raise ValueError("workflow.steps must be a list")

    critical = document.get("critical")
    return {
        "id": _as_required_str(_first(document, "_id", "id"), "workflow._id"),
        "organization_id": _as_optional_str(_first(document, "_organizationId", "organization_id")),
        "environment_id": _as_optional_str(_first(document, "_environmentId", "environment_id")),
        "active": document.get("active", True) is True and not document.get("deleted", False),
        "name": str(document.get("name", "")),
        "critical": None if critical is None else bool(critical),
        "steps": [_parse_step(step, index) for index, step in enumerate(steps)],
        "preference_settings": _as_optional_channel_map(
            _first(document, "preferenceSettings", "preference_settings"),
            "workflow.preferenceSettings",
        ),
    }


def parse_stored_preference_document(document: Document) -> dict[str, Any]:
    """Normalize a subscriber preference document."""
    enabled = document.get("enabled")
    return {
        "environment_id": _as_optional_str(_first(document, "_environmentId", "environment_id")),
        "subscriber_id": _as_required_str(
            _first(document, "_subscriberId", "subscriber_id"), "preference._subscriberId"
        ),
        "workflow_id": _as_required_str(
            _first(document, "_templateId", "workflow_id"), "preference._templateId"
        ),
        "enabled": None if enabled is None else bool(enabled),
        "channels": _as_optional_channel_map(document.get("channels"), "preference.channels"),
    }


def parse_subscriber_document(document: Document) -> dict[str, Any]:
    parsed = dict(document)
    parsed["id"] = _as_required_str(_first(document, "_id", "id"), "subscriber._id")
    parsed["subscriber_id"] = _as_required_str(
        _first(document, "subscriberId", "subscriber_id"), "subscriber.subscriberId"
    )
    parsed["environment_id"] = _as_optional_str(
        _first(document, "_environmentId", "environment_id")
    )
    return parsed


def parse_message_template_document(document: Document) -> dict[str, Any]:
    return {
        "id": _as_required_str(_first(document, "_id", "id"), "message_template._id"),
        "type": _as_required_str(document.get("type"), "message_template.type"),
        "environment_id": _as_optional_str(_first(document, "_environmentId", "environment_id")),
    }


def _parse_step(step: Any, index: int) -> dict[str, Any]:
    if not isinstance(step, Mapping):
        raise ValueError(f"workflow.steps[{index}] must be an object")

    template = step.get("template")
    parsed_template = None
    if isinstance(template, Mapping) and template:
        parsed_template = {
            "id": _as_optional_str(_first(template, "_id", "id")),
            "type": _as_required_str(template.get("type"), f"workflow.steps[{index}].template.type"),
        }

    return {
        "id": _as_optional_str(_first(step, "_id", "id")),
        "active": step.get("active") is True,
        "template_id": _as_optional_str(_first(step, "_templateId", "template_id")),
        "template": parsed_template,
    }


def _as_optional_channel_map(value: Any, field_name: str) -> ChannelMap | None:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ValueError(f"{field_name} must be an object")

    channels: ChannelMap = {}
    for key, enabled in value.items():
        if not isinstance(enabled, bool):
            raise ValueError(f"{field_name}.{key} must be a boolean")
        channels[str(key)] = enabled
    return channels


def _first(document: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if document.get(key) is not None:
            return document[key]
    return None


def _as_required_str(value: Any, field_name: str) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ValueError(f"Missing required field: {field_name}")
    return text


def _as_optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
