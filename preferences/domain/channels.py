"""Active channel resolution for a workflow.

Mental model refresher:
- Domain modules hold preference rules; they never touch storage directly.
- A workflow only "uses" the channels of its active steps.
- Message templates are normally embedded in the step. Steps missing one are
  resolved by a single batched lookup (injected function).
"""

from __future__ import annotations

from typing import Any

import structlog

from ..types import Channel, FindMessageTemplatesFn, Step, Workflow

logger = structlog.get_logger(__name__)


def resolve_active_channels(
    workflow: Workflow,
    *,
    environment_id: str,
    find_message_templates: FindMessageTemplatesFn,
) -> list[Channel]:
    """Return the distinct channels used by the workflow's active steps.

    Channels come back in first-seen step order on both the embedded and the
    lookup path, so repeated calls yield the same sequence.
    """
    active_steps = [step for step in workflow.get("steps") or [] if step.get("active") is True]
    if not active_steps:
        return []

    if any(_embedded_type(step) is None for step in active_steps):
        step_types = _lookup_step_types(
            active_steps,
            environment_id=environment_id,
            find_message_templates=find_message_templates,
        )
    else:
        step_types = [_embedded_type(step) for step in active_steps]

    channels: list[Channel] = []
    for step_type in step_types:
        channel = _as_channel(step_type)
        if channel is None:
            logger.debug(
                "Skipping non-channel step type",
                workflow_id=workflow.get("id"),
                step_type=step_type,
            )
            continue
        if channel not in channels:
            channels.append(channel)
    return channels


def _lookup_step_types(
    active_steps: list[Step],
    *,
    environment_id: str,
    find_message_templates: FindMessageTemplatesFn,
) -> list[Any]:
    missing_ids = [
        _template_id(step) for step in active_steps if _embedded_type(step) is None
    ]
    template_ids = list(dict.fromkeys(item for item in missing_ids if item))
    templates = find_message_templates(environment_id, template_ids)
    type_by_id = {str(template.get("id")): template.get("type") for template in templates}

    # Embedded types win; templates the lookup did not return are dropped.
    step_types: list[Any] = []
    for step in active_steps:
        step_type = _embedded_type(step)
        if step_type is None:
            step_type = type_by_id.get(str(_template_id(step)))
        if step_type is not None:
            step_types.append(step_type)
    return step_types


def _embedded_type(step: Step) -> Any:
    template = step.get("template")
    if not template:
        return None
    return template.get("type")


def _template_id(step: Step) -> str | None:
    template_id = step.get("template_id")
    if template_id:
        return str(template_id)
    template = step.get("template") or {}
    return str(template["id"]) if template.get("id") else None


def _as_channel(value: Any) -> Channel | None:
    try:
        return Channel(value)
    except ValueError:
        return None
