"""Errors raised by preference resolution."""

from __future__ import annotations


class PreferenceError(Exception):
    """Base class for preference resolution failures."""


class NotFoundError(PreferenceError):
    """The subscriber does not exist in the given environment."""

    def __init__(self, environment_id: str, subscriber_id: str) -> None:
        super().__init__(f"Subscriber {subscriber_id} not found")
        self.environment_id = environment_id
        self.subscriber_id = subscriber_id
