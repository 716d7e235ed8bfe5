"""Kafka transport adapter for analytics events.

Mental model refresher:
- This module is transport glue to Kafka itself.
- `track` is fire-and-forget: the send future is never awaited and any
  failure is logged, not raised. Preference resolution must not wait on or
  fail because of analytics.
"""

from __future__ import annotations

from datetime import UTC, datetime
import json
import os
from typing import Any, Mapping

import structlog

logger = structlog.get_logger(__name__)

# Upper bound on how long `send` may wait for broker metadata or buffer space.
DEFAULT_MAX_BLOCK_MS = 500


class KafkaAnalyticsTracker:
    """Publish analytics `track` calls as JSON records to a Kafka topic."""

    def __init__(self, producer: Any, *, topic: str, close_timeout_seconds: float = 10.0) -> None:
        self._producer = producer
        self.topic = topic
        self.close_timeout_seconds = close_timeout_seconds

    @classmethod
    def from_env(cls) -> "KafkaAnalyticsTracker":
        KafkaProducer = _import_kafka_producer()
        producer = KafkaProducer(
            bootstrap_servers=_bootstrap_servers_from_env(),
            value_serializer=_serialize_json_object,
            acks=_acks_from_env(),
            max_block_ms=_max_block_ms_from_env(),
        )
        return cls(
            producer,
            topic=os.getenv("KAFKA_TOPIC_ANALYTICS_EVENTS", "analytics.events"),
            close_timeout_seconds=float(os.getenv("KAFKA_SEND_TIMEOUT_SECONDS", "10")),
        )

    def track(self, event_name: str, actor_id: str, properties: Mapping[str, Any]) -> None:
        payload = build_analytics_payload(event_name, actor_id, properties)
        try:
            future = self._producer.send(self.topic, value=payload)
        except Exception as exc:
            logger.warning(
                "Analytics event publish failed",
                topic=self.topic,
                event_name=event_name,
                error=str(exc),
            )
            return

        add_errback = getattr(future, "add_errback", None)
        if add_errback is not None:
            add_errback(_log_send_failure, topic=self.topic, event_name=event_name)

    def close(self) -> None:
        try:
            self._producer.flush(timeout=self.close_timeout_seconds)
        finally:
            self._producer.close()


def build_analytics_payload(
    event_name: str, actor_id: str, properties: Mapping[str, Any]
) -> dict[str, Any]:
    return {
        "event_type": "analytics.track",
        "event_name": event_name,
        "actor_id": actor_id,
        "tracked_at": datetime.now(tz=UTC).isoformat(),
        "properties": _to_json_compatible(properties),
    }


def _log_send_failure(exc: BaseException, *, topic: str, event_name: str) -> None:
    logger.warning(
        "Analytics event delivery failed",
        topic=topic,
        event_name=event_name,
        error=str(exc),
    )


def _import_kafka_producer() -> Any:
    try:
        from kafka import KafkaProducer
    except Exception as exc:
        raise RuntimeError(
            "Kafka analytics requires `kafka-python`. Install with: pip install kafka-python"
        ) from exc
    return KafkaProducer


def _required_env(name: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value.strip()


def _bootstrap_servers_from_env() -> list[str]:
    raw = _required_env("KAFKA_BOOTSTRAP_SERVERS")
    servers = [item.strip() for item in raw.split(",") if item.strip()]
    if not servers:
        raise RuntimeError("KAFKA_BOOTSTRAP_SERVERS must include at least one host:port")
    return servers


def _acks_from_env() -> int | str:
    raw = os.getenv("KAFKA_PRODUCER_ACKS", "1").strip()
    if raw == "all":
        return raw
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"Invalid value for KAFKA_PRODUCER_ACKS: {raw!r}") from exc


def _max_block_ms_from_env() -> int:
    raw = os.getenv("KAFKA_ANALYTICS_MAX_BLOCK_MS", str(DEFAULT_MAX_BLOCK_MS)).strip()
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"Invalid integer for KAFKA_ANALYTICS_MAX_BLOCK_MS: {raw!r}") from exc
    if value < 0:
        raise RuntimeError("KAFKA_ANALYTICS_MAX_BLOCK_MS must be >= 0")
    return value


def _serialize_json_object(payload: Mapping[str, Any]) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


def _to_json_compatible(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Mapping):
        return {str(key): _to_json_compatible(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_to_json_compatible(item) for item in value]
    return repr(value)
