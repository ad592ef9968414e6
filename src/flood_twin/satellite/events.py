"""Lifecycle event hooks for the acquisition pipeline.

Components emit named events through an ``EventHooks`` instance. Every event
is logged; callers that want metrics or tracing subscribe a callback instead
of parsing log lines.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from threading import Lock
from typing import Any

logger = logging.getLogger(__name__)


class EventName(StrEnum):
    """Events emitted by the token manager, cache and orchestrator."""

    TOKEN_ACQUIRED = "token-acquired"
    TOKEN_RENEW_FAILED = "token-renew-failed"
    CACHE_HIT = "cache-hit"
    CACHE_MISS = "cache-miss"
    SWEEP_COMPLETED = "sweep-completed"
    FETCH_COMPLETED = "fetch-completed"


_WARNING_EVENTS = {EventName.TOKEN_RENEW_FAILED}
_DEBUG_EVENTS = {EventName.CACHE_HIT, EventName.CACHE_MISS}


@dataclass(frozen=True)
class PipelineEvent:
    """One emitted event with its attributes."""

    name: EventName
    attributes: dict[str, Any] = field(default_factory=dict)


Subscriber = Callable[[PipelineEvent], None]


class EventHooks:
    """Fan-out of pipeline events to logging and registered subscribers."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []
        self._lock = Lock()

    def subscribe(self, callback: Subscriber) -> None:
        with self._lock:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def emit(self, name: EventName, **attributes: Any) -> None:
        """Log the event and deliver it to every subscriber."""
        event = PipelineEvent(name=name, attributes=attributes)
        if name in _WARNING_EVENTS:
            level = logging.WARNING
        elif name in _DEBUG_EVENTS:
            level = logging.DEBUG
        else:
            level = logging.INFO
        logger.log(level, "event=%s %s", name.value, _format_attributes(attributes))

        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(event)
            except Exception as exc:
                logger.warning("Event subscriber failed for %s: %s", name.value, exc)


def _format_attributes(attributes: dict[str, Any]) -> str:
    return " ".join(f"{key}={value}" for key, value in sorted(attributes.items()))
