"""
Progress events of a localization run.

The localizer and the chunk executor publish typed events on an optional
``EventBus``; listeners (a progress bar, a web socket, a test) subscribe per
event type. Publishing is synchronous and a broken listener is logged and
skipped, so observers can never change the outcome of a run.
"""

import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, DefaultDict, Dict, List

logger = logging.getLogger(__name__)

Listener = Callable[['Event'], None]


class EventType(Enum):
    """What happened. Values double as the wire name of the event."""

    TRANSLATION_STARTED = "translation_started"
    TRANSLATION_COMPLETED = "translation_completed"
    TRANSLATION_FAILED = "translation_failed"

    CHUNK_STARTED = "chunk_started"
    CHUNK_TRANSLATED = "chunk_translated"
    CHUNK_RETRY = "chunk_retry"
    CHUNK_FAILED = "chunk_failed"
    FALLBACK_USED = "fallback_used"

    VALIDATION_ISSUE = "validation_issue"


@dataclass
class Event:
    """A published event.

    Attributes:
        type: Event type
        data: Payload, keyed by field name (``chunk_index``, ``error``...)
        timestamp: Unix time of creation
        source: Component that published it (``localizer``, ``chunk_executor``...)
    """
    type: EventType
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)
    source: str = "unknown"


class EventBus:
    """Synchronous publish/subscribe hub.

    Args:
        record_history: Keep every published event (handy in tests)
    """

    def __init__(self, record_history: bool = False):
        self._listeners: DefaultDict[EventType, List[Listener]] = defaultdict(list)
        self._history: List[Event] = []
        self._record_history = record_history

    def subscribe(self, event_type: EventType, callback: Listener) -> None:
        self._listeners[event_type].append(callback)

    def unsubscribe(self, event_type: EventType, callback: Listener) -> None:
        """Remove a callback. Unknown callbacks are ignored."""
        listeners = self._listeners.get(event_type, [])
        if callback in listeners:
            listeners.remove(callback)

    def publish(self, event: Event) -> None:
        if self._record_history:
            self._history.append(event)

        # copy, a listener may unsubscribe itself
        for listener in list(self._listeners.get(event.type, [])):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Listener {listener!r} failed on {event.type.value}")

    def enable_history(self) -> None:
        self._record_history = True

    def get_history(self) -> List[Event]:
        return list(self._history)

    def get_events_by_type(self, event_type: EventType) -> List[Event]:
        return [event for event in self._history if event.type == event_type]

    def clear_history(self) -> None:
        self._history.clear()


# Builders for the chunk-level events, shared by the executor and its tests

def _chunk_event(event_type: EventType, chunk_index: int, source: str = "chunk_executor", **data) -> Event:
    return Event(type=event_type, data={"chunk_index": chunk_index, **data}, source=source)


def create_chunk_started_event(chunk_index: int, size: int) -> Event:
    """``size`` is the number of values actually sent."""
    return _chunk_event(EventType.CHUNK_STARTED, chunk_index, size=size)


def create_chunk_translated_event(
    chunk_index: int,
    total_chunks: int,
    success: bool,
    retry_count: int = 0
) -> Event:
    """Chunk settled with a usable answer.

    Args:
        chunk_index: Zero-based chunk index
        total_chunks: Number of chunks in the run
        success: Whether the answer was used
        retry_count: Repair retries needed (0 or 1)
    """
    progress = (chunk_index + 1) / total_chunks if total_chunks > 0 else 0
    return _chunk_event(
        EventType.CHUNK_TRANSLATED,
        chunk_index,
        total_chunks=total_chunks,
        success=success,
        retry_count=retry_count,
        progress=progress
    )


def create_chunk_retry_event(chunk_index: int, attempt: int, reason: str) -> Event:
    return _chunk_event(EventType.CHUNK_RETRY, chunk_index, attempt=attempt, reason=reason)


def create_chunk_failed_event(chunk_index: int, error: str, attempts: int) -> Event:
    return _chunk_event(EventType.CHUNK_FAILED, chunk_index, error=error, attempts=attempts)


def create_fallback_event(chunk_index: int, reason: str) -> Event:
    """The chunk's source values were kept in place of a translation."""
    return _chunk_event(EventType.FALLBACK_USED, chunk_index, reason=reason)


def create_validation_issue_event(chunk_index: int, leaf_index: int, kind: str) -> Event:
    return _chunk_event(
        EventType.VALIDATION_ISSUE,
        chunk_index,
        source="invariant_validator",
        leaf_index=leaf_index,
        kind=kind
    )
