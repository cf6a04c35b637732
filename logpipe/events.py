"""
Named notifications emitted by pipeline components.

Every component owns an EventBus. Subscribers register a callback per
EventType and receive an Event carrying the payload listed below. Pass the
same bus to several components to observe them through one channel.

    ======================== ===========================================
    Event                    Payload
    ======================== ===========================================
    SOURCE_ADDED/_REMOVED    LogSource (copy)
    COLLECTION_STARTED/_STOPPED  None
    LOG_COLLECTED            RawLog (copy)
    COLLECTION_ERROR         {'source_id': str, 'error': Exception}
    LOG_FILTERED             RawLog (copy)
    LOG_PROCESSED            ProcessedLog
    PROCESSING_ERROR         {'log': RawLog, 'error': Exception}
    BATCH_PROCESSED          BatchSummary
    FILTER_ADDED             Filter
    FILTER_REMOVED           filter id
    TRANSFORMATION_ADDED     Transformation
    TRANSFORMATION_REMOVED   transformation id
    ACTIVATED/DEACTIVATED    None
    ======================== ===========================================
"""

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Names of the notifications components emit."""
    SOURCE_ADDED = "source_added"
    SOURCE_REMOVED = "source_removed"
    COLLECTION_STARTED = "collection_started"
    COLLECTION_STOPPED = "collection_stopped"
    LOG_COLLECTED = "log_collected"
    COLLECTION_ERROR = "collection_error"
    LOG_FILTERED = "log_filtered"
    LOG_PROCESSED = "log_processed"
    PROCESSING_ERROR = "processing_error"
    BATCH_PROCESSED = "batch_processed"
    FILTER_ADDED = "filter_added"
    FILTER_REMOVED = "filter_removed"
    TRANSFORMATION_ADDED = "transformation_added"
    TRANSFORMATION_REMOVED = "transformation_removed"
    ACTIVATED = "activated"
    DEACTIVATED = "deactivated"


@dataclass(frozen=True)
class Event:
    """A single notification."""

    type: EventType
    payload: Any = None
    timestamp: datetime = field(default_factory=datetime.now)


Subscriber = Callable[[Event], None]


class EventBus:
    """
    Publish/subscribe channel for EventType notifications.

    Callbacks run synchronously on the emitting thread. A failing callback
    is logged and never propagates to the emitter or to other subscribers.
    """

    def __init__(self):
        self._subscribers: Dict[EventType, List[Subscriber]] = defaultdict(list)
        self._lock = threading.RLock()

    def subscribe(self, event_type: EventType, callback: Subscriber) -> None:
        """
        Register a callback for one event type.

        Args:
            event_type: The notification to listen for
            callback: Called with the Event on every emission
        """
        with self._lock:
            if callback not in self._subscribers[event_type]:
                self._subscribers[event_type].append(callback)

    def unsubscribe(self, event_type: EventType, callback: Subscriber) -> bool:
        """Remove a callback. Returns False if it was not registered."""
        with self._lock:
            callbacks = self._subscribers.get(event_type, [])
            if callback not in callbacks:
                return False
            callbacks.remove(callback)
            return True

    def emit(self, event_type: EventType, payload: Any = None) -> Event:
        """
        Deliver a notification to every subscriber of its type.

        Args:
            event_type: The notification name
            payload: Data described in the module table

        Returns:
            The emitted Event
        """
        event = Event(type=event_type, payload=payload)
        with self._lock:
            callbacks = list(self._subscribers.get(event_type, []))

        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error("Error in %s subscriber: %s", event_type.value, e, exc_info=True)
        return event

    def subscriber_count(self, event_type: EventType) -> int:
        with self._lock:
            return len(self._subscribers.get(event_type, []))

    def clear(self) -> None:
        """Drop every subscriber."""
        with self._lock:
            self._subscribers.clear()
