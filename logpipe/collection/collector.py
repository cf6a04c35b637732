"""
Log collector.

This module polls registered log sources on their own intervals and
accumulates the fetched records in a bounded buffer until a consumer drains
it with ``collect_logs()``.
"""

import logging
import threading
import uuid
from datetime import datetime
from typing import Callable, Dict, List, Optional

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.job import Job
from apscheduler.schedulers.background import BackgroundScheduler

from logpipe.collection.buffer import LogBuffer, MAX_BUFFER_SIZE
from logpipe.collection.sources import SourceAdapter, create_adapter
from logpipe.events import EventBus, EventType
from logpipe.models import CollectionStats, LogSource, RawLog

logger = logging.getLogger(__name__)


class LogCollector:
    """
    Polls log sources and buffers what they return.

    Every active source gets one APScheduler interval job while collection
    is running. A job never overlaps with itself, so one source's ticks run
    one after another; ticks of different sources run concurrently on the
    scheduler's thread pool.

    Stopping waits for ticks already running. Their records are in the
    buffer when ``stop_collection()`` returns, and nothing is appended after.
    """

    def __init__(
        self,
        buffer_capacity: int = MAX_BUFFER_SIZE,
        events: Optional[EventBus] = None,
        adapter_factory: Callable[[LogSource], SourceAdapter] = create_adapter,
        max_workers: int = 10
    ):
        """
        Initialize the collector.

        Args:
            buffer_capacity: Maximum number of buffered records
            events: Bus to emit notifications on. A private one is created if omitted.
            adapter_factory: Builds an adapter for sources registered without one
            max_workers: Size of the polling thread pool
        """
        self.collector_id = str(uuid.uuid4())
        self.events = events or EventBus()
        self.max_workers = max_workers
        self._adapter_factory = adapter_factory

        self._sources: Dict[str, LogSource] = {}
        self._adapters: Dict[str, SourceAdapter] = {}
        self._jobs: Dict[str, Job] = {}
        self._buffer = LogBuffer(buffer_capacity)
        self._scheduler: Optional[BackgroundScheduler] = None
        self._active = False
        self._started_at: Optional[datetime] = None

        self._lock = threading.RLock()
        self._total_collected = 0
        self._error_count = 0
        self._rejected = 0
        self._evicted = 0
        self._last_collection_time: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self._active

    # Source management

    def add_source(self, source: LogSource) -> bool:
        """
        Register a source.

        Polling starts right away when both the collector and the source are
        active.

        Returns:
            False if the id is taken or no adapter could be built
        """
        with self._lock:
            if source.source_id in self._sources:
                logger.warning("Source already registered: %s", source.source_id)
                return False

            adapter = source.adapter
            if adapter is None:
                try:
                    adapter = self._adapter_factory(source)
                except ValueError as e:
                    logger.error("Cannot add source %s: %s", source.source_id, e)
                    return False

            source = source.copy()
            self._sources[source.source_id] = source
            self._adapters[source.source_id] = adapter
            if self._active and source.is_active:
                self._schedule(source)

        logger.info("Added source %s (%s)", source.source_id, source.endpoint)
        self.events.emit(EventType.SOURCE_ADDED, source.copy())
        return True

    def remove_source(self, source_id: str) -> bool:
        """
        Stop polling a source and forget it.

        Returns:
            False if the source is unknown
        """
        with self._lock:
            source = self._sources.pop(source_id, None)
            if source is None:
                return False
            self._unschedule(source_id)
            self._adapters.pop(source_id, None)

        logger.info("Removed source %s", source_id)
        self.events.emit(EventType.SOURCE_REMOVED, source.copy())
        return True

    def get_sources(self) -> List[LogSource]:
        with self._lock:
            return [source.copy() for source in self._sources.values()]

    # Collection control

    def start_collection(self) -> None:
        """Start polling every active source. Calling it again is a no-op."""
        with self._lock:
            if self._active:
                return
            self._scheduler = BackgroundScheduler(
                executors={'default': ThreadPoolExecutor(self.max_workers)},
                job_defaults={'coalesce': True, 'max_instances': 1},
            )
            self._scheduler.start()
            self._active = True
            self._started_at = datetime.now()
            for source in self._sources.values():
                if source.is_active:
                    self._schedule(source)

        logger.info("Collection started with %d source(s)", len(self._jobs))
        self.events.emit(EventType.COLLECTION_STARTED)

    def stop_collection(self) -> None:
        """Cancel all polling, waiting for ticks already in flight."""
        with self._lock:
            if not self._active:
                return
            self._active = False
            scheduler, self._scheduler = self._scheduler, None
            self._jobs.clear()

        # Outside the lock: running ticks need it to finish
        if scheduler is not None:
            scheduler.shutdown(wait=True)

        logger.info("Collection stopped")
        self.events.emit(EventType.COLLECTION_STOPPED)

    def _schedule(self, source: LogSource) -> None:
        """Give a source its polling job. Caller holds the lock."""
        if source.source_id in self._jobs or self._scheduler is None:
            return
        self._jobs[source.source_id] = self._scheduler.add_job(
            self._collect_from_source,
            'interval',
            seconds=source.poll_interval,
            args=[source.source_id],
            id=source.source_id,
            name=f"poll:{source.source_name}",
        )

    def _unschedule(self, source_id: str) -> None:
        """Cancel a source's polling job. Caller holds the lock."""
        job = self._jobs.pop(source_id, None)
        if job is not None:
            job.remove()

    # Log collection

    def collect_logs(self) -> List[RawLog]:
        """
        Drain the buffer.

        Returns:
            Every buffered record, oldest first. A record is returned by at
            most one call.
        """
        return self._buffer.drain()

    def poll_source(self, source_id: str) -> int:
        """
        Run one fetch cycle for a source immediately.

        Returns:
            Number of records accepted into the buffer
        """
        return self._collect_from_source(source_id)

    def _collect_from_source(self, source_id: str) -> int:
        with self._lock:
            adapter = self._adapters.get(source_id)
        if adapter is None:
            return 0

        try:
            fetched = list(adapter.fetch() or [])
        except Exception as e:
            with self._lock:
                self._error_count += 1
            logger.warning("Fetch from source %s failed: %s", source_id, e, exc_info=True)
            self.events.emit(EventType.COLLECTION_ERROR, {'source_id': source_id, 'error': e})
            return 0

        accepted = [log for log in fetched if self._validate_log_format(log)]

        with self._lock:
            # Removed while fetching
            if source_id not in self._sources:
                return 0
            evicted = self._buffer.extend(accepted)
            self._total_collected += len(accepted)
            self._rejected += len(fetched) - len(accepted)
            self._evicted += evicted
            self._last_collection_time = datetime.now()

        if evicted:
            logger.debug("Buffer full, evicted %d oldest record(s)", evicted)
        for log in accepted:
            self.events.emit(EventType.LOG_COLLECTED, log.copy())
        return len(accepted)

    @staticmethod
    def _validate_log_format(log) -> bool:
        """Minimal shape check: a RawLog with a message and a source."""
        if not isinstance(log, RawLog):
            return False
        return bool(str(log.message or '').strip()) and bool(str(log.source or '').strip())

    # Statistics

    def get_collection_stats(self) -> CollectionStats:
        """Return a snapshot of the collector's counters."""
        with self._lock:
            rate = 0.0
            if self._started_at is not None:
                elapsed = (datetime.now() - self._started_at).total_seconds()
                if elapsed > 0:
                    rate = self._total_collected / elapsed
            return CollectionStats(
                total_logs_collected=self._total_collected,
                logs_per_second=rate,
                error_count=self._error_count,
                rejected_logs=self._rejected,
                evicted_logs=self._evicted,
                buffer_size=len(self._buffer),
                last_collection_time=self._last_collection_time,
                active_sources_count=len(self._jobs),
            )

    def shutdown(self) -> None:
        """Stop collection and release sources, buffered records and subscribers."""
        self.stop_collection()
        with self._lock:
            self._sources.clear()
            self._adapters.clear()
            self._buffer.clear()
        self.events.clear()
        logger.info("Collector %s shut down", self.collector_id)
