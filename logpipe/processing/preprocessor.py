"""
Log preprocessor.

This module runs raw records through the preprocessing pipeline:

    filter -> clean -> transform -> normalize -> enrich -> extract features -> validate

and keeps running statistics about what it processed.
"""

import copy
import logging
import time
import uuid
from collections import OrderedDict
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from logpipe.events import EventBus, EventType
from logpipe.models import BatchSummary, PreprocessingStats, ProcessedLog, RawLog
from logpipe.processing.cleaning import clean_log
from logpipe.processing.enrichment import enrich, extract_features, normalize_message, tokenize
from logpipe.processing.filters import Filter, apply_filters
from logpipe.processing.normalization import normalize_log
from logpipe.processing.transformations import Transformation, default_transformations
from logpipe.processing.validation import validation_errors

logger = logging.getLogger(__name__)


class LogPreprocessor:
    """
    Converts raw records into processed records.

    The outcome of ``preprocess_log`` is one of:

    - a ProcessedLog with ``is_valid=True``
    - a ProcessedLog with ``is_valid=False``: the record failed quality
      checks and is returned for auditing
    - None: the record was vetoed by a filter, the preprocessor is inactive,
      or an internal error occurred

    Public methods never raise because of a record's content.
    """

    def __init__(self, events: Optional[EventBus] = None, use_default_transformations: bool = True):
        """
        Initialize the preprocessor.

        Args:
            events: Bus to emit notifications on. A private one is created if omitted.
            use_default_transformations: Register trim / lowercase-source /
                collapse-whitespace transformations
        """
        self.preprocessor_id = str(uuid.uuid4())
        self.events = events or EventBus()
        self._filters: Dict[str, Filter] = OrderedDict()
        self._transformations: Dict[str, Transformation] = OrderedDict()
        self._active = True
        self._reset_counters(average_processing_time=0.0)

        if use_default_transformations:
            for transformation in default_transformations():
                self.add_transformation(transformation)

        logger.info("Preprocessor %s initialized", self.preprocessor_id)

    @property
    def is_active(self) -> bool:
        return self._active

    # Main preprocessing

    def preprocess_log(self, log: RawLog) -> Optional[ProcessedLog]:
        """
        Run one record through the pipeline.

        Args:
            log: Raw record. It is copied, never modified.

        Returns:
            The processed record, or None (see class docstring)
        """
        if not self._active:
            logger.warning("Preprocessor not active, skipping log %s", getattr(log, 'log_id', None))
            return None

        start = time.perf_counter()

        try:
            if not apply_filters(self._filters.values(), log):
                self._filtered_logs += 1
                self.events.emit(EventType.LOG_FILTERED, log.copy())
                return None

            cleaned = self.clean_data(log)
            transformed = self._apply_transformations(cleaned)
            normalized = self.normalize_format(transformed)
            processed = self.enrich_metadata(normalized)
            processed.features = extract_features(processed.message)
            processed.is_valid = self.validate_log(processed)

        except Exception as e:
            logger.error("Error preprocessing log %s: %s", getattr(log, 'log_id', None), e,
                         exc_info=True)
            self._invalid_logs += 1
            payload_log = log.copy() if isinstance(log, RawLog) else log
            self.events.emit(EventType.PROCESSING_ERROR, {'log': payload_log, 'error': e})
            return None

        self._total_processed += 1
        if processed.is_valid:
            self._valid_logs += 1
        else:
            self._invalid_logs += 1

        self._update_average_processing_time((time.perf_counter() - start) * 1000.0)
        self._last_processing_time = datetime.now()

        self.events.emit(EventType.LOG_PROCESSED, copy.deepcopy(processed))
        return processed

    def batch_preprocess(self, logs: Iterable[RawLog]) -> List[ProcessedLog]:
        """
        Preprocess records in order.

        Returns:
            Every record that produced output, valid or not, in input order
        """
        logs = list(logs)
        processed_logs = []
        for log in logs:
            processed = self.preprocess_log(log)
            if processed is not None:
                processed_logs.append(processed)

        valid = sum(1 for p in processed_logs if p.is_valid)
        summary = BatchSummary(
            total=len(logs),
            successful=len(processed_logs),
            valid=valid,
            invalid=len(processed_logs) - valid,
        )
        logger.debug("Batch processed: %s", summary)
        self.events.emit(EventType.BATCH_PROCESSED, summary)
        return processed_logs

    # Pipeline stages

    def clean_data(self, log: RawLog) -> RawLog:
        """Strip control characters and escape codes, redact sensitive metadata."""
        return clean_log(log)

    def normalize_format(self, log: RawLog) -> RawLog:
        """Canonicalize level, timestamp, IP address and source name."""
        return normalize_log(log)

    def enrich_metadata(self, log: RawLog) -> ProcessedLog:
        """Attach enrichment, normalized message and tokens."""
        processed = ProcessedLog.from_raw(log)
        processed.enriched_metadata = enrich(processed.ip_address, processed.timestamp)
        processed.normalized_message = normalize_message(processed.message)
        processed.tokens = tokenize(processed.normalized_message)
        processed.processing_timestamp = datetime.now()
        return processed

    def validate_log(self, log: ProcessedLog) -> bool:
        """
        Record the validation verdict on ``log``.

        Returns:
            True when the record passed every check
        """
        errors = validation_errors(log)
        log.validation_errors = errors
        if errors:
            logger.debug("Invalid log %s: %s", log.log_id, "; ".join(errors))
        return not errors

    def _apply_transformations(self, log: RawLog) -> RawLog:
        for transformation in list(self._transformations.values()):
            if transformation.is_active:
                log = transformation.apply(log)
                self._transformed_logs += 1
        return log

    # Filters

    def add_filter(self, filter: Filter) -> bool:
        if filter.filter_id in self._filters:
            logger.warning("Filter already exists: %s", filter.name)
            return False
        self._filters[filter.filter_id] = filter
        logger.info("Added filter: %s", filter.name)
        self.events.emit(EventType.FILTER_ADDED, filter)
        return True

    def remove_filter(self, filter_id: str) -> bool:
        if self._filters.pop(filter_id, None) is None:
            return False
        logger.info("Removed filter: %s", filter_id)
        self.events.emit(EventType.FILTER_REMOVED, filter_id)
        return True

    def get_filters(self) -> List[Filter]:
        return list(self._filters.values())

    # Transformations

    def add_transformation(self, transformation: Transformation) -> bool:
        if transformation.transformation_id in self._transformations:
            logger.warning("Transformation already exists: %s", transformation.name)
            return False
        self._transformations[transformation.transformation_id] = transformation
        logger.info("Added transformation: %s", transformation.name)
        self.events.emit(EventType.TRANSFORMATION_ADDED, transformation)
        return True

    def remove_transformation(self, transformation_id: str) -> bool:
        if self._transformations.pop(transformation_id, None) is None:
            return False
        logger.info("Removed transformation: %s", transformation_id)
        self.events.emit(EventType.TRANSFORMATION_REMOVED, transformation_id)
        return True

    def get_transformations(self) -> List[Transformation]:
        return list(self._transformations.values())

    # Statistics

    def get_stats(self) -> PreprocessingStats:
        return PreprocessingStats(
            total_processed=self._total_processed,
            valid_logs=self._valid_logs,
            invalid_logs=self._invalid_logs,
            filtered_logs=self._filtered_logs,
            transformed_logs=self._transformed_logs,
            average_processing_time=self._average_processing_time,
            last_processing_time=self._last_processing_time,
        )

    def reset_stats(self) -> None:
        """Zero the counters. The average processing time is carried over."""
        self._reset_counters(average_processing_time=self._average_processing_time)
        logger.info("Statistics reset")

    def _reset_counters(self, average_processing_time: float) -> None:
        self._total_processed = 0
        self._valid_logs = 0
        self._invalid_logs = 0
        self._filtered_logs = 0
        self._transformed_logs = 0
        self._average_processing_time = average_processing_time
        self._last_processing_time = datetime.now()

    def _update_average_processing_time(self, elapsed_ms: float) -> None:
        total = self._total_processed
        self._average_processing_time = (
            self._average_processing_time * (total - 1) + elapsed_ms
        ) / total

    # Control

    def activate(self) -> None:
        self._active = True
        logger.info("Preprocessor %s activated", self.preprocessor_id)
        self.events.emit(EventType.ACTIVATED)

    def deactivate(self) -> None:
        self._active = False
        logger.info("Preprocessor %s deactivated", self.preprocessor_id)
        self.events.emit(EventType.DEACTIVATED)

    def shutdown(self) -> None:
        """Deactivate and release registries and subscribers."""
        self.deactivate()
        self._filters.clear()
        self._transformations.clear()
        self.events.clear()
        logger.info("Preprocessor %s shut down", self.preprocessor_id)
