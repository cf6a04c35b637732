#!/usr/bin/env python3
"""
logpipe Pipeline Demonstration

This script demonstrates the complete workflow:
1. Collection -> 2. Preprocessing -> 3. Statistics

Two simulated sources are polled for a few seconds, the buffered records
are drained and run through the preprocessor, and both components report
their counters.
"""

import logging
import time
from collections import Counter

from logpipe.collection import LogCollector
from logpipe.events import EventBus, EventType
from logpipe.models import LogSource, SourceType, level_name
from logpipe.processing import Filter, LogPreprocessor
from logpipe.utils import setup_logging


def print_step(step_num: int, title: str, description: str):
    """Print a workflow step with visual formatting."""
    print("\n" + "=" * 70)
    print(f"STEP {step_num}: {title}")
    print("=" * 70)
    print(description)
    print()


def pipeline_demo(duration: float = 3.0):
    """Demonstrate collection and preprocessing end to end."""

    setup_logging(logging.WARNING)
    events = EventBus()

    errors = []
    events.subscribe(EventType.COLLECTION_ERROR, errors.append)

    # ========================================================================
    # STEP 1: COLLECTION
    # ========================================================================
    print_step(1, "COLLECTION", f"Polling two simulated sources for {duration:g}s...")

    collector = LogCollector(events=events)
    collector.add_source(LogSource(
        source_id="web-app",
        source_name="web",
        source_type=SourceType.APPLICATION,
        endpoint="simulated://web",
        poll_interval=0.5,
    ))
    collector.add_source(LogSource(
        source_id="db-primary",
        source_name="postgres",
        source_type=SourceType.DATABASE,
        endpoint="simulated://postgres",
        poll_interval=1.0,
    ))

    collector.start_collection()
    time.sleep(duration)
    collector.stop_collection()

    raw_logs = collector.collect_logs()
    collection_stats = collector.get_collection_stats()
    collector.shutdown()

    print(f"✓ Collected {collection_stats.total_logs_collected} records "
          f"({collection_stats.logs_per_second:.1f}/s, {len(errors)} fetch errors)")

    # ========================================================================
    # STEP 2: PREPROCESSING
    # ========================================================================
    print_step(2, "PREPROCESSING", "Dropping DEBUG records and preprocessing the rest...")

    preprocessor = LogPreprocessor(events=events)
    preprocessor.add_filter(Filter(
        name="Drop debug logs",
        type="exclude",
        condition="logLevel == 'DEBUG'",
    ))

    processed = preprocessor.batch_preprocess(raw_logs)

    for log in processed[:5]:
        print(f"  [{level_name(log.log_level):8}] {log.source:10} {log.message}")
        print(f"             ip={log.ip_address} ({log.enriched_metadata.ip_type}), "
              f"tokens={log.tokens[:4]}")
    if len(processed) > 5:
        print(f"  ... {len(processed) - 5} more")

    # ========================================================================
    # STEP 3: STATISTICS
    # ========================================================================
    print_step(3, "STATISTICS", "Preprocessor counters:")

    stats = preprocessor.get_stats()
    print(f"  Processed:  {stats.total_processed}")
    print(f"  Valid:      {stats.valid_logs}")
    print(f"  Invalid:    {stats.invalid_logs}")
    print(f"  Filtered:   {stats.filtered_logs}")
    print(f"  Avg time:   {stats.average_processing_time:.3f} ms")

    by_level = Counter(level_name(log.log_level) for log in processed)
    print("\n  By level: " + ", ".join(f"{k}={v}" for k, v in sorted(by_level.items())))

    preprocessor.shutdown()


if __name__ == "__main__":
    pipeline_demo()
