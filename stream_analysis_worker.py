#!/usr/bin/env python3
"""Streaming post analysis worker.

Loads the dictionary and stopword lists, then counts dictionary words and
hashtags for every incoming post. Term and hashtag snapshots are written to
CSV on their own timers, and once more on shutdown.

Record source (first one configured wins):
- STREAM_URL: line-delimited JSON over HTTP
- STREAM_INPUT: JSON lines file, or "-" for stdin
"""

from __future__ import annotations

import logging
import signal
import sys
from typing import Dict, List

from socialpulse.analysis.tags import TagExtractor, scan_mentions
from socialpulse.analysis.vocabulary import VocabularyIndex
from socialpulse.config import StreamSettings
from socialpulse.errors import LoadError, StreamFault
from socialpulse.export.scheduler import SnapshotScheduler
from socialpulse.export.snapshot_writer import SnapshotWriter
from socialpulse.ingestion.record_types import Record
from socialpulse.ingestion.suppliers import BaseSupplier, HTTPStreamSupplier, JsonLinesSupplier
from socialpulse.stream.coordinator import StreamCoordinator

logger = logging.getLogger("stream_analysis_worker")


def debug_record_logger(record: Record, tags: List[str], token_counts: Dict[str, int]) -> None:
    logger.info("-" * 50)
    logger.info(f"@{record.user or '?'}: {record.body}")
    if token_counts:
        logger.info(", ".join(f"{tok}: {count}" for tok, count in token_counts.items()))
    if tags:
        logger.info("#" + ", #".join(tags))
    mentions = scan_mentions(record.body)
    if mentions:
        logger.info("@" + ", @".join(mentions))


def dot_record_logger(record: Record, tags: List[str], token_counts: Dict[str, int]) -> None:
    sys.stdout.write(".")
    sys.stdout.flush()


def log_stream_fault(fault: StreamFault) -> None:
    logger.error(f"Stream analyzer error: {fault}")


def build_supplier(settings: StreamSettings) -> BaseSupplier:
    if settings.stream_url:
        return HTTPStreamSupplier(
            url=settings.stream_url,
            params=settings.stream_params(),
            headers=settings.stream_headers(),
        )
    return JsonLinesSupplier(settings.stream_input or "-")


def main() -> int:
    settings = StreamSettings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    vocabulary = VocabularyIndex()
    tag_extractor = TagExtractor()
    coordinator = StreamCoordinator(vocabulary, tag_extractor)
    if not settings.fatal_stream_faults:
        coordinator.set_fault_handler(log_stream_fault)

    try:
        coordinator.load_vocabulary(
            settings.vocabulary_path,
            settings.stopwords_path,
            encoding=settings.vocabulary_encoding,
        )
    except LoadError as e:
        logger.error(f"Cannot start analysis: {e}")
        return 1
    logger.info(f"Words in dictionary: {len(vocabulary)}")

    scheduler = SnapshotScheduler()
    scheduler.add(SnapshotWriter.for_terms(vocabulary), settings.terms_snapshot_path, settings.terms_interval)
    scheduler.add(SnapshotWriter.for_tags(tag_extractor), settings.tags_snapshot_path, settings.tags_interval)

    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        coordinator.request_stop()

    signal.signal(signal.SIGTERM, signal_handler)

    observer = debug_record_logger if settings.debug_print_records else dot_record_logger
    supplier = build_supplier(settings)

    scheduler.start()
    logger.info("Stream watch starts. Press CTRL+C to quit.")
    exit_code = 0
    try:
        processed = coordinator.consume(supplier, observer=observer)
        logger.info(f"Stream ended after {processed} records")
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
    except StreamFault as e:
        logger.critical(f"Fatal stream fault: {e}")
        exit_code = 1
    finally:
        scheduler.stop()
        scheduler.flush()
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
