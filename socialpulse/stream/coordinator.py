"""Per-record pipeline: tags first, then dictionary tokens, then the observer.

Records are processed one at a time in arrival order. The coordinator lock
serializes ``process`` calls, so pushing from several threads is safe; the
engines' own locks keep snapshot reads consistent with in-flight records.

Error delivery:
- a MalformedRecord yielded by the supplier, or an exception raised while
  producing a record, becomes a StreamFault, handed to the fault handler
  (processing continues with the next item) or raised when no handler is
  registered
- an exception raised by the observer is not caught and leaves ``consume``
- using the coordinator before the vocabulary is loaded is a CallerError
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from socialpulse.analysis.tags import TagExtractor
from socialpulse.analysis.tokenizer import Tokenizer
from socialpulse.analysis.vocabulary import Source, VocabularyIndex
from socialpulse.errors import CallerError, MalformedRecord, StreamFault
from socialpulse.ingestion.record_types import Record

logger = logging.getLogger(__name__)

Observer = Callable[[Record, List[str], Dict[str, int]], Any]
FaultHandler = Callable[[StreamFault], Any]


class CoordinatorState(str, enum.Enum):
    IDLE = "idle"
    READY = "ready"


@dataclass(frozen=True)
class ProcessedRecord:
    record: Record
    tags: List[str]
    token_counts: Dict[str, int]
    cleaned_text: str = field(default="", repr=False)


def _check_callable(fn, what: str) -> None:
    if fn is not None and not callable(fn):
        raise CallerError(f"Invalid {what}: expected a callable, got {type(fn).__name__}")


class StreamCoordinator:
    def __init__(
        self,
        vocabulary: VocabularyIndex,
        tag_extractor: TagExtractor,
        tokenizer: Optional[Tokenizer] = None,
    ):
        self.vocabulary = vocabulary
        self.tag_extractor = tag_extractor
        self.tokenizer = tokenizer or Tokenizer(vocabulary)
        self.observer: Optional[Observer] = None
        self.fault_handler: Optional[FaultHandler] = None
        self._lock = threading.RLock()
        self._processed = 0
        self._stop_requested = threading.Event()

    @property
    def state(self) -> CoordinatorState:
        return CoordinatorState.READY if self.vocabulary.is_loaded else CoordinatorState.IDLE

    @property
    def processed_count(self) -> int:
        return self._processed

    def load_vocabulary(
        self,
        terms_source: Source,
        stopwords_source: Source,
        separator: str = "\n",
        encoding: str = "utf-8",
    ) -> None:
        self.vocabulary.load(terms_source, stopwords_source, separator=separator, encoding=encoding)

    def set_observer(self, observer: Optional[Observer]) -> None:
        _check_callable(observer, "observer")
        self.observer = observer

    def set_fault_handler(self, handler: Optional[FaultHandler]) -> None:
        _check_callable(handler, "fault handler")
        self.fault_handler = handler

    def _require_ready(self) -> None:
        if self.state is not CoordinatorState.READY:
            raise CallerError("Vocabulary and stopwords must be loaded before streaming records")

    def process(self, record: Record, observer: Optional[Observer] = None) -> ProcessedRecord:
        self._require_ready()
        _check_callable(observer, "observer")
        if not isinstance(record, Record):
            record = Record.from_payload(record)
        with self._lock:
            body = record.body
            tags = self.tag_extractor.record(self.tag_extractor.extract_tags(record))
            cleaned = self.tag_extractor.strip_specials(body)
            token_counts = self.tokenizer.analyze(cleaned)
            self._processed += 1
            callback = observer or self.observer
            if callback is not None:
                callback(record, tags, token_counts)
        return ProcessedRecord(record=record, tags=tags, token_counts=token_counts, cleaned_text=cleaned)

    def consume(self, supplier: Iterable[Any], observer: Optional[Observer] = None) -> int:
        """Drain ``supplier`` and return the number of records processed."""
        self._require_ready()
        _check_callable(observer, "observer")
        self._stop_requested.clear()
        it = iter(supplier)
        processed = 0
        while not self._stop_requested.is_set():
            try:
                item = next(it)
                if isinstance(item, MalformedRecord):
                    raise item
                record = item if isinstance(item, Record) else Record.from_payload(item)
            except StopIteration:
                break
            except Exception as e:
                self._fault(e)
                continue
            self.process(record, observer=observer)
            processed += 1
        return processed

    def request_stop(self) -> None:
        """Make ``consume`` return before pulling the next record."""
        self._stop_requested.set()

    def _fault(self, error: Exception) -> None:
        fault = StreamFault(f"Record stream error: {error}", error)
        fault.__cause__ = error
        if self.fault_handler is None:
            logger.error(f"Unhandled stream fault: {error}")
            raise fault
        logger.warning(f"Stream fault routed to handler: {error}")
        self.fault_handler(fault)
