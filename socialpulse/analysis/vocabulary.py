"""Closed vocabulary with per-term running counters.

The term universe is fixed at load time: counting only ever touches keys that
were registered by ``load_terms``. Stopwords are a separate immutable set.
"""

from __future__ import annotations

import logging
import os
import threading
from typing import Dict, FrozenSet, List, Optional, TextIO, Tuple, Union

from socialpulse.errors import LoadError

logger = logging.getLogger(__name__)

Source = Union[str, "os.PathLike[str]", TextIO]


def read_source(source: Source, encoding: str = "utf-8") -> str:
    """Read the whole text of a path or an open text stream."""
    if hasattr(source, "read"):
        return source.read()
    with open(source, "r", encoding=encoding) as f:
        return f.read()


def split_segments(text: str, separator: str = "\n") -> List[str]:
    out = []
    for seg in text.split(separator):
        seg = seg.strip()
        if seg:
            out.append(seg)
    return out


def _load_segments(source: Source, separator: str, encoding: str, what: str) -> List[str]:
    try:
        text = read_source(source, encoding=encoding)
    except (OSError, UnicodeDecodeError) as e:
        raise LoadError(f"Cannot read {what} file: {e}") from e
    segments = split_segments(text or "", separator)
    if not segments:
        raise LoadError(f"Empty {what} file.")
    return segments


def _fresh_counters(segments: List[str]) -> Dict[str, int]:
    # duplicates keep their first position
    terms: Dict[str, int] = {}
    for seg in segments:
        terms.setdefault(seg, 0)
    return terms


class VocabularyIndex:
    """Fixed term list plus stopword set.

    ``count`` distinguishes unknown words (``None``) from known words that
    have not been seen yet (``0``). All reads and writes go through ``lock``
    so a snapshot taken from another thread never sees a torn update.
    """

    def __init__(self) -> None:
        self._terms: Dict[str, int] = {}
        self._stopwords: FrozenSet[str] = frozenset()
        self._terms_loaded = False
        self._stopwords_loaded = False
        self.lock = threading.RLock()

    def load_terms(self, source: Source, separator: str = "\n", encoding: str = "utf-8") -> int:
        terms = _fresh_counters(_load_segments(source, separator, encoding, "dictionary"))
        with self.lock:
            self._terms = terms
            self._terms_loaded = True
        logger.info(f"Loaded {len(terms)} dictionary terms")
        return len(terms)

    def load_stopwords(self, source: Source, separator: str = "\n", encoding: str = "utf-8") -> int:
        stopwords = frozenset(_load_segments(source, separator, encoding, "stopwords"))
        with self.lock:
            self._stopwords = stopwords
            self._stopwords_loaded = True
        logger.info(f"Loaded {len(stopwords)} stopwords")
        return len(stopwords)

    def load(
        self,
        terms_source: Source,
        stopwords_source: Source,
        separator: str = "\n",
        encoding: str = "utf-8",
    ) -> None:
        """Replace terms and stopwords together; on any LoadError neither changes."""
        terms = _fresh_counters(_load_segments(terms_source, separator, encoding, "dictionary"))
        stopwords = frozenset(_load_segments(stopwords_source, separator, encoding, "stopwords"))
        with self.lock:
            self._terms = terms
            self._stopwords = stopwords
            self._terms_loaded = True
            self._stopwords_loaded = True
        logger.info(f"Loaded {len(terms)} dictionary terms and {len(stopwords)} stopwords")

    @property
    def is_loaded(self) -> bool:
        with self.lock:
            return self._terms_loaded and self._stopwords_loaded

    @property
    def stopwords(self) -> FrozenSet[str]:
        with self.lock:
            return self._stopwords

    def count(self, term: str) -> Optional[int]:
        with self.lock:
            return self._terms.get(term)

    def increment(self, term: str) -> Union[int, bool]:
        """Bump a known term; unknown terms are left alone and return False."""
        with self.lock:
            current = self._terms.get(term)
            if current is None:
                return False
            current += 1
            self._terms[term] = current
            return current

    def is_stopword(self, term: str) -> bool:
        with self.lock:
            return term in self._stopwords

    def snapshot(self) -> List[Tuple[str, int]]:
        with self.lock:
            items = [(t, c) for t, c in self._terms.items() if c > 0]
        # sorted() is stable, so ties keep registration order
        return sorted(items, key=lambda tc: -tc[1])

    def reset(self) -> None:
        with self.lock:
            for term in self._terms:
                self._terms[term] = 0

    def __contains__(self, term: object) -> bool:
        with self.lock:
            return term in self._terms

    def __len__(self) -> int:
        with self.lock:
            return len(self._terms)
