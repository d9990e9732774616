"""Tag, mention and URL detection plus open-vocabulary tag counting.

Three classes of "specials" are recognized in post text:
- URLs (http/https)
- ``#tags``: ``#`` not glued to a preceding word character, at least one letter
- ``@mentions``: ``@`` preceded by start of text or a character that is not a
  word character, ``.`` or ``-`` (so ``email@bar.com`` is not a mention)

All three are matched by one alternation so removal is a single left-to-right,
non-overlapping pass: a ``#`` or ``@`` inside a URL is consumed with the URL.
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from socialpulse.ingestion.record_types import Record


URL_PATTERN = r"https?://(?:www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-z]{2,6}\b[-a-zA-Z0-9@:%_+.~#?&/=]*"
TAG_PATTERN = r"\B#\w*[a-zA-Z]+\w*"
MENTION_PATTERN = r"(?<![\w.\-])@[A-Za-z]+[A-Za-z0-9_-]+"

URL_RE = re.compile(URL_PATTERN)
TAG_RE = re.compile(TAG_PATTERN)
MENTION_RE = re.compile(MENTION_PATTERN)

# URL first: at any given position it wins over the other two
SPECIALS_RE = re.compile(f"(?:{URL_PATTERN})|(?:{TAG_PATTERN})|(?:{MENTION_PATTERN})")


def strip_specials(text: str) -> str:
    if not text:
        return ""
    return SPECIALS_RE.sub("", text)


def scan_tags(text: str) -> List[str]:
    """Display texts (without ``#``) of the tags found in ``text``, in order."""
    if not text:
        return []
    out = []
    for m in SPECIALS_RE.finditer(text):
        token = m.group(0)
        if token.startswith("#"):
            out.append(token[1:])
    return out


def scan_mentions(text: str) -> List[str]:
    if not text:
        return []
    return [m.group(0)[1:] for m in SPECIALS_RE.finditer(text) if m.group(0).startswith("@")]


@dataclass
class TagCount:
    display_text: str
    count: int = 0


class TagExtractor:
    """Counts tags keyed case-insensitively; first-seen casing is kept for display."""

    def __init__(self) -> None:
        self._tags: Dict[str, TagCount] = {}
        self.lock = threading.RLock()

    def strip_specials(self, text: str) -> str:
        return strip_specials(text)

    def extract_tags(self, record: Record) -> List[str]:
        """Tags of a record: the transport's own list if it has one, else a text scan."""
        pre = record.preparsed_tags
        if pre is not None:
            return pre
        return scan_tags(record.body)

    def record(self, tags: Iterable[str]) -> List[str]:
        seen = []
        with self.lock:
            for tag in tags:
                if not tag:
                    continue
                key = tag.lower()
                entry = self._tags.get(key)
                if entry is None:
                    entry = TagCount(display_text=tag)
                    self._tags[key] = entry
                entry.count += 1
                seen.append(tag)
        return seen

    def count(self, tag: str) -> Optional[int]:
        with self.lock:
            entry = self._tags.get(tag.lower())
            return entry.count if entry else None

    def display_text(self, tag: str) -> Optional[str]:
        with self.lock:
            entry = self._tags.get(tag.lower())
            return entry.display_text if entry else None

    def snapshot(self) -> List[Tuple[str, int]]:
        with self.lock:
            items = [(e.display_text, e.count) for e in self._tags.values() if e.count > 0]
        return sorted(items, key=lambda tc: -tc[1])

    def reset(self) -> None:
        with self.lock:
            self._tags = {}

    def __len__(self) -> int:
        return len(self._tags)
