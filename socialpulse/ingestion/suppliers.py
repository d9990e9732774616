"""Record suppliers: the sources a coordinator drains.

These are thin adapters. They do not reconnect or back off; a broken
connection surfaces as an exception from the iterator, which ends it.

A single bad item (malformed JSON, a payload that is not an object) must not
end the stream, so it is yielded as a MalformedRecord instead of raised. The
coordinator routes those to its fault handler and keeps pulling.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, Optional, TextIO, Union

import requests

from socialpulse.errors import MalformedRecord
from socialpulse.ingestion.record_types import Record

logger = logging.getLogger(__name__)

SupplierItem = Union[Record, MalformedRecord]


def _to_record(item: Any, line_no: Optional[int] = None) -> SupplierItem:
    if isinstance(item, Record):
        return item
    try:
        return Record.from_payload(item)
    except (TypeError, ValueError) as e:
        where = f" on line {line_no}" if line_no is not None else ""
        return MalformedRecord(f"invalid record{where}: {e}", line_no=line_no, raw=item)


def _decode_line(line: Union[str, bytes], line_no: int, source: str) -> SupplierItem:
    try:
        payload = json.loads(line)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return MalformedRecord(f"{source}: malformed JSON on line {line_no}: {e}", line_no=line_no, raw=line)
    return _to_record(payload, line_no)


class BaseSupplier:
    name: str = "base"

    def records(self) -> Iterator[SupplierItem]:
        raise NotImplementedError

    def __iter__(self) -> Iterator[SupplierItem]:
        return self.records()


@dataclass(frozen=True)
class IterableSupplier(BaseSupplier):
    """In-memory records or tweet-shaped dicts."""

    items: Iterable[Any]
    name: str = "iterable"

    def records(self) -> Iterator[SupplierItem]:
        for item in self.items:
            yield _to_record(item)


@dataclass(frozen=True)
class JsonLinesSupplier(BaseSupplier):
    """One JSON object per line, from a path, an open file or ``-`` (stdin)."""

    source: Union[str, TextIO]
    encoding: str = "utf-8"
    name: str = "jsonl"

    def records(self) -> Iterator[SupplierItem]:
        if self.source == "-":
            yield from self._parse(sys.stdin)
        elif hasattr(self.source, "read"):
            yield from self._parse(self.source)
        else:
            with open(self.source, "r", encoding=self.encoding) as f:
                yield from self._parse(f)

    def _parse(self, lines: Iterable[str]) -> Iterator[SupplierItem]:
        for line_no, line in enumerate(lines, start=1):
            line = line.strip()
            if not line:
                continue
            yield _decode_line(line, line_no, self.name)


@dataclass(frozen=True)
class HTTPStreamSupplier(BaseSupplier):
    """Line-delimited JSON over a long-lived HTTP response."""

    url: str
    params: Optional[Dict[str, Any]] = None
    headers: Dict[str, str] = field(default_factory=lambda: {"User-Agent": "SocialPulse/1.0"})
    timeout: float = 90.0
    name: str = "http"

    def records(self) -> Iterator[SupplierItem]:
        logger.info(f"Opening stream {self.url}")
        with requests.get(
            self.url,
            params=self.params,
            headers=self.headers,
            timeout=self.timeout,
            stream=True,
        ) as resp:
            resp.raise_for_status()
            line_no = 0
            for raw in resp.iter_lines(decode_unicode=True):
                line_no += 1
                # keep-alive newlines
                if not raw or not raw.strip():
                    continue
                item = _decode_line(raw, line_no, self.name)
                # control messages (limit notices, disconnects) carry no text
                if isinstance(item, Record) and not _has_text(item.raw):
                    logger.debug(f"Skipping non-record message: {str(item.raw)[:200]}")
                    continue
                yield item


def _has_text(payload: Optional[Dict[str, Any]]) -> bool:
    return isinstance(payload, dict) and ("text" in payload or "full_text" in payload)
