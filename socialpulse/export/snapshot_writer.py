"""Delimited snapshot export for term and tag counts.

Writes are atomic: the rows go to a temp file next to the target, which is
then renamed over it. A failed write leaves the previous file as it was.
"""

from __future__ import annotations

import logging
import os
import tempfile
from typing import List, Tuple, Union

from socialpulse.errors import WriteError

logger = logging.getLogger(__name__)

TERM_LABEL = "term"
TAG_LABEL = "hashtag"


class SnapshotWriter:
    def __init__(self, source, label: str):
        # source: anything with snapshot() -> [(key, count), ...]
        self.source = source
        self.label = label

    @classmethod
    def for_terms(cls, vocabulary) -> "SnapshotWriter":
        return cls(vocabulary, TERM_LABEL)

    @classmethod
    def for_tags(cls, tag_extractor) -> "SnapshotWriter":
        return cls(tag_extractor, TAG_LABEL)

    def rows(self) -> List[Tuple[str, int]]:
        return list(self.source.snapshot())

    def render(self, field_separator: str = ",", line_separator: str = "\n") -> str:
        return self._render(self.rows(), field_separator, line_separator)

    def _render(self, rows, field_separator: str, line_separator: str) -> str:
        lines = [f"{self.label}{field_separator}count"]
        for key, count in rows:
            lines.append(f"{key}{field_separator}{count}")
        return "".join(line + line_separator for line in lines)

    def write_snapshot(
        self,
        sink: Union[str, "os.PathLike[str]"],
        field_separator: str = ",",
        line_separator: str = "\n",
        encoding: str = "utf-8",
    ) -> int:
        """Write the current snapshot to ``sink``; returns the number of data rows."""
        rows = self.rows()
        content = self._render(rows, field_separator, line_separator)
        path = os.fspath(sink)
        directory = os.path.dirname(os.path.abspath(path))
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{os.path.basename(path)}.", suffix=".tmp", dir=directory
            )
            # newline="" keeps line_separator byte-exact on every platform
            with os.fdopen(fd, "w", encoding=encoding, newline="") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
            tmp_path = None
        except (OSError, UnicodeEncodeError) as e:
            raise WriteError(f"An error occurred while writing {self.label} counts to {path}: {e}") from e
        finally:
            if tmp_path is not None:
                try:
                    os.remove(tmp_path)
                except OSError as cleanup_err:
                    logger.warning(f"Could not remove temp snapshot {tmp_path}: {cleanup_err}")
        logger.debug(f"Wrote {len(rows)} {self.label} rows to {path}")
        return len(rows)
