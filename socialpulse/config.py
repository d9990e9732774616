"""Runtime settings read from the environment (and ``.env``)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


@dataclass
class StreamSettings:
    vocabulary_path: str = "assets/vocabulary.txt"
    stopwords_path: str = "assets/stopwords.txt"
    vocabulary_encoding: str = "utf-8"

    terms_snapshot_path: str = "words-out.csv"
    tags_snapshot_path: str = "hashtags-out.csv"
    snapshot_interval_seconds: float = 60.0
    # per-engine overrides; None falls back to snapshot_interval_seconds
    terms_snapshot_interval_seconds: Optional[float] = None
    tags_snapshot_interval_seconds: Optional[float] = None

    stream_url: str = ""
    stream_input: str = ""
    stream_locations: str = ""
    stream_bearer_token: str = ""

    # no fault handler: the first stream fault stops the worker
    fatal_stream_faults: bool = False
    debug_print_records: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "StreamSettings":
        load_dotenv(env_file)
        settings = cls(
            vocabulary_path=os.getenv("VOCABULARY_PATH", cls.vocabulary_path),
            stopwords_path=os.getenv("STOPWORDS_PATH", cls.stopwords_path),
            vocabulary_encoding=os.getenv("VOCABULARY_ENCODING", cls.vocabulary_encoding),
            terms_snapshot_path=os.getenv("TERMS_SNAPSHOT_PATH", cls.terms_snapshot_path),
            tags_snapshot_path=os.getenv("TAGS_SNAPSHOT_PATH", cls.tags_snapshot_path),
            snapshot_interval_seconds=_env_float("SNAPSHOT_INTERVAL_SECONDS", cls.snapshot_interval_seconds),
            terms_snapshot_interval_seconds=_env_float("TERMS_SNAPSHOT_INTERVAL_SECONDS", None),
            tags_snapshot_interval_seconds=_env_float("TAGS_SNAPSHOT_INTERVAL_SECONDS", None),
            stream_url=os.getenv("STREAM_URL", "").strip(),
            stream_input=os.getenv("STREAM_INPUT", "").strip(),
            stream_locations=os.getenv("STREAM_LOCATIONS", "").strip(),
            stream_bearer_token=os.getenv("STREAM_BEARER_TOKEN", "").strip(),
            fatal_stream_faults=_env_bool("FATAL_STREAM_FAULTS", False),
            debug_print_records=_env_bool("DEBUG_PRINT_RECORDS", False),
            log_level=(os.getenv("LOG_LEVEL") or cls.log_level).strip().upper(),
        )
        settings._validate()
        return settings

    @property
    def terms_interval(self) -> float:
        if self.terms_snapshot_interval_seconds is not None:
            return self.terms_snapshot_interval_seconds
        return self.snapshot_interval_seconds

    @property
    def tags_interval(self) -> float:
        if self.tags_snapshot_interval_seconds is not None:
            return self.tags_snapshot_interval_seconds
        return self.snapshot_interval_seconds

    def stream_params(self) -> Optional[Dict[str, str]]:
        if not self.stream_locations:
            return None
        return {"locations": self.stream_locations, "delimited": "false"}

    def stream_headers(self) -> Dict[str, str]:
        headers = {"User-Agent": "SocialPulse/1.0"}
        if self.stream_bearer_token:
            headers["Authorization"] = f"Bearer {self.stream_bearer_token}"
        return headers

    def _validate(self) -> None:
        errors = []

        if not self.vocabulary_path:
            errors.append("VOCABULARY_PATH is required")
        if not self.stopwords_path:
            errors.append("STOPWORDS_PATH is required")

        for name, value in (
            ("SNAPSHOT_INTERVAL_SECONDS", self.snapshot_interval_seconds),
            ("TERMS_SNAPSHOT_INTERVAL_SECONDS", self.terms_snapshot_interval_seconds),
            ("TAGS_SNAPSHOT_INTERVAL_SECONDS", self.tags_snapshot_interval_seconds),
        ):
            if value is not None and value <= 0:
                errors.append(f"{name} must be greater than 0")

        if self.stream_url and not self.stream_url.startswith(("http://", "https://")):
            errors.append("STREAM_URL must be an http(s) URL")

        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append(f"Invalid LOG_LEVEL: {self.log_level}")

        if errors:
            error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {error}" for error in errors)
            raise ValueError(error_msg)

        logger.debug("Configuration validated successfully")
