"""Shared record type for incoming posts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence


def _hashtag_texts(entities: Any) -> Optional[List[str]]:
    if not isinstance(entities, dict):
        return None
    hashtags = entities.get("hashtags")
    if not isinstance(hashtags, list):
        return None
    out = []
    for h in hashtags:
        if isinstance(h, dict):
            text = h.get("text") or h.get("tag")
        else:
            text = h
        if isinstance(text, str) and text:
            out.append(text)
    return out


@dataclass(frozen=True)
class Record:
    """One incoming post.

    ``full_text``/``full_tags`` hold the extended representation when the
    transport delivers one; they win over ``text``/``tags``. A tag list of
    ``None`` means the transport did not parse tags, an empty list means it
    did and found none.
    """

    text: str
    full_text: Optional[str] = None
    tags: Optional[Sequence[str]] = None
    full_tags: Optional[Sequence[str]] = None
    truncated: Optional[bool] = None
    user: Optional[str] = None
    raw: Optional[Dict[str, Any]] = None

    @property
    def body(self) -> str:
        if self.full_text is not None:
            return self.full_text
        return self.text or ""

    @property
    def preparsed_tags(self) -> Optional[List[str]]:
        if self.full_tags is not None:
            return list(self.full_tags)
        if self.tags is not None:
            return list(self.tags)
        return None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Record":
        """Build a record from a tweet-shaped JSON object.

        Reads ``text``/``full_text``, ``entities.hashtags``,
        ``extended_tweet.full_text`` and ``extended_tweet.entities.hashtags``,
        ``truncated`` and ``user.screen_name``.
        """
        if not isinstance(payload, dict):
            raise TypeError(f"record payload must be a dict, got {type(payload).__name__}")
        text = payload.get("text")
        if text is None:
            text = payload.get("full_text") or ""
        full_text = None
        full_tags = None
        ext = payload.get("extended_tweet")
        if isinstance(ext, dict):
            full_text = ext.get("full_text") or None
            full_tags = _hashtag_texts(ext.get("entities"))
        user = payload.get("user")
        screen_name = user.get("screen_name") if isinstance(user, dict) else None
        truncated = payload.get("truncated")
        return cls(
            text=str(text),
            full_text=full_text,
            tags=_hashtag_texts(payload.get("entities")),
            full_tags=full_tags,
            truncated=bool(truncated) if truncated is not None else None,
            user=screen_name,
            raw=payload,
        )
