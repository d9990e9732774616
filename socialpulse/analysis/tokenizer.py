"""Dictionary-constrained tokenization and counting."""

from __future__ import annotations

import re
from typing import Callable, Dict, Union

from socialpulse.analysis.vocabulary import VocabularyIndex


# any run of non-word characters
DEFAULT_SPLIT_RULE = re.compile(r"\W+")


def lowercase(token: str) -> str:
    return token.lower()


def split_tokens(text: str, split_rule: Union[str, re.Pattern] = DEFAULT_SPLIT_RULE):
    if not text:
        return []
    if isinstance(split_rule, str):
        split_rule = re.compile(split_rule)
    return split_rule.split(text)


class Tokenizer:
    def __init__(self, vocabulary: VocabularyIndex):
        self.vocabulary = vocabulary

    def analyze(
        self,
        text: str,
        split_rule: Union[str, re.Pattern] = DEFAULT_SPLIT_RULE,
        normalize: Callable[[str], str] = lowercase,
    ) -> Dict[str, int]:
        """Count vocabulary words in ``text``.

        Returns token -> count after this occurrence, where the count is the
        running total for the whole session (not just this text). A token
        repeated in the same text is incremented twice and reported once,
        with the later value.
        """
        counts: Dict[str, int] = {}
        vocab = self.vocabulary
        with vocab.lock:
            for raw in split_tokens(text, split_rule):
                tok = normalize(raw) if raw else raw
                if not tok:
                    continue
                if vocab.is_stopword(tok):
                    continue
                new_count = vocab.increment(tok)
                if new_count is False:
                    continue
                counts[tok] = new_count
        return counts
