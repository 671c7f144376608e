"""Text tokenizer shared by ingestion and search.

The same function tokenizes stored content and queries, so any change here
changes which stored chunks a query can reach.
"""

import unicodedata
from collections.abc import Iterator

STOP_WORDS: frozenset[str] = frozenset({
    "a", "an", "the", "and", "or",
    "but", "in", "on", "at", "to",
    "for", "of", "with", "by", "from",
    "is", "it", "as", "was", "are",
    "be", "been", "being", "have", "has",
    "had", "do", "does", "did", "will",
    "would", "could", "should", "may", "might",
    "shall", "can", "that", "this", "these",
    "those", "i", "me", "my", "we",
    "our", "you", "your", "he", "she",
    "his", "her", "they", "them", "their",
    "what", "which", "who", "whom", "when",
    "where", "why", "how", "not", "no",
    "so", "if", "then", "than", "too",
    "very", "just", "about", "up", "out",
    "all", "also", "into", "over", "after",
})

MIN_TOKEN_LENGTH = 2

WORD_DIGIT_CATEGORY = "Nd"


def _is_word_char(ch: str) -> bool:
    return ch.isalpha() or unicodedata.category(ch) == WORD_DIGIT_CATEGORY


def _words(text: str) -> Iterator[str]:
    """Yield maximal runs of letters and decimal digits, lowercased.

    Lowercasing is applied per code point and anything it produces that is
    not itself a letter or digit is dropped, so "İ" becomes a plain "i".
    """
    word: list[str] = []
    for ch in text:
        if _is_word_char(ch):
            word.extend(c for c in ch.lower() if _is_word_char(c))
        elif word:
            yield "".join(word)
            word = []
    if word:
        yield "".join(word)


def tokenize(text: str) -> list[str]:
    """Split text into lowercase keywords.

    Splits on every non letter/digit boundary, drops tokens shorter than
    two characters and stop words, and removes duplicates keeping the
    first occurrence.

    Args:
        text: Raw text

    Returns:
        Distinct tokens in first-occurrence order
    """
    seen: set[str] = set()
    tokens: list[str] = []

    for word in _words(text):
        if len(word) < MIN_TOKEN_LENGTH:
            continue
        if word in STOP_WORDS or word in seen:
            continue
        seen.add(word)
        tokens.append(word)

    return tokens
