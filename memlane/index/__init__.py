"""Retrieval primitives: tokenization and overlap scoring."""

from memlane.index.scoring import (
    DEFAULT_TOP_K,
    IMPORTANCE_WEIGHT,
    OVERLAP_WEIGHT,
    rank_chunks,
    score_chunk,
    token_overlap,
)
from memlane.index.tokenizer import STOP_WORDS, tokenize

__all__ = [
    "DEFAULT_TOP_K",
    "IMPORTANCE_WEIGHT",
    "OVERLAP_WEIGHT",
    "STOP_WORDS",
    "rank_chunks",
    "score_chunk",
    "token_overlap",
    "tokenize",
]
