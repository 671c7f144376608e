"""Overlap scoring and top-K ranking.

score = overlap * 0.7 + importance * 0.3

The weights are fixed: stored data and clients rely on the exact blend.
"""

from collections.abc import Iterable, Sequence

from memlane.memory.models import MemoryChunk, ScoredChunk

OVERLAP_WEIGHT = 0.7
IMPORTANCE_WEIGHT = 0.3
DEFAULT_TOP_K = 3


def token_overlap(query_tokens: Sequence[str], chunk_tokens: Iterable[str]) -> float:
    """Fraction of query tokens present in the chunk's token set.

    Returns 0.0 for an empty query.
    """
    if not query_tokens:
        return 0.0

    chunk_set = set(chunk_tokens)
    matches = sum(1 for token in query_tokens if token in chunk_set)
    return matches / len(query_tokens)


def score_chunk(query_tokens: Sequence[str], chunk: MemoryChunk) -> float:
    """Relevance score of a chunk for a tokenized query."""
    overlap = token_overlap(query_tokens, chunk.tokens)
    return overlap * OVERLAP_WEIGHT + chunk.importance * IMPORTANCE_WEIGHT


def rank_chunks(
    query_tokens: Sequence[str],
    candidates: Iterable[MemoryChunk],
    top_k: int = DEFAULT_TOP_K,
) -> list[ScoredChunk]:
    """Score candidates and return the top_k, highest score first.

    The sort is stable: chunks with equal scores keep their candidate
    order. A non-positive top_k falls back to DEFAULT_TOP_K.

    Args:
        query_tokens: Tokenized query
        candidates: Chunks fetched through the token index
        top_k: Maximum number of results

    Returns:
        Scored chunks in descending score order
    """
    if top_k <= 0:
        top_k = DEFAULT_TOP_K

    scored = [
        ScoredChunk(chunk=chunk, score=score_chunk(query_tokens, chunk))
        for chunk in candidates
    ]
    scored.sort(key=lambda s: s.score, reverse=True)
    return scored[:top_k]
