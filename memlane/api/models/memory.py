"""Memory request and response models."""

from pydantic import BaseModel

from memlane.memory.models import DEFAULT_REPLICA, ScoredChunk


class MemorySearchRequest(BaseModel):
    """Body of POST /memory/search. top_k <= 0 means the default of 3."""

    user_id: str = ""
    query: str = ""
    top_k: int = 0
    replica_id: str = DEFAULT_REPLICA


class MemorySearchResponse(BaseModel):
    success: bool = True
    results: list[ScoredChunk]


class MemoryStoreRequest(BaseModel):
    """Body of POST /memory/store."""

    user_id: str = ""
    content: str = ""
    importance: float = 0.0
    source: str = ""
    session_id: str = ""
    replica_id: str = DEFAULT_REPLICA


class MemoryStoreResponse(BaseModel):
    success: bool = True
    chunk_id: str
