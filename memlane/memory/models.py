"""Memory domain models.

Contains the Pydantic models for memory chunks and the inverted token
index.
"""

from pydantic import BaseModel, ConfigDict, Field

from memlane.timestamps import Timestamp, utc_now

DEFAULT_REPLICA = "default"


class MemoryChunk(BaseModel):
    """One stored unit of free-text memory.

    Immutable once written: there is no update or delete path.
    """

    model_config = ConfigDict(frozen=False, validate_assignment=True)

    user_id: str = Field(..., description="Owning user")
    chunk_id: str = Field(..., description="Unique within the user")
    replica_id: str = Field(
        default=DEFAULT_REPLICA, description="Sub-user scope"
    )
    content: str = Field(..., description="Raw text")
    tokens: list[str] = Field(
        default_factory=list, description="Distinct tokens computed at write time"
    )
    # Contract range is [0.0, 1.0] but it is not enforced at the boundary
    importance: float = Field(default=0.0, description="Relative importance")
    source: str = Field(
        default="", description="Provenance: conversation, file, manual"
    )
    session_id: str = Field(default="", description="Originating session")
    created_at: Timestamp = Field(
        default_factory=utc_now, description="Write time"
    )


class TokenEntry(BaseModel):
    """One inverted-index row: a token found in a chunk.

    Append-only; entries are never updated or removed.
    """

    token: str = Field(..., description="Indexed token")
    user_id: str = Field(..., description="Owning user")
    replica_id: str = Field(
        default=DEFAULT_REPLICA, description="Sub-user scope"
    )
    chunk_id: str = Field(..., description="Chunk containing the token")
    timestamp: Timestamp = Field(
        default_factory=utc_now, description="Index time"
    )


class ScoredChunk(BaseModel):
    """A memory chunk paired with its relevance score."""

    chunk: MemoryChunk
    score: float
