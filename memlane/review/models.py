"""Review queue models.

A review item bundles the identity and memory proposals extracted from
one session; they stay proposals until a caretaker decides.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from memlane.review.enums import ReviewStatus
from memlane.timestamps import Timestamp, utc_now


class IdentityProposal(BaseModel):
    """One proposed identity fact change."""

    key: str = Field(..., description="Identity key")
    value: Any = Field(default=None, description="Proposed value")
    confidence: float = Field(
        default=1.0, ge=0.0, le=1.0, description="Extraction confidence"
    )


class MemoryProposal(BaseModel):
    """One proposed memory chunk."""

    content: str = Field(..., description="Proposed memory text")
    importance: float = Field(default=0.5, description="Proposed importance")
    source: str = Field(default="conversation", description="Provenance")


class ReviewItem(BaseModel):
    """Proposed changes from one session, waiting for caretaker approval."""

    model_config = ConfigDict(frozen=False, validate_assignment=True)

    session_id: str = Field(..., description="Unique session identifier")
    user_id: str = Field(..., description="User the proposals are about")
    status: ReviewStatus = Field(
        default=ReviewStatus.PENDING, description="Review status"
    )
    proposed_identity_updates: list[IdentityProposal] = Field(
        default_factory=list, description="Identity proposals"
    )
    proposed_memories: list[MemoryProposal] = Field(
        default_factory=list, description="Memory proposals"
    )
    created_at: Timestamp = Field(
        default_factory=utc_now, description="Creation time"
    )
    reviewed_at: Timestamp | None = Field(
        default=None, description="Set on the status transition"
    )
