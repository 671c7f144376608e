"""Session transcript and extraction models."""

from pydantic import BaseModel, Field

from memlane.review.models import IdentityProposal, MemoryProposal


class TranscriptLine(BaseModel):
    """A single message in a conversation transcript."""

    role: str = Field(..., description="Role: user or assistant")
    content: str = Field(default="", description="Message text")


class ExtractionResult(BaseModel):
    """Proposals produced by an extractor for one transcript."""

    identity_proposals: list[IdentityProposal] = Field(
        default_factory=list, description="Proposed identity updates"
    )
    memory_proposals: list[MemoryProposal] = Field(
        default_factory=list, description="Proposed memories"
    )
