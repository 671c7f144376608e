"""Review queue: proposals awaiting caretaker approval."""

from memlane.review.enums import ReviewStatus
from memlane.review.models import IdentityProposal, MemoryProposal, ReviewItem

__all__ = [
    "IdentityProposal",
    "MemoryProposal",
    "ReviewItem",
    "ReviewStatus",
]
