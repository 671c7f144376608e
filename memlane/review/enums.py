"""Enums for the review domain."""

from enum import Enum


class ReviewStatus(str, Enum):
    """Lifecycle of a review item.

    pending is the only non-terminal status.
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition is allowed."""
        return self is not ReviewStatus.PENDING
