"""Review queue state machine.

    pending --approve--> approved
    pending --reject---> rejected

Approved and rejected are terminal. Approving a review does not write
its proposals anywhere; applying them is left to the caller.
"""

from memlane.errors import ReviewNotFoundError, ReviewTransitionError, ValidationError
from memlane.observability.logging import get_logger
from memlane.observability.metrics import REVIEW_TRANSITIONS, REVIEWS_CREATED
from memlane.review.enums import ReviewStatus
from memlane.review.models import ReviewItem
from memlane.storage.store import Storage

logger = get_logger(__name__)

ALLOWED_TRANSITIONS: dict[ReviewStatus, frozenset[ReviewStatus]] = {
    ReviewStatus.PENDING: frozenset({ReviewStatus.APPROVED, ReviewStatus.REJECTED}),
    ReviewStatus.APPROVED: frozenset(),
    ReviewStatus.REJECTED: frozenset(),
}


class ReviewQueue:
    """Holds extracted proposals until a caretaker decides on them."""

    def __init__(self, storage: Storage) -> None:
        self._storage = storage

    async def submit(self, item: ReviewItem) -> ReviewItem:
        """Persist a new review item in pending state."""
        if not item.session_id or not item.user_id:
            raise ValidationError("session_id and user_id are required")
        if item.status != ReviewStatus.PENDING:
            raise ValidationError("new review items must be pending")

        await self._storage.store_review(item)

        REVIEWS_CREATED.inc()
        logger.info(
            "review_created",
            session_id=item.session_id,
            user_id=item.user_id,
            identity_proposals=len(item.proposed_identity_updates),
            memory_proposals=len(item.proposed_memories),
        )
        return item

    async def get(self, session_id: str) -> ReviewItem:
        """Get a review item.

        Raises:
            ReviewNotFoundError: No review exists for session_id
        """
        if not session_id:
            raise ValidationError("session_id is required")

        item = await self._storage.get_review(session_id)
        if item is None:
            raise ReviewNotFoundError(session_id)
        return item

    async def list_pending(self, user_id: str) -> list[ReviewItem]:
        """List a user's pending reviews, oldest first."""
        if not user_id:
            raise ValidationError("user_id is required")
        return await self._storage.list_pending_reviews(user_id)

    async def approve(self, session_id: str) -> ReviewItem:
        """Move a pending review to approved."""
        return await self.update_status(session_id, ReviewStatus.APPROVED)

    async def reject(self, session_id: str) -> ReviewItem:
        """Move a pending review to rejected."""
        return await self.update_status(session_id, ReviewStatus.REJECTED)

    async def update_status(self, session_id: str, status: ReviewStatus) -> ReviewItem:
        """Apply a status transition and return the updated item.

        The write is conditional on the status read here, so of two
        concurrent decisions on the same review only one succeeds.

        Raises:
            ReviewNotFoundError: No review exists for session_id
            ReviewTransitionError: The transition is not allowed
        """
        current = await self.get(session_id)

        if status not in ALLOWED_TRANSITIONS[current.status]:
            raise ReviewTransitionError(session_id, current.status.value, status.value)

        updated = await self._storage.update_review_status(
            session_id, status, expected_status=current.status
        )
        if not updated:
            # Someone else decided first; report against what is stored now
            latest = await self.get(session_id)
            raise ReviewTransitionError(session_id, latest.status.value, status.value)

        REVIEW_TRANSITIONS.labels(status=status.value).inc()
        logger.info(
            "review_status_updated",
            session_id=session_id,
            previous=current.status.value,
            status=status.value,
        )
        return await self.get(session_id)
