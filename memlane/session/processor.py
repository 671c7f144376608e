"""Session processing: transcript in, pending review out."""

import time
from collections.abc import Sequence

from memlane.errors import ValidationError
from memlane.observability.logging import get_logger
from memlane.review.models import ReviewItem, utc_now
from memlane.review.service import ReviewQueue
from memlane.session.extraction import Extractor, RuleBasedExtractor
from memlane.session.models import TranscriptLine

logger = get_logger(__name__)


class SessionProcessor:
    """Extracts proposals from a transcript and queues them for review.

    Nothing extracted here reaches identity or memory storage directly;
    it waits in the review queue as a pending item.
    """

    def __init__(
        self,
        review_queue: ReviewQueue,
        extractor: Extractor | None = None,
    ) -> None:
        self._reviews = review_queue
        self._extractor = extractor or RuleBasedExtractor()

    @staticmethod
    def new_session_id(user_id: str) -> str:
        return f"session-{user_id}-{time.time_ns()}"

    async def process(
        self, user_id: str, messages: Sequence[TranscriptLine]
    ) -> str:
        """Extract proposals and store them as a pending review.

        Returns:
            The new session ID

        Raises:
            ValidationError: user_id or messages is empty
        """
        if not user_id or not messages:
            raise ValidationError("user_id and messages are required")

        extraction = self._extractor.extract(messages)
        item = ReviewItem(
            session_id=self.new_session_id(user_id),
            user_id=user_id,
            proposed_identity_updates=extraction.identity_proposals,
            proposed_memories=extraction.memory_proposals,
            created_at=utc_now(),
        )

        await self._reviews.submit(item)

        logger.info(
            "session_processed",
            user_id=user_id,
            session_id=item.session_id,
            extractor=self._extractor.name,
            lines=len(messages),
        )
        return item.session_id
