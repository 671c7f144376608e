"""Review queue endpoints."""

from fastapi import APIRouter

from memlane.api.deadline import within_deadline
from memlane.api.dependencies import ReviewQueueDep, SettingsDep
from memlane.api.models.review import (
    ReviewListResponse,
    ReviewResponse,
    ReviewStatusRequest,
)

router = APIRouter(prefix="/review")


@router.get("/pending", response_model=ReviewListResponse)
async def list_pending_reviews(
    queue: ReviewQueueDep,
    settings: SettingsDep,
    user_id: str = "",
) -> ReviewListResponse:
    """A user's pending reviews, oldest first."""
    reviews = await within_deadline(
        queue.list_pending(user_id),
        settings.api.request_timeout_seconds,
    )
    return ReviewListResponse(reviews=reviews)


@router.get("/{session_id}", response_model=ReviewResponse)
async def get_review(
    session_id: str,
    queue: ReviewQueueDep,
    settings: SettingsDep,
) -> ReviewResponse:
    review = await within_deadline(
        queue.get(session_id),
        settings.api.request_timeout_seconds,
    )
    return ReviewResponse(review=review)


@router.post("/{session_id}/status", response_model=ReviewResponse)
async def update_review_status(
    session_id: str,
    body: ReviewStatusRequest,
    queue: ReviewQueueDep,
    settings: SettingsDep,
) -> ReviewResponse:
    """Approve or reject a pending review."""
    review = await within_deadline(
        queue.update_status(session_id, body.status),
        settings.api.request_timeout_seconds,
    )
    return ReviewResponse(review=review)
