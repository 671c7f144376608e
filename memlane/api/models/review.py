"""Review queue request and response models."""

from pydantic import BaseModel

from memlane.review.enums import ReviewStatus
from memlane.review.models import ReviewItem


class ReviewStatusRequest(BaseModel):
    """Body of POST /review/{session_id}/status."""

    status: ReviewStatus


class ReviewResponse(BaseModel):
    success: bool = True
    review: ReviewItem


class ReviewListResponse(BaseModel):
    success: bool = True
    reviews: list[ReviewItem]
