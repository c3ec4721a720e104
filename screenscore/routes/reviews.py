"""
Review Routes - API endpoints for user reviews
Follows RESTful conventions and watchlist routes pattern
"""

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session
from typing import List

from screenscore.database import get_db
from screenscore.utils.dependencies import require_session
from screenscore.utils.security import SessionIdentity
from screenscore.schemas.common import MediaType
from screenscore.schemas.review import ReviewCreate, ReviewResponse
from screenscore.services.review_service import ReviewService

router = APIRouter(prefix="/api/reviews", tags=["Reviews"])


@router.get("", response_model=List[ReviewResponse])
def get_reviews(
    tmdb_id: int = Query(..., alias="tmdbId", gt=0, description="TMDB id"),
    media_type: MediaType = Query(..., alias="mediaType"),
    db: Session = Depends(get_db)
):
    """
    Reviews for a movie or show, newest first

    Public endpoint - no authentication required.
    """
    reviews = ReviewService.get_reviews_for_media(db, tmdb_id, media_type)
    return [ReviewResponse.from_review(r) for r in reviews]


@router.post("", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
def submit_review(
    review_data: ReviewCreate,
    identity: SessionIdentity = Depends(require_session),
    db: Session = Depends(get_db)
):
    """
    Submit a review

    - **tmdbId**, **mediaType**: which title
    - **rating**: 1 to 5 stars
    - **text**: 10 to 1000 characters
    """
    review = ReviewService.submit(db, identity, review_data)
    return ReviewResponse.from_review(review)


@router.post("/{review_id}/helpful", response_model=ReviewResponse)
def mark_review_helpful(
    review_id: int = Path(..., description="Review ID", gt=0),
    identity: SessionIdentity = Depends(require_session),
    db: Session = Depends(get_db)
):
    """Count one more "helpful" vote on a review"""
    return ReviewResponse.from_review(ReviewService.mark_helpful(db, review_id))
