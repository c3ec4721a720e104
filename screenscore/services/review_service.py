"""
Review Service - Handle all review-related business logic
Follows the same pattern as WatchlistService for consistency
"""

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import select, update
from fastapi import HTTPException, status
from typing import List
from datetime import datetime, timezone
import logging

from screenscore.models.review import Review
from screenscore.schemas.review import (
    ReviewCreate,
    RATING_MIN,
    RATING_MAX,
    TEXT_MIN_LENGTH,
    TEXT_MAX_LENGTH,
)
from screenscore.utils.security import SessionIdentity

logger = logging.getLogger(__name__)

MEDIA_TYPES = ("movie", "tv")


class ReviewService:
    """Service for review operations"""

    @staticmethod
    def _validate(review_data: ReviewCreate) -> None:
        """
        Re-check the bounds the schema already enforces. Callers inside the
        codebase can build ReviewCreate with model_construct and skip validation.
        """
        rating = review_data.rating
        if isinstance(rating, bool) or not isinstance(rating, int) or not RATING_MIN <= rating <= RATING_MAX:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Rating must be an integer between {RATING_MIN} and {RATING_MAX}"
            )
        text = review_data.text or ""
        if not TEXT_MIN_LENGTH <= len(text) <= TEXT_MAX_LENGTH:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Review must be between {TEXT_MIN_LENGTH} and {TEXT_MAX_LENGTH} characters"
            )
        if review_data.media_type not in MEDIA_TYPES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid media type")

    @staticmethod
    def submit(db: Session, identity: SessionIdentity, review_data: ReviewCreate) -> Review:
        """
        Append a new review. Existing reviews are never touched; a user may
        review the same title more than once.

        Args:
            db: Database session
            identity: The signed-in author
            review_data: Validated review payload

        Returns:
            The stored review, carrying the author's username
        """
        ReviewService._validate(review_data)

        review = Review(
            user_id=identity.user_id,
            author=identity.username,
            tmdb_id=review_data.tmdb_id,
            media_type=review_data.media_type,
            rating=review_data.rating,
            text=review_data.text,
            review_date=datetime.now(timezone.utc),
            helpful_count=0,
        )
        db.add(review)
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to save review for user {identity.user_id}: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to save review"
            )
        db.refresh(review)
        logger.info(f"User {identity.user_id} reviewed {review.media_type} {review.tmdb_id} ({review.rating}/5)")
        return review

    @staticmethod
    def get_reviews_for_media(db: Session, tmdb_id: int, media_type: str) -> List[Review]:
        """All reviews for a title, newest first"""
        return list(db.execute(
            select(Review)
            .where(Review.tmdb_id == tmdb_id, Review.media_type == media_type)
            .order_by(Review.review_date.desc(), Review.id.desc())
        ).scalars())

    @staticmethod
    def mark_helpful(db: Session, review_id: int) -> Review:
        """Increment a review's helpful count in a single UPDATE"""
        result = db.execute(
            update(Review)
            .where(Review.id == review_id)
            .values(helpful_count=Review.helpful_count + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Review not found")
        db.commit()

        review = db.get(Review, review_id)
        db.refresh(review)
        return review
