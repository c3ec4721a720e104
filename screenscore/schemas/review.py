"""
Review Schemas - Pydantic models for review request/response validation
"""

from pydantic import ConfigDict, Field, field_validator
from datetime import datetime

from screenscore.schemas.common import CamelModel, MediaType
from screenscore.schemas.validation import SafeStringMixin

RATING_MIN = 1
RATING_MAX = 5
TEXT_MIN_LENGTH = 10
TEXT_MAX_LENGTH = 1000


class ReviewCreate(CamelModel, SafeStringMixin):
    """Schema for submitting a review. Text is stored exactly as sent, minus surrounding whitespace."""
    model_config = ConfigDict(str_strip_whitespace=True)

    tmdb_id: int = Field(..., description="TMDB id of the movie or show", gt=0)
    media_type: MediaType
    rating: int = Field(..., description="Star rating (1-5)", ge=RATING_MIN, le=RATING_MAX)
    text: str = Field(..., min_length=TEXT_MIN_LENGTH, max_length=TEXT_MAX_LENGTH)

    @field_validator('text')
    @classmethod
    def clean_text(cls, v):
        return cls.validate_no_script(v)


class ReviewResponse(CamelModel):
    """Schema for a stored review, with the author's username inlined"""
    id: int
    user_id: int
    author: str
    date: datetime
    rating: int
    text: str
    helpful_count: int = 0
    tmdb_id: int
    media_type: MediaType

    @classmethod
    def from_review(cls, review) -> "ReviewResponse":
        return cls(
            id=review.id,
            user_id=review.user_id,
            author=review.author,
            date=review.review_date,
            rating=review.rating,
            text=review.text,
            helpful_count=review.helpful_count or 0,
            tmdb_id=review.tmdb_id,
            media_type=review.media_type,
        )
