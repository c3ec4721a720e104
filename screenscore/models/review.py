from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from screenscore.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Review(Base):
    """
    Review model - A user's rating and written opinion of a movie or TV show.

    The author's username is copied in at write time so listing reviews
    never needs a join against users.
    """
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    author = Column(String(30), nullable=False)
    tmdb_id = Column(Integer, nullable=False)
    media_type = Column(String(10), nullable=False)
    rating = Column(Integer, nullable=False)
    text = Column(Text, nullable=False)
    review_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    helpful_count = Column(Integer, nullable=False, default=0)

    # Relationships
    user = relationship("User", back_populates="reviews")

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
        CheckConstraint("helpful_count >= 0", name="ck_reviews_helpful_non_negative"),
        CheckConstraint("media_type IN ('movie', 'tv')", name="ck_reviews_media_type"),
        Index("idx_reviews_title", "tmdb_id", "media_type", "review_date"),
    )

    def __repr__(self):
        return f"<Review(id={self.id}, user_id={self.user_id}, tmdb_id={self.tmdb_id}, rating={self.rating})>"
