from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from screenscore.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Watchlist(Base):
    """
    Watchlist model - One per user, created lazily on the first add.
    Never deleted, only emptied.
    """
    __tablename__ = "watchlists"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    user = relationship("User", back_populates="watchlist")
    items = relationship(
        "WatchlistItem",
        back_populates="watchlist",
        order_by="(WatchlistItem.added_date, WatchlistItem.id)",
    )

    def __repr__(self):
        return f"<Watchlist(id={self.id}, user_id={self.user_id})>"


class WatchlistItem(Base):
    """
    A movie or TV show saved to a watchlist, with the display fields
    captured at the time it was added.
    """
    __tablename__ = "watchlist_items"

    id = Column(Integer, primary_key=True, index=True)
    watchlist_id = Column(Integer, ForeignKey("watchlists.id"), nullable=False, index=True)
    tmdb_id = Column(Integer, nullable=False)
    media_type = Column(String(10), nullable=False)
    title = Column(String(500), nullable=False)
    poster_url = Column(String(1000), nullable=False)
    release_year = Column(Integer, nullable=False)
    added_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationship
    watchlist = relationship("Watchlist", back_populates="items")

    # At most one entry per title per watchlist
    __table_args__ = (
        UniqueConstraint("watchlist_id", "tmdb_id", "media_type", name="unique_watchlist_title"),
        CheckConstraint("media_type IN ('movie', 'tv')", name="ck_watchlist_items_media_type"),
    )

    def __repr__(self):
        return f"<WatchlistItem(watchlist_id={self.watchlist_id}, tmdb_id={self.tmdb_id}, media_type={self.media_type})>"
