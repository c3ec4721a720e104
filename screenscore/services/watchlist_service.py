from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import select, delete
from fastapi import HTTPException, status
from typing import List, Union
from datetime import datetime, timezone
import logging

from screenscore.database import insert_ignoring_conflicts
from screenscore.models.watchlist import Watchlist, WatchlistItem
from screenscore.schemas.watchlist import WatchlistAddIntent, WatchlistRemoveIntent

logger = logging.getLogger(__name__)


class WatchlistService:
    """
    Service for watchlist operations.

    Every mutation is a single conflict-aware INSERT or a single DELETE, so
    repeated or concurrent toggles of the same title converge without any
    read-modify-write in Python.
    """

    @staticmethod
    def _ensure_watchlist(db: Session, user_id: int) -> int:
        """
        Upsert the user's watchlist row and return its id.
        Creating it is a no-op when it already exists.
        """
        db.execute(insert_ignoring_conflicts(
            db,
            Watchlist.__table__,
            {"user_id": user_id, "created_at": datetime.now(timezone.utc)},
            index_elements=["user_id"],
        ))
        return db.execute(
            select(Watchlist.id).where(Watchlist.user_id == user_id)
        ).scalar_one()

    @staticmethod
    def _add(db: Session, user_id: int, intent: WatchlistAddIntent) -> None:
        watchlist_id = WatchlistService._ensure_watchlist(db, user_id)
        result = db.execute(insert_ignoring_conflicts(
            db,
            WatchlistItem.__table__,
            {
                "watchlist_id": watchlist_id,
                "tmdb_id": intent.tmdb_id,
                "media_type": intent.media_type,
                "title": intent.title,
                "poster_url": intent.poster_url,
                "release_year": intent.release_year,
                "added_date": datetime.now(timezone.utc),
            },
            index_elements=["watchlist_id", "tmdb_id", "media_type"],
        ))
        if result.rowcount == 0:
            logger.debug(f"{intent.media_type} {intent.tmdb_id} already in watchlist of user {user_id}")

    @staticmethod
    def _remove(db: Session, user_id: int, intent: WatchlistRemoveIntent) -> None:
        watchlist_id = (
            select(Watchlist.id)
            .where(Watchlist.user_id == user_id)
            .scalar_subquery()
        )
        result = db.execute(
            delete(WatchlistItem)
            .where(
                WatchlistItem.watchlist_id == watchlist_id,
                WatchlistItem.tmdb_id == intent.tmdb_id,
                WatchlistItem.media_type == intent.media_type,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.debug(f"{intent.media_type} {intent.tmdb_id} was not in watchlist of user {user_id}")

    @staticmethod
    def toggle(
        db: Session,
        user_id: int,
        mutation: Union[WatchlistAddIntent, WatchlistRemoveIntent],
    ) -> None:
        """Apply an add or remove intent. Both are idempotent."""
        if isinstance(mutation, WatchlistAddIntent):
            apply = WatchlistService._add
        elif isinstance(mutation, WatchlistRemoveIntent):
            apply = WatchlistService._remove
        else:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")

        try:
            apply(db, user_id, mutation)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to update watchlist for user {user_id}: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update watchlist"
            )

        logger.info(f"User {user_id} {mutation.action} {mutation.media_type} {mutation.tmdb_id} on watchlist")

    @staticmethod
    def get_watchlist(db: Session, user_id: int) -> List[WatchlistItem]:
        """Get user's watchlist in the order titles were added; empty if never created"""
        return list(db.execute(
            select(WatchlistItem)
            .join(Watchlist, WatchlistItem.watchlist_id == Watchlist.id)
            .where(Watchlist.user_id == user_id)
            .order_by(WatchlistItem.added_date, WatchlistItem.id)
        ).scalars())

    @staticmethod
    def check_in_watchlist(db: Session, user_id: int, tmdb_id: int, media_type: str) -> bool:
        """Check if a title is in user's watchlist"""
        item_id = db.execute(
            select(WatchlistItem.id)
            .join(Watchlist, WatchlistItem.watchlist_id == Watchlist.id)
            .where(
                Watchlist.user_id == user_id,
                WatchlistItem.tmdb_id == tmdb_id,
                WatchlistItem.media_type == media_type,
            )
        ).first()
        return item_id is not None
