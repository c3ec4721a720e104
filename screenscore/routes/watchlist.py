from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from screenscore.database import get_db
from screenscore.utils.dependencies import require_session
from screenscore.utils.security import SessionIdentity
from screenscore.schemas.auth import MessageResponse
from screenscore.schemas.common import MediaType
from screenscore.schemas.watchlist import (
    WatchlistMutation,
    WatchlistItemResponse,
    WatchlistCheck,
)
from screenscore.services.watchlist_service import WatchlistService

router = APIRouter(prefix="/api/watchlist", tags=["Watchlist"])


@router.get("", response_model=List[WatchlistItemResponse])
def get_watchlist(
    identity: SessionIdentity = Depends(require_session),
    db: Session = Depends(get_db)
):
    """Get the signed-in user's watchlist, oldest addition first"""
    return WatchlistService.get_watchlist(db, identity.user_id)


@router.post("", response_model=MessageResponse)
def update_watchlist(
    identity: SessionIdentity = Depends(require_session),
    mutation: WatchlistMutation = Body(..., discriminator="action"),
    db: Session = Depends(get_db)
):
    """
    Add or remove a title

    - **action**: "add" or "remove"
    - **tmdbId**, **mediaType**: which title
    - **title**, **posterUrl**, **releaseYear**: required for "add"

    Adding a title already present, or removing one that is absent, succeeds
    without changing anything.
    """
    WatchlistService.toggle(db, identity.user_id, mutation)
    return {"message": "Watchlist updated successfully"}


@router.get("/check", response_model=WatchlistCheck)
def check_in_watchlist(
    tmdb_id: int = Query(..., alias="tmdbId", gt=0),
    media_type: MediaType = Query(..., alias="mediaType"),
    identity: SessionIdentity = Depends(require_session),
    db: Session = Depends(get_db)
):
    """Check if a title is in the signed-in user's watchlist"""
    return WatchlistCheck(
        tmdb_id=tmdb_id,
        media_type=media_type,
        in_watchlist=WatchlistService.check_in_watchlist(db, identity.user_id, tmdb_id, media_type),
    )
