from pydantic import Field
from datetime import datetime
from typing import Literal, Union

from screenscore.schemas.common import CamelModel, MediaType


# ==================== WATCHLIST MUTATIONS ====================

class WatchlistAddIntent(CamelModel):
    """Add a title to the watchlist, with the fields shown in the list view"""
    action: Literal["add"]
    tmdb_id: int = Field(..., description="TMDB id", gt=0)
    media_type: MediaType
    title: str = Field(..., min_length=1, max_length=500)
    poster_url: str = Field(..., min_length=1, max_length=1000)
    release_year: int = Field(..., ge=0, le=9999, description="0 when unknown")


class WatchlistRemoveIntent(CamelModel):
    """Remove a title from the watchlist"""
    action: Literal["remove"]
    tmdb_id: int = Field(..., description="TMDB id", gt=0)
    media_type: MediaType


# Tagged on "action"
WatchlistMutation = Union[WatchlistAddIntent, WatchlistRemoveIntent]


# ==================== RESPONSES ====================

class WatchlistItemResponse(CamelModel):
    """Schema for watchlist item response"""
    tmdb_id: int
    media_type: MediaType
    title: str
    poster_url: str
    release_year: int
    added_date: datetime


class WatchlistCheck(CamelModel):
    tmdb_id: int
    media_type: MediaType
    in_watchlist: bool
