"""
Import all models to ensure they are registered with SQLAlchemy
"""
from screenscore.models.user import User
from screenscore.models.review import Review
from screenscore.models.watchlist import Watchlist, WatchlistItem

__all__ = [
    "User",
    "Review",
    "Watchlist",
    "WatchlistItem",
]
