"""
Media Schemas - Shapes returned by the catalog endpoints
"""

from pydantic import Field
from typing import List, Optional

from screenscore.schemas.common import CamelModel, MediaType
from screenscore.schemas.review import ReviewResponse


class Genre(CamelModel):
    id: int
    name: str


class WatchProvider(CamelModel):
    provider_id: int
    provider_name: str
    logo_path: Optional[str] = None
    display_priority: int = 0


class CastMember(CamelModel):
    id: int
    name: str
    character: Optional[str] = None
    profile_url: str


class Person(CamelModel):
    id: int
    name: str
    profile_url: str
    known_for: Optional[str] = None
    biography: Optional[str] = None
    birthday: Optional[str] = None
    place_of_birth: Optional[str] = None


class MediaItem(CamelModel):
    """A movie or TV show, flattened from TMDB's movie/tv variants"""
    id: str = Field(..., description="'{mediaType}-{tmdbId}'")
    tmdb_id: int
    media_type: MediaType
    title: str
    description: Optional[str] = None
    poster_url: str
    release_year: int = 0
    genres: List[str] = []
    reviews: List[ReviewResponse] = []
    cast: List[CastMember] = []
    backdrop_url: Optional[str] = None
    trailer_url: Optional[str] = None
    watch_providers: Optional[List[WatchProvider]] = None
