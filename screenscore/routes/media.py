from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session
from typing import List, Literal, Optional

from screenscore.database import get_db
from screenscore.schemas.common import MediaType
from screenscore.schemas.media import Genre, MediaItem, Person, WatchProvider
from screenscore.schemas.review import ReviewResponse
from screenscore.schemas.validation import SearchQuerySchema
from screenscore.services.review_service import ReviewService
from screenscore.services.tmdb_service import TMDBService, get_catalog

router = APIRouter(prefix="/api/media", tags=["Media"])
people_router = APIRouter(prefix="/api/people", tags=["People"])


# ============================================
# Browsing
# ============================================

@router.get("/popular", response_model=List[MediaItem])
def get_popular(
    media_type: Literal["movie", "tv", "all"] = Query("all", alias="mediaType"),
    page: int = Query(1, ge=1, le=500),
    catalog: TMDBService = Depends(get_catalog)
):
    """Popular movies, shows, or a mix of both"""
    return catalog.get_popular(media_type, page)


@router.get("/trending", response_model=List[MediaItem])
def get_trending(
    media_type: Literal["movie", "tv", "all"] = Query("all", alias="mediaType"),
    time_window: Literal["day", "week"] = Query("week", alias="timeWindow"),
    catalog: TMDBService = Depends(get_catalog)
):
    """Trending titles for the day or week"""
    return catalog.get_trending(media_type, time_window)


@router.get("/search", response_model=List[MediaItem])
def search_media(
    query: str = Query(..., min_length=1, max_length=200, description="Search query"),
    page: int = Query(1, ge=1, le=500),
    catalog: TMDBService = Depends(get_catalog)
):
    """Free-text search across movies and shows"""
    search = SearchQuerySchema(query=query, page=page)
    return catalog.search_media(search.query, search.page)


@router.get("/discover", response_model=List[MediaItem])
def discover_media(
    media_type: MediaType = Query("movie", alias="mediaType"),
    page: int = Query(1, ge=1, le=500),
    year: Optional[int] = Query(None, ge=1870, le=2100, description="Release (or first air) year"),
    language: Optional[str] = Query(None, max_length=5, description="Original language code (e.g., 'en')"),
    genre: Optional[str] = Query(None, pattern=r'^\d+([,|]\d+)*$', description="Genre IDs"),
    providers: Optional[str] = Query(None, pattern=r'^\d+([,|]\d+)*$', description="Watch provider IDs"),
    catalog: TMDBService = Depends(get_catalog)
):
    """
    Browse with filters

    - **year**: release year for movies, first air year for shows
    - **language**: original language
    - **genre**: genre ids, comma (AND) or pipe (OR) separated
    - **providers**: streaming provider ids in the configured region
    """
    return catalog.discover(media_type, page, year, language, genre, providers)


@router.get("/genres/{media_type}", response_model=List[Genre])
def get_genres(
    media_type: MediaType,
    catalog: TMDBService = Depends(get_catalog)
):
    """Genres available for movies or for shows"""
    return catalog.get_genre_list(media_type)


@router.get("/providers/{media_type}", response_model=List[WatchProvider])
def get_watch_providers(
    media_type: MediaType,
    catalog: TMDBService = Depends(get_catalog)
):
    """Streaming providers in the configured region"""
    return catalog.get_watch_providers(media_type)


# ============================================
# Details
# ============================================

@router.get("/{media_type}/{tmdb_id}", response_model=MediaItem)
def get_media_details(
    media_type: MediaType,
    tmdb_id: int = Path(..., gt=0),
    catalog: TMDBService = Depends(get_catalog),
    db: Session = Depends(get_db)
):
    """Movie or show details with cast, trailer, providers, and our users' reviews"""
    item = catalog.get_details(tmdb_id, media_type)
    item.reviews = [
        ReviewResponse.from_review(r)
        for r in ReviewService.get_reviews_for_media(db, tmdb_id, media_type)
    ]
    return item


# ============================================
# People
# ============================================

@people_router.get("/popular", response_model=List[Person])
def get_popular_people(
    page: int = Query(1, ge=1, le=500),
    catalog: TMDBService = Depends(get_catalog)
):
    return catalog.get_popular_people(page)


@people_router.get("/search", response_model=List[Person])
def search_people(
    query: str = Query(..., min_length=1, max_length=200),
    catalog: TMDBService = Depends(get_catalog)
):
    search = SearchQuerySchema(query=query)
    return catalog.search_people(search.query)


@people_router.get("/{person_id}", response_model=Person)
def get_person(
    person_id: int = Path(..., gt=0),
    catalog: TMDBService = Depends(get_catalog)
):
    return catalog.get_person(person_id)


@people_router.get("/{person_id}/credits", response_model=List[MediaItem])
def get_person_credits(
    person_id: int = Path(..., gt=0),
    catalog: TMDBService = Depends(get_catalog)
):
    """Best-known movies and shows for a person"""
    return catalog.get_person_credits(person_id)
