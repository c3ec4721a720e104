import requests
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from functools import lru_cache
from itertools import chain, zip_longest
from typing import Callable, Dict, List, Optional
from fastapi import HTTPException
from screenscore.schemas.media import CastMember, Genre, MediaItem, Person, WatchProvider
from screenscore.utils.cache import CacheStore
import logging

logger = logging.getLogger(__name__)

IMAGE_BASE_URL = "https://image.tmdb.org/t/p"
POSTER_PLACEHOLDER = "https://placehold.co/400x600.png"
PROFILE_PLACEHOLDER = "https://placehold.co/185x278.png"
PROFILE_LARGE_PLACEHOLDER = "https://placehold.co/500x750.png"
MEDIA_KINDS = ("movie", "tv")


# ============================================
# TMDB -> API shape mapping
# ============================================

def image_url(path: Optional[str], size: str, placeholder: Optional[str] = None) -> Optional[str]:
    return f"{IMAGE_BASE_URL}/{size}{path}" if path else placeholder


def release_year(raw: Dict, media_type: str) -> int:
    released = raw.get("release_date") if media_type == "movie" else raw.get("first_air_date")
    try:
        return int(released.split("-")[0]) if released else 0
    except ValueError:
        return 0


def to_media_item(raw: Dict, genres: Dict[int, str], media_type: str) -> MediaItem:
    """Flatten a TMDB movie or tv record. Person-credit records carry their own media_type."""
    kind = raw.get("media_type") or media_type

    if raw.get("genres"):
        genre_names = [g["name"] for g in raw["genres"]]
    else:
        genre_names = [genres[g] for g in raw.get("genre_ids") or [] if g in genres]

    return MediaItem(
        id=f"{kind}-{raw['id']}",
        tmdb_id=raw["id"],
        media_type=kind,
        title=raw.get("title") or raw.get("name") or "Unknown Title",
        description=raw.get("overview"),
        poster_url=image_url(raw.get("poster_path"), "w500", POSTER_PLACEHOLDER),
        backdrop_url=image_url(raw.get("backdrop_path"), "w1280"),
        release_year=release_year(raw, kind),
        genres=genre_names,
    )


def to_person(raw: Dict) -> Person:
    known_for = ", ".join(
        m.get("title") or m.get("name") or "" for m in raw.get("known_for") or []
    )
    return Person(
        id=raw["id"],
        name=raw["name"],
        profile_url=image_url(raw.get("profile_path"), "w185", PROFILE_PLACEHOLDER),
        known_for=known_for or raw.get("known_for_department"),
        biography=raw.get("biography"),
        birthday=raw.get("birthday"),
        place_of_birth=raw.get("place_of_birth"),
    )


def to_cast_member(raw: Dict) -> CastMember:
    return CastMember(
        id=raw["id"],
        name=raw["name"],
        character=raw.get("character"),
        profile_url=image_url(raw.get("profile_path"), "w185", PROFILE_PLACEHOLDER),
    )


def to_watch_provider(raw: Dict) -> WatchProvider:
    return WatchProvider(
        provider_id=raw["provider_id"],
        provider_name=raw["provider_name"],
        logo_path=image_url(raw.get("logo_path"), "w92"),
        display_priority=raw.get("display_priority", 0),
    )


def interleave(first: List, second: List) -> List:
    """a1, b1, a2, b2, ... keeping the tail of the longer list"""
    return [item for item in chain.from_iterable(zip_longest(first, second)) if item is not None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# TMDB Service to interact with The Movie Database API
class TMDBService:
    """
    Read-only client for the TMDB v3 API.

    One instance lives for the whole process (see get_catalog); it owns the
    genre cache and a short-lived response cache. Request threads and the
    fan-out pool share the instance, so each thread gets its own
    requests.Session unless a client is injected.
    """
    BASE_URL = "https://api.themoviedb.org/3"
    GENRE_TTL = 86400  # genres rarely change
    SEARCH_TTL = 300
    LIST_TTL = 3600

    def __init__(
        self,
        api_key: Optional[str] = None,
        region: Optional[str] = None,
        http: Optional[requests.Session] = None,
        clock: Callable[[], datetime] = _utcnow,
        genre_ttl: int = GENRE_TTL,
    ):
        self.api_key = api_key if api_key is not None else os.getenv("TMDB_API_KEY")
        self.region = region or os.getenv("TMDB_REGION", "IN")
        self._injected_http = http
        self._local = threading.local()
        self.genre_cache = CacheStore(max_size=8, default_ttl=genre_ttl, clock=clock)
        self.response_cache = CacheStore(max_size=1000, clock=clock)

    @property
    def http(self) -> requests.Session:
        if self._injected_http is not None:
            return self._injected_http
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._local.session = requests.Session()
        return session

    # Internal method to make GET requests to TMDB API
    def _make_request(self, endpoint: str, params: Optional[Dict] = None) -> Dict:
        """
        Make HTTP request to TMDB API.

        Args:
            endpoint: API endpoint (e.g., "/movie/popular")
            params: Query parameters

        Returns:
            JSON response from TMDB

        Raises:
            HTTPException: 404 if TMDB has no such record, 500 if the key is
                missing or the request fails
        """
        if not self.api_key:
            logger.error("TMDB_API_KEY is not configured")
            raise HTTPException(status_code=500, detail="Catalog provider not configured")
        params = dict(params or {})
        params['api_key'] = self.api_key
        url = f"{self.BASE_URL}{endpoint}"

        try:
            response = self.http.get(url, params=params, timeout=10)
            response.raise_for_status()
            logger.debug(f"TMDB API request successful: {endpoint}")
            return response.json()
        except requests.exceptions.HTTPError as e:
            if e.response is not None and e.response.status_code == 404:
                raise HTTPException(status_code=404, detail="Media not found")
            logger.error(f"TMDB API error for {endpoint}: {str(e)}")
            raise HTTPException(status_code=500, detail="Upstream service unavailable")
        except requests.exceptions.RequestException as e:
            logger.error(f"TMDB API error for {endpoint}: {str(e)}")
            raise HTTPException(status_code=500, detail="Upstream service unavailable")

    def _cached_request(self, ttl: int, endpoint: str, params: Optional[Dict] = None) -> Dict:
        key = CacheStore.make_key(endpoint, **(params or {}))
        return self.response_cache.get_or_set(key, lambda: self._make_request(endpoint, params), ttl)

    # ============================================
    # Genres
    # ============================================

    def _load_genre_map(self, media_type: str) -> Dict[int, str]:
        cached = self.genre_cache.get(media_type)
        if cached is not None:
            return cached
        try:
            data = self._make_request(f"/genre/{media_type}/list", {'language': 'en-US'})
        except HTTPException as e:
            # Listings still render without genre names; retry on the next call
            logger.error(f"Error fetching {media_type} genres: {e.detail}")
            return {}
        genre_map = {g['id']: g['name'] for g in data.get('genres', [])}
        self.genre_cache.set(media_type, genre_map)
        return genre_map

    def get_genre_map(self, media_type: str) -> Dict[int, str]:
        """Genre id -> name. 'all' loads movie and tv maps in parallel and merges them."""
        if media_type != "all":
            return self._load_genre_map(media_type)
        with ThreadPoolExecutor(max_workers=2) as pool:
            movie_genres, tv_genres = pool.map(self._load_genre_map, MEDIA_KINDS)
        return {**movie_genres, **tv_genres}

    def invalidate_genres(self) -> None:
        """Drop cached genre maps; the next lookup refetches them."""
        self.genre_cache.clear()

    def get_genre_list(self, media_type: str) -> List[Genre]:
        return [Genre(id=gid, name=name) for gid, name in self.get_genre_map(media_type).items()]

    # ============================================
    # Listings
    # ============================================

    def search_media(self, query: str, page: int = 1) -> List[MediaItem]:
        """Multi-search restricted to movies and shows that have a poster"""
        genres = self.get_genre_map("all")
        data = self._cached_request(self.SEARCH_TTL, "/search/multi", {'query': query, 'page': page})
        return [
            to_media_item(item, genres, item["media_type"])
            for item in data.get('results', [])
            if item.get("media_type") in MEDIA_KINDS and item.get("poster_path")
        ]

    def search_people(self, query: str) -> List[Person]:
        data = self._cached_request(self.SEARCH_TTL, "/search/person", {'query': query})
        return [to_person(p) for p in data.get('results', [])[:20]]

    def get_popular(self, media_type: str = "movie", page: int = 1) -> List[MediaItem]:
        """
        Popular movies or shows. 'all' fetches both concurrently and
        interleaves them, capped at 20.
        """
        if media_type == "all":
            with ThreadPoolExecutor(max_workers=2) as pool:
                movies, shows = pool.map(lambda kind: self.get_popular(kind, page), MEDIA_KINDS)
            return interleave(movies, shows)[:20]

        genres = self.get_genre_map(media_type)
        data = self._cached_request(
            self.LIST_TTL,
            f"/{media_type}/popular",
            {'language': 'en-US', 'page': page, 'watch_region': self.region},
        )
        return [to_media_item(item, genres, media_type) for item in data.get('results', [])]

    def get_trending(self, media_type: str = "all", time_window: str = "week") -> List[MediaItem]:
        genres = self.get_genre_map(media_type)
        data = self._cached_request(self.LIST_TTL, f"/trending/{media_type}/{time_window}")
        default_kind = media_type if media_type in MEDIA_KINDS else "movie"
        return [
            to_media_item(item, genres, default_kind)
            for item in data.get('results', [])
            if item.get("media_type", default_kind) in MEDIA_KINDS
        ]

    def get_popular_people(self, page: int = 1) -> List[Person]:
        data = self._cached_request(self.LIST_TTL, "/person/popular", {'language': 'en-US', 'page': page})
        return [to_person(p) for p in data.get('results', [])]

    def discover(
        self,
        media_type: str,
        page: int = 1,
        year: Optional[int] = None,
        language: Optional[str] = None,
        genre_id: Optional[str] = None,
        provider_ids: Optional[str] = None,
    ) -> List[MediaItem]:
        """Filtered browse, most popular first"""
        genres = self.get_genre_map(media_type)
        params: Dict = {'page': page, 'sort_by': 'popularity.desc'}
        if year:
            year_param = 'primary_release_year' if media_type == 'movie' else 'first_air_date_year'
            params[year_param] = year
        if language:
            params['with_original_language'] = language
        if genre_id:
            params['with_genres'] = genre_id
        if provider_ids:
            params['with_watch_providers'] = provider_ids
            params['watch_region'] = self.region

        data = self._cached_request(self.SEARCH_TTL, f"/discover/{media_type}", params)
        return [to_media_item(item, genres, media_type) for item in data.get('results', [])]

    def get_watch_providers(self, media_type: str) -> List[WatchProvider]:
        data = self._cached_request(
            self.LIST_TTL,
            f"/watch/providers/{media_type}",
            {'language': 'en-US', 'watch_region': self.region},
        )
        providers = [to_watch_provider(p) for p in data.get('results', [])]
        return sorted(providers, key=lambda p: (p.display_priority, p.provider_name))

    # ============================================
    # Details
    # ============================================

    def get_details(self, tmdb_id: int, media_type: str) -> MediaItem:
        """Movie or show with cast, trailer, and streaming availability for the region"""
        genres = self.get_genre_map(media_type)
        data = self._make_request(
            f"/{media_type}/{tmdb_id}",
            {'append_to_response': 'videos,credits,watch/providers'},
        )
        item = to_media_item(data, genres, media_type)

        videos = (data.get('videos') or {}).get('results') or []
        trailer = next(
            (v for v in videos if v.get('site') == 'YouTube' and v.get('type') == 'Trailer'),
            None,
        )
        if trailer:
            item.trailer_url = f"https://www.youtube.com/watch?v={trailer['key']}"

        regional = ((data.get('watch/providers') or {}).get('results') or {}).get(self.region) or {}
        if regional.get('flatrate'):
            item.watch_providers = [to_watch_provider(p) for p in regional['flatrate']]

        cast = (data.get('credits') or {}).get('cast') or []
        item.cast = [to_cast_member(member) for member in cast[:10]]
        return item

    def get_person(self, person_id: int) -> Person:
        data = self._make_request(f"/person/{person_id}")
        person = to_person(data)
        # Larger profile image for the details view
        person.profile_url = image_url(data.get('profile_path'), "w500", PROFILE_LARGE_PLACEHOLDER)
        return person

    def get_person_credits(self, person_id: int) -> List[MediaItem]:
        """A person's 20 most popular movie/tv credits that have posters"""
        genres = self.get_genre_map("all")
        data = self._make_request(f"/person/{person_id}/combined_credits")
        credits = [
            item for item in data.get('cast', [])
            if item.get('media_type') in MEDIA_KINDS and item.get('poster_path')
        ]
        credits.sort(key=lambda item: item.get('popularity') or 0, reverse=True)
        return [to_media_item(item, genres, item['media_type']) for item in credits[:20]]


@lru_cache(maxsize=1)
def get_catalog() -> TMDBService:
    """Process-wide catalog client (FastAPI dependency)"""
    return TMDBService()
