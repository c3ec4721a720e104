import json
import threading
from datetime import datetime, timedelta, timezone

import pytest
import requests
from fastapi import HTTPException

from screenscore.main import app
from screenscore.schemas.media import MediaItem
from screenscore.services.tmdb_service import (
    POSTER_PLACEHOLDER,
    TMDBService,
    get_catalog,
    interleave,
    to_media_item,
)
from screenscore.utils.cache import CacheStore

from conftest import sign_in


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 3, 1, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


class FakeTMDB:
    """Stands in for TMDBService._make_request; answers by endpoint and records calls."""

    def __init__(self, responses):
        self.responses = responses
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, endpoint, params=None):
        with self._lock:
            self.calls.append(endpoint)
        answer = self.responses[endpoint]
        if isinstance(answer, Exception):
            raise answer
        return answer

    def count(self, endpoint):
        return self.calls.count(endpoint)


MOVIE_GENRES = {"genres": [{"id": 28, "name": "Action"}, {"id": 18, "name": "Drama"}]}
TV_GENRES = {"genres": [{"id": 10765, "name": "Sci-Fi & Fantasy"}, {"id": 18, "name": "Drama"}]}


def make_service(responses, clock=None):
    service = TMDBService(api_key="k", region="US", clock=clock or FakeClock())
    fake = FakeTMDB(responses)
    service._make_request = fake
    return service, fake


def json_response(status_code, payload=None):
    response = requests.Response()
    response.status_code = status_code
    response._content = json.dumps(payload or {}).encode()
    response.url = "https://api.themoviedb.org/3/test"
    return response


class FakeHttp:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append((url, params))
        if self.error:
            raise self.error
        return self.response


# ============================================
# CacheStore
# ============================================

def test_cache_entries_expire_on_the_injected_clock():
    clock = FakeClock()
    cache = CacheStore(default_ttl=60, clock=clock)
    cache.set("movie", {28: "Action"})

    clock.advance(59)
    assert cache.get("movie") == {28: "Action"}

    clock.advance(1)
    assert cache.get("movie") is None


def test_cache_entry_without_ttl_never_expires():
    clock = FakeClock()
    cache = CacheStore(clock=clock)
    cache.set("k", "v")

    clock.advance(10 ** 7)

    assert cache.get("k") == "v"


def test_invalidate_prefix_drops_only_matching_keys():
    cache = CacheStore()
    cache.set("/movie/popular:a", 1)
    cache.set("/movie/popular:b", 2)
    cache.set("/tv/popular:a", 3)

    dropped = cache.invalidate_prefix("/movie/")

    assert dropped == 2
    assert cache.get("/tv/popular:a") == 3
    assert len(cache) == 1


def test_least_recently_used_entry_is_evicted():
    cache = CacheStore(max_size=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.get("a")
    cache.set("c", 3)

    assert cache.get("b") is None
    assert cache.get("a") == 1
    assert cache.get("c") == 3


def test_make_key_is_stable_across_keyword_order():
    first = CacheStore.make_key("/search/multi", query="alien", page=1)
    second = CacheStore.make_key("/search/multi", page=1, query="alien")

    assert first == second
    assert first.startswith("/search/multi:")


# ============================================
# Genre cache
# ============================================

def test_genre_map_is_fetched_once_within_ttl():
    service, fake = make_service({"/genre/movie/list": MOVIE_GENRES})

    first = service.get_genre_map("movie")
    second = service.get_genre_map("movie")

    assert first == {28: "Action", 18: "Drama"}
    assert second == first
    assert fake.count("/genre/movie/list") == 1


def test_genre_map_is_refetched_after_a_day():
    clock = FakeClock()
    service, fake = make_service({"/genre/movie/list": MOVIE_GENRES}, clock=clock)

    service.get_genre_map("movie")
    clock.advance(86399)
    service.get_genre_map("movie")
    assert fake.count("/genre/movie/list") == 1

    clock.advance(1)
    service.get_genre_map("movie")
    assert fake.count("/genre/movie/list") == 2


def test_invalidate_genres_forces_a_refetch():
    service, fake = make_service({"/genre/movie/list": MOVIE_GENRES})
    service.get_genre_map("movie")

    service.invalidate_genres()
    service.get_genre_map("movie")

    assert fake.count("/genre/movie/list") == 2


def test_failed_genre_fetch_is_empty_and_not_cached():
    service, fake = make_service({
        "/genre/movie/list": HTTPException(status_code=500, detail="Upstream service unavailable"),
    })

    assert service.get_genre_map("movie") == {}

    fake.responses["/genre/movie/list"] = MOVIE_GENRES
    assert service.get_genre_map("movie") == {28: "Action", 18: "Drama"}


def test_all_genres_merges_movie_and_tv_maps():
    service, fake = make_service({"/genre/movie/list": MOVIE_GENRES, "/genre/tv/list": TV_GENRES})

    merged = service.get_genre_map("all")

    assert merged == {28: "Action", 18: "Drama", 10765: "Sci-Fi & Fantasy"}
    assert fake.count("/genre/movie/list") == 1
    assert fake.count("/genre/tv/list") == 1


def test_genre_list_endpoint_shape():
    service, _ = make_service({"/genre/tv/list": TV_GENRES})

    genres = service.get_genre_list("tv")

    assert [(g.id, g.name) for g in genres] == [(10765, "Sci-Fi & Fantasy"), (18, "Drama")]


# ============================================
# Mapping
# ============================================

def test_tv_record_uses_name_and_first_air_date():
    raw = {"id": 1399, "name": "Game of Thrones", "first_air_date": "2011-04-17",
           "genre_ids": [10765, 18, 999], "poster_path": "/got.jpg"}

    item = to_media_item(raw, {10765: "Sci-Fi & Fantasy", 18: "Drama"}, "tv")

    assert item.id == "tv-1399"
    assert item.title == "Game of Thrones"
    assert item.release_year == 2011
    assert item.genres == ["Sci-Fi & Fantasy", "Drama"]
    assert item.poster_url == "https://image.tmdb.org/t/p/w500/got.jpg"


def test_missing_poster_and_date_fall_back():
    item = to_media_item({"id": 5, "title": "Untitled", "release_date": ""}, {}, "movie")

    assert item.poster_url == POSTER_PLACEHOLDER
    assert item.release_year == 0
    assert item.genres == []


def test_detail_record_genres_are_used_directly():
    raw = {"id": 5, "title": "T", "genres": [{"id": 1, "name": "Noir"}]}

    assert to_media_item(raw, {}, "movie").genres == ["Noir"]


def test_interleave_keeps_the_longer_tail():
    assert interleave([1, 3, 5, 7], [2, 4]) == [1, 2, 3, 4, 5, 7]


# ============================================
# Catalog operations
# ============================================

def test_popular_all_interleaves_movies_and_shows():
    movies = {"results": [{"id": i, "title": f"M{i}"} for i in range(1, 16)]}
    shows = {"results": [{"id": 100 + i, "name": f"S{i}"} for i in range(1, 16)]}
    service, _ = make_service({
        "/genre/movie/list": MOVIE_GENRES,
        "/genre/tv/list": TV_GENRES,
        "/movie/popular": movies,
        "/tv/popular": shows,
    })

    items = service.get_popular("all")

    assert len(items) == 20
    assert [i.media_type for i in items[:4]] == ["movie", "tv", "movie", "tv"]
    assert [i.title for i in items[:4]] == ["M1", "S1", "M2", "S2"]


def test_popular_responses_are_cached():
    service, fake = make_service({
        "/genre/movie/list": MOVIE_GENRES,
        "/movie/popular": {"results": [{"id": 1, "title": "M1"}]},
    })

    service.get_popular("movie")
    service.get_popular("movie")

    assert fake.count("/movie/popular") == 1


def test_search_keeps_only_movies_and_shows_with_posters():
    service, _ = make_service({
        "/genre/movie/list": MOVIE_GENRES,
        "/genre/tv/list": TV_GENRES,
        "/search/multi": {"results": [
            {"id": 1, "media_type": "movie", "title": "Alien", "poster_path": "/a.jpg", "genre_ids": [28]},
            {"id": 2, "media_type": "person", "name": "Sigourney Weaver", "poster_path": "/p.jpg"},
            {"id": 3, "media_type": "tv", "name": "Alien Nation", "poster_path": None},
            {"id": 4, "media_type": "tv", "name": "Alien Worlds", "poster_path": "/w.jpg"},
        ]},
    })

    results = service.search_media("alien")

    assert [(r.media_type, r.tmdb_id) for r in results] == [("movie", 1), ("tv", 4)]
    assert results[0].genres == ["Action"]


def test_details_include_trailer_regional_providers_and_top_cast():
    service, _ = make_service({
        "/genre/movie/list": MOVIE_GENRES,
        "/movie/42": {
            "id": 42,
            "title": "The Answer",
            "release_date": "2020-01-01",
            "genres": [{"id": 18, "name": "Drama"}],
            "videos": {"results": [
                {"site": "Vimeo", "type": "Trailer", "key": "nope"},
                {"site": "YouTube", "type": "Teaser", "key": "tease"},
                {"site": "YouTube", "type": "Trailer", "key": "abc123"},
            ]},
            "watch/providers": {"results": {
                "US": {"flatrate": [{"provider_id": 8, "provider_name": "Netflix", "logo_path": "/n.png"}]},
                "GB": {"flatrate": [{"provider_id": 9, "provider_name": "Prime"}]},
            }},
            "credits": {"cast": [
                {"id": n, "name": f"Actor {n}", "character": f"Role {n}"} for n in range(15)
            ]},
        },
    })

    item = service.get_details(42, "movie")

    assert item.trailer_url == "https://www.youtube.com/watch?v=abc123"
    assert [p.provider_name for p in item.watch_providers] == ["Netflix"]
    assert len(item.cast) == 10
    assert item.cast[0].character == "Role 0"


def test_details_without_regional_providers_leave_them_unset():
    service, _ = make_service({
        "/genre/tv/list": TV_GENRES,
        "/tv/7": {"id": 7, "name": "Show", "watch/providers": {"results": {}}},
    })

    item = service.get_details(7, "tv")

    assert item.watch_providers is None
    assert item.trailer_url is None
    assert item.cast == []


def test_person_credits_sorted_by_popularity():
    service, _ = make_service({
        "/genre/movie/list": MOVIE_GENRES,
        "/genre/tv/list": TV_GENRES,
        "/person/31/combined_credits": {"cast": [
            {"id": 1, "media_type": "movie", "title": "Low", "poster_path": "/l.jpg", "popularity": 1.0},
            {"id": 2, "media_type": "tv", "name": "High", "poster_path": "/h.jpg", "popularity": 50.0},
            {"id": 3, "media_type": "movie", "title": "No poster", "popularity": 99.0},
        ]},
    })

    credits = service.get_person_credits(31)

    assert [c.title for c in credits] == ["High", "Low"]


# ============================================
# Upstream errors
# ============================================

def test_missing_api_key_is_a_server_error():
    service = TMDBService(api_key="", http=FakeHttp())

    with pytest.raises(HTTPException) as exc_info:
        service.get_person(1)

    assert exc_info.value.status_code == 500


def test_upstream_not_found_is_not_found():
    http = FakeHttp(response=json_response(404))
    service = TMDBService(api_key="k", http=http)

    with pytest.raises(HTTPException) as exc_info:
        service.get_person(404)

    assert exc_info.value.status_code == 404
    assert http.requests[0][1]["api_key"] == "k"


def test_upstream_failure_is_a_server_error():
    http = FakeHttp(error=requests.exceptions.ConnectionError("down"))
    service = TMDBService(api_key="k", http=http)

    with pytest.raises(HTTPException) as exc_info:
        service.get_person(1)

    assert exc_info.value.status_code == 500
    assert exc_info.value.detail == "Upstream service unavailable"


def test_successful_upstream_response_is_decoded():
    http = FakeHttp(response=json_response(200, {"id": 31, "name": "Tom Hanks", "profile_path": "/t.jpg"}))
    service = TMDBService(api_key="k", http=http)

    person = service.get_person(31)

    assert person.name == "Tom Hanks"
    assert person.profile_url == "https://image.tmdb.org/t/p/w500/t.jpg"


# ============================================
# Routes
# ============================================

class StubCatalog:
    def get_details(self, tmdb_id, media_type):
        return MediaItem(
            id=f"{media_type}-{tmdb_id}",
            tmdb_id=tmdb_id,
            media_type=media_type,
            title="The Answer",
            poster_url=POSTER_PLACEHOLDER,
            release_year=2020,
        )

    def get_genre_list(self, media_type):
        raise HTTPException(status_code=500, detail="Upstream service unavailable")


def test_details_route_includes_stored_reviews(client, test_user):
    app.dependency_overrides[get_catalog] = StubCatalog
    sign_in(client, test_user)
    client.post("/api/reviews", json={
        "tmdbId": 42, "mediaType": "movie", "rating": 5, "text": "Worth every minute of it.",
    })
    client.cookies.clear()

    response = client.get("/api/media/movie/42")

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == "movie-42"
    assert body["title"] == "The Answer"
    assert [r["author"] for r in body["reviews"]] == ["alice"]


def test_details_route_rejects_unknown_media_type(client, db_session):
    app.dependency_overrides[get_catalog] = StubCatalog

    response = client.get("/api/media/book/42")

    assert response.status_code == 400


def test_upstream_errors_surface_through_routes(client, db_session):
    app.dependency_overrides[get_catalog] = StubCatalog

    response = client.get("/api/media/genres/movie")

    assert response.status_code == 500
    assert response.json()["detail"] == "Upstream service unavailable"


def test_health_reports_catalog_cache_stats(client, db_session):
    response = client.get("/health")

    assert response.status_code == 200
    stats = response.json()["catalog_cache"]
    assert set(stats) == {"size", "max_size", "hits", "misses", "hit_rate"}


def test_each_thread_gets_its_own_http_session():
    service = TMDBService(api_key="k")
    seen = {}

    def grab(name):
        seen[name] = (service.http, service.http)

    threads = [threading.Thread(target=grab, args=(n,)) for n in ("a", "b")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert seen["a"][0] is seen["a"][1]
    assert seen["b"][0] is seen["b"][1]
    assert seen["a"][0] is not seen["b"][0]
    assert isinstance(seen["a"][0], requests.Session)


def test_injected_http_client_is_used_from_every_thread():
    http = FakeHttp()
    service = TMDBService(api_key="k", http=http)
    seen = []

    thread = threading.Thread(target=lambda: seen.append(service.http))
    thread.start()
    thread.join()

    assert seen == [http]
    assert service.http is http
