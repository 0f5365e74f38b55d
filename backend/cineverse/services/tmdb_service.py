"""
TMDB Catalog Gateway
────────────────────
Thin async wrapper around the TMDB v3 REST API.

Every call is a single round-trip (movie details fan out to four concurrent
requests) with a fixed timeout. There is no caching and no retry; upstream
failures surface to the caller as TMDBUpstreamError, a TMDB 404 as
TMDBNotFoundError.
"""
import asyncio

import httpx
import structlog

from cineverse.core.config import settings

logger = structlog.get_logger(__name__)

TRENDING_WINDOWS = ("day", "week")

# Movie details payload trimming
DETAIL_CAST_LIMIT = 15
DETAIL_CREW_JOBS = ("Director", "Writer", "Screenplay", "Producer")
DETAIL_VIDEO_SITE = "YouTube"
DETAIL_VIDEO_TYPES = ("Trailer", "Teaser")
DETAIL_SIMILAR_LIMIT = 6


class TMDBConfigError(Exception):
    """Raised when TMDB client is used without an API key."""


class TMDBNotFoundError(Exception):
    """Raised when TMDB answers 404 for a movie."""


class TMDBUpstreamError(Exception):
    """Raised for non-recoverable TMDB request/response errors."""


def _movie_page(payload: dict) -> dict:
    """Normalize a paged TMDB movie listing."""
    return {
        "movies": payload.get("results", []),
        "page": payload.get("page", 1),
        "total_pages": payload.get("total_pages", 0),
        "total_results": payload.get("total_results", 0),
    }


def _trim_credits(credits: dict) -> dict:
    return {
        "cast": (credits.get("cast") or [])[:DETAIL_CAST_LIMIT],
        "crew": [c for c in credits.get("crew") or [] if c.get("job") in DETAIL_CREW_JOBS],
    }


def _trailers(videos: dict) -> list[dict]:
    return [
        v for v in videos.get("results") or []
        if v.get("site") == DETAIL_VIDEO_SITE and v.get("type") in DETAIL_VIDEO_TYPES
    ]


class TMDBService:
    """
    Async TMDB client.
    Uses httpx, so calls never block the event loop.

    *transport* lets tests swap in httpx.MockTransport.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or settings.TMDB_API_KEY
        if not self.api_key:
            raise TMDBConfigError(
                "TMDB_API_KEY is not set. "
                "Add it to your .env file or pass it explicitly."
            )
        self.base_url = (base_url or settings.TMDB_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.TMDB_TIMEOUT_SECONDS
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _get(
        self,
        path: str,
        params: dict | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> dict:
        """GET *path* with the API key attached. Raises TMDBNotFoundError / TMDBUpstreamError."""
        query = {"api_key": self.api_key, "language": "en-US"}
        query.update({k: v for k, v in (params or {}).items() if v is not None})

        try:
            if client is None:
                async with self._client() as own_client:
                    response = await own_client.get(path, params=query)
            else:
                response = await client.get(path, params=query)
            if response.status_code == 404:
                raise TMDBNotFoundError(f"TMDB resource not found: {path}")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning("tmdb_request_failed", path=path, status=exc.response.status_code)
            raise TMDBUpstreamError(
                f"TMDB request failed with status {exc.response.status_code}"
            ) from exc
        except httpx.RequestError as exc:
            logger.warning("tmdb_request_failed", path=path, error=str(exc))
            raise TMDBUpstreamError("TMDB request failed") from exc

        return response.json()

    # ── Listings ──────────────────────────────────────────────────────────────

    async def trending(self, time_window: str = "week") -> dict:
        if time_window not in TRENDING_WINDOWS:
            time_window = "week"
        return _movie_page(await self._get(f"/trending/movie/{time_window}"))

    async def popular(self, page: int = 1) -> dict:
        return _movie_page(await self._get("/movie/popular", {"page": page}))

    async def top_rated(self, page: int = 1) -> dict:
        return _movie_page(await self._get("/movie/top_rated", {"page": page}))

    async def now_playing(self, page: int = 1) -> dict:
        return _movie_page(await self._get("/movie/now_playing", {"page": page}))

    async def upcoming(self, page: int = 1) -> dict:
        return _movie_page(await self._get("/movie/upcoming", {"page": page}))

    async def search(self, query: str, page: int = 1, year: int | None = None) -> dict:
        """Search TMDB for movies matching *query*. A blank query returns an empty page."""
        cleaned_query = query.strip()
        if not cleaned_query:
            return _movie_page({})
        return _movie_page(
            await self._get(
                "/search/movie",
                {"query": cleaned_query, "page": page, "year": year, "include_adult": "false"},
            )
        )

    async def discover(
        self,
        page: int = 1,
        genre: str | None = None,
        year: int | None = None,
        sort_by: str = "popularity.desc",
        min_rating: float | None = None,
        max_rating: float | None = None,
    ) -> dict:
        params = {
            "page": page,
            "sort_by": sort_by,
            "include_adult": "false",
            "with_genres": genre,
            "primary_release_year": year,
            "vote_average.gte": min_rating,
            "vote_average.lte": max_rating,
        }
        return _movie_page(await self._get("/discover/movie", params))

    async def recommendations(self, movie_id: int, page: int = 1) -> dict:
        return _movie_page(await self._get(f"/movie/{movie_id}/recommendations", {"page": page}))

    async def similar(self, movie_id: int, page: int = 1) -> dict:
        return _movie_page(await self._get(f"/movie/{movie_id}/similar", {"page": page}))

    # ── Single movie ──────────────────────────────────────────────────────────

    async def details(self, movie_id: int) -> dict:
        return await self._get(f"/movie/{movie_id}", {"append_to_response": "release_dates"})

    async def credits(self, movie_id: int) -> dict:
        payload = await self._get(f"/movie/{movie_id}/credits")
        return {"cast": payload.get("cast", []), "crew": payload.get("crew", [])}

    async def videos(self, movie_id: int) -> list[dict]:
        payload = await self._get(f"/movie/{movie_id}/videos")
        return payload.get("results", [])

    async def get_movie_bundle(self, movie_id: int) -> dict:
        """
        Details + trimmed credits + YouTube trailers/teasers + 6 similar movies.

        The four TMDB requests run concurrently over one connection pool.
        """
        async with self._client() as client:
            movie, credits, videos, similar = await asyncio.gather(
                self._get(f"/movie/{movie_id}", {"append_to_response": "release_dates"}, client),
                self._get(f"/movie/{movie_id}/credits", client=client),
                self._get(f"/movie/{movie_id}/videos", client=client),
                self._get(f"/movie/{movie_id}/similar", client=client),
            )

        return {
            **movie,
            "credits": _trim_credits(credits),
            "videos": _trailers(videos),
            "similar": (similar.get("results") or [])[:DETAIL_SIMILAR_LIMIT],
        }

    # ── Reference data ────────────────────────────────────────────────────────

    async def genres(self) -> list[dict]:
        payload = await self._get("/genre/movie/list")
        return payload.get("genres", [])

    async def image_config(self) -> dict:
        payload = await self._get("/configuration")
        return payload.get("images", {})
