import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi.testclient import TestClient

from cineverse.api.movies import get_tmdb_service
from cineverse.db.session import get_db
from cineverse.main import app
from cineverse.services.tmdb_service import TMDBNotFoundError, TMDBUpstreamError

EMPTY_STATS = {"average_rating": 0, "total_reviews": 0, "critic_average": None}


class TestMoviesApi(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(app)
        app.dependency_overrides[get_db] = lambda: iter([object()])
        self.tmdb = MagicMock()
        app.dependency_overrides[get_tmdb_service] = lambda: self.tmdb

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def test_missing_api_key_is_service_unavailable(self) -> None:
        app.dependency_overrides.pop(get_tmdb_service)
        with patch("cineverse.services.tmdb_service.settings.TMDB_API_KEY", ""):
            response = self.client.get("/api/movies/popular")
        self.assertEqual(response.status_code, 503)
        self.assertFalse(response.json()["success"])

    def test_popular_page(self) -> None:
        self.tmdb.popular = AsyncMock(return_value={
            "movies": [{"id": 550, "title": "Fight Club"}],
            "page": 1,
            "total_pages": 1,
            "total_results": 1,
        })
        response = self.client.get("/api/movies/popular")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["movies"][0]["title"], "Fight Club")

    def test_upstream_failure_is_bad_gateway(self) -> None:
        self.tmdb.trending = AsyncMock(side_effect=TMDBUpstreamError("boom"))
        response = self.client.get("/api/movies/trending")
        self.assertEqual(response.status_code, 502)

    def test_unknown_movie_is_not_found(self) -> None:
        self.tmdb.get_movie_bundle = AsyncMock(side_effect=TMDBNotFoundError("nope"))
        response = self.client.get("/api/movies/999999")
        self.assertEqual(response.status_code, 404)

    def test_detail_merges_local_reviews_for_anonymous_viewer(self) -> None:
        self.tmdb.get_movie_bundle = AsyncMock(return_value={"id": 550, "title": "Fight Club"})
        with patch(
            "cineverse.api.movies.get_movie_reviews",
            return_value={"reviews": [], "pagination": {}},
        ), patch("cineverse.api.movies.get_movie_stats", return_value=EMPTY_STATS):
            response = self.client.get("/api/movies/550")

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["movie"]["title"], "Fight Club")
        self.assertEqual(body["local_stats"], EMPTY_STATS)
        self.assertIsNone(body["user_status"])
