import asyncio
import unittest

import httpx

from cineverse.services.tmdb_service import (
    TMDBConfigError,
    TMDBNotFoundError,
    TMDBService,
    TMDBUpstreamError,
)

MOVIE_ID = 603


def _bundle_handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path.endswith("/credits"):
        return httpx.Response(200, json={
            "cast": [{"name": f"Actor {i}"} for i in range(20)],
            "crew": [
                {"name": "Lana Wachowski", "job": "Director"},
                {"name": "Bill Pope", "job": "Director of Photography"},
                {"name": "Joel Silver", "job": "Producer"},
            ],
        })
    if path.endswith("/videos"):
        return httpx.Response(200, json={"results": [
            {"key": "a", "site": "YouTube", "type": "Trailer"},
            {"key": "b", "site": "Vimeo", "type": "Trailer"},
            {"key": "c", "site": "YouTube", "type": "Featurette"},
            {"key": "d", "site": "YouTube", "type": "Teaser"},
        ]})
    if path.endswith("/similar"):
        return httpx.Response(200, json={"results": [{"id": i} for i in range(10)]})
    return httpx.Response(200, json={"id": MOVIE_ID, "title": "The Matrix"})


def _service(handler) -> TMDBService:
    return TMDBService(
        api_key="test-key",
        base_url="https://tmdb.test/3",
        transport=httpx.MockTransport(handler),
    )


class TestTMDBService(unittest.TestCase):
    def test_missing_api_key(self) -> None:
        with self.assertRaises(TMDBConfigError):
            TMDBService(api_key="")

    def test_movie_bundle_is_trimmed(self) -> None:
        bundle = asyncio.run(_service(_bundle_handler).get_movie_bundle(MOVIE_ID))

        self.assertEqual(bundle["title"], "The Matrix")
        self.assertEqual(len(bundle["credits"]["cast"]), 15)
        self.assertEqual([c["job"] for c in bundle["credits"]["crew"]], ["Director", "Producer"])
        self.assertEqual([v["key"] for v in bundle["videos"]], ["a", "d"])
        self.assertEqual(len(bundle["similar"]), 6)

    def test_api_key_and_language_are_sent(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.url.params)
            return httpx.Response(200, json={"results": [], "page": 2})

        page = asyncio.run(_service(handler).popular(page=2))
        self.assertEqual(seen["api_key"], "test-key")
        self.assertEqual(seen["language"], "en-US")
        self.assertEqual(page["page"], 2)
        self.assertEqual(page["movies"], [])

    def test_not_found(self) -> None:
        service = _service(lambda request: httpx.Response(404, json={"status_code": 34}))
        with self.assertRaises(TMDBNotFoundError):
            asyncio.run(service.details(999999))

    def test_server_error_is_upstream_error(self) -> None:
        service = _service(lambda request: httpx.Response(500))
        with self.assertRaises(TMDBUpstreamError):
            asyncio.run(service.trending("day"))

    def test_connection_error_is_upstream_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        with self.assertRaises(TMDBUpstreamError):
            asyncio.run(_service(handler).genres())

    def test_blank_search_skips_the_request(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        page = asyncio.run(_service(handler).search("   "))
        self.assertEqual(page, {"movies": [], "page": 1, "total_pages": 0, "total_results": 0})
