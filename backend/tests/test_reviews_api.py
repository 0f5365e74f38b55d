import unittest
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import patch
from uuid import uuid4

from fastapi.testclient import TestClient

from db_support import LONG_CONTENT

from cineverse.db.models import RoleEnum
from cineverse.db.session import get_db
from cineverse.deps.auth import get_current_user
from cineverse.main import app
from cineverse.services.review_service import DuplicateReviewError, NotReviewOwnerError


def _fake_review(**overrides):
    now = datetime.now(timezone.utc)
    base = {
        "id": uuid4(),
        "user": {
            "id": uuid4(),
            "username": "ebert",
            "avatar_url": "https://ui-avatars.com/api/?name=ebert",
            "role": "critic",
            "critic_badge": True,
        },
        "movie_id": 693134,
        "movie_title": "Dune: Part Two",
        "movie_poster": "",
        "movie_year": 2024,
        "title": "Worth the wait",
        "content": LONG_CONTENT,
        "rating": 8,
        "contains_spoilers": False,
        "tags": [],
        "is_published": True,
        "is_featured": False,
        "is_critic_review": True,
        "critic_score": 80,
        "likes_count": 0,
        "comments_count": 0,
        "is_liked": False,
        "created_at": now,
        "updated_at": now,
    }
    base.update(overrides)
    return base


def _payload(**overrides):
    body = {
        "movie_id": 693134,
        "movie_title": "Dune: Part Two",
        "title": "Worth the wait",
        "content": LONG_CONTENT,
        "rating": 8,
    }
    body.update(overrides)
    return body


class TestReviewsApi(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(app)
        app.dependency_overrides[get_db] = lambda: iter([object()])
        self.user = SimpleNamespace(id=uuid4(), role=RoleEnum.CRITIC, is_active=True)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def _login(self) -> None:
        app.dependency_overrides[get_current_user] = lambda: self.user

    def test_create_requires_auth(self) -> None:
        response = self.client.post("/api/reviews", json=_payload())
        self.assertEqual(response.status_code, 401)
        self.assertEqual(
            response.json(),
            {"success": False, "message": "Authentication required. Please log in."},
        )

    def test_short_content_is_rejected(self) -> None:
        self._login()
        with patch("cineverse.api.reviews.create_review") as create:
            response = self.client.post("/api/reviews", json=_payload(content="x" * 40))

        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["errors"][0]["field"], "content")
        create.assert_not_called()

    def test_padding_does_not_count_toward_min_length(self) -> None:
        self._login()
        with patch("cineverse.api.reviews.create_review") as create:
            response = self.client.post("/api/reviews", json=_payload(content="x" * 49 + " " * 40))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["errors"][0]["field"], "content")
        create.assert_not_called()

    def test_exactly_fifty_characters_is_accepted_trimmed(self) -> None:
        self._login()
        with patch("cineverse.api.reviews.create_review", return_value=_fake_review()) as create:
            response = self.client.post(
                "/api/reviews",
                json=_payload(content="  " + "y" * 50 + "  ", title="  Sharp  "),
            )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(create.call_args.kwargs["content"], "y" * 50)
        self.assertEqual(create.call_args.kwargs["title"], "Sharp")

    def test_blank_title_on_edit_is_rejected(self) -> None:
        self._login()
        with patch("cineverse.api.reviews.update_review") as update:
            response = self.client.put(f"/api/reviews/{uuid4()}", json={"title": "   "})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["errors"][0]["field"], "title")
        update.assert_not_called()

    def test_padded_content_on_edit_is_rejected(self) -> None:
        self._login()
        with patch("cineverse.api.reviews.update_review") as update:
            response = self.client.put(
                f"/api/reviews/{uuid4()}", json={"content": "z" * 10 + " " * 45}
            )

        self.assertEqual(response.status_code, 400)
        update.assert_not_called()

    def test_out_of_range_rating_is_rejected(self) -> None:
        self._login()
        response = self.client.post("/api/reviews", json=_payload(rating=11))
        self.assertEqual(response.status_code, 400)

    def test_create_returns_201(self) -> None:
        self._login()
        with patch("cineverse.api.reviews.create_review", return_value=_fake_review()) as create:
            response = self.client.post("/api/reviews", json=_payload())

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["review"]["critic_score"], 80)
        self.assertEqual(create.call_args.kwargs["rating"], 8)

    def test_duplicate_review_is_conflict(self) -> None:
        self._login()
        with patch(
            "cineverse.api.reviews.create_review",
            side_effect=DuplicateReviewError("You have already reviewed this movie."),
        ):
            response = self.client.post("/api/reviews", json=_payload())

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["message"], "You have already reviewed this movie.")

    def test_editing_someone_elses_review_is_forbidden(self) -> None:
        self._login()
        with patch(
            "cineverse.api.reviews.update_review",
            side_effect=NotReviewOwnerError("You can only edit your own reviews."),
        ):
            response = self.client.put(f"/api/reviews/{uuid4()}", json={"rating": 3})
        self.assertEqual(response.status_code, 403)

    def test_movie_reviews_include_stats(self) -> None:
        page = {
            "reviews": [_fake_review()],
            "pagination": {"page": 1, "limit": 10, "total": 1, "pages": 1},
        }
        stats = {"average_rating": 8.0, "total_reviews": 1, "critic_average": 8.0}
        with patch("cineverse.api.reviews.get_movie_reviews", return_value=page), patch(
            "cineverse.api.reviews.get_movie_stats", return_value=stats
        ):
            response = self.client.get("/api/reviews/movie/693134")

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["stats"]["total_reviews"], 1)
        self.assertEqual(len(body["reviews"]), 1)

    def test_moderation_requires_admin(self) -> None:
        self._login()
        response = self.client.patch(f"/api/reviews/{uuid4()}/flags", json={"is_featured": True})
        self.assertEqual(response.status_code, 403)
