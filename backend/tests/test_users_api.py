import unittest
from types import SimpleNamespace
from unittest.mock import patch
from uuid import uuid4

from fastapi.testclient import TestClient

from cineverse.db.models import RoleEnum, SavedCollectionEnum
from cineverse.db.session import get_db
from cineverse.deps.auth import get_current_user
from cineverse.main import app
from cineverse.services.user_service import ProfileUpdateError, SelfFollowError, UserNotFoundError


class TestUsersApi(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(app)
        app.dependency_overrides[get_db] = lambda: iter([object()])
        self.user = SimpleNamespace(id=uuid4(), role=RoleEnum.VIEWER, is_active=True)
        app.dependency_overrides[get_current_user] = lambda: self.user

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def test_follow_self_is_bad_request(self) -> None:
        with patch(
            "cineverse.api.users.toggle_follow",
            side_effect=SelfFollowError("You cannot follow yourself."),
        ):
            response = self.client.post(f"/api/users/{self.user.id}/follow")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json(),
            {"success": False, "message": "You cannot follow yourself."},
        )

    def test_follow_unknown_user_is_not_found(self) -> None:
        with patch(
            "cineverse.api.users.toggle_follow",
            side_effect=UserNotFoundError("User not found."),
        ):
            response = self.client.post(f"/api/users/{uuid4()}/follow")
        self.assertEqual(response.status_code, 404)

    def test_follow_toggle_envelope(self) -> None:
        result = {"is_following": True, "followers_count": 3, "message": "Following successfully."}
        with patch("cineverse.api.users.toggle_follow", return_value=result) as toggle:
            target = uuid4()
            response = self.client.post(f"/api/users/{target}/follow")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"success": True, **result})
        toggle.assert_called_once()
        self.assertEqual(toggle.call_args.args[1:], (self.user.id, target))

    def test_username_change_is_rejected(self) -> None:
        with patch(
            "cineverse.api.users.update_profile",
            side_effect=ProfileUpdateError("Username cannot be changed."),
        ) as update:
            response = self.client.put("/api/users/profile", json={"username": "someone_else"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Username cannot be changed.")
        self.assertEqual(update.call_args.args[2], {"username": "someone_else"})

    def test_watchlist_toggle(self) -> None:
        with patch("cineverse.api.users.toggle_saved_movie", return_value=True) as toggle:
            response = self.client.post("/api/users/watchlist/550", json={"movie_title": "Fight Club"})

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["in_watchlist"])
        args = toggle.call_args
        self.assertEqual(args.args[2:], (SavedCollectionEnum.WATCHLIST, 550))
        self.assertEqual(args.kwargs["movie_title"], "Fight Club")

    def test_favorite_toggle_without_body(self) -> None:
        with patch("cineverse.api.users.toggle_saved_movie", return_value=False):
            response = self.client.post("/api/users/favorites/550")

        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["is_favorite"])

    def test_deactivate_requires_admin(self) -> None:
        response = self.client.delete(f"/api/users/{uuid4()}")
        self.assertEqual(response.status_code, 403)
