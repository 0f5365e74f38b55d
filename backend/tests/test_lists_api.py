import unittest
from types import SimpleNamespace
from unittest.mock import patch
from uuid import uuid4

from fastapi.testclient import TestClient

from cineverse.db.models import RoleEnum
from cineverse.db.session import get_db
from cineverse.deps.auth import get_current_user
from cineverse.main import app
from cineverse.services.list_service import (
    DuplicateListEntryError,
    ListNotFoundError,
    NotListOwnerError,
)


class TestListsApi(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(app)
        app.dependency_overrides[get_db] = lambda: iter([object()])
        self.user = SimpleNamespace(id=uuid4(), role=RoleEnum.VIEWER, is_active=True)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def _login(self) -> None:
        app.dependency_overrides[get_current_user] = lambda: self.user

    def test_private_list_reads_as_not_found(self) -> None:
        with patch("cineverse.api.lists.get_list", side_effect=ListNotFoundError("List not found.")):
            response = self.client.get(f"/api/lists/{uuid4()}")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"success": False, "message": "List not found."})

    def test_create_list_requires_auth(self) -> None:
        response = self.client.post("/api/lists", json={"title": "Road movies"})
        self.assertEqual(response.status_code, 401)

    def test_blank_title_is_rejected(self) -> None:
        self._login()
        response = self.client.post("/api/lists", json={"title": ""})
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()["success"])

    def test_whitespace_title_is_rejected(self) -> None:
        self._login()
        with patch("cineverse.api.lists.create_list") as create:
            response = self.client.post("/api/lists", json={"title": "   "})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["errors"][0]["field"], "title")
        create.assert_not_called()

    def test_whitespace_title_on_edit_is_rejected(self) -> None:
        self._login()
        with patch("cineverse.api.lists.update_list") as update:
            response = self.client.put(f"/api/lists/{uuid4()}", json={"title": " \t "})
        self.assertEqual(response.status_code, 400)
        update.assert_not_called()

    def test_duplicate_entry_is_conflict(self) -> None:
        self._login()
        with patch(
            "cineverse.api.lists.add_movie",
            side_effect=DuplicateListEntryError("Movie already in list."),
        ):
            response = self.client.post(
                f"/api/lists/{uuid4()}/movies",
                json={"movie_id": 161, "movie_title": "Ocean's Eleven"},
            )
        self.assertEqual(response.status_code, 409)

    def test_non_owner_is_forbidden(self) -> None:
        self._login()
        with patch(
            "cineverse.api.lists.delete_list",
            side_effect=NotListOwnerError("You can only modify your own lists."),
        ):
            response = self.client.delete(f"/api/lists/{uuid4()}")
        self.assertEqual(response.status_code, 403)

    def test_like_toggle(self) -> None:
        self._login()
        with patch(
            "cineverse.api.lists.toggle_list_like",
            return_value={"has_liked": True, "likes_count": 4},
        ):
            response = self.client.post(f"/api/lists/{uuid4()}/like")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"success": True, "has_liked": True, "likes_count": 4})
