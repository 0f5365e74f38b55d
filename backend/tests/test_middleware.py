import unittest
from types import SimpleNamespace
from unittest.mock import patch
from uuid import uuid4

from fastapi.testclient import TestClient

from cineverse.db.models import RoleEnum
from cineverse.db.session import get_db
from cineverse.main import app


class TestRequestContext(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(app)
        app.dependency_overrides[get_db] = lambda: iter([object()])

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def test_request_id_is_echoed(self) -> None:
        response = self.client.get("/api/health", headers={"X-Request-Id": "trace-abc-123"})
        self.assertEqual(response.headers["x-request-id"], "trace-abc-123")

    def test_request_id_is_generated(self) -> None:
        response = self.client.get("/api/health")
        self.assertEqual(len(response.headers["x-request-id"]), 32)

    def test_health_is_not_access_logged(self) -> None:
        with patch("cineverse.middleware.request_id.logger") as access_log:
            self.client.get("/api/health")
        access_log.info.assert_not_called()

    def test_access_log_carries_authenticated_user(self) -> None:
        user = SimpleNamespace(id=uuid4(), role=RoleEnum.VIEWER, is_active=True)
        with patch("cineverse.deps.auth._resolve_user", return_value=user), \
                patch("cineverse.api.auth.project_profile", return_value=None), \
                patch("cineverse.middleware.request_id.logger") as access_log:
            self.client.get("/api/auth/me", headers={"Authorization": "Bearer any.token"})

        access_log.info.assert_called_once()
        self.assertEqual(access_log.info.call_args.args, ("request_finished",))
        self.assertEqual(access_log.info.call_args.kwargs["user_id"], str(user.id))
        self.assertEqual(access_log.info.call_args.kwargs["status"], 200)

    def test_anonymous_access_log_has_no_user(self) -> None:
        with patch("cineverse.middleware.request_id.logger") as access_log:
            self.client.get("/api/auth/me")
        self.assertIsNone(access_log.info.call_args.kwargs["user_id"])
