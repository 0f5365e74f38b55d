import unittest
from datetime import date
from uuid import uuid4

from db_support import make_session, make_user

from cineverse.db.models import Activity, ActivityTypeEnum, SavedCollectionEnum
from cineverse.services.user_service import (
    ProfileUpdateError,
    SelfFollowError,
    UserNotFoundError,
    deactivate_user,
    list_followers,
    list_following,
    project_profile,
    search_users,
    toggle_follow,
    toggle_saved_movie,
    update_profile,
)


class TestToggleFollow(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session()
        self.alice = make_user(self.db, username="alice")
        self.bob = make_user(self.db, username="bob")

    def tearDown(self) -> None:
        self.db.close()

    def test_follow_then_unfollow(self) -> None:
        first = toggle_follow(self.db, self.alice.id, self.bob.id)
        self.assertTrue(first["is_following"])
        self.assertEqual(first["followers_count"], 1)
        self.assertEqual([u["username"] for u in list_following(self.db, self.alice.id)], ["bob"])
        self.assertEqual([u["username"] for u in list_followers(self.db, self.bob.id)], ["alice"])

        second = toggle_follow(self.db, self.alice.id, self.bob.id)
        self.assertFalse(second["is_following"])
        self.assertEqual(second["followers_count"], 0)
        self.assertEqual(list_following(self.db, self.alice.id), [])
        self.assertEqual(list_followers(self.db, self.bob.id), [])

    def test_cannot_follow_self(self) -> None:
        with self.assertRaises(SelfFollowError):
            toggle_follow(self.db, self.alice.id, self.alice.id)

    def test_unknown_target(self) -> None:
        with self.assertRaises(UserNotFoundError):
            toggle_follow(self.db, self.alice.id, uuid4())

    def test_deactivated_target_cannot_be_followed(self) -> None:
        deactivate_user(self.db, self.bob.id)
        with self.assertRaises(UserNotFoundError):
            toggle_follow(self.db, self.alice.id, self.bob.id)

    def test_follow_records_activity_with_target_username(self) -> None:
        toggle_follow(self.db, self.alice.id, self.bob.id)
        activity = self.db.query(Activity).one()
        self.assertEqual(activity.activity_type, ActivityTypeEnum.USER_FOLLOWED)
        self.assertEqual(activity.target_id, self.bob.id)
        self.assertEqual(activity.details, {"target_username": "bob"})

    def test_unfollow_records_nothing(self) -> None:
        toggle_follow(self.db, self.alice.id, self.bob.id)
        toggle_follow(self.db, self.alice.id, self.bob.id)
        self.assertEqual(self.db.query(Activity).count(), 1)


class TestProjectProfile(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session()
        self.owner = make_user(
            self.db,
            phone="555-0100",
            date_of_birth=date(1990, 5, 17),
        )
        self.stranger = make_user(self.db)
        toggle_saved_movie(self.db, self.owner.id, SavedCollectionEnum.WATCHLIST, 550)

    def tearDown(self) -> None:
        self.db.close()

    def test_owner_sees_everything(self) -> None:
        profile = project_profile(self.db, self.owner, self.owner)
        self.assertEqual(profile["email"], self.owner.email)
        self.assertEqual(profile["phone"], "555-0100")
        self.assertEqual(profile["date_of_birth"], date(1990, 5, 17))
        self.assertEqual(profile["watchlist_count"], 1)
        self.assertIn("privacy_settings", profile)

    def test_other_viewer_gets_default_privacy(self) -> None:
        profile = project_profile(self.db, self.owner, self.stranger)
        self.assertIsNone(profile["email"])
        self.assertIsNone(profile["phone"])
        self.assertIsNone(profile["date_of_birth"])
        self.assertEqual([m["movie_id"] for m in profile["watchlist"]], [550])
        self.assertNotIn("privacy_settings", profile)
        self.assertNotIn("last_login", profile)

    def test_anonymous_viewer_respects_flags(self) -> None:
        update_profile(
            self.db,
            self.owner,
            {"privacy_settings": {"show_email": True, "show_watchlist": False}},
        )
        profile = project_profile(self.db, self.owner, None)
        self.assertEqual(profile["email"], self.owner.email)
        self.assertIsNone(profile["watchlist"])
        self.assertIsNone(profile["watchlist_count"])


class TestSavedMovies(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session()
        self.user = make_user(self.db)

    def tearDown(self) -> None:
        self.db.close()

    def test_toggle_adds_then_removes(self) -> None:
        self.assertTrue(toggle_saved_movie(self.db, self.user.id, SavedCollectionEnum.FAVORITE, 13))
        self.assertFalse(toggle_saved_movie(self.db, self.user.id, SavedCollectionEnum.FAVORITE, 13))

    def test_collections_are_independent(self) -> None:
        toggle_saved_movie(self.db, self.user.id, SavedCollectionEnum.WATCHLIST, 13)
        self.assertTrue(toggle_saved_movie(self.db, self.user.id, SavedCollectionEnum.FAVORITE, 13))

    def test_add_records_activity(self) -> None:
        toggle_saved_movie(
            self.db, self.user.id, SavedCollectionEnum.WATCHLIST, 13, movie_title="Forrest Gump"
        )
        activity = self.db.query(Activity).one()
        self.assertEqual(activity.activity_type, ActivityTypeEnum.MOVIE_WATCHLISTED)
        self.assertEqual(activity.movie_id, 13)
        self.assertEqual(activity.details, {"movie_title": "Forrest Gump"})


class TestUpdateProfile(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session()
        self.user = make_user(self.db, username="carol")

    def tearDown(self) -> None:
        self.db.close()

    def test_username_cannot_change(self) -> None:
        with self.assertRaises(ProfileUpdateError):
            update_profile(self.db, self.user, {"username": "caroline"})

    def test_editable_fields_are_trimmed(self) -> None:
        profile = update_profile(
            self.db,
            self.user,
            {"bio": "  Noir fan.  ", "specialization": [" Noir ", ""], "email": "x@example.com"},
        )
        self.assertEqual(profile["bio"], "Noir fan.")
        self.assertEqual(profile["specialization"], ["Noir"])
        self.assertEqual(profile["username"], "carol")
        self.assertNotEqual(profile["email"], "x@example.com")


class TestDirectory(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session()

    def tearDown(self) -> None:
        self.db.close()

    def test_search_matches_names_and_skips_inactive(self) -> None:
        make_user(self.db, username="greta", first_name="Greta")
        gone = make_user(self.db, username="gretchen")
        make_user(self.db, username="hal")
        deactivate_user(self.db, gone.id)

        result = search_users(self.db, search="gret")
        self.assertEqual([u["username"] for u in result["users"]], ["greta"])
        self.assertEqual(result["pagination"]["total"], 1)
