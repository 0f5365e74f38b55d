import unittest
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import IntegrityError

from db_support import make_session, make_user

from cineverse.db.models import Activity, ListLike, MovieList, RoleEnum
from cineverse.services.activity_service import get_feed, get_user_activities
from cineverse.services.list_service import (
    DuplicateListEntryError,
    ListEntryNotFoundError,
    ListNotFoundError,
    NotListOwnerError,
    add_movie,
    create_list,
    delete_list,
    get_list,
    get_popular_lists,
    get_user_lists,
    remove_movie,
    toggle_list_follow,
    toggle_list_like,
    update_list,
)
from cineverse.services.user_service import toggle_follow


class TestListVisibility(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session()
        self.owner = make_user(self.db)
        self.other = make_user(self.db)
        self.admin = make_user(self.db, role=RoleEnum.ADMIN)
        self.private = create_list(self.db, self.owner, "Guilty pleasures", is_public=False)

    def tearDown(self) -> None:
        self.db.close()

    def test_owner_sees_private_list(self) -> None:
        data = get_list(self.db, self.private["id"], self.owner)
        self.assertTrue(data["is_owner"])

    def test_admin_sees_private_list(self) -> None:
        data = get_list(self.db, self.private["id"], self.admin)
        self.assertFalse(data["is_owner"])

    def test_private_list_is_not_found_for_others(self) -> None:
        with self.assertRaises(ListNotFoundError):
            get_list(self.db, self.private["id"], self.other)
        with self.assertRaises(ListNotFoundError):
            get_list(self.db, self.private["id"], None)

    def test_user_lists_hide_private_unless_requested(self) -> None:
        create_list(self.db, self.owner, "Best of 1999")
        public_only = get_user_lists(self.db, self.owner.id)
        everything = get_user_lists(self.db, self.owner.id, include_private=True)
        self.assertEqual([l["title"] for l in public_only], ["Best of 1999"])
        self.assertEqual(len(everything), 2)


class TestListEntries(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session()
        self.owner = make_user(self.db)
        self.other = make_user(self.db)
        self.list = create_list(self.db, self.owner, "Heist movies", tags=[" crime ", ""])

    def tearDown(self) -> None:
        self.db.close()

    def _add(self, movie_id, title, **extra):
        return add_movie(self.db, self.list["id"], self.owner, movie_id=movie_id, movie_title=title, **extra)

    def test_tags_are_cleaned(self) -> None:
        self.assertEqual(self.list["tags"], ["crime"])

    def test_rank_defaults_to_append_position(self) -> None:
        self._add(161, "Ocean's Eleven")
        data = self._add(949, "Heat")
        self.assertEqual([(m["movie_id"], m["rank"]) for m in data["movies"]], [(161, 1), (949, 2)])
        self.assertEqual(data["movie_count"], 2)

    def test_explicit_rank_is_kept(self) -> None:
        data = self._add(949, "Heat", rank=7)
        self.assertEqual(data["movies"][0]["rank"], 7)

    def test_duplicate_movie_is_rejected(self) -> None:
        self._add(161, "Ocean's Eleven")
        with self.assertRaises(DuplicateListEntryError):
            self._add(161, "Ocean's Eleven")

    def test_only_creator_can_add(self) -> None:
        with self.assertRaises(NotListOwnerError):
            add_movie(self.db, self.list["id"], self.other, movie_id=161, movie_title="Ocean's Eleven")

    def test_remove_movie(self) -> None:
        self._add(161, "Ocean's Eleven")
        data = remove_movie(self.db, self.list["id"], self.owner, 161)
        self.assertEqual(data["movies"], [])

        with self.assertRaises(ListEntryNotFoundError):
            remove_movie(self.db, self.list["id"], self.owner, 161)


class TestListOwnership(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session()
        self.owner = make_user(self.db)
        self.other = make_user(self.db)
        self.admin = make_user(self.db, role=RoleEnum.ADMIN)
        self.list = create_list(self.db, self.owner, "Comfort rewatches")

    def tearDown(self) -> None:
        self.db.close()

    def test_non_owner_cannot_update_or_delete(self) -> None:
        with self.assertRaises(NotListOwnerError):
            update_list(self.db, self.list["id"], self.other, {"title": "Mine now"})
        with self.assertRaises(NotListOwnerError):
            delete_list(self.db, self.list["id"], self.other)

    def test_admin_can_update_and_delete(self) -> None:
        data = update_list(self.db, self.list["id"], self.admin, {"title": "  Renamed  "})
        self.assertEqual(data["title"], "Renamed")

        delete_list(self.db, self.list["id"], self.admin)
        with self.assertRaises(ListNotFoundError):
            get_list(self.db, self.list["id"], self.owner)

    def test_blank_title_is_rejected_by_the_database(self) -> None:
        with self.assertRaises(IntegrityError):
            create_list(self.db, self.owner, "   ")
        self.db.rollback()
        self.assertEqual(len(get_user_lists(self.db, self.owner.id, include_private=True)), 1)


class TestListActivityVisibility(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session()
        self.owner = make_user(self.db)
        self.fan = make_user(self.db)
        toggle_follow(self.db, self.fan.id, self.owner.id)
        self.list = create_list(self.db, self.owner, "Slow cinema")

    def tearDown(self) -> None:
        self.db.close()

    def _list_activities(self):
        return self.db.query(Activity).filter(Activity.target_id == self.list["id"]).all()

    def test_going_private_hides_earlier_activities(self) -> None:
        self.assertEqual(len(get_feed(self.db, [self.owner.id])["activities"]), 1)

        update_list(self.db, self.list["id"], self.owner, {"is_public": False})

        self.assertEqual(get_feed(self.db, [self.owner.id])["activities"], [])
        self.assertEqual(get_user_activities(self.db, self.owner.id), [])
        self.assertTrue(all(not a.is_public for a in self._list_activities()))

    def test_going_public_again_restores_them(self) -> None:
        update_list(self.db, self.list["id"], self.owner, {"is_public": False})
        update_list(self.db, self.list["id"], self.owner, {"is_public": True})

        feed = get_feed(self.db, [self.owner.id])["activities"]
        self.assertEqual(len(feed), 3)
        self.assertEqual({a["type"] for a in feed}, {"list_created", "list_updated"})

    def test_other_edits_leave_visibility_alone(self) -> None:
        update_list(self.db, self.list["id"], self.owner, {"is_public": False})
        update_list(self.db, self.list["id"], self.owner, {"title": "Slower cinema"})
        self.assertEqual(get_feed(self.db, [self.owner.id])["activities"], [])


class TestListEngagement(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session()
        self.owner = make_user(self.db)
        self.fan = make_user(self.db)
        self.list = create_list(self.db, self.owner, "A24 essentials")

    def tearDown(self) -> None:
        self.db.close()

    def test_like_toggles(self) -> None:
        self.assertEqual(
            toggle_list_like(self.db, self.list["id"], self.fan),
            {"has_liked": True, "likes_count": 1},
        )
        self.assertEqual(
            toggle_list_like(self.db, self.list["id"], self.fan),
            {"has_liked": False, "likes_count": 0},
        )

    def test_follow_is_reflected_in_detail(self) -> None:
        toggle_list_follow(self.db, self.list["id"], self.fan)
        data = get_list(self.db, self.list["id"], self.fan)
        self.assertTrue(data["is_following"])
        self.assertFalse(data["has_liked"])
        self.assertEqual(data["followers_count"], 1)


class TestPopularLists(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session()
        self.owner = make_user(self.db)
        self.fans = [make_user(self.db) for _ in range(5)]

    def tearDown(self) -> None:
        self.db.close()

    def _list_with_likes(self, title, likes, created_at, is_public=True):
        movie_list = MovieList(
            creator_id=self.owner.id,
            title=title,
            is_public=is_public,
            created_at=created_at,
        )
        self.db.add(movie_list)
        self.db.flush()
        for fan in self.fans[:likes]:
            self.db.add(ListLike(list_id=movie_list.id, user_id=fan.id))
        self.db.commit()
        return movie_list

    def test_ordered_by_likes_then_newest(self) -> None:
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self._list_with_likes("five", 5, base)
        self._list_with_likes("three-old", 3, base + timedelta(days=1))
        self._list_with_likes("three-new", 3, base + timedelta(days=2))
        self._list_with_likes("one", 1, base + timedelta(days=3))
        self._list_with_likes("hidden", 5, base + timedelta(days=4), is_public=False)
        self._list_with_likes("none", 0, base + timedelta(days=5))

        titles = [l["title"] for l in get_popular_lists(self.db, limit=5)]
        self.assertEqual(titles, ["five", "three-new", "three-old", "one", "none"])

        top_two = [l["title"] for l in get_popular_lists(self.db, limit=2)]
        self.assertEqual(top_two, ["five", "three-new"])
