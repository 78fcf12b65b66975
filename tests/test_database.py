import json
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import asyncpg
import pytest

from database.converters import (
    comment_from_row,
    feed_entry_from_row,
    notification_from_row,
    parse_uuid,
    parse_uuids,
    profile_summary_from_row,
    reaction_from_row,
    round_from_row,
    round_to_row,
    tee_from_row,
)
from database.exceptions import DuplicateError, IntegrityError, NotFoundError, PermissionDeniedError
from database.repositories.admin_repo import AdminRepositoryDB
from database.repositories.comment_repo import CommentRepositoryDB
from database.repositories.course_repo import CourseRepositoryDB, parse_location_query
from database.repositories.feed_repo import FeedRepositoryDB
from database.repositories.follow_repo import FollowRepositoryDB
from database.repositories.notification_repo import NotificationRepositoryDB
from database.repositories.profile_repo import ProfileRepositoryDB
from database.repositories.reaction_repo import ReactionRepositoryDB
from database.repositories.round_repo import RoundRepositoryDB
from database.repositories.settings_repo import SettingsRepositoryDB
from models import FeedMode, ReactionType, Round


# ================================================================
# Fixtures
# ================================================================

@pytest.fixture
def mock_pool():
    pool = MagicMock()
    conn = AsyncMock()
    pool.acquire.return_value.__aenter__.return_value = conn
    return pool, conn


@pytest.fixture
def mock_tx_pool(mock_pool):
    """mock_pool whose connection also supports `async with conn.transaction()`."""
    pool, conn = mock_pool
    conn.transaction = MagicMock()
    conn.transaction.return_value.__aenter__.return_value = AsyncMock()
    return pool, conn


def _round_row(round_id=None, user_id=None, **overrides):
    """Helper: minimal rounds row joined with the author's profile columns."""
    row = {
        "id": round_id or uuid4(),
        "user_id": user_id or uuid4(),
        "course_id": None,
        "course_name": "Torrey Pines South",
        "club_name": "Torrey Pines Golf Course",
        "city": "La Jolla",
        "state": "CA",
        "tee_id": None,
        "tee_data": None,
        "played_at": datetime(2024, 5, 1),
        "front9": 40,
        "back9": 42,
        "total_score": 82,
        "scores_by_hole": None,
        "par": 72,
        "course_pars": None,
        "caption": "",
        "photo_url": None,
        "created_at": datetime(2024, 5, 1, 18),
        "username": "rory",
        "full_name": "Rory M",
        "avatar_url": None,
    }
    row.update(overrides)
    return row


# ================================================================
# converters.py (pure functions, no mocks needed)
# ================================================================

def test_round_from_row_reads_alias_columns():
    """RPC payloads use holes/total/coursePars/date/comment; all map to canonical fields."""
    played = datetime(2024, 6, 1)
    r = round_from_row({
        "id": "abc",
        "user_id": "u1",
        "holes": "[4, 5, null]",
        "total": 99,
        "coursePars": [3] * 18,
        "date": played,
        "comment": "nice",
        "course_name": "",
        "par": 0,
    })
    assert r.id == "abc"
    assert r.scores_by_hole[:3] == [4, 5, None]
    # Stored totals lose to the holes
    assert r.total_score == 9
    assert r.front9 == 9
    assert r.course_pars == [3] * 18
    assert r.played_at == played
    assert r.caption == "nice"
    assert r.course_name is None
    assert r.par is None


def test_round_from_row_without_holes_keeps_totals():
    r = round_from_row(_round_row(front9=0, back9=0, total_score=85, scores_by_hole="[]"))
    assert r.scores_by_hole is None
    assert r.front9 is None
    assert r.back9 is None
    assert r.total_score == 85
    assert r.caption is None


def test_feed_entry_from_row_with_nested_author():
    uid = uuid4()
    entry = feed_entry_from_row({
        **_round_row(user_id=uid, username=None, full_name=None),
        "profiles": json.dumps({"username": "jt", "avatar_url": "http://a"}),
        "source": "discovery",
        "reason": "popular",
    })
    assert entry.author.username == "jt"
    assert entry.author.id == str(uid)
    assert entry.source == "discovery"
    assert entry.reason == "popular"


def test_profile_summary_from_row_without_display_fields():
    assert profile_summary_from_row({"user_id": "u"}) is None


def test_reaction_from_row_skips_unknown_types():
    ok = reaction_from_row({"user_id": uuid4(), "round_id": uuid4(), "reaction_type": "goat"})
    assert ok.reaction_type is ReactionType.GOAT
    assert reaction_from_row({"user_id": uuid4(), "round_id": uuid4(), "reaction_type": "heart"}) is None


def test_comment_from_row_author_columns():
    c = comment_from_row({
        "id": uuid4(), "round_id": uuid4(), "user_id": uuid4(),
        "content": "great round", "created_at": None,
        "author_username": "scottie", "author_full_name": None, "author_avatar_url": None,
    })
    assert c.content == "great round"
    assert c.author.username == "scottie"


def test_notification_from_row_is_new_since_last_check():
    checked = datetime(2024, 5, 1, tzinfo=timezone.utc)
    row = {"id": uuid4(), "user_id": uuid4(), "type": "reaction", "actor_username": "jt"}
    newer = notification_from_row({**row, "created_at": checked + timedelta(hours=1)}, checked)
    older = notification_from_row({**row, "created_at": checked - timedelta(hours=1)}, checked)
    never = notification_from_row({**row, "created_at": checked}, None)
    assert newer.is_new and not older.is_new and never.is_new
    assert newer.actor.username == "jt"


def test_tee_from_row_treats_zero_ratings_as_missing():
    tee = tee_from_row({"tee_id": 7, "tee_name": "Blue", "slope": 0, "course_rating": "71.2"})
    assert tee.tee_id == "7"
    assert tee.slope is None
    assert tee.course_rating == 71.2


def test_round_to_row_stores_blank_text_and_json_holes():
    row = round_to_row(Round(user_id="u", scores_by_hole=[4] * 18, tee_data={"tee_name": "Red"}))
    assert row["course_name"] == ""
    assert row["caption"] == ""
    assert json.loads(row["scores_by_hole"]) == [4] * 18
    assert json.loads(row["tee_data"]) == {"tee_name": "Red"}
    assert row["total_score"] == 72


def test_parse_uuid():
    uid = uuid4()
    assert parse_uuid(str(uid)) == uid
    assert parse_uuid(uid) is uid
    assert parse_uuid("not-a-uuid") is None
    assert parse_uuid(None) is None
    assert parse_uuids(["x", str(uid), ""]) == [uid]


# ================================================================
# RoundRepositoryDB
# ================================================================

@pytest.mark.asyncio
async def test_get_round_returns_entry_with_author(mock_pool):
    pool, conn = mock_pool
    round_id = uuid4()
    conn.fetchrow.return_value = _round_row(round_id=round_id)

    entry = await RoundRepositoryDB(pool).get_round(str(round_id))

    assert entry.round.id == str(round_id)
    assert entry.round.total_score == 82
    assert entry.author.username == "rory"
    assert conn.fetchrow.call_args[0][1] == round_id


@pytest.mark.asyncio
async def test_get_round_missing_returns_none(mock_pool):
    pool, conn = mock_pool
    conn.fetchrow.return_value = None
    assert await RoundRepositoryDB(pool).get_round(str(uuid4())) is None


@pytest.mark.asyncio
async def test_create_round_returns_saved_round(mock_pool):
    pool, conn = mock_pool
    user_id = uuid4()
    conn.fetchrow.return_value = _round_row(user_id=user_id)

    saved = await RoundRepositoryDB(pool).create_round(Round(user_id=str(user_id), total_score=82))

    assert saved.id is not None
    assert saved.user_id == str(user_id)
    args = conn.fetchrow.call_args[0]
    assert args[1] == user_id


@pytest.mark.asyncio
async def test_create_round_missing_course_raises_integrity(mock_pool):
    pool, conn = mock_pool
    conn.fetchrow.side_effect = asyncpg.ForeignKeyViolationError("fk")

    with pytest.raises(IntegrityError):
        await RoundRepositoryDB(pool).create_round(Round(user_id=str(uuid4()), total_score=80))


@pytest.mark.asyncio
async def test_delete_round_checks_owner(mock_pool):
    pool, conn = mock_pool
    repo = RoundRepositoryDB(pool)
    owner, other = uuid4(), uuid4()

    conn.fetchval.return_value = None
    with pytest.raises(NotFoundError):
        await repo.delete_round(str(uuid4()), str(owner))

    conn.fetchval.return_value = other
    with pytest.raises(PermissionDeniedError):
        await repo.delete_round(str(uuid4()), str(owner))
    conn.execute.assert_not_called()

    conn.fetchval.return_value = owner
    await repo.delete_round(str(uuid4()), str(owner))
    conn.execute.assert_called_once()


@pytest.mark.asyncio
async def test_malformed_ids_match_nothing(mock_tx_pool):
    pool, conn = mock_tx_pool

    assert await RoundRepositoryDB(pool).get_round("not-a-uuid") is None
    assert await RoundRepositoryDB(pool).get_rounds_for_user("nope") == []
    assert await ReactionRepositoryDB(pool).get_reactions(["nope"]) == []
    assert (await FollowRepositoryDB(pool).get_follow_counts("xyz")).followers == 0
    assert await FollowRepositoryDB(pool).get_follow_statuses(str(uuid4()), ["xyz"]) == {"xyz": False}
    with pytest.raises(NotFoundError):
        await RoundRepositoryDB(pool).delete_round("not-a-uuid", str(uuid4()))
    with pytest.raises(NotFoundError):
        await ReactionRepositoryDB(pool).toggle_reaction(str(uuid4()), "r1", ReactionType.FIRE)
    with pytest.raises(NotFoundError):
        await CommentRepositoryDB(pool).delete_comment("c1", str(uuid4()))
    pool.acquire.assert_not_called()


# ================================================================
# ReactionRepositoryDB
# ================================================================

@pytest.mark.asyncio
async def test_toggle_reaction_removes_existing(mock_tx_pool):
    pool, conn = mock_tx_pool
    conn.execute.return_value = "DELETE 1"

    result = await ReactionRepositoryDB(pool).toggle_reaction(str(uuid4()), str(uuid4()), "fire")

    assert result.removed is True
    assert result.reaction_type is ReactionType.FIRE
    assert conn.execute.call_count == 1


@pytest.mark.asyncio
async def test_toggle_reaction_adds_when_absent(mock_tx_pool):
    pool, conn = mock_tx_pool
    conn.execute.side_effect = ["DELETE 0", "INSERT 0 1"]

    result = await ReactionRepositoryDB(pool).toggle_reaction(str(uuid4()), str(uuid4()), ReactionType.CLAP)

    assert result.removed is False
    assert conn.execute.call_count == 2
    assert "INSERT INTO reactions" in conn.execute.call_args_list[1][0][0]


@pytest.mark.asyncio
async def test_toggle_reaction_on_missing_round(mock_tx_pool):
    pool, conn = mock_tx_pool
    conn.execute.side_effect = ["DELETE 0", asyncpg.ForeignKeyViolationError("fk")]

    with pytest.raises(NotFoundError):
        await ReactionRepositoryDB(pool).toggle_reaction(str(uuid4()), str(uuid4()), "dart")


@pytest.mark.asyncio
async def test_reaction_counts_fill_all_types(mock_pool):
    pool, conn = mock_pool
    conn.fetch.return_value = [
        {"reaction_type": "fire", "n": 3},
        {"reaction_type": "heart", "n": 9},
    ]
    counts = await ReactionRepositoryDB(pool).get_reaction_counts(str(uuid4()))
    assert counts[ReactionType.FIRE] == 3
    assert len(counts) == len(ReactionType)
    assert sum(counts.values()) == 3


@pytest.mark.asyncio
async def test_batch_reads_skip_empty_round_lists(mock_pool):
    pool, conn = mock_pool
    assert await ReactionRepositoryDB(pool).get_reactions([]) == []
    conn.fetch.assert_not_called()


# ================================================================
# FollowRepositoryDB
# ================================================================

@pytest.mark.asyncio
async def test_follow_statuses_default_to_false(mock_pool):
    pool, conn = mock_pool
    a, b = str(uuid4()), str(uuid4())
    conn.fetch.return_value = [{"following_id": UUID(b)}]

    statuses = await FollowRepositoryDB(pool).get_follow_statuses(str(uuid4()), [a, b])

    assert statuses == {a: False, b: True}


@pytest.mark.asyncio
async def test_follow_missing_user(mock_pool):
    pool, conn = mock_pool
    conn.execute.side_effect = asyncpg.ForeignKeyViolationError("fk")
    with pytest.raises(NotFoundError):
        await FollowRepositoryDB(pool).follow(str(uuid4()), str(uuid4()))


@pytest.mark.asyncio
async def test_unfollow_reports_nothing_removed(mock_pool):
    pool, conn = mock_pool
    conn.execute.return_value = "DELETE 0"
    assert await FollowRepositoryDB(pool).unfollow(str(uuid4()), str(uuid4())) is False


# ================================================================
# CourseRepositoryDB
# ================================================================

@pytest.mark.parametrize("text, expected", [
    ("07030", {"zip_code": "07030"}),
    ("Austin, tx", {"city": "Austin", "state": "TX"}),
    ("San Diego CA", {"city": "San Diego", "state": "CA"}),
    ("ny", {"state": "NY"}),
    ("Denver", {"city": "Denver"}),
])
def test_parse_location_query(text, expected):
    query = parse_location_query(text)
    assert query.model_dump(exclude_none=True) == expected


def test_parse_location_query_blank():
    assert parse_location_query("   ").is_empty()


@pytest.mark.asyncio
async def test_search_by_name_prefers_club_matches(mock_pool):
    pool, conn = mock_pool
    club_row = {"club_id": 1, "club_name": "Pebble Beach Golf Links", "course_id": "10", "course_name": "Pebble Beach"}
    course_row = {"club_id": 1, "club_name": "Pebble Beach Golf Links", "course_id": "10", "course_name": "Pebble Beach"}
    other_row = {"club_id": 2, "club_name": "Spyglass", "course_id": "11", "course_name": "Pebble Creek"}
    conn.fetch.side_effect = [[club_row], [course_row, other_row]]

    results = await CourseRepositoryDB(pool).search_by_name("pebble")

    assert [r.course_id for r in results] == ["10", "11"]
    assert [r.match_type for r in results] == ["club", "course"]


@pytest.mark.asyncio
async def test_search_by_location_zip_matches_stripped_code(mock_pool):
    pool, conn = mock_pool
    conn.fetch.return_value = []

    await CourseRepositoryDB(pool).search_by_location("07030")

    params = conn.fetch.call_args[0][1:]
    assert params[:3] == ("7030", "07030", "7030-%")


@pytest.mark.asyncio
async def test_search_by_location_empty_text(mock_pool):
    pool, conn = mock_pool
    assert await CourseRepositoryDB(pool).search_by_location("") == []
    conn.fetch.assert_not_called()


# ================================================================
# FeedRepositoryDB / SettingsRepositoryDB / NotificationRepositoryDB
# ================================================================

@pytest.mark.asyncio
async def test_feed_page_runs_as_viewer(mock_tx_pool):
    pool, conn = mock_tx_pool
    viewer = str(uuid4())
    row = _round_row(source="discovery", reason="popular")
    conn.fetchval.return_value = json.dumps(
        {"rounds": [row]},
        default=lambda v: v.isoformat() if isinstance(v, datetime) else str(v),
    )

    entries = await FeedRepositoryDB(pool).get_feed_with_discovery(
        viewer, limit=5, offset=10, mode=FeedMode.MIXED, discovery_ratio=0.3
    )

    assert len(entries) == 1
    assert entries[0].source == "discovery"
    claims = json.loads(conn.execute.call_args[0][1])
    assert claims["sub"] == viewer
    assert conn.fetchval.call_args[0][1:] == (5, 10, "mixed", 0.3)


@pytest.mark.asyncio
async def test_feed_page_empty_payload(mock_tx_pool):
    pool, conn = mock_tx_pool
    conn.fetchval.return_value = None
    assert await FeedRepositoryDB(pool).get_feed_with_discovery(None) == []
    conn.execute.assert_not_called()


@pytest.mark.asyncio
async def test_settings_round_trip(mock_pool):
    pool, conn = mock_pool
    conn.fetchval.return_value = '{"mode": "mixed", "feedLimit": 20}'
    repo = SettingsRepositoryDB(pool)

    assert await repo.get_setting("feed") == {"mode": "mixed", "feedLimit": 20}

    admin = str(uuid4())
    await repo.upsert_setting("feed", {"mode": "discover"}, admin)
    args = conn.execute.call_args[0]
    assert args[1] == "feed"
    assert json.loads(args[2]) == {"mode": "discover"}
    assert args[3] == UUID(admin)


@pytest.mark.asyncio
async def test_notifications_flag_new(mock_pool):
    pool, conn = mock_pool
    checked = datetime(2024, 5, 1, tzinfo=timezone.utc)
    conn.fetchval.return_value = checked
    conn.fetch.return_value = [
        {"id": uuid4(), "user_id": uuid4(), "type": "comment", "created_at": checked + timedelta(days=1)},
        {"id": uuid4(), "user_id": uuid4(), "type": "follow", "created_at": checked - timedelta(days=1)},
    ]

    notes = await NotificationRepositoryDB(pool).get_notifications(str(uuid4()))

    assert [n.is_new for n in notes] == [True, False]


@pytest.mark.asyncio
async def test_mark_checked_sets_caller(mock_tx_pool):
    pool, conn = mock_tx_pool
    await NotificationRepositoryDB(pool).mark_checked(str(uuid4()))
    assert conn.execute.call_count == 2
    assert "mark_notifications_checked" in conn.execute.call_args[0][0]


# ================================================================
# ProfileRepositoryDB
# ================================================================

@pytest.mark.asyncio
async def test_update_profile_duplicate_username(mock_pool):
    pool, conn = mock_pool
    conn.fetchrow.side_effect = asyncpg.UniqueViolationError("dup")
    with pytest.raises(DuplicateError):
        await ProfileRepositoryDB(pool).update_profile(str(uuid4()), username="taken")


@pytest.mark.asyncio
async def test_update_profile_ignores_unknown_fields(mock_pool):
    pool, conn = mock_pool
    user_id = uuid4()
    conn.fetchrow.return_value = {"id": user_id, "username": "rory", "bio": "hi"}

    profile = await ProfileRepositoryDB(pool).update_profile(str(user_id), bio="hi", is_admin=True)

    sql = conn.fetchrow.call_args[0][0]
    assert "bio = $2" in sql
    assert "is_admin" not in sql
    assert profile.bio == "hi"


@pytest.mark.asyncio
async def test_update_profile_missing(mock_pool):
    pool, conn = mock_pool
    conn.fetchrow.return_value = None
    with pytest.raises(NotFoundError):
        await ProfileRepositoryDB(pool).update_profile(str(uuid4()), bio="x")


@pytest.mark.asyncio
async def test_search_users_needs_two_characters(mock_pool):
    pool, conn = mock_pool
    assert await ProfileRepositoryDB(pool).search_users("r") == []
    conn.fetch.assert_not_called()


# ================================================================
# AdminRepositoryDB
# ================================================================

@pytest.mark.asyncio
async def test_list_items_reads_total_count(mock_pool):
    pool, conn = mock_pool
    conn.fetch.return_value = [
        {"id": uuid4(), "username": "a", "total_count": 120},
        {"id": uuid4(), "username": "b", "total_count": 120},
    ]

    page = await AdminRepositoryDB(pool).list_items("users", search="a", offset=50)

    assert page.total_count == 120
    assert page.offset == 50
    assert page.has_more
    assert all("total_count" not in row for row in page.rows)
    assert isinstance(page.rows[0]["id"], str)
    assert "get_all_users_admin" in conn.fetch.call_args[0][0]


@pytest.mark.asyncio
async def test_list_items_unknown_kind(mock_pool):
    pool, _ = mock_pool
    with pytest.raises(ValueError):
        await AdminRepositoryDB(pool).list_items("reactions")


@pytest.mark.asyncio
async def test_admin_delete_reports_cascade(mock_pool):
    pool, conn = mock_pool
    conn.fetchval.return_value = json.dumps(
        {"success": True, "deleted_comments": 4, "deleted_reactions": 7}
    )
    result = await AdminRepositoryDB(pool).delete_round(str(uuid4()))
    assert result.deleted_comments == 4
    assert result.deleted_reactions == 7


@pytest.mark.asyncio
async def test_admin_delete_failure_raises(mock_pool):
    pool, conn = mock_pool
    conn.fetchval.return_value = {"success": False, "message": "Comment not found"}
    with pytest.raises(NotFoundError, match="Comment not found"):
        await AdminRepositoryDB(pool).delete_comment(str(uuid4()))


@pytest.mark.asyncio
async def test_dashboard_overview_keeps_extra_keys(mock_pool):
    pool, conn = mock_pool
    conn.fetchval.return_value = json.dumps({"total_users": 10, "posts_this_week": 3})
    overview = await AdminRepositoryDB(pool).get_dashboard_overview()
    assert overview.total_users == 10
    assert overview.model_extra["posts_this_week"] == 3
