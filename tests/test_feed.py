from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import asyncpg
import pytest

from database.exceptions import DatabaseError
from feed import (
    FeedSettingsCache,
    build_round_views,
    load_feed_page,
    load_round,
    load_user_rounds_page,
    save_feed_settings,
)
from models import Comment, FeedEntry, FeedMode, FeedSettings, ProfileSummary, Reaction, ReactionType, Round


# ================================================================
# Fixtures
# ================================================================

def _entry(round_id, user_id, **round_fields):
    return FeedEntry(
        round=Round(id=round_id, user_id=user_id, **round_fields),
        author=ProfileSummary(id=user_id, username=f"user-{user_id}"),
    )


def _reaction(round_id, kind, user_id="x"):
    return Reaction(user_id=user_id, round_id=round_id, reaction_type=kind)


def _comment(round_id, text, created_at=None):
    return Comment(round_id=round_id, user_id="x", content=text, created_at=created_at)


@pytest.fixture
def mock_db():
    db = MagicMock()
    db.reactions.get_reactions = AsyncMock(return_value=[])
    db.reactions.get_user_reactions = AsyncMock(return_value=[])
    db.comments.get_comments = AsyncMock(return_value=[])
    db.follows.get_follow_statuses = AsyncMock(return_value={})
    db.feed.get_feed_with_discovery = AsyncMock(return_value=[])
    db.rounds.get_rounds_for_user = AsyncMock(return_value=[])
    db.rounds.get_round = AsyncMock(return_value=None)
    db.settings.upsert_setting = AsyncMock()
    return db


# ================================================================
# normalizer.py
# ================================================================

def test_build_round_views_joins_by_round():
    entries = [
        _entry("r1", "a", total_score=82, par=72, course_name="Pebble Beach", club_name="Pebble Beach Golf Links"),
        _entry("r2", "b", total_score=70, par=72),
    ]
    reactions = [_reaction("r1", "fire"), _reaction("r1", "fire", "y"), _reaction("r2", "clown")]
    comments = [
        _comment("r1", "later", datetime(2024, 5, 2)),
        _comment("r1", "just posted"),
        _comment("r1", "first", datetime(2024, 5, 1)),
    ]
    mine = [_reaction("r1", "fire", "me")]

    views = build_round_views(entries, reactions, comments, mine, {"a": True})

    r1, r2 = views
    assert r1.reaction_count(ReactionType.FIRE) == 2
    assert r1.reaction_count(ReactionType.GOAT) == 0
    assert r1.user_reacted == frozenset({ReactionType.FIRE})
    assert [c.text for c in r1.comments] == ["first", "later", "just posted"]
    assert r1.is_following is True
    assert r1.vs_par == "+10"
    assert r1.display_name == "Pebble Beach Golf Links"
    assert r1.author.username == "user-a"

    assert r2.reaction_count(ReactionType.CLOWN) == 1
    assert r2.comments == []
    assert r2.user_reacted == frozenset()
    assert r2.is_following is False
    assert r2.vs_par == "-2"
    assert r2.display_name == "Unknown Course"


def test_build_round_views_keeps_entry_order():
    entries = [_entry(f"r{i}", "a") for i in range(5)]
    assert [v.id for v in build_round_views(list(reversed(entries)))] == ["r4", "r3", "r2", "r1", "r0"]


# ================================================================
# service.py
# ================================================================

@pytest.mark.asyncio
async def test_load_feed_page_passes_settings(mock_db):
    mock_db.feed.get_feed_with_discovery.return_value = [_entry("r1", "a"), _entry("r2", "me")]
    mock_db.follows.get_follow_statuses.return_value = {"a": True}
    settings = FeedSettings.model_validate({"mode": "mixed", "feedLimit": 15})

    views = await load_feed_page(mock_db, "me", settings, offset=30)

    mock_db.feed.get_feed_with_discovery.assert_awaited_once_with(
        "me", limit=15, offset=30, mode=FeedMode.MIXED, discovery_ratio=0.3
    )
    # the viewer is never looked up as an author they follow
    mock_db.follows.get_follow_statuses.assert_awaited_once_with("me", ["a"])
    assert [v.is_following for v in views] == [True, False]


@pytest.mark.asyncio
async def test_follow_status_failure_reads_as_not_following(mock_db):
    mock_db.feed.get_feed_with_discovery.return_value = [_entry("r1", "a")]
    mock_db.follows.get_follow_statuses.side_effect = asyncpg.PostgresError("down")

    views = await load_feed_page(mock_db, "me", FeedSettings())

    assert views[0].is_following is False


@pytest.mark.asyncio
async def test_anonymous_viewer_skips_personal_lookups(mock_db):
    mock_db.feed.get_feed_with_discovery.return_value = [_entry("r1", "a")]

    await load_feed_page(mock_db, None, FeedSettings())

    mock_db.reactions.get_user_reactions.assert_not_awaited()
    mock_db.follows.get_follow_statuses.assert_not_awaited()


@pytest.mark.asyncio
async def test_empty_page_makes_no_batch_calls(mock_db):
    assert await load_feed_page(mock_db, "me", FeedSettings()) == []
    mock_db.reactions.get_reactions.assert_not_awaited()
    mock_db.comments.get_comments.assert_not_awaited()


@pytest.mark.asyncio
async def test_load_user_rounds_page(mock_db):
    mock_db.rounds.get_rounds_for_user.return_value = [_entry("r1", "a", total_score=80)]
    mock_db.reactions.get_reactions.return_value = [_reaction("r1", "goat")]

    views = await load_user_rounds_page(mock_db, "a", "me", limit=5, offset=5)

    mock_db.rounds.get_rounds_for_user.assert_awaited_once_with("a", limit=5, offset=5)
    assert views[0].reaction_count(ReactionType.GOAT) == 1


@pytest.mark.asyncio
async def test_load_round(mock_db):
    assert await load_round(mock_db, "missing") is None
    mock_db.rounds.get_round.return_value = _entry("r1", "a")
    view = await load_round(mock_db, "r1", "me")
    assert view.id == "r1"


# ================================================================
# settings_cache.py
# ================================================================

@pytest.mark.asyncio
async def test_cache_defaults_until_loaded():
    cache = FeedSettingsCache()
    assert cache.get() == FeedSettings()
    assert not cache.is_loaded
    assert await cache.refresh() == FeedSettings()


@pytest.mark.asyncio
async def test_cache_loads_once():
    loader = AsyncMock(return_value={"mode": "discover"})
    cache = FeedSettingsCache(loader)

    first = await cache.refresh()
    second = await cache.refresh()

    assert first.mode is FeedMode.DISCOVER
    assert first.discovery_ratio == 1.0
    assert second is first
    loader.assert_awaited_once()

    await cache.refresh(force=True)
    assert loader.await_count == 2


@pytest.mark.asyncio
async def test_cache_keeps_value_when_load_fails():
    loader = AsyncMock(return_value={"mode": "mixed"})
    cache = FeedSettingsCache(loader)
    loaded = await cache.refresh()

    loader.side_effect = DatabaseError("down")
    assert await cache.refresh(force=True) == loaded
    assert cache.get() == loaded


@pytest.mark.asyncio
async def test_cache_missing_row_uses_defaults():
    cache = FeedSettingsCache(AsyncMock(return_value=None))
    assert await cache.refresh() == FeedSettings()
    assert cache.is_loaded


def test_cache_set_replaces_whole_value():
    cache = FeedSettingsCache()
    with pytest.raises(TypeError):
        cache.set({"mode": "mixed"})
    cache.set(FeedSettings(mode=FeedMode.MIXED))
    assert cache.get().mode is FeedMode.MIXED
    cache.invalidate()
    assert cache.get() == FeedSettings()


@pytest.mark.asyncio
async def test_save_feed_settings_normalizes_and_caches(mock_db):
    cache = FeedSettingsCache()

    saved = await save_feed_settings(
        mock_db, cache, {"mode": "mixed", "discoveryRatio": 2, "feedLimit": 1000}, "admin-1"
    )

    assert saved.discovery_ratio == 1.0
    assert saved.feed_limit == 100
    mock_db.settings.upsert_setting.assert_awaited_once_with(
        "feed", {"mode": "mixed", "discoveryRatio": 1.0, "feedLimit": 100}, "admin-1"
    )
    assert cache.get() is saved
