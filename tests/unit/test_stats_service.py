"""Unit tests for StatsService"""
import pytest
from datetime import date, datetime, timezone

from mindshift import config
from mindshift.exceptions import RecordNotFoundError, ValidationError
from mindshift.models.affirmation import PracticeEvent
from mindshift.models.badge import BadgeRecord
from mindshift.progression.badges import BADGE_CATALOG
from mindshift.progression.levels import Tier
from tests.helpers import seed_affirmation, seed_user


def seed_practice(store, user_id, affirmation_id, practiced_at, repetitions=5, xp_earned=10):
    event = PracticeEvent(
        user_id=user_id,
        affirmation_id=affirmation_id,
        repetitions=repetitions,
        xp_earned=xp_earned,
        duration_seconds=30,
        practiced_at=practiced_at,
    )
    store.practices[event.id] = event
    return event


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


# ============================================================================
# Stats & Today
# ============================================================================

@pytest.mark.asyncio
async def test_user_stats(stats_service, store):
    seed_user(store, "user_s1", total_xp=480, level=11, total_practices=7, total_repetitions=90,
              current_streak=2, longest_streak=9)
    active = seed_affirmation(store, "user_s1")
    seed_affirmation(store, "user_s1", archived=True)
    seed_practice(store, "user_s1", active.id, utc(2024, 1, 15, 7, 0))
    seed_practice(store, "user_s1", active.id, utc(2024, 1, 14, 23, 0))

    stats = await stats_service.get_user_stats("user_s1")

    assert stats["total_practices"] == 7
    assert stats["total_repetitions"] == 90
    assert stats["active_affirmations"] == 1
    assert stats["archived_affirmations"] == 1
    assert stats["practices_today"] == 1
    assert stats["longest_streak"] == 9
    assert stats["level"] == 11
    assert stats["tier"] == Tier.APPRENTICE


@pytest.mark.asyncio
async def test_stats_unknown_user(stats_service):
    with pytest.raises(RecordNotFoundError):
        await stats_service.get_user_stats("user_missing")


@pytest.mark.asyncio
async def test_today_progress(stats_service, store):
    seed_user(store, "user_t1", daily_practice_goal=2, current_streak=3, last_practice_date=date(2024, 1, 15))
    affirmation = seed_affirmation(store, "user_t1")
    seed_practice(store, "user_t1", affirmation.id, utc(2024, 1, 15, 6, 0), xp_earned=24)
    seed_practice(store, "user_t1", affirmation.id, utc(2024, 1, 15, 7, 30), xp_earned=12)
    seed_practice(store, "user_t1", affirmation.id, utc(2024, 1, 14, 21, 0), xp_earned=50)

    today = await stats_service.get_today_progress("user_t1")

    assert today["date"] == date(2024, 1, 15)
    assert today["practice_count"] == 2
    assert today["goal_met"] is True
    assert today["streak_maintained"] is True
    assert today["xp_earned_today"] == 36


@pytest.mark.asyncio
async def test_today_progress_before_practicing(stats_service, store):
    seed_user(store, "user_t2", current_streak=3, last_practice_date=date(2024, 1, 14))

    today = await stats_service.get_today_progress("user_t2")

    assert today["practice_count"] == 0
    assert today["goal_met"] is False
    assert today["streak_maintained"] is False
    assert today["current_streak"] == 3


# ============================================================================
# History
# ============================================================================

@pytest.mark.asyncio
async def test_history_includes_empty_days(stats_service, store):
    seed_user(store, "user_h1")
    affirmation = seed_affirmation(store, "user_h1")
    seed_practice(store, "user_h1", affirmation.id, utc(2024, 1, 13, 9, 0), repetitions=4)
    seed_practice(store, "user_h1", affirmation.id, utc(2024, 1, 15, 6, 0), repetitions=3)
    seed_practice(store, "user_h1", affirmation.id, utc(2024, 1, 15, 7, 0), repetitions=2)
    # Outside the window
    seed_practice(store, "user_h1", affirmation.id, utc(2024, 1, 10, 9, 0))

    history = await stats_service.get_practice_history("user_h1", days=4)

    assert history == [
        {"date": date(2024, 1, 12), "count": 0, "repetitions": 0},
        {"date": date(2024, 1, 13), "count": 1, "repetitions": 4},
        {"date": date(2024, 1, 14), "count": 0, "repetitions": 0},
        {"date": date(2024, 1, 15), "count": 2, "repetitions": 5},
    ]


@pytest.mark.asyncio
async def test_history_default_window(stats_service, new_user):
    history = await stats_service.get_practice_history(new_user.user_id)

    assert len(history) == 365
    assert history[-1]["date"] == date(2024, 1, 15)


@pytest.mark.asyncio
async def test_history_groups_by_practice_timezone(monkeypatch, stats_service, store):
    monkeypatch.setattr(config, "PRACTICE_TIMEZONE", "America/New_York")
    seed_user(store, "user_h2")
    affirmation = seed_affirmation(store, "user_h2")
    # 03:00 UTC on the 15th is 22:00 on the 14th in New York
    seed_practice(store, "user_h2", affirmation.id, utc(2024, 1, 15, 3, 0))

    history = await stats_service.get_practice_history("user_h2", days=2)

    assert history[0] == {"date": date(2024, 1, 14), "count": 1, "repetitions": 5}
    assert history[1]["count"] == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("days", [0, -1, 731, True])
async def test_history_rejects_bad_window(stats_service, new_user, days):
    with pytest.raises(ValidationError):
        await stats_service.get_practice_history(new_user.user_id, days=days)


# ============================================================================
# Badges
# ============================================================================

@pytest.mark.asyncio
async def test_badge_listing(stats_service, store):
    seed_user(store, "user_b1", total_practices=5, total_repetitions=50)
    store.badges[("user_b1", "first_steps")] = BadgeRecord(
        user_id="user_b1", badge_type="first_steps", earned_at=utc(2024, 1, 2)
    )

    badges = await stats_service.get_badges("user_b1")
    by_id = {badge["id"]: badge for badge in badges}

    assert [badge["id"] for badge in badges] == list(BADGE_CATALOG)
    assert by_id["first_steps"]["earned"] is True
    assert by_id["first_steps"]["earned_at"] == utc(2024, 1, 2)
    assert by_id["first_steps"]["progress"] == 1.0
    assert by_id["ten_practices"]["earned"] is False
    assert by_id["ten_practices"]["progress"] == 0.5
    assert by_id["century_club"]["progress"] == 0.5
    assert by_id["legend"]["progress"] == 0.0


@pytest.mark.asyncio
async def test_award_badge_is_idempotent(stats_service, store, new_user):
    assert await stats_service.award_badge(new_user.user_id, "early_bird") is True
    assert await stats_service.award_badge(new_user.user_id, "early_bird") is False

    assert store.badges[(new_user.user_id, "early_bird")].earned_at == utc(2024, 1, 15, 8, 0)


@pytest.mark.asyncio
async def test_award_unknown_badge(stats_service, new_user):
    with pytest.raises(ValidationError):
        await stats_service.award_badge(new_user.user_id, "not_a_badge")


@pytest.mark.asyncio
async def test_award_badge_unknown_user(stats_service):
    with pytest.raises(RecordNotFoundError):
        await stats_service.award_badge("user_missing", "early_bird")


# ============================================================================
# Leaderboard & Rank
# ============================================================================

@pytest.fixture
def ranked_users(store):
    seed_user(store, "user_aaaa1111", total_xp=900, level=14, name="Ada", anonymous_mode=False,
              image_url="https://img/ada.png")
    seed_user(store, "user_bbbb2222", total_xp=1500, level=18, image_url="https://img/hidden.png")
    seed_user(store, "user_cccc3333", total_xp=200, level=6, username="zen", anonymous_mode=False)
    seed_user(store, "user_dddd4444", total_xp=50, level=2)


@pytest.mark.asyncio
async def test_leaderboard(stats_service, ranked_users):
    entries = await stats_service.get_leaderboard(limit=3, current_user_id="user_aaaa1111")

    assert [e["user_id"] for e in entries] == ["user_bbbb2222", "user_aaaa1111", "user_cccc3333"]
    assert [e["rank"] for e in entries] == [1, 2, 3]
    assert entries[0]["display_name"] == "Player2222"
    assert entries[0]["image_url"] is None
    assert entries[1]["display_name"] == "Ada"
    assert entries[1]["image_url"] == "https://img/ada.png"
    assert entries[1]["is_current_user"] is True
    assert entries[2]["display_name"] == "zen"
    assert entries[2]["is_current_user"] is False


@pytest.mark.asyncio
async def test_leaderboard_limit_is_capped(stats_service, store):
    for i in range(105):
        seed_user(store, f"user_{i:04d}", total_xp=i)

    entries = await stats_service.get_leaderboard(limit=500)

    assert len(entries) == 100
    assert entries[0]["total_xp"] == 104


@pytest.mark.asyncio
async def test_rank_info(stats_service, ranked_users):
    info = await stats_service.get_rank_info("user_cccc3333")

    assert info["rank"] == 3
    assert info["total_users"] == 4
    assert info["xp_to_next_rank"] == 700
    assert info["next_rank_display_name"] == "Ada"
    assert info["percentile"] == 25


@pytest.mark.asyncio
async def test_rank_info_for_leader(stats_service, ranked_users):
    info = await stats_service.get_rank_info("user_bbbb2222")

    assert info["rank"] == 1
    assert info["xp_to_next_rank"] == 0
    assert info["next_rank_display_name"] is None
    assert info["percentile"] == 75
