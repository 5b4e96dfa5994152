"""Unit tests for UserService"""
import pytest
from datetime import date, datetime, timezone

from mindshift.exceptions import (
    AuthorizationError,
    ConflictError,
    RecordNotFoundError,
    ValidationError,
)
from mindshift.models.user import SubscriptionTier
from mindshift.progression.levels import Tier
from tests.helpers import seed_user


# ============================================================================
# Sync
# ============================================================================

@pytest.mark.asyncio
async def test_sync_creates_user_with_defaults(user_service, store, clock):
    user = await user_service.sync_user("user_2abc", email="a@example.com", name="Ada")

    assert user.total_xp == 0
    assert user.level == 1
    assert user.current_streak == 0
    assert user.longest_streak == 0
    assert user.daily_practice_goal == 1
    assert user.subscription_tier == SubscriptionTier.FREE
    assert user.anonymous_mode is True
    assert user.created_at == clock.now
    assert store.users["user_2abc"].email == "a@example.com"


@pytest.mark.asyncio
async def test_sync_updates_profile_only(user_service, store, clock):
    seed_user(store, "user_2abc", email="old@example.com", total_xp=300, level=7, current_streak=4)
    clock.set(2024, 2, 1, 9, 0)

    user = await user_service.sync_user("user_2abc", email="new@example.com", name="Ada", image_url="https://img/a.png")

    assert user.email == "new@example.com"
    assert user.image_url == "https://img/a.png"
    assert user.total_xp == 300
    assert user.current_streak == 4
    assert store.users["user_2abc"].updated_at == datetime(2024, 2, 1, 9, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_get_unknown_user(user_service):
    with pytest.raises(RecordNotFoundError):
        await user_service.get_user("user_missing")


# ============================================================================
# Settings
# ============================================================================

@pytest.mark.asyncio
async def test_update_settings(user_service, store, new_user):
    user = await user_service.update_settings(
        new_user.user_id,
        daily_practice_goal=3,
        reminder_enabled=True,
        reminder_time="07:30",
        anonymous_mode=False,
    )

    assert user.daily_practice_goal == 3
    assert user.reminder_enabled is True
    assert user.reminder_time == "07:30"
    assert store.users[new_user.user_id].anonymous_mode is False


@pytest.mark.asyncio
async def test_update_settings_leaves_omitted_fields(user_service, store, new_user):
    await user_service.update_settings(new_user.user_id, daily_practice_goal=2)
    user = await user_service.update_settings(new_user.user_id, reminder_enabled=True)

    assert user.daily_practice_goal == 2
    assert user.reminder_time == "09:00"


@pytest.mark.asyncio
@pytest.mark.parametrize("goal", [0, -3, True])
async def test_daily_goal_must_be_positive(user_service, new_user, goal):
    with pytest.raises(ValidationError):
        await user_service.update_settings(new_user.user_id, daily_practice_goal=goal)


@pytest.mark.asyncio
@pytest.mark.parametrize("reminder_time", ["25:00", "9am", "12:60"])
async def test_reminder_time_format(user_service, new_user, reminder_time):
    with pytest.raises(ValidationError) as exc_info:
        await user_service.update_settings(new_user.user_id, reminder_time=reminder_time)

    assert exc_info.value.field == "reminder_time"


# ============================================================================
# Username
# ============================================================================

@pytest.mark.asyncio
async def test_free_user_cannot_set_username(user_service, new_user):
    with pytest.raises(AuthorizationError):
        await user_service.update_username(new_user.user_id, "mindful_ada")


@pytest.mark.asyncio
async def test_pro_user_sets_username(user_service, store, pro_user):
    user = await user_service.update_username(pro_user.user_id, "mindful_ada")

    assert user.username == "mindful_ada"
    assert store.users[pro_user.user_id].username == "mindful_ada"


@pytest.mark.asyncio
async def test_username_taken(user_service, store, pro_user):
    seed_user(store, "user_other", username="mindful_ada")

    with pytest.raises(ConflictError):
        await user_service.update_username(pro_user.user_id, "mindful_ada")


@pytest.mark.asyncio
async def test_keeping_own_username_is_not_a_conflict(user_service, store):
    seed_user(store, "user_pro9", subscription_tier=SubscriptionTier.PRO, username="zen")

    user = await user_service.update_username("user_pro9", "zen")

    assert user.username == "zen"


@pytest.mark.asyncio
async def test_any_user_can_clear_username(user_service, store):
    seed_user(store, "user_lapsed", username="zen")

    user = await user_service.update_username("user_lapsed", None)

    assert user.username is None


@pytest.mark.asyncio
@pytest.mark.parametrize("username", ["ab", "has space", "x" * 21, "bad-dash"])
async def test_invalid_username(user_service, pro_user, username):
    with pytest.raises(ValidationError):
        await user_service.update_username(pro_user.user_id, username)


# ============================================================================
# Subscription & Progress
# ============================================================================

@pytest.mark.asyncio
async def test_update_subscription(user_service, store, new_user):
    ends = datetime(2024, 2, 15, tzinfo=timezone.utc)

    user = await user_service.update_subscription(
        new_user.user_id,
        tier=SubscriptionTier.PRO,
        status="active",
        customer_id="cus_123",
        subscription_id="sub_456",
        ends_at=ends,
    )

    assert user.subscription_tier == SubscriptionTier.PRO
    assert user.subscription_tier.is_paid
    assert user.billing_customer_id == "cus_123"
    assert store.users[new_user.user_id].subscription_ends_at == ends


@pytest.mark.asyncio
async def test_downgrade_keeps_billing_ids(user_service, store):
    seed_user(store, "user_pro7", subscription_tier=SubscriptionTier.PRO, billing_customer_id="cus_1")

    user = await user_service.update_subscription("user_pro7", tier="free", status="canceled")

    assert user.subscription_tier == SubscriptionTier.FREE
    assert user.billing_customer_id == "cus_1"


@pytest.mark.asyncio
async def test_get_progress(user_service, store):
    seed_user(store, "user_lvl", total_xp=480, level=11, current_streak=3, longest_streak=8,
              last_practice_date=date(2024, 1, 14))

    progress = await user_service.get_progress("user_lvl")

    assert progress["level"] == 11
    assert progress["tier"] == Tier.APPRENTICE
    assert progress["tier_info"]["name"] == "Apprentice"
    assert progress["xp_in_level"] == 5
    assert progress["xp_to_next_level"] == 70
    assert progress["current_streak"] == 3
    assert progress["longest_streak"] == 8
