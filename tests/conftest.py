"""Global test fixtures and utilities for mindshift tests"""
import pytest
from datetime import datetime, timezone

from mindshift import config
from mindshift.db.memory_store import InMemoryStore
from mindshift.models.user import SubscriptionTier
from mindshift.services.affirmation_service import AffirmationService
from mindshift.services.practice_service import PracticeService
from mindshift.services.stats_service import StatsService
from mindshift.services.user_service import UserService
from tests.helpers import FakeClock, seed_affirmation, seed_user


# ============================================================================
# Clock & Config Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def practice_config(monkeypatch):
    """Day boundaries in UTC and the default free plan limit unless a test overrides them"""
    monkeypatch.setattr(config, "PRACTICE_TIMEZONE", "UTC")
    monkeypatch.setattr(config, "FREE_TIER_AFFIRMATION_LIMIT", 10)


@pytest.fixture
def clock():
    """Clock at 2024-01-15 08:00 UTC (a Monday morning)"""
    return FakeClock(datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc))


# ============================================================================
# Store & Service Fixtures
# ============================================================================

@pytest.fixture
def store():
    """Fresh in-memory progression store"""
    return InMemoryStore()


@pytest.fixture
def practice_service(store, clock):
    return PracticeService(store, clock)


@pytest.fixture
def user_service(store, clock):
    return UserService(store, clock)


@pytest.fixture
def affirmation_service(store, clock):
    return AffirmationService(store, clock)


@pytest.fixture
def stats_service(store, clock):
    return StatsService(store, clock)


# ============================================================================
# User & Affirmation Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID (identity provider format)"""
    return "user_2abcXYZ1234"


@pytest.fixture
def test_api_key():
    """Standard test API key"""
    return "test_api_key_12345"


@pytest.fixture
def new_user(store, test_user_id):
    """Brand-new free user with no progression"""
    return seed_user(store, test_user_id)


@pytest.fixture
def pro_user(store):
    """Pro user with no progression"""
    return seed_user(store, "user_pro0001", subscription_tier=SubscriptionTier.PRO)


@pytest.fixture
def affirmation(store, new_user):
    """Never-practiced affirmation owned by new_user"""
    return seed_affirmation(store, new_user.user_id)
