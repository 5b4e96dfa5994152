"""Unit tests for the PostgreSQL store and its queries (mocked connections)"""
import pytest
import psycopg
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from mindshift.db.postgres_store import PostgresStore
from mindshift.db.queries import badges as badge_queries
from mindshift.db.queries import users as user_queries
from mindshift.exceptions import ConflictError, ConnectionError, QueryError
from mindshift.models.badge import BadgeRecord


def mock_connection(cursor=None):
    conn = MagicMock()
    conn.execute = AsyncMock()
    conn.cursor.return_value.__aenter__.return_value = cursor or AsyncMock()
    return conn


def mock_database(conn):
    database = MagicMock()
    database.connection.return_value.__aenter__.return_value = conn
    return database


# ============================================================================
# Store
# ============================================================================

@pytest.mark.asyncio
async def test_user_transaction_takes_advisory_lock():
    conn = mock_connection()
    store = PostgresStore(mock_database(conn))

    async with store.transaction("user_2abc"):
        pass

    conn.execute.assert_awaited_once()
    query, params = conn.execute.call_args[0]
    assert "pg_advisory_xact_lock" in query
    assert params == ("user_2abc",)
    conn.transaction.assert_called_once()


@pytest.mark.asyncio
async def test_read_transaction_skips_lock():
    conn = mock_connection()
    store = PostgresStore(mock_database(conn))

    async with store.transaction():
        pass

    conn.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_driver_errors_are_wrapped():
    conn = mock_connection()
    store = PostgresStore(mock_database(conn))

    with pytest.raises(ConnectionError) as exc_info:
        async with store.transaction("user_2abc"):
            raise psycopg.OperationalError("server closed the connection")

    assert exc_info.value.retryable is True
    assert exc_info.value.user_id == "user_2abc"


@pytest.mark.asyncio
async def test_lock_failure_is_wrapped():
    conn = mock_connection()
    conn.execute.side_effect = psycopg.errors.UndefinedTable("relation \"users\" does not exist")
    store = PostgresStore(mock_database(conn))

    with pytest.raises(QueryError):
        async with store.transaction("user_2abc"):
            pass


# ============================================================================
# Queries
# ============================================================================

@pytest.mark.asyncio
async def test_get_user_builds_model():
    cursor = AsyncMock()
    cursor.fetchone.return_value = {"user_id": "user_2abc", "total_xp": 65, "level": 3, "subscription_tier": "pro"}
    conn = mock_connection(cursor)

    user = await user_queries.get_user(conn, "user_2abc")

    assert user.total_xp == 65
    assert user.subscription_tier.is_paid
    assert cursor.execute.call_args[0][1] == ("user_2abc",)


@pytest.mark.asyncio
async def test_get_user_missing():
    cursor = AsyncMock()
    cursor.fetchone.return_value = None

    assert await user_queries.get_user(mock_connection(cursor), "user_missing") is None


@pytest.mark.asyncio
async def test_insert_badge_reports_conflicts():
    cursor = AsyncMock()
    cursor.rowcount = 0
    badge = BadgeRecord(user_id="user_2abc", badge_type="first_steps",
                        earned_at=datetime(2024, 1, 15, tzinfo=timezone.utc))

    assert await badge_queries.insert_badge(mock_connection(cursor), badge) is False

    cursor.rowcount = 1
    assert await badge_queries.insert_badge(mock_connection(cursor), badge) is True
    query = cursor.execute.call_args[0][0]
    assert "ON CONFLICT (user_id, badge_type) DO NOTHING" in query


@pytest.mark.asyncio
async def test_concurrent_username_claim_is_a_conflict():
    conn = mock_connection()
    store = PostgresStore(mock_database(conn))

    with pytest.raises(ConflictError) as exc_info:
        async with store.transaction("user_2abc"):
            raise psycopg.errors.UniqueViolation("duplicate key value violates unique constraint \"users_username_key\"")

    assert exc_info.value.retryable is False


@pytest.mark.asyncio
async def test_ping_uses_pool_check():
    database = MagicMock()
    database.check = AsyncMock()
    store = PostgresStore(database)

    await store.ping()

    database.check.assert_awaited_once()


@pytest.mark.asyncio
async def test_ping_failure_is_a_connection_error():
    database = MagicMock()
    database.check = AsyncMock(side_effect=psycopg.OperationalError("connection refused"))
    store = PostgresStore(database)

    with pytest.raises(ConnectionError):
        await store.ping()
