"""Unit tests for custom exception hierarchy"""
import pytest
import psycopg
from datetime import datetime

from mindshift.exceptions import (
    MindShiftError,
    ValidationError,
    LimitExceededError,
    ConflictError,
    DatabaseError,
    ConnectionError,
    QueryError,
    RecordNotFoundError,
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    wrap_external_exception,
)


class TestMindShiftError:
    """Test base exception class"""

    def test_basic_exception(self):
        error = MindShiftError("Test error")
        assert error.message == "Test error"
        assert error.user_message == "An error occurred. Please try again."
        assert error.request_id is not None
        assert isinstance(error.timestamp, datetime)
        assert error.retryable is False

    def test_exception_with_context(self):
        error = MindShiftError(
            message="Failed to record practice",
            user_id="user_2abc",
            operation="submit_practice",
            context={"affirmation_id": "abc-123"},
            user_message="Could not record your practice"
        )
        assert error.user_id == "user_2abc"
        assert error.operation == "submit_practice"
        assert error.context["affirmation_id"] == "abc-123"
        assert error.user_message == "Could not record your practice"

    def test_exception_with_cause(self):
        original_error = ValueError("Invalid value")
        error = MindShiftError(message="Validation failed", cause=original_error)
        assert error.cause == original_error

    def test_to_dict(self):
        error = MindShiftError(message="Test error", user_id="user_2abc")
        error_dict = error.to_dict()
        assert error_dict["error"] == "MindShiftError"
        assert error_dict["message"] == "Test error"
        assert error_dict["retryable"] is False
        assert "request_id" in error_dict
        assert "timestamp" in error_dict
        assert "user_id" not in error_dict


class TestCallerErrors:
    """Validation, limit, conflict and lookup errors"""

    def test_validation_error(self):
        error = ValidationError(message="Repetitions must be positive", field="repetitions", value=0)
        assert error.field == "repetitions"
        assert error.value == 0
        assert error.user_message == "Invalid repetitions: Repetitions must be positive"
        assert error.retryable is False

    def test_validation_error_without_field(self):
        error = ValidationError(message="Clock moved backwards")
        assert error.user_message == "Clock moved backwards"

    def test_limit_exceeded(self):
        error = LimitExceededError(message="Free plan limit reached", limit=10)
        assert error.limit == 10
        assert error.context == {"limit": 10}
        assert error.user_message == "Free plan limit reached"

    def test_conflict(self):
        error = ConflictError(message="Username is taken")
        assert error.to_dict()["error"] == "ConflictError"

    def test_record_not_found(self):
        error = RecordNotFoundError(message="No such affirmation", record_type="Affirmation", record_id="a-1")
        assert error.user_message == "Affirmation not found."
        assert error.context == {"record_type": "Affirmation", "record_id": "a-1"}

    def test_authorization_error(self):
        error = AuthorizationError(resource="affirmation a-1")
        assert error.message == "Insufficient permissions"
        assert error.user_message == "You don't have permission to access affirmation a-1."

    def test_authentication_error_default(self):
        assert AuthenticationError().message == "Authentication failed"

    def test_configuration_error(self):
        error = ConfigurationError(message="API_KEYS missing", config_key="API_KEYS")
        assert error.config_key == "API_KEYS"


class TestDatabaseErrors:
    """Storage failures are retryable by the caller"""

    def test_database_errors_are_retryable(self):
        assert DatabaseError("boom").retryable is True
        assert ConnectionError().retryable is True
        assert QueryError("insert failed").to_dict()["retryable"] is True

    def test_query_error_keeps_query(self):
        error = QueryError(message="insert failed", query="INSERT INTO practice_events ...")
        assert error.query == "INSERT INTO practice_events ..."
        assert "submit again" in error.user_message


class TestWrapExternalException:

    def test_operational_error_becomes_connection_error(self):
        wrapped = wrap_external_exception(
            psycopg.OperationalError("server closed the connection"),
            operation="submit_practice",
            user_id="user_2abc",
        )
        assert isinstance(wrapped, ConnectionError)
        assert wrapped.operation == "submit_practice"
        assert wrapped.user_id == "user_2abc"
        assert isinstance(wrapped.cause, psycopg.OperationalError)

    @pytest.mark.parametrize("error", [
        psycopg.errors.SerializationFailure("could not serialize access"),
        psycopg.errors.DeadlockDetected("deadlock detected"),
        psycopg.InterfaceError("connection is closed"),
    ])
    def test_transient_failures_are_retryable(self, error):
        wrapped = wrap_external_exception(error, operation="submit_practice")
        assert isinstance(wrapped, ConnectionError)
        assert wrapped.retryable is True

    def test_unique_violation_becomes_conflict(self):
        wrapped = wrap_external_exception(
            psycopg.errors.UniqueViolation("duplicate key value violates unique constraint \"users_username_key\""),
            operation="update_username",
            user_id="user_2abc",
        )
        assert isinstance(wrapped, ConflictError)
        assert wrapped.retryable is False

    @pytest.mark.parametrize("error", [
        psycopg.errors.NumericValueOutOfRange("integer out of range"),
        psycopg.errors.CheckViolation("new row violates check constraint"),
    ])
    def test_rejected_values_become_validation_errors(self, error):
        wrapped = wrap_external_exception(error, operation="submit_practice")
        assert isinstance(wrapped, ValidationError)
        assert wrapped.retryable is False

    def test_statement_errors_are_not_retryable(self):
        wrapped = wrap_external_exception(
            psycopg.errors.UndefinedTable("relation \"practices\" does not exist"),
            operation="submit_practice",
        )
        assert isinstance(wrapped, QueryError)
        assert wrapped.retryable is False
        assert wrapped.to_dict()["retryable"] is False

    def test_unknown_errors_are_not_retryable(self):
        wrapped = wrap_external_exception(RuntimeError("odd"), operation="submit_practice")
        assert type(wrapped) is MindShiftError
        assert wrapped.message == "submit_practice failed: odd"
        assert wrapped.retryable is False
