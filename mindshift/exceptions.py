"""
Standardized exception hierarchy for mindshift
Provides rich context, consistent logging, and user-friendly error messages

Taxonomy used by the progression engine:
- Authorization errors (caller does not own the record) - fatal, no retry
- Validation errors (bad repetition count, malformed dates) - fatal, no retry
- Storage conflicts (unique violations) - fatal, reported as conflicts
- Transient storage errors - surfaced as retryable, never retried internally
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class MindShiftError(Exception):
    """
    Base exception for all mindshift errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise MindShiftError(
            message="Failed to record practice",
            user_id="user_2abc",
            operation="submit_practice",
            context={"affirmation_id": "abc-123"}
        )
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "An error occurred. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # Avoid conflict with logging's 'message' field
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for API responses"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "retryable": self.retryable,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (Caller Input)
# ==========================================

class ValidationError(MindShiftError):
    """
    Raised when caller input fails validation

    Examples:
    - Non-positive repetition count
    - Negative session duration
    - Practice date earlier than the last recorded practice date

    Example:
        raise ValidationError(
            message="Repetitions must be positive",
            field="repetitions",
            value=0,
            user_id="user_2abc"
        )
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=f"Invalid {field}: {message}" if field else message,
            context={"field": field, "value": value},
            **kwargs
        )


class LimitExceededError(MindShiftError):
    """Subscription limit reached (e.g. free-tier affirmation cap)"""

    def __init__(
        self,
        message: str,
        limit: Optional[int] = None,
        **kwargs
    ):
        self.limit = limit
        super().__init__(
            message=message,
            user_message=message,
            context={"limit": limit},
            **kwargs
        )


class ConflictError(MindShiftError):
    """Requested change collides with existing data (e.g. username taken)"""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            user_message=message,
            **kwargs
        )


# ==========================================
# Database Errors
# ==========================================

class DatabaseError(MindShiftError):
    """
    Base class for database-related errors

    Storage failures abort the whole practice transaction. They are safe for
    the caller to retry once; the engine itself never retries.
    """

    retryable = True


class ConnectionError(DatabaseError):
    """Database connection failed"""

    def __init__(self, message: str = "Database connection failed", **kwargs):
        super().__init__(
            message=message,
            user_message="We're having trouble connecting to the database. Please try again in a moment.",
            **kwargs
        )


class QueryError(DatabaseError):
    """
    Database query execution failed

    Retryable unless the failure does not depend on timing (a malformed
    statement, a missing table).
    """

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        retryable: bool = True,
        **kwargs
    ):
        self.query = query
        self.retryable = retryable
        super().__init__(
            message=message,
            user_message=(
                "We couldn't save your practice. Your progress is safe to submit again."
                if retryable else
                "We couldn't save your practice. Please contact support if this keeps happening."
            ),
            context={"query": query},
            **kwargs
        )


class RecordNotFoundError(MindShiftError):
    """Requested record does not exist"""

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        record_id: Optional[str] = None,
        **kwargs
    ):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(
            message=message,
            user_message=f"{record_type or 'Record'} not found.",
            context={"record_type": record_type, "record_id": record_id},
            **kwargs
        )


# ==========================================
# Authentication & Authorization
# ==========================================

class AuthenticationError(MindShiftError):
    """Authentication failed"""

    def __init__(
        self,
        message: str = "Authentication failed",
        **kwargs
    ):
        super().__init__(
            message=message,
            user_message="Authentication failed. Please sign in again.",
            **kwargs
        )


class AuthorizationError(MindShiftError):
    """User does not own the requested record"""

    def __init__(
        self,
        message: str = "Insufficient permissions",
        resource: Optional[str] = None,
        **kwargs
    ):
        self.resource = resource
        super().__init__(
            message=message,
            user_message=f"You don't have permission to access {resource or 'this resource'}.",
            context={"resource": resource},
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(MindShiftError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The system is not properly configured. Please contact support.",
            context={"config_key": config_key},
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_external_exception(
    error: Exception,
    operation: str,
    user_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> MindShiftError:
    """
    Wrap psycopg exceptions into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        user_id: User ID if applicable
        context: Additional context

    Returns:
        Appropriate MindShiftError subclass

    Example:
        try:
            await cur.execute(query)
        except psycopg.Error as e:
            raise wrap_external_exception(
                e,
                operation="submit_practice",
                user_id="user_2abc",
            )
    """
    # Import here to keep the exception module free of driver imports
    import psycopg
    from psycopg import errors

    # Lost connections, pool timeouts, deadlocks and serialization failures
    if isinstance(error, (psycopg.OperationalError, psycopg.InterfaceError)):
        return ConnectionError(
            message=f"Database connection failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
    elif isinstance(error, (psycopg.DataError, errors.CheckViolation)):
        # Out-of-range or malformed values
        return ValidationError(
            message=f"Value rejected by the database: {str(error)}",
            user_id=user_id,
            operation=operation,
            cause=error
        )
    elif isinstance(error, psycopg.IntegrityError):
        # Unique and foreign key violations from a concurrent writer
        return ConflictError(
            message=f"Conflicting change: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
    elif isinstance(error, psycopg.Error):
        return QueryError(
            message=f"Database query failed: {str(error)}",
            retryable=False,
            user_id=user_id,
            operation=operation,
            cause=error
        )

    # Generic fallback
    return MindShiftError(
        message=f"{operation} failed: {str(error)}",
        user_id=user_id,
        operation=operation,
        context=context,
        cause=error
    )
