"""
Standardized exception hierarchy for the Buzzwin engagement service
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class BuzzwinError(Exception):
    """
    Base exception for all Buzzwin errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging
    - HTTP status used by the API exception handler

    Example:
        raise BuzzwinError(
            message="Failed to award karma",
            user_id="u_123",
            operation="award_karma",
            context={"action": "comment_created"}
        )
    """

    http_status: int = 500

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

        # Client errors are expected traffic, server errors are not
        log = logger.warning if self.http_status < 500 else logger.error

        if self.cause:
            log_data["cause"] = str(self.cause)
            log(f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            log(f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for API responses"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (User Input)
# ==========================================

class ValidationError(BuzzwinError):
    """
    Raised when request input fails validation

    Examples:
    - Missing or malformed user id
    - Unrecognized karma action
    - Ritual completed twice on the same day

    Example:
        raise ValidationError(
            message="User ID is required",
            field="userId",
            value=""
        )
    """

    http_status = 400

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        kwargs.setdefault("user_message", f"Invalid {field}: {message}" if field else message)
        super().__init__(
            message=message,
            context={**(kwargs.pop("context", None) or {}), "field": field, "value": value},
            **kwargs
        )


class InvalidKarmaActionError(ValidationError):
    """Karma action is not a member of the fixed action set"""

    def __init__(self, action: Any, **kwargs):
        self.action = action
        super().__init__(
            message="Invalid karma action",
            field="action",
            value=action,
            **kwargs
        )


class DuplicateCompletionError(ValidationError):
    """Ritual was already completed by this user on this day"""

    def __init__(self, ritual_id: str, date: str, **kwargs):
        self.ritual_id = ritual_id
        self.date = date
        super().__init__(
            message="Ritual already completed today",
            field="ritualId",
            value=ritual_id,
            user_message="You already completed this ritual today.",
            **kwargs
        )


# ==========================================
# Database Errors
# ==========================================

class DatabaseError(BuzzwinError):
    """
    Base class for database-related errors
    """
    pass


class ConnectionError(DatabaseError):
    """Database connection failed"""

    http_status = 503

    def __init__(self, message: str = "Database connection failed", **kwargs):
        super().__init__(
            message=message,
            user_message="We're having trouble connecting to the database. Please try again in a moment.",
            **kwargs
        )


class QueryError(DatabaseError):
    """Database query execution failed"""

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        **kwargs
    ):
        self.query = query
        super().__init__(
            message=message,
            user_message="We encountered an issue saving your data. Please try again.",
            context={**(kwargs.pop("context", None) or {}), "query": query},
            **kwargs
        )


class RecordNotFoundError(DatabaseError):
    """Requested database record does not exist"""

    http_status = 404

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
            context={**(kwargs.pop("context", None) or {}), "record_type": record_type, "record_id": record_id},
            **kwargs
        )


class UserNotFoundError(RecordNotFoundError):
    """Referenced user does not exist"""

    def __init__(self, user_id: str, **kwargs):
        super().__init__(
            message=f"User {user_id} not found",
            record_type="User",
            record_id=user_id,
            user_id=user_id,
            **kwargs
        )


# ==========================================
# Authentication
# ==========================================

class AuthenticationError(BuzzwinError):
    """Authentication failed"""

    http_status = 401

    def __init__(
        self,
        message: str = "Authentication failed",
        **kwargs
    ):
        super().__init__(
            message=message,
            user_message="Authentication failed. Please check your credentials.",
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(BuzzwinError):
    """System configuration is invalid or missing"""

    http_status = 503

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
            context={**(kwargs.pop("context", None) or {}), "config_key": config_key},
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
) -> BuzzwinError:
    """
    Wrap external exceptions (psycopg, etc.) into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        user_id: User ID if applicable
        context: Additional context

    Returns:
        Appropriate BuzzwinError subclass

    Example:
        try:
            await cur.execute(query)
        except psycopg.Error as e:
            raise wrap_external_exception(
                e,
                operation="award_karma",
                user_id="u_123",
            )
    """
    import psycopg

    if isinstance(error, BuzzwinError):
        return error

    if isinstance(error, psycopg.OperationalError):
        return ConnectionError(
            message=f"Database connection failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
    elif isinstance(error, psycopg.Error):
        return QueryError(
            message=f"Database query failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )

    # Generic fallback
    return BuzzwinError(
        message=f"{operation} failed: {str(error)}",
        user_id=user_id,
        operation=operation,
        context=context,
        cause=error
    )
