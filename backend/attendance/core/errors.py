"""Error Hierarchy — typed, categorized exceptions for infrastructure failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Check-in and session rejections are NOT exceptions: they are typed outcomes
      (core/outcomes.py); exceptions here mean the request could not be decided
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with AttendanceError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    activity_id: str | None = None
    identity_id: str | None = None
    user_message: str | None = None
    retry_after_ms: int | None = None


class AttendanceError(Exception):
    """Base exception for all attendance service errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "activity_id": self.context.activity_id,
                    "identity_id": self.context.identity_id,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Request Errors (400-level) ─────────────────────────────────

class ResourceNotFoundError(AttendanceError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


class CapacityConflictError(AttendanceError):
    """Admin edit would set capacity below the number of accepted registrations."""
    def __init__(
        self, activity_id: str, capacity: int, current_count: int,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext(activity_id=activity_id)
        ctx.user_message = ctx.user_message or (
            f"Capacity {capacity} is below the {current_count} registration(s) "
            "already accepted."
        )
        super().__init__(
            f"Capacity {capacity} below current_count {current_count} "
            f"for activity '{activity_id}'",
            "CAPACITY_BELOW_COUNT", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, ctx, 409,
        )
        self.capacity = capacity
        self.current_count = current_count


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(AttendanceError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class TransactionAbortedError(AttendanceError):
    """Transaction kept conflicting and ran out of retry attempts."""
    def __init__(self, attempts: int, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.user_message = ctx.user_message or (
            "The system is busy right now. Please try again in a moment."
        )
        ctx.retry_after_ms = ctx.retry_after_ms or 1000
        super().__init__(
            f"Transaction aborted after {attempts} conflicting attempt(s)",
            "TRANSACTION_ABORTED", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, ctx, 503,
        )
        self.attempts = attempts
