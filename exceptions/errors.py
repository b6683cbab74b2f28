"""
Custom exception classes for the application.

The scheduling core never raises for bad data; these errors come from
the service layer (missing records, stale writes, invalid queue edits).
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "MACHINE_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# MACHINE ERRORS
# ===================

class MachineNotFoundError(NotFoundError):
    """Machine not found."""

    def __init__(self, machine_id: str):
        super().__init__(
            resource="Machine",
            identifier=str(machine_id),
            code="MACHINE_NOT_FOUND"
        )


class PlanItemNotFoundError(NotFoundError):
    """No plan at the given queue position."""

    def __init__(self, machine_id: str, index: int):
        super().__init__(
            resource="Plan item",
            identifier=f"{machine_id}[{index}]",
            code="PLAN_ITEM_NOT_FOUND"
        )
        self.details["index"] = index


class InvalidQueueMoveError(ValidationError):
    """Queue move indexes out of range."""

    def __init__(self, from_index: int, to_index: int, queue_length: int):
        super().__init__(
            code="INVALID_QUEUE_MOVE",
            message=f"Cannot move plan {from_index} to {to_index} in a queue of {queue_length}",
            details={
                "from_index": from_index,
                "to_index": to_index,
                "queue_length": queue_length,
            }
        )


class QueueVersionConflictError(ConflictError):
    """Machine queue was changed by someone else since it was read."""

    def __init__(self, machine_id: str, expected_version: int):
        super().__init__(
            code="QUEUE_VERSION_CONFLICT",
            message="Machine schedule was modified by another operation, reload and retry",
            details={"machine_id": str(machine_id), "expected_version": expected_version}
        )


class ChangeoverActivationError(ValidationError):
    """Only production plans can become the machine's current job."""

    def __init__(self, machine_id: str, index: int):
        super().__init__(
            code="CHANGEOVER_NOT_ACTIVATABLE",
            message="A changeover entry cannot be started as a production job",
            details={"machine_id": str(machine_id), "index": index}
        )


# ===================
# ORDER ERRORS
# ===================

class OrderNotFoundError(NotFoundError):
    """Customer order not found."""

    def __init__(self, order_id: str):
        super().__init__(
            resource="Order",
            identifier=order_id,
            code="ORDER_NOT_FOUND"
        )


# ===================
# DYEHOUSE ERRORS
# ===================

class DyeingBatchNotFoundError(NotFoundError):
    """Dyeing batch not found."""

    def __init__(self, batch_id: str):
        super().__init__(
            resource="Dyeing batch",
            identifier=batch_id,
            code="DYEING_BATCH_NOT_FOUND"
        )
