"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DatabaseError,

    # Machines
    MachineNotFoundError,
    PlanItemNotFoundError,
    InvalidQueueMoveError,
    QueueVersionConflictError,
    ChangeoverActivationError,

    # Orders
    OrderNotFoundError,

    # Dyehouse
    DyeingBatchNotFoundError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DatabaseError",

    # Machines
    "MachineNotFoundError",
    "PlanItemNotFoundError",
    "InvalidQueueMoveError",
    "QueueVersionConflictError",
    "ChangeoverActivationError",

    # Orders
    "OrderNotFoundError",

    # Dyehouse
    "DyeingBatchNotFoundError",
]
