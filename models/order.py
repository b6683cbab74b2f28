"""
Customer order schemas and order allocation views.
"""

from pydantic import Field, field_validator
from typing import Any, Optional
from datetime import date

from models.base import BaseSchema
from models.machine import PlanItem
from utils.number_utils import to_number


class Order(BaseSchema):
    """One fabric line of a customer's order."""

    id: str
    customer: str = ""
    fabric: str
    required_quantity: float = Field(default=0, description="Ordered quantity (kg)")
    remaining_quantity: float = Field(default=0, description="Not yet manufactured (kg)")
    reference: Optional[str] = Field(None, description="Traceability code, e.g. ZARA-SJ-001")
    notes: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return str(v)

    @field_validator("required_quantity", "remaining_quantity", mode="before")
    @classmethod
    def coerce_number(cls, v: Any) -> float:
        return to_number(v)

    @field_validator("customer", "notes", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @property
    def open_quantity(self) -> float:
        """Quantity still to be produced; new orders have no remaining yet."""
        return self.remaining_quantity if self.remaining_quantity > 0 else self.required_quantity


class OrderPlan(BaseSchema):
    """A queued plan on some machine that belongs to an order."""

    machine_id: str
    machine_name: str
    position: int = Field(..., description="Index in the machine queue")
    quantity: float
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    matched_by: str = Field(..., description="reference or client_fabric")


class OrderAllocationStatus(BaseSchema):
    """How much of an order is already planned on machines."""

    order_id: str
    customer: str
    fabric: str
    required_quantity: float
    planned_quantity: float
    unplanned_quantity: float = Field(..., description="max(0, required - planned)")
    plans: list[OrderPlan] = Field(default_factory=list)


class AssignOrderRequest(BaseSchema):
    """Schedule (part of) an order on a machine."""

    machine_id: str
    quantity: Optional[float] = Field(
        None,
        gt=0,
        description="Quantity to plan (kg); defaults to the unplanned quantity"
    )
    position: Optional[int] = Field(
        None,
        ge=0,
        description="Queue index to insert at; defaults to the end"
    )
    customer_name: Optional[str] = None
    expected_version: Optional[int] = Field(
        None,
        description="Reject the write if the machine changed since this version"
    )


class SchedulePreview(BaseSchema):
    """A machine queue after a proposed insertion, not yet saved."""

    machine_id: str
    machine_name: str
    machine_version: int
    inserted_at: int
    changeover_inserted: bool
    queue: list[PlanItem]
