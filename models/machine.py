"""
Machine and plan schemas.

A machine carries its current job (fabric, client, remaining quantity)
and an ordered queue of PlanItems. The queue is stored embedded in the
machine document and is always rewritten as a whole.
"""

from pydantic import Field, field_validator
from typing import Any, Optional
from enum import Enum
from datetime import date

from models.base import BaseSchema
from utils.number_utils import to_number, to_int, to_date, positive_or


class MachineStatus(str, Enum):
    """Machine floor status."""
    WORKING = "Working"
    UNDER_OPERATION = "Under Operation"
    NO_ORDER = "No Order"
    OUT_OF_SERVICE = "Out of Service"
    CHANGEOVER = "Qalb"  # Settings being changed for a new fabric
    OTHER = "Other"


class PlanKind(str, Enum):
    """Queue entry type."""
    PRODUCTION = "PRODUCTION"
    CHANGEOVER = "SETTINGS"


class PlanItem(BaseSchema):
    """
    One entry in a machine's queue.

    Dates, days and daily_rate are derived by the schedule chainer;
    everything else is operator data and is carried through untouched.
    """

    kind: PlanKind = Field(
        default=PlanKind.PRODUCTION,
        description="PRODUCTION job or SETTINGS (changeover)"
    )
    fabric: str = Field(default="", description="Fabric name (empty for changeover)")
    quantity: float = Field(default=0, description="Quantity to produce (kg)")
    daily_rate: float = Field(default=0, description="Resolved production rate (kg/day)")
    days: int = Field(default=0, description="Duration in days")
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    remaining_quantity: float = Field(default=0, description="Quantity not yet produced (kg)")
    client: str = ""
    order_reference: Optional[str] = None
    order_id: Optional[str] = None
    notes: str = ""

    @field_validator("kind", mode="before")
    @classmethod
    def default_kind(cls, v: Any) -> Any:
        """Missing or unknown kind means a production job."""
        if str(getattr(v, "value", v) or "").upper() in ("SETTINGS", "CHANGEOVER"):
            return PlanKind.CHANGEOVER
        return PlanKind.PRODUCTION

    @field_validator("quantity", "daily_rate", "remaining_quantity", mode="before")
    @classmethod
    def coerce_number(cls, v: Any) -> float:
        return to_number(v)

    @field_validator("days", mode="before")
    @classmethod
    def coerce_days(cls, v: Any) -> int:
        return to_int(v)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any) -> Optional[date]:
        return to_date(v)

    @field_validator("fabric", "client", "notes", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @property
    def is_changeover(self) -> bool:
        return self.kind == PlanKind.CHANGEOVER


class Machine(BaseSchema):
    """Knitting machine with its current job and queue."""

    id: str
    name: str = ""
    brand: Optional[str] = None
    type: str = Field(default="", description="Category (Single, Double, Jacquard, ...)")

    # Technical specs
    gauge: Optional[str] = None
    diameter: Optional[str] = None
    needle_count: Optional[int] = None

    # Current job
    status: MachineStatus = MachineStatus.NO_ORDER
    fabric: str = ""
    client: str = ""
    order_reference: Optional[str] = None
    daily_rate: float = Field(default=0, description="Observed production today (kg/day)")
    avg_daily_rate: float = Field(default=0, description="Nominal production rate (kg/day)")
    remaining_quantity: float = Field(default=0, description="Left to produce on current job (kg)")

    queue: list[PlanItem] = Field(default_factory=list)
    version: int = Field(default=0, description="Incremented on every queue write")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return str(v)

    @field_validator("gauge", "diameter", mode="before")
    @classmethod
    def coerce_spec(cls, v: Any) -> Optional[str]:
        """Specs are compared as text; 24 and "24" are the same gauge."""
        if v is None:
            return None
        text = str(v).strip()
        if text.endswith(".0"):
            text = text[:-2]
        return text or None

    @field_validator("needle_count", mode="before")
    @classmethod
    def coerce_needles(cls, v: Any) -> Optional[int]:
        needles = to_int(v)
        return needles or None

    @field_validator("status", mode="before")
    @classmethod
    def coerce_status(cls, v: Any) -> MachineStatus:
        try:
            return MachineStatus(v)
        except ValueError:
            return MachineStatus.NO_ORDER

    @field_validator("daily_rate", "avg_daily_rate", "remaining_quantity", mode="before")
    @classmethod
    def coerce_number(cls, v: Any) -> float:
        return to_number(v)

    @field_validator("fabric", "client", "type", "name", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        if v is None:
            return ""
        text = str(v).strip()
        # Idle machines are recorded with a dash placeholder
        return "" if text == "-" else text

    @field_validator("queue", mode="before")
    @classmethod
    def coerce_queue(cls, v: Any) -> list:
        return v if isinstance(v, list) else []

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, v: Any) -> int:
        return to_int(v)

    @property
    def is_working(self) -> bool:
        return self.status == MachineStatus.WORKING

    @property
    def has_current_job(self) -> bool:
        """Working, or still holding unfinished work of its current fabric."""
        return self.is_working or self.remaining_quantity > 0

    @property
    def fallback_rate(self) -> float:
        """Observed rate if the machine is producing, else its nominal rate."""
        return positive_or(self.daily_rate, self.avg_daily_rate)


class MachineSummary(BaseSchema):
    """Machine list row with schedule horizon."""

    id: str
    name: str
    type: str
    status: MachineStatus
    fabric: str
    client: str
    remaining_quantity: float
    queue_length: int
    free_date: Optional[date] = Field(
        None,
        description="End date of the last queued item (or current job)"
    )


class PlanItemUpdate(BaseSchema):
    """Operator edit of a queued plan. Only provided fields change."""

    fabric: Optional[str] = None
    quantity: Optional[float] = Field(None, ge=0)
    daily_rate: Optional[float] = Field(None, gt=0)
    days: Optional[int] = Field(None, ge=1, description="Changeover duration")
    remaining_quantity: Optional[float] = Field(None, ge=0)
    client: Optional[str] = None
    notes: Optional[str] = None
    expected_version: Optional[int] = None


class QueueMoveRequest(BaseSchema):
    """Move a queue entry to another position."""

    from_index: int = Field(..., ge=0)
    to_index: int = Field(..., ge=0)
    expected_version: Optional[int] = Field(
        None,
        description="Reject the write if the machine changed since this version"
    )
