"""
Dyehouse batch schemas for queue position display.
"""

from pydantic import Field, field_validator
from typing import Any, Optional
from datetime import date
from enum import Enum

from models.base import BaseSchema
from utils.number_utils import to_number, to_date


class DyehouseStage(str, Enum):
    """Batch workflow inside the dyehouse (in order)."""
    STORE_RAW = "STORE_RAW"            # Raw fabric waiting in dyehouse store
    DYEING = "DYEING"
    FINISHING = "FINISHING"
    STORE_FINISHED = "STORE_FINISHED"  # Finished, waiting for pickup
    RECEIVED = "RECEIVED"


# Stage order for queue calculations (lower index = earlier in flow)
STAGE_ORDER = {
    DyehouseStage.STORE_RAW: 0,
    DyehouseStage.DYEING: 1,
    DyehouseStage.FINISHING: 2,
    DyehouseStage.STORE_FINISHED: 3,
    DyehouseStage.RECEIVED: 4,
}


def stage_index(stage: Optional[DyehouseStage]) -> int:
    """Position of a stage in the workflow; -1 when not started."""
    if stage is None:
        return -1
    return STAGE_ORDER[stage]


class DyeingBatch(BaseSchema):
    """A color batch sent to a dyehouse vessel."""

    id: str
    order_id: Optional[str] = None
    client: str = ""
    fabric: str = ""
    color: str = ""
    quantity: float = 0
    dyehouse: str = ""
    machine: str = ""
    planned_capacity: Optional[float] = Field(None, description="Vessel size (kg)")
    formation_date: Optional[date] = None
    stage: Optional[DyehouseStage] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return str(v)

    @field_validator("quantity", mode="before")
    @classmethod
    def coerce_quantity(cls, v: Any) -> float:
        return to_number(v)

    @field_validator("planned_capacity", mode="before")
    @classmethod
    def coerce_capacity(cls, v: Any) -> Optional[float]:
        return to_number(v) or None

    @field_validator("formation_date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any) -> Optional[date]:
        return to_date(v)

    @field_validator("stage", mode="before")
    @classmethod
    def coerce_stage(cls, v: Any) -> Optional[DyehouseStage]:
        try:
            return DyehouseStage(v) if v else None
        except ValueError:
            return None

    @field_validator("client", "fabric", "color", "dyehouse", "machine", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @property
    def vessel_label(self) -> str:
        """Vessel name as shown on the floor: "400kg" or the machine name."""
        if self.planned_capacity:
            capacity = self.planned_capacity
            return f"{int(capacity) if capacity.is_integer() else capacity}kg"
        return self.machine.strip()

    @property
    def capacity_key(self) -> tuple[str, str]:
        """Batches with the same key wait for the same vessel."""
        return (self.dyehouse.strip().lower(), self.vessel_label.lower())


class QueueInfo(BaseSchema):
    """Where a batch sits in its vessel queue."""

    position: int = Field(..., ge=1, description="1-based position by formation date")
    total: int = Field(..., ge=2)
    finished_before: int = Field(..., description="Batches ahead that are already past the checkpoint")
    still_ahead_count: int = Field(..., description="Batches ahead still waiting")


class BatchQueueEntry(BaseSchema):
    """Batch with its queue info for dyehouse overview."""

    batch: DyeingBatch
    vessel: str
    queue: Optional[QueueInfo] = None
