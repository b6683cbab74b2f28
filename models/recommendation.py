"""
Machine recommendation schemas.

Scoring produces structured components (code + points); the
human-readable reasons are formatted from them for display.
"""

from pydantic import Field
from typing import Any, Optional
from datetime import date
from enum import Enum

from models.base import BaseSchema
from models.fabric import FabricSpecs


class ScoreCode(str, Enum):
    """Named contributions to a machine's score."""
    PROVEN_HISTORY = "PROVEN_HISTORY"            # Fabric produced on this machine before
    GROUP_MATCH = "GROUP_MATCH"                  # Same category as a proven machine
    NOT_IN_HISTORY = "NOT_IN_HISTORY"            # Outside proven history and its categories
    SPEC_MISMATCH = "SPEC_MISMATCH"              # Gauge/diameter not allowed
    AVAILABILITY = "AVAILABILITY"                # Sooner free, higher score
    CURRENT_FABRIC = "CURRENT_FABRIC"            # Already running this fabric
    LAST_QUEUED_FABRIC = "LAST_QUEUED_FABRIC"    # Queue ends with this fabric
    IMMEDIATE_CONTINUITY = "IMMEDIATE_CONTINUITY"  # Empty queue, same fabric running
    SAME_CLIENT = "SAME_CLIENT"                  # Currently producing for this customer


class ScoreComponent(BaseSchema):
    """One scoring rule that fired for a machine."""

    code: ScoreCode
    points: int
    applied: bool = Field(
        default=True,
        description="False when a later rule overrode this one"
    )
    detail: dict[str, Any] = Field(default_factory=dict)


class Recommendation(BaseSchema):
    """Ranked machine candidate for an order."""

    machine_id: str
    machine_name: str
    machine_type: str = ""
    score: int
    is_compatible: bool
    components: list[ScoreComponent] = Field(default_factory=list)
    reasons: list[str] = Field(default_factory=list)

    # Availability
    days_until_free: int = Field(..., description="Days until queue (plus changeover) clears")
    projected_finish_date: date = Field(..., description="today + days_until_free")
    resolved_daily_rate: float = Field(..., description="Rate for the order's fabric on this machine")
    estimated_completion_date: Optional[date] = Field(
        None,
        description="When the order itself would finish if appended"
    )


class MachineRecommendations(BaseSchema):
    """Recommendation response for one order."""

    order_id: str
    fabric: str
    customer: str
    quantity: float
    fabric_found: bool = Field(..., description="Order fabric matched a catalog entry")
    proven_machines: list[str] = Field(default_factory=list)
    history_groups: list[str] = Field(default_factory=list)
    allowed_specs: list[FabricSpecs] = Field(default_factory=list)
    recommendations: list[Recommendation]
    compatible_count: int
    selected_machine_id: Optional[str] = Field(
        None,
        description="Top candidate when it is compatible"
    )
