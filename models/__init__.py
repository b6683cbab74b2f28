"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema
from models.machine import (
    MachineStatus,
    PlanKind,
    PlanItem,
    Machine,
    MachineSummary,
    PlanItemUpdate,
    QueueMoveRequest,
)
from models.fabric import FabricSpecs, FabricDefinition
from models.order import (
    Order,
    OrderPlan,
    OrderAllocationStatus,
    AssignOrderRequest,
    SchedulePreview,
)
from models.recommendation import (
    ScoreCode,
    ScoreComponent,
    Recommendation,
    MachineRecommendations,
)
from models.dyehouse import (
    DyehouseStage,
    DyeingBatch,
    QueueInfo,
    BatchQueueEntry,
)

__all__ = [
    # Base
    "BaseSchema",
    # Machine
    "MachineStatus",
    "PlanKind",
    "PlanItem",
    "Machine",
    "MachineSummary",
    "PlanItemUpdate",
    "QueueMoveRequest",
    # Fabric
    "FabricSpecs",
    "FabricDefinition",
    # Order
    "Order",
    "OrderPlan",
    "OrderAllocationStatus",
    "AssignOrderRequest",
    "SchedulePreview",
    # Recommendation
    "ScoreCode",
    "ScoreComponent",
    "Recommendation",
    "MachineRecommendations",
    # Dyehouse
    "DyehouseStage",
    "DyeingBatch",
    "QueueInfo",
    "BatchQueueEntry",
]
