"""
Business logic services.

Each service handles one domain area. The scheduling core (rate
resolution, chaining, scoring, queue position) is exposed as pure
functions; the service classes load snapshots and persist results.
"""

from services.production_rate_service import find_fabric_definition, resolve_rate
from services.machine_service import MachineService, get_machine_service
from services.fabric_service import FabricService, get_fabric_service
from services.order_service import OrderService, get_order_service
from services.dyeing_batch_service import DyeingBatchService, get_dyeing_batch_service
from services.schedule_service import (
    ScheduleService,
    get_schedule_service,
    rechain,
    insert_order,
    remove_plan,
    move_plan,
    update_plan,
    activate_plan,
    find_order_plans,
)
from services.machine_recommendation_service import (
    MachineRecommendationService,
    get_machine_recommendation_service,
    recommend,
    format_reason,
)
from services.queue_position_service import (
    QueuePositionService,
    get_queue_position_service,
    queue_info,
    queue_overview,
)

__all__ = [
    "find_fabric_definition",
    "resolve_rate",
    "MachineService",
    "get_machine_service",
    "FabricService",
    "get_fabric_service",
    "OrderService",
    "get_order_service",
    "DyeingBatchService",
    "get_dyeing_batch_service",
    "ScheduleService",
    "get_schedule_service",
    "rechain",
    "insert_order",
    "remove_plan",
    "move_plan",
    "update_plan",
    "activate_plan",
    "find_order_plans",
    "MachineRecommendationService",
    "get_machine_recommendation_service",
    "recommend",
    "format_reason",
    "QueuePositionService",
    "get_queue_position_service",
    "queue_info",
    "queue_overview",
]
