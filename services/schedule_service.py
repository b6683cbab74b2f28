"""
Schedule service: machine queue chaining and queue edits.

Every queue change ends with rechain(), which recomputes start/end dates,
days and daily rates for the whole queue starting from the day the
machine's current job finishes. Changeover entries are synthesized when
a new order follows a different fabric.

The module-level functions are pure (no store access). ScheduleService
loads snapshots, calls them, and writes the machine back once.
"""

from typing import Any, Optional, Iterable
from datetime import date, timedelta
import math
import structlog

from config.scheduling import SchedulingConfig, get_scheduling_config
from services.production_rate_service import resolve_rate
from services.machine_service import get_machine_service
from services.fabric_service import get_fabric_service
from services.order_service import get_order_service
from models.machine import (
    Machine,
    MachineStatus,
    MachineSummary,
    PlanItem,
    PlanItemUpdate,
    PlanKind,
    QueueMoveRequest,
)
from models.fabric import FabricDefinition
from models.order import (
    Order,
    OrderPlan,
    OrderAllocationStatus,
    AssignOrderRequest,
    SchedulePreview,
)
from exceptions import (
    PlanItemNotFoundError,
    InvalidQueueMoveError,
    ChangeoverActivationError,
    ValidationError,
)
from utils.number_utils import positive_or
from utils.text_utils import normalize_name, same_name, build_order_reference

logger = structlog.get_logger(__name__)


# ===================
# DATE CHAINING
# ===================

def add_days(start: date, days: int) -> date:
    """Calendar date `days` after start."""
    return start + timedelta(days=days)


def changeover_days(
    machine_type: Optional[str],
    config: Optional[SchedulingConfig] = None
) -> int:
    """
    Changeover duration for a machine category.

    - "Single Jersey" → 2
    - "Double" / "Jacquard" → 4
    - anything else → 2
    """
    config = config or get_scheduling_config()
    family = normalize_name(machine_type)

    if "single" in family:
        return config.changeover_days_single
    if "double" in family:
        return config.changeover_days_double
    if "jacquard" in family:
        return config.changeover_days_jacquard
    return config.changeover_days_default


def current_job_end(
    machine: Machine,
    fabric_definitions: Optional[Iterable[FabricDefinition]] = None,
    today: Optional[date] = None,
    config: Optional[SchedulingConfig] = None
) -> date:
    """
    Day the machine finishes its current job (the queue's cursor).

    today + ceil(remaining / rate), or today when nothing remains.
    """
    today = today or date.today()
    if machine.remaining_quantity <= 0:
        return today

    rate = resolve_rate(
        machine.fabric,
        machine.id,
        fabric_definitions,
        machine.fallback_rate,
        config
    )
    return add_days(today, math.ceil(machine.remaining_quantity / rate))


def rechain(
    queue: list[PlanItem],
    machine: Machine,
    fabric_definitions: Optional[Iterable[FabricDefinition]] = None,
    today: Optional[date] = None,
    config: Optional[SchedulingConfig] = None
) -> list[PlanItem]:
    """
    Recompute dates, days and rates for a machine's queue.

    Items are chained back to back from the end of the current job:
    item[i+1].start_date == item[i].end_date. Production days are
    ceil(quantity / rate) (0 for zero quantity); changeover entries keep
    their own days, at least 1. All other fields are carried through.

    Args:
        queue: Plans in execution order (not modified)
        machine: Machine the queue belongs to
        fabric_definitions: Fabric catalog for rate resolution
        today: Reference date (defaults to date.today())
        config: Scheduling defaults

    Returns:
        New list of PlanItem
    """
    config = config or get_scheduling_config()
    fabric_definitions = list(fabric_definitions or [])
    cursor = current_job_end(machine, fabric_definitions, today, config)
    machine_rate = machine.fallback_rate

    chained = []
    for item in queue:
        if item.is_changeover:
            updates = {"days": max(item.days, 1)}
        else:
            rate = resolve_rate(
                item.fabric,
                machine.id,
                fabric_definitions,
                positive_or(item.daily_rate, machine_rate),
                config
            )
            days = math.ceil(item.quantity / rate) if item.quantity > 0 else 0
            updates = {"daily_rate": rate, "days": days}

        end_date = add_days(cursor, updates["days"])
        chained.append(item.model_copy(update={
            **updates,
            "start_date": cursor,
            "end_date": end_date,
        }))
        cursor = end_date

    logger.debug(
        "queue_rechained",
        machine_id=machine.id,
        items=len(chained),
        free_date=cursor.isoformat()
    )

    return chained


# ===================
# CHANGEOVER
# ===================

def preceding_fabric(machine: Machine, queue: list[PlanItem], position: int) -> str:
    """
    Fabric the machine will be running right before `position`.

    Nearest production plan ahead of position; with none, the current
    job's fabric if the machine has one (working or with work left).
    Empty when unknown.
    """
    for item in reversed(queue[:position]):
        if not item.is_changeover and item.fabric.strip():
            return item.fabric
    if machine.has_current_job:
        return machine.fabric
    return ""


def needs_changeover(previous_fabric: Optional[str], fabric: Optional[str]) -> bool:
    """True when switching from previous_fabric to fabric requires a changeover."""
    previous = normalize_name(previous_fabric)
    return bool(previous) and previous != normalize_name(fabric)


def build_changeover_item(
    machine: Machine,
    config: Optional[SchedulingConfig] = None
) -> PlanItem:
    """Changeover entry sized for the machine's category."""
    return PlanItem(
        kind=PlanKind.CHANGEOVER,
        days=changeover_days(machine.type, config),
    )


def insert_order(
    queue: list[PlanItem],
    machine: Machine,
    new_item: PlanItem,
    position: Optional[int] = None,
    fabric_definitions: Optional[Iterable[FabricDefinition]] = None,
    today: Optional[date] = None,
    config: Optional[SchedulingConfig] = None
) -> list[PlanItem]:
    """
    Insert a production plan and rechain the queue.

    A changeover entry goes directly in front of the new plan when the
    fabric before it differs. Two consecutive plans of the same fabric
    never get a changeover between them.

    Args:
        queue: Current queue (not modified)
        machine: Machine the queue belongs to
        new_item: Production plan to insert
        position: Queue index (default end, clamped to 0..len)

    Returns:
        New chained queue
    """
    items = list(queue)
    if position is None:
        position = len(items)
    position = max(0, min(position, len(items)))

    previous = preceding_fabric(machine, items, position)
    inserted = [new_item]
    if needs_changeover(previous, new_item.fabric):
        inserted.insert(0, build_changeover_item(machine, config))
        logger.debug(
            "changeover_inserted",
            machine_id=machine.id,
            from_fabric=previous,
            to_fabric=new_item.fabric,
            days=inserted[0].days
        )

    items[position:position] = inserted
    return rechain(items, machine, fabric_definitions, today, config)


# ===================
# QUEUE EDITS
# ===================

def _check_index(machine: Machine, index: int) -> None:
    if index < 0 or index >= len(machine.queue):
        raise PlanItemNotFoundError(machine.id, index)


def remove_plan(
    machine: Machine,
    index: int,
    fabric_definitions: Optional[Iterable[FabricDefinition]] = None,
    today: Optional[date] = None,
    config: Optional[SchedulingConfig] = None
) -> list[PlanItem]:
    """Drop the plan at index and rechain the rest."""
    _check_index(machine, index)
    items = machine.queue[:index] + machine.queue[index + 1:]
    return rechain(items, machine, fabric_definitions, today, config)


def move_plan(
    machine: Machine,
    from_index: int,
    to_index: int,
    fabric_definitions: Optional[Iterable[FabricDefinition]] = None,
    today: Optional[date] = None,
    config: Optional[SchedulingConfig] = None
) -> list[PlanItem]:
    """
    Move a plan to another position and rechain.

    Raises:
        InvalidQueueMoveError: If either index is outside the queue
    """
    length = len(machine.queue)
    if not (0 <= from_index < length and 0 <= to_index < length):
        raise InvalidQueueMoveError(from_index, to_index, length)

    items = list(machine.queue)
    items.insert(to_index, items.pop(from_index))
    return rechain(items, machine, fabric_definitions, today, config)


def update_plan(
    machine: Machine,
    index: int,
    changes: dict[str, Any],
    fabric_definitions: Optional[Iterable[FabricDefinition]] = None,
    today: Optional[date] = None,
    config: Optional[SchedulingConfig] = None
) -> list[PlanItem]:
    """Apply field changes to the plan at index and rechain."""
    _check_index(machine, index)
    items = list(machine.queue)
    items[index] = PlanItem(**{**items[index].model_dump(), **changes})
    return rechain(items, machine, fabric_definitions, today, config)


def activate_plan(
    machine: Machine,
    index: int,
    fabric_definitions: Optional[Iterable[FabricDefinition]] = None,
    today: Optional[date] = None,
    config: Optional[SchedulingConfig] = None
) -> Machine:
    """
    Start a queued plan as the machine's current job.

    The machine switches to Working with the plan's fabric, client and
    remaining quantity. Observed daily rate starts over at 0. A plan
    without an order reference gets one generated from client and fabric.
    The plan leaves the queue and the rest is rechained.

    Raises:
        PlanItemNotFoundError: If index is outside the queue
        ChangeoverActivationError: If the plan is a changeover entry
    """
    _check_index(machine, index)
    item = machine.queue[index]
    if item.is_changeover:
        raise ChangeoverActivationError(machine.id, index)

    remaining = item.remaining_quantity if item.remaining_quantity > 0 else item.quantity
    reference = item.order_reference or build_order_reference(item.client, item.fabric) or None

    activated = machine.model_copy(update={
        "status": MachineStatus.WORKING,
        "fabric": item.fabric,
        "client": item.client,
        "order_reference": reference,
        "remaining_quantity": remaining,
        "daily_rate": 0.0,
    })
    rest = machine.queue[:index] + machine.queue[index + 1:]

    return activated.model_copy(update={
        "queue": rechain(rest, activated, fabric_definitions, today, config)
    })


# ===================
# ORDER ALLOCATION
# ===================

def build_order_plan(
    order: Order,
    quantity: float,
    customer_name: Optional[str] = None
) -> PlanItem:
    """Production plan for (part of) an order."""
    return PlanItem(
        kind=PlanKind.PRODUCTION,
        fabric=order.fabric,
        quantity=quantity,
        remaining_quantity=quantity,
        client=customer_name or order.customer,
        order_id=order.id,
        order_reference=order.reference or order.id,
        notes=order.notes,
    )


def find_order_plans(
    order: Order,
    machines: Iterable[Machine],
    customer_name: Optional[str] = None
) -> OrderAllocationStatus:
    """
    Collect the queued plans that belong to an order.

    A plan belongs to the order when it carries the order's id or
    reference. Plans created before references existed carry neither;
    those match on client and fabric name.
    """
    references = {ref for ref in (order.id, order.reference) if ref}
    client = customer_name or order.customer

    plans = []
    for machine in machines:
        for index, item in enumerate(machine.queue):
            if item.is_changeover:
                continue

            if item.order_id == order.id:
                matched_by = "order_id"
            elif item.order_reference and item.order_reference in references:
                matched_by = "reference"
            elif (
                not item.order_id
                and not item.order_reference
                and same_name(item.client, client)
                and same_name(item.fabric, order.fabric)
            ):
                matched_by = "client_fabric"
            else:
                continue

            plans.append(OrderPlan(
                machine_id=machine.id,
                machine_name=machine.name,
                position=index,
                quantity=item.quantity,
                start_date=item.start_date,
                end_date=item.end_date,
                matched_by=matched_by,
            ))

    planned = sum(plan.quantity for plan in plans)

    return OrderAllocationStatus(
        order_id=order.id,
        customer=client,
        fabric=order.fabric,
        required_quantity=order.required_quantity,
        planned_quantity=planned,
        unplanned_quantity=max(0.0, order.required_quantity - planned),
        plans=plans,
    )


class ScheduleService:
    """
    Machine schedule orchestration.

    Each operation reads one machine snapshot (plus catalog), computes the
    new queue with the pure functions above, and writes it back with a
    version check.
    """

    def __init__(self):
        self.machine_service = get_machine_service()
        self.fabric_service = get_fabric_service()
        self.order_service = get_order_service()
        self.config = get_scheduling_config()

    def _save(
        self,
        machine: Machine,
        queue: list[PlanItem],
        expected_version: Optional[int],
        fields: Optional[dict[str, Any]] = None
    ) -> Machine:
        version = machine.version if expected_version is None else expected_version
        return self.machine_service.replace_queue(machine.id, queue, version, fields)

    # ===================
    # MACHINE SCHEDULES
    # ===================

    def list_machines(self, today: Optional[date] = None) -> list[MachineSummary]:
        """
        All machines with the date each becomes free.

        Free date comes from the chained queue, so stale stored dates
        don't leak into the overview.
        """
        machines = self.machine_service.get_all()
        fabrics = self.fabric_service.get_all()

        summaries = []
        for machine in machines:
            queue = rechain(machine.queue, machine, fabrics, today, self.config)
            if queue:
                free_date = queue[-1].end_date
            else:
                free_date = current_job_end(machine, fabrics, today, self.config)

            summaries.append(MachineSummary(
                id=machine.id,
                name=machine.name,
                type=machine.type,
                status=machine.status,
                fabric=machine.fabric,
                client=machine.client,
                remaining_quantity=machine.remaining_quantity,
                queue_length=len(queue),
                free_date=free_date,
            ))

        return summaries

    def get_machine(self, machine_id: str) -> Machine:
        """Machine snapshot with its queue freshly chained (not saved)."""
        machine = self.machine_service.get_by_id(machine_id)
        fabrics = self.fabric_service.get_all()
        return machine.model_copy(update={
            "queue": rechain(machine.queue, machine, fabrics, config=self.config)
        })

    def rechain_machine(
        self,
        machine_id: str,
        expected_version: Optional[int] = None
    ) -> Machine:
        """Recompute and save a machine's queue dates."""
        machine = self.machine_service.get_by_id(machine_id)
        fabrics = self.fabric_service.get_all()

        queue = rechain(machine.queue, machine, fabrics, config=self.config)
        saved = self._save(machine, queue, expected_version)

        logger.info(
            "machine_queue_rechained",
            machine_id=machine_id,
            queue_length=len(queue)
        )

        return saved

    def remove_plan(
        self,
        machine_id: str,
        index: int,
        expected_version: Optional[int] = None
    ) -> Machine:
        """Remove a queued plan."""
        machine = self.machine_service.get_by_id(machine_id)
        fabrics = self.fabric_service.get_all()

        queue = remove_plan(machine, index, fabrics, config=self.config)
        saved = self._save(machine, queue, expected_version)

        logger.info("plan_removed", machine_id=machine_id, index=index)

        return saved

    def move_plan(self, machine_id: str, request: QueueMoveRequest) -> Machine:
        """Reorder a queued plan."""
        machine = self.machine_service.get_by_id(machine_id)
        fabrics = self.fabric_service.get_all()

        queue = move_plan(
            machine,
            request.from_index,
            request.to_index,
            fabrics,
            config=self.config
        )
        saved = self._save(machine, queue, request.expected_version)

        logger.info(
            "plan_moved",
            machine_id=machine_id,
            from_index=request.from_index,
            to_index=request.to_index
        )

        return saved

    def update_plan(
        self,
        machine_id: str,
        index: int,
        request: PlanItemUpdate
    ) -> Machine:
        """Edit fields of a queued plan."""
        machine = self.machine_service.get_by_id(machine_id)
        fabrics = self.fabric_service.get_all()

        changes = request.model_dump(exclude_none=True, exclude={"expected_version"})
        queue = update_plan(machine, index, changes, fabrics, config=self.config)
        saved = self._save(machine, queue, request.expected_version)

        logger.info(
            "plan_updated",
            machine_id=machine_id,
            index=index,
            fields=list(changes.keys())
        )

        return saved

    def activate_plan(
        self,
        machine_id: str,
        index: int,
        expected_version: Optional[int] = None
    ) -> Machine:
        """Start a queued plan as the machine's current job."""
        machine = self.machine_service.get_by_id(machine_id)
        fabrics = self.fabric_service.get_all()

        activated = activate_plan(machine, index, fabrics, config=self.config)
        fields = activated.model_dump(
            mode="json",
            include={
                "status",
                "fabric",
                "client",
                "order_reference",
                "remaining_quantity",
                "daily_rate",
            }
        )
        saved = self._save(machine, activated.queue, expected_version, fields)

        logger.info(
            "plan_activated",
            machine_id=machine_id,
            fabric=activated.fabric,
            client=activated.client,
            order_reference=activated.order_reference
        )

        return saved

    # ===================
    # ORDER PLANNING
    # ===================

    def get_order_allocation(
        self,
        order_id: str,
        customer_name: Optional[str] = None
    ) -> OrderAllocationStatus:
        """How much of an order is already queued, and where."""
        order = self.order_service.get_by_id(order_id)
        machines = self.machine_service.get_all()
        return find_order_plans(order, machines, customer_name)

    def _plan_order(
        self,
        order_id: str,
        request: AssignOrderRequest
    ) -> tuple[Machine, list[PlanItem], int]:
        order = self.order_service.get_by_id(order_id)
        machine = self.machine_service.get_by_id(request.machine_id)
        fabrics = self.fabric_service.get_all()

        quantity = request.quantity
        if quantity is None:
            allocation = find_order_plans(
                order,
                self.machine_service.get_all(),
                request.customer_name
            )
            quantity = allocation.unplanned_quantity
            if quantity <= 0:
                raise ValidationError(
                    "Order is already fully planned",
                    code="ORDER_FULLY_PLANNED",
                    details={"order_id": order_id}
                )

        new_item = build_order_plan(order, quantity, request.customer_name)
        position = len(machine.queue)
        if request.position is not None:
            position = min(request.position, position)
        queue = insert_order(
            machine.queue,
            machine,
            new_item,
            position,
            fabrics,
            config=self.config
        )
        return machine, queue, position

    def preview_order(self, order_id: str, request: AssignOrderRequest) -> SchedulePreview:
        """Queue a machine would have after taking the order. Nothing is saved."""
        machine, queue, position = self._plan_order(order_id, request)
        changeover_inserted = len(queue) == len(machine.queue) + 2

        return SchedulePreview(
            machine_id=machine.id,
            machine_name=machine.name,
            machine_version=machine.version,
            inserted_at=position + 1 if changeover_inserted else position,
            changeover_inserted=changeover_inserted,
            queue=queue,
        )

    def assign_order(self, order_id: str, request: AssignOrderRequest) -> Machine:
        """Schedule an order on a machine and save the queue."""
        machine, queue, position = self._plan_order(order_id, request)
        saved = self._save(machine, queue, request.expected_version)

        logger.info(
            "order_assigned",
            order_id=order_id,
            machine_id=machine.id,
            position=position,
            changeover_inserted=len(queue) == len(machine.queue) + 2
        )

        return saved


# Singleton instance for convenience
_schedule_service: Optional[ScheduleService] = None

def get_schedule_service() -> ScheduleService:
    """Get or create ScheduleService instance."""
    global _schedule_service
    if _schedule_service is None:
        _schedule_service = ScheduleService()
    return _schedule_service
