"""
Machine recommendation service: which machine should take an order.

Scoring runs per machine, in order:
    1. History: proven machine +100, same category +50, otherwise
       incompatible (-2000). Skipped when the fabric has no history.
    2. Specs: gauge AND diameter must match one allowed spec
       (missing values match anything). Mismatch → incompatible (-1000).
    3. Incompatible machines are clamped to -1000 or lower and get no
       bonuses. They stay in the list so an operator can override.
    4. Availability: 50 - min(days_until_free × 5, 70).
    5. Continuity: current fabric +80, else last queued fabric +60,
       empty queue with matching current fabric +20, same client +30.

Scores are built from structured components; reasons for display are
formatted from them by format_reason().
"""

from typing import Optional, Iterable
from dataclasses import dataclass, field
from datetime import date
import math
import structlog

from config.scheduling import SchedulingConfig, get_scheduling_config
from services.production_rate_service import find_fabric_definition, resolve_rate
from services.schedule_service import (
    add_days,
    changeover_days,
    preceding_fabric,
    needs_changeover,
)
from services.machine_service import get_machine_service
from services.fabric_service import get_fabric_service
from services.order_service import get_order_service
from models.machine import Machine
from models.fabric import FabricDefinition, FabricSpecs
from models.order import Order
from models.recommendation import (
    ScoreCode,
    ScoreComponent,
    Recommendation,
    MachineRecommendations,
)
from utils.number_utils import positive_or
from utils.text_utils import normalize_name, same_name

logger = structlog.get_logger(__name__)


# Score points
PROVEN_HISTORY_POINTS = 100
GROUP_MATCH_POINTS = 50
NOT_IN_HISTORY_SCORE = -2000
SPEC_MISMATCH_SCORE = -1000
INCOMPATIBLE_MAX_SCORE = -1000

AVAILABILITY_BASE = 50
AVAILABILITY_POINTS_PER_DAY = 5
AVAILABILITY_MAX_PENALTY = 70

CURRENT_FABRIC_POINTS = 80
LAST_QUEUED_FABRIC_POINTS = 60
IMMEDIATE_CONTINUITY_POINTS = 20
SAME_CLIENT_POINTS = 30


@dataclass
class CompatibilityContext:
    """What the catalog and fleet say about where a fabric can run."""

    fabric: Optional[FabricDefinition] = None
    proven_machines: list[str] = field(default_factory=list)
    history_groups: list[str] = field(default_factory=list)
    allowed_specs: list[FabricSpecs] = field(default_factory=list)

    @property
    def has_history(self) -> bool:
        return bool(self.proven_machines)


def _spec_value(value: Optional[str]) -> str:
    return (value or "").strip()


def spec_matches(spec: FabricSpecs, machine: Machine) -> bool:
    """Gauge and diameter both match; a missing value on either side matches."""
    spec_gauge, machine_gauge = _spec_value(spec.gauge), _spec_value(machine.gauge)
    spec_dia, machine_dia = _spec_value(spec.diameter), _spec_value(machine.diameter)

    gauge_ok = not spec_gauge or not machine_gauge or spec_gauge == machine_gauge
    dia_ok = not spec_dia or not machine_dia or spec_dia == machine_dia
    return gauge_ok and dia_ok


def build_compatibility_context(
    fabric_name: str,
    machines: Iterable[Machine],
    fabric_definitions: Iterable[FabricDefinition]
) -> CompatibilityContext:
    """
    Collect proven machines, their categories and allowed specs.

    Allowed specs are the fabric's own specs plus the (gauge, diameter)
    of every proven machine, without duplicates. An unknown fabric gives
    an empty context (no constraints).
    """
    definition = find_fabric_definition(fabric_name, fabric_definitions)
    if definition is None:
        return CompatibilityContext()

    proven = [normalize_name(name) for name in definition.compatible_machines]
    proven = [name for name in proven if name]

    allowed_specs = []
    if definition.specs and not definition.specs.is_empty:
        allowed_specs.append(FabricSpecs(
            gauge=definition.specs.gauge,
            diameter=definition.specs.diameter,
        ))

    groups = []
    for machine in machines:
        if normalize_name(machine.name) not in proven:
            continue
        if machine.type and machine.type not in groups:
            groups.append(machine.type)
        if not machine.gauge and not machine.diameter:
            continue
        already_known = any(
            _spec_value(spec.gauge) == _spec_value(machine.gauge)
            and _spec_value(spec.diameter) == _spec_value(machine.diameter)
            for spec in allowed_specs
        )
        if not already_known:
            allowed_specs.append(FabricSpecs(gauge=machine.gauge, diameter=machine.diameter))

    return CompatibilityContext(
        fabric=definition,
        proven_machines=proven,
        history_groups=groups,
        allowed_specs=allowed_specs,
    )


def days_until_free(
    machine: Machine,
    fabric_name: str,
    fabric_definitions: Iterable[FabricDefinition],
    config: Optional[SchedulingConfig] = None
) -> int:
    """
    Days before the machine could start a new order of fabric_name.

    Remaining current job plus every queued plan, each converted to days
    through its own resolved rate, plus a changeover when the last fabric
    on the machine differs from fabric_name.
    """
    config = config or get_scheduling_config()
    fabric_definitions = list(fabric_definitions)
    machine_rate = machine.fallback_rate

    days = 0.0
    if machine.remaining_quantity > 0:
        rate = resolve_rate(machine.fabric, machine.id, fabric_definitions, machine_rate, config)
        days += machine.remaining_quantity / rate

    for item in machine.queue:
        if item.is_changeover:
            days += max(item.days, 1)
        elif item.quantity > 0:
            rate = resolve_rate(
                item.fabric,
                machine.id,
                fabric_definitions,
                positive_or(item.daily_rate, machine_rate),
                config
            )
            days += item.quantity / rate

    last_fabric = preceding_fabric(machine, machine.queue, len(machine.queue))
    if needs_changeover(last_fabric, fabric_name):
        days += changeover_days(machine.type, config)

    return math.ceil(days)


def _last_queued_fabric(machine: Machine) -> str:
    for item in reversed(machine.queue):
        if not item.is_changeover:
            return item.fabric
    return ""


def score_machine(
    machine: Machine,
    order: Order,
    context: CompatibilityContext,
    fabric_definitions: list[FabricDefinition],
    customer_name: Optional[str] = None,
    today: Optional[date] = None,
    config: Optional[SchedulingConfig] = None
) -> Recommendation:
    """Score one machine for an order."""
    config = config or get_scheduling_config()
    today = today or date.today()
    components: list[ScoreComponent] = []
    compatible = True

    # History
    if context.has_history:
        if normalize_name(machine.name) in context.proven_machines:
            components.append(ScoreComponent(
                code=ScoreCode.PROVEN_HISTORY,
                points=PROVEN_HISTORY_POINTS,
            ))
        elif machine.type and machine.type in context.history_groups:
            components.append(ScoreComponent(
                code=ScoreCode.GROUP_MATCH,
                points=GROUP_MATCH_POINTS,
                detail={"group": machine.type},
            ))
        else:
            compatible = False
            components.append(ScoreComponent(
                code=ScoreCode.NOT_IN_HISTORY,
                points=NOT_IN_HISTORY_SCORE,
            ))

    # Specs
    if compatible and context.allowed_specs:
        if not any(spec_matches(spec, machine) for spec in context.allowed_specs):
            compatible = False
            # History bonuses don't survive a spec mismatch
            for component in components:
                component.applied = False
            components.append(ScoreComponent(
                code=ScoreCode.SPEC_MISMATCH,
                points=SPEC_MISMATCH_SCORE,
                detail={"gauge": machine.gauge, "diameter": machine.diameter},
            ))

    free_in = days_until_free(machine, order.fabric, fabric_definitions, config)
    rate = resolve_rate(order.fabric, machine.id, fabric_definitions, machine.fallback_rate, config)
    run_days = math.ceil(order.open_quantity / rate) if order.open_quantity > 0 else 0

    if compatible:
        components.append(ScoreComponent(
            code=ScoreCode.AVAILABILITY,
            points=AVAILABILITY_BASE - min(free_in * AVAILABILITY_POINTS_PER_DAY, AVAILABILITY_MAX_PENALTY),
            detail={"days_until_free": free_in},
        ))

        current_match = same_name(machine.fabric, order.fabric)
        if current_match:
            components.append(ScoreComponent(
                code=ScoreCode.CURRENT_FABRIC,
                points=CURRENT_FABRIC_POINTS,
            ))
        elif same_name(_last_queued_fabric(machine), order.fabric):
            components.append(ScoreComponent(
                code=ScoreCode.LAST_QUEUED_FABRIC,
                points=LAST_QUEUED_FABRIC_POINTS,
            ))

        if current_match and not machine.queue:
            components.append(ScoreComponent(
                code=ScoreCode.IMMEDIATE_CONTINUITY,
                points=IMMEDIATE_CONTINUITY_POINTS,
            ))

        client = customer_name or order.customer
        if same_name(machine.client, client):
            components.append(ScoreComponent(
                code=ScoreCode.SAME_CLIENT,
                points=SAME_CLIENT_POINTS,
                detail={"client": machine.client},
            ))

    score = sum(c.points for c in components if c.applied)
    if not compatible:
        score = min(score, INCOMPATIBLE_MAX_SCORE)

    return Recommendation(
        machine_id=machine.id,
        machine_name=machine.name,
        machine_type=machine.type,
        score=score,
        is_compatible=compatible,
        components=components,
        reasons=[format_reason(c) for c in components],
        days_until_free=free_in,
        projected_finish_date=add_days(today, free_in),
        resolved_daily_rate=rate,
        estimated_completion_date=add_days(today, free_in + run_days),
    )


def recommend(
    order: Order,
    machines: Iterable[Machine],
    fabric_definitions: Iterable[FabricDefinition],
    customer_name: Optional[str] = None,
    today: Optional[date] = None,
    config: Optional[SchedulingConfig] = None
) -> list[Recommendation]:
    """
    Rank every machine for an order, best first.

    Never raises. Ties keep the input machine order.

    Args:
        order: Order to place
        machines: Fleet snapshot
        fabric_definitions: Fabric catalog
        customer_name: Client name if it differs from order.customer
        today: Reference date
        config: Scheduling defaults

    Returns:
        Recommendations sorted by score descending
    """
    machines = list(machines)
    fabric_definitions = list(fabric_definitions)
    context = build_compatibility_context(order.fabric, machines, fabric_definitions)

    recommendations = [
        score_machine(machine, order, context, fabric_definitions, customer_name, today, config)
        for machine in machines
    ]
    recommendations.sort(key=lambda r: r.score, reverse=True)

    logger.debug(
        "machines_scored",
        order_id=order.id,
        fabric_found=context.fabric is not None,
        machines=len(recommendations),
        compatible=sum(1 for r in recommendations if r.is_compatible)
    )

    return recommendations


# ===================
# PRESENTATION
# ===================

def format_reason(component: ScoreComponent) -> str:
    """Display text for a score component."""
    code = component.code
    points = f"{component.points:+d}"

    if code == ScoreCode.PROVEN_HISTORY:
        text = f"History: proven match ({points})"
    elif code == ScoreCode.GROUP_MATCH:
        text = f"History: group match {component.detail.get('group')} ({points})"
    elif code == ScoreCode.NOT_IN_HISTORY:
        text = f"History: not in proven history ({points})"
    elif code == ScoreCode.SPEC_MISMATCH:
        text = f"Specs: gauge/diameter mismatch ({points})"
    elif code == ScoreCode.AVAILABILITY:
        days = component.detail.get("days_until_free", 0)
        text = f"Available now ({points})" if days <= 0 else f"Free in {days} days ({points})"
    elif code == ScoreCode.CURRENT_FABRIC:
        text = f"Continuity: already running this fabric ({points})"
    elif code == ScoreCode.LAST_QUEUED_FABRIC:
        text = f"Continuity: queue ends with this fabric ({points})"
    elif code == ScoreCode.IMMEDIATE_CONTINUITY:
        text = f"Continuity: can follow current job directly ({points})"
    elif code == ScoreCode.SAME_CLIENT:
        text = f"Same client ({points})"
    else:
        text = f"{code.value} ({points})"

    if not component.applied:
        text += " [overridden]"
    return text


class MachineRecommendationService:
    """
    Loads the order, fleet and catalog and ranks machines for the order.
    """

    def __init__(self):
        self.machine_service = get_machine_service()
        self.fabric_service = get_fabric_service()
        self.order_service = get_order_service()
        self.config = get_scheduling_config()

    def recommend_for_order(
        self,
        order_id: str,
        customer_name: Optional[str] = None,
        today: Optional[date] = None
    ) -> MachineRecommendations:
        """
        Rank machines for an order.

        Args:
            order_id: Order ID
            customer_name: Override for the order's customer

        Returns:
            MachineRecommendations with the top compatible machine selected

        Raises:
            OrderNotFoundError: If order doesn't exist
        """
        logger.info("generating_recommendations", order_id=order_id)

        order = self.order_service.get_by_id(order_id)
        machines = self.machine_service.get_all()
        fabrics = self.fabric_service.get_all()

        context = build_compatibility_context(order.fabric, machines, fabrics)
        recommendations = recommend(order, machines, fabrics, customer_name, today, self.config)

        selected = None
        if recommendations and recommendations[0].is_compatible:
            selected = recommendations[0].machine_id

        compatible_count = sum(1 for r in recommendations if r.is_compatible)

        logger.info(
            "recommendations_generated",
            order_id=order_id,
            fabric=order.fabric,
            fabric_found=context.fabric is not None,
            machines=len(recommendations),
            compatible=compatible_count,
            selected_machine_id=selected
        )

        return MachineRecommendations(
            order_id=order.id,
            fabric=context.fabric.name if context.fabric else order.fabric,
            customer=customer_name or order.customer,
            quantity=order.open_quantity,
            fabric_found=context.fabric is not None,
            proven_machines=context.proven_machines,
            history_groups=context.history_groups,
            allowed_specs=context.allowed_specs,
            recommendations=recommendations,
            compatible_count=compatible_count,
            selected_machine_id=selected,
        )


# Singleton instance for convenience
_machine_recommendation_service: Optional[MachineRecommendationService] = None

def get_machine_recommendation_service() -> MachineRecommendationService:
    """Get or create MachineRecommendationService instance."""
    global _machine_recommendation_service
    if _machine_recommendation_service is None:
        _machine_recommendation_service = MachineRecommendationService()
    return _machine_recommendation_service
