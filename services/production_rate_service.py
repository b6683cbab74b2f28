"""
Production rate resolution.

Which daily rate (kg/day) applies when a given fabric runs on a given
machine. Precedence:

    1. Machine override on the fabric definition
    2. Fabric default rate
    3. Caller's fallback (machine's own rate)

Fabric lookup by name is fuzzy (operators type names by hand) and lives
in find_fabric_definition(); nothing downstream compares names itself.
"""

from typing import Optional, Iterable
import math
import structlog

from config.scheduling import SchedulingConfig, get_scheduling_config
from models.fabric import FabricDefinition
from utils.text_utils import normalize_name

logger = structlog.get_logger(__name__)


def find_fabric_definition(
    fabric_name: Optional[str],
    fabric_definitions: Optional[Iterable[FabricDefinition]]
) -> Optional[FabricDefinition]:
    """
    Find the catalog entry for a fabric name.

    Matching passes (first hit wins):
        1. Exact normalized match on name or short_name
        2. Query contains a definition's short_name or name
        3. A definition's name contains the query

    Empty names never match anything.

    Args:
        fabric_name: Name as written on the order/plan
        fabric_definitions: Fabric catalog

    Returns:
        FabricDefinition or None if nothing matches
    """
    query = normalize_name(fabric_name)
    if not query or not fabric_definitions:
        return None

    candidates = []
    for definition in fabric_definitions:
        name = normalize_name(definition.name)
        short_name = normalize_name(definition.short_name)
        if name or short_name:
            candidates.append((definition, name, short_name))

    # Pass 1: exact
    for definition, name, short_name in candidates:
        if query == name or query == short_name:
            return definition

    # Pass 2: query contains the catalog name
    for definition, name, short_name in candidates:
        if (short_name and short_name in query) or (name and name in query):
            return definition

    # Pass 3: catalog name contains the query
    for definition, name, _ in candidates:
        if name and query in name:
            return definition

    return None


def safe_fallback_rate(
    fallback_rate: Optional[float],
    config: Optional[SchedulingConfig] = None
) -> float:
    """Fallback rate, replaced by the configured default when unusable."""
    config = config or get_scheduling_config()
    try:
        rate = float(fallback_rate)
    except (TypeError, ValueError):
        return config.default_daily_rate
    if not math.isfinite(rate) or rate <= 0:
        return config.default_daily_rate
    return rate


def resolve_rate(
    fabric_name: Optional[str],
    machine_id: Optional[str],
    fabric_definitions: Optional[Iterable[FabricDefinition]],
    fallback_rate: Optional[float],
    config: Optional[SchedulingConfig] = None
) -> float:
    """
    Resolve the daily production rate for a fabric on a machine.

    Never raises and never returns zero or a negative number.

    Args:
        fabric_name: Fabric being produced
        machine_id: Machine producing it
        fabric_definitions: Fabric catalog
        fallback_rate: Rate to use when the catalog has nothing

    Returns:
        Positive rate in kg/day
    """
    fallback = safe_fallback_rate(fallback_rate, config)

    definition = find_fabric_definition(fabric_name, fabric_definitions)
    if definition is None:
        return fallback

    if machine_id is not None:
        override = definition.machine_rate_overrides.get(str(machine_id), 0)
        if override > 0:
            return override

    if definition.default_daily_rate and definition.default_daily_rate > 0:
        return definition.default_daily_rate

    return fallback
