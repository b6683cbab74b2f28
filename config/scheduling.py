"""
Scheduling constants.

Named, overridable defaults for production rates, changeover durations
and the dyehouse queue checkpoint. Values come from Settings so they can
be tuned per deployment; tests build their own SchedulingConfig.
"""

from dataclasses import dataclass
from functools import lru_cache

from config.settings import settings


# Fallback production rate (kg/day)
DEFAULT_DAILY_RATE = 100.0

# Changeover days by machine family
CHANGEOVER_DAYS_SINGLE = 2
CHANGEOVER_DAYS_DOUBLE = 4
CHANGEOVER_DAYS_JACQUARD = 4
CHANGEOVER_DAYS_DEFAULT = 2

# Batches past this stage are finished from the queue's point of view
DYEING_REFERENCE_STAGE = "DYEING"


@dataclass(frozen=True)
class SchedulingConfig:
    """Tunable scheduling parameters."""

    default_daily_rate: float = DEFAULT_DAILY_RATE
    changeover_days_single: int = CHANGEOVER_DAYS_SINGLE
    changeover_days_double: int = CHANGEOVER_DAYS_DOUBLE
    changeover_days_jacquard: int = CHANGEOVER_DAYS_JACQUARD
    changeover_days_default: int = CHANGEOVER_DAYS_DEFAULT
    dyeing_reference_stage: str = DYEING_REFERENCE_STAGE


@lru_cache()
def get_scheduling_config() -> SchedulingConfig:
    """
    Build scheduling config from application settings.

    Call get_scheduling_config.cache_clear() after changing settings.
    """
    return SchedulingConfig(
        default_daily_rate=settings.default_daily_rate,
        changeover_days_single=settings.changeover_days_single,
        changeover_days_double=settings.changeover_days_double,
        changeover_days_jacquard=settings.changeover_days_jacquard,
        changeover_days_default=settings.changeover_days_default,
        dyeing_reference_stage=settings.dyeing_reference_stage,
    )
