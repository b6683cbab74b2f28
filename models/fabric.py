"""
Fabric catalog schemas.

A fabric definition carries its production rates (default plus
per-machine overrides), the machines it has been produced on before
(proven history) and optional technical specs.
"""

from pydantic import Field, field_validator, model_validator
from typing import Any, Optional

from models.base import BaseSchema
from utils.number_utils import to_number, to_int
from utils.text_utils import parse_fabric_name


class FabricSpecs(BaseSchema):
    """Machine specs a fabric requires."""

    gauge: Optional[str] = None
    diameter: Optional[str] = None
    needles: Optional[int] = None
    type: Optional[str] = Field(None, description="Single Jersey, Double Jersey, ...")

    @field_validator("gauge", "diameter", mode="before")
    @classmethod
    def coerce_spec(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        text = str(v).strip()
        if text.endswith(".0"):
            text = text[:-2]
        return text or None

    @field_validator("needles", mode="before")
    @classmethod
    def coerce_needles(cls, v: Any) -> Optional[int]:
        return to_int(v) or None

    @property
    def is_empty(self) -> bool:
        return not self.gauge and not self.diameter


class FabricDefinition(BaseSchema):
    """Fabric catalog entry."""

    id: Optional[str] = None
    name: str
    code: Optional[str] = None
    short_name: Optional[str] = None

    default_daily_rate: Optional[float] = Field(
        None,
        description="Typical kg/day for this fabric on any machine"
    )
    machine_rate_overrides: dict[str, float] = Field(
        default_factory=dict,
        description="machine id → kg/day for machines that deviate from the default"
    )
    compatible_machines: list[str] = Field(
        default_factory=list,
        description="Machine names this fabric has been produced on (proven history)"
    )
    specs: Optional[FabricSpecs] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)

    @field_validator("default_daily_rate", mode="before")
    @classmethod
    def coerce_rate(cls, v: Any) -> Optional[float]:
        return to_number(v) or None

    @field_validator("machine_rate_overrides", mode="before")
    @classmethod
    def coerce_overrides(cls, v: Any) -> dict:
        """Keys are machine ids as text; unusable rates are dropped."""
        if not isinstance(v, dict):
            return {}
        overrides = {}
        for machine_id, rate in v.items():
            number = to_number(rate)
            if number > 0:
                overrides[str(machine_id)] = number
        return overrides

    @field_validator("compatible_machines", mode="before")
    @classmethod
    def coerce_machines(cls, v: Any) -> list:
        if not isinstance(v, list):
            return []
        return [str(name) for name in v if name is not None and str(name).strip()]

    @model_validator(mode="before")
    @classmethod
    def derive_short_name(cls, data: Any) -> Any:
        """Fill code/short_name from a "[CODE] name" style catalog name."""
        if not isinstance(data, dict):
            return data
        code, short_name = parse_fabric_name(data.get("name"))
        if not data.get("code") and code:
            data = {**data, "code": code}
        if not data.get("short_name") and short_name:
            data = {**data, "short_name": short_name}
        return data
