"""Unit conversion and display formatting.

This module is the single source of truth for unit conversion.
All other modules should import from here instead of defining their own.
"""

import math
import re
from typing import Any

from ramp_fitment.core.enums import UnitSystem
from ramp_fitment.models.inputs import (
    AdvancedFlowInput,
    MotorcycleMeasurements,
    TruckMeasurements,
)

INCHES_TO_CM = 2.54
CM_TO_INCHES = 1 / INCHES_TO_CM
LBS_TO_KG = 0.453592
KG_TO_LBS = 1 / LBS_TO_KG

_FEET_INCHES = re.compile(
    r"^\s*(?:(?P<feet>\d+(?:\.\d+)?)\s*(?:'|ft|feet))?\s*"
    r"(?:(?P<inches>\d+(?:\.\d+)?)\s*(?:\"|in|inches)?)?\s*$"
)


def safe_float(val: Any, default: float = 0.0) -> float:
    """Safely convert a value to float.

    Args:
        val: Value to convert (can be str, int, float, None, etc.)
        default: Value to return if conversion fails

    Returns:
        Converted float or default value

    Examples:
        >>> safe_float("3.14")
        3.14
        >>> safe_float(None)
        0.0
        >>> safe_float("invalid", default=-1.0)
        -1.0
    """
    if val is None or val == "":
        return default
    try:
        return float(val)
    except (ValueError, TypeError):
        return default


def inches_to_cm(inches: float) -> float:
    return inches * INCHES_TO_CM


def cm_to_inches(cm: float) -> float:
    return cm * CM_TO_INCHES


def lbs_to_kg(lbs: float) -> float:
    return lbs * LBS_TO_KG


def kg_to_lbs(kg: float) -> float:
    return kg * KG_TO_LBS


def degrees_to_radians(degrees: float) -> float:
    return math.radians(degrees)


def radians_to_degrees(radians: float) -> float:
    return math.degrees(radians)


def parse_feet_inches(value: str) -> float | None:
    """Parse a length written in feet and/or inches into inches.

    Examples:
        >>> parse_feet_inches("6' 5\\"")
        77.0
        >>> parse_feet_inches("8ft")
        96.0
        >>> parse_feet_inches("78")
        78.0
        >>> parse_feet_inches("tall") is None
        True
    """
    if not value or not value.strip():
        return None
    m = _FEET_INCHES.match(value)
    if not m or (m.group("feet") is None and m.group("inches") is None):
        return None
    feet = float(m.group("feet") or 0)
    inches = float(m.group("inches") or 0)
    return feet * 12 + inches


def format_feet_inches(inches: float) -> str:
    """Format inches as feet and inches, e.g. 77 -> 6' 5\"."""
    feet = int(inches // 12)
    remainder = round(inches - feet * 12, 1)
    if remainder == 12:
        feet, remainder = feet + 1, 0
    return f"{feet}' {remainder:g}\""


def truck_to_imperial(truck: TruckMeasurements, unit_system: UnitSystem) -> TruckMeasurements:
    if unit_system == UnitSystem.IMPERIAL:
        return truck
    return truck.model_copy(
        update={
            "bed_length_closed": cm_to_inches(truck.bed_length_closed),
            "bed_length_with_tailgate": cm_to_inches(truck.bed_length_with_tailgate),
            "tailgate_height": cm_to_inches(truck.tailgate_height),
        }
    )


def motorcycle_to_imperial(
    moto: MotorcycleMeasurements, unit_system: UnitSystem
) -> MotorcycleMeasurements:
    if unit_system == UnitSystem.IMPERIAL:
        return moto
    return moto.model_copy(
        update={
            "total_length": cm_to_inches(moto.total_length),
            "wheelbase": cm_to_inches(moto.wheelbase),
            "weight": kg_to_lbs(moto.weight),
        }
    )


def normalize_to_imperial(fitment_input: AdvancedFlowInput) -> AdvancedFlowInput:
    """Return the input in inches and pounds; imperial input is returned as-is."""
    if fitment_input.unit_system == UnitSystem.IMPERIAL:
        return fitment_input
    return fitment_input.model_copy(
        update={
            "truck": truck_to_imperial(fitment_input.truck, fitment_input.unit_system),
            "motorcycle": motorcycle_to_imperial(
                fitment_input.motorcycle, fitment_input.unit_system
            ),
            "unit_system": UnitSystem.IMPERIAL,
        }
    )


# ---------------------------------------------------------------------------
# Display formatting
# ---------------------------------------------------------------------------


def format_currency(amount: float, currency: str = "USD") -> str:
    symbol = "$" if currency == "USD" else f"{currency} "
    return f"{symbol}{amount:,.2f}"


def format_length(inches: float, unit_system: UnitSystem = UnitSystem.IMPERIAL) -> str:
    if unit_system == UnitSystem.METRIC:
        return f"{inches_to_cm(inches):.1f} cm"
    return f'{inches:.1f}"'


def format_weight(lbs: float, unit_system: UnitSystem = UnitSystem.IMPERIAL) -> str:
    if unit_system == UnitSystem.METRIC:
        return f"{lbs_to_kg(lbs):.1f} kg"
    return f"{lbs:.0f} lbs"


def format_angle(degrees: float) -> str:
    return f"{degrees:.1f}°"


def format_percent(rate: float) -> str:
    """Format a fractional rate, e.g. 0.089 -> 8.9%."""
    return f"{rate * 100:.1f}%"
