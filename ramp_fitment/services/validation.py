"""Input validation for configurator measurements.

Runs before any fitment rule. Problems are reported per field in a
``ValidationResult``; nothing here raises for bad input.
"""

import logging

from ramp_fitment.core.enums import BedLengthAnswer
from ramp_fitment.models.config import MeasurementRange
from ramp_fitment.models.fitment import ValidationResult
from ramp_fitment.models.inputs import (
    AdvancedFlowInput,
    MotorcycleMeasurements,
    QuickFlowInput,
    TruckMeasurements,
)
from ramp_fitment.services.bed_length import determine_tonneau_penalty
from ramp_fitment.services.config_store import get_engine_settings
from ramp_fitment.utils.converters import normalize_to_imperial

logger = logging.getLogger(__name__)

# model field -> (measurement range key, label)
TRUCK_FIELDS: dict[str, tuple[str, str]] = {
    "bedLengthClosed": ("bedLengthClosed", "Bed length"),
    "bedLengthWithTailgate": ("bedLengthWithTailgate", "Bed length with tailgate open"),
    "tailgateHeight": ("tailgateHeight", "Tailgate height"),
}

MOTORCYCLE_FIELDS: dict[str, tuple[str, str]] = {
    "totalLength": ("motorcycleLength", "Motorcycle length"),
    "wheelbase": ("motorcycleWheelbase", "Wheelbase"),
    "weight": ("motorcycleWeight", "Motorcycle weight"),
}


def _range_error(label: str, value: float, rng: MeasurementRange) -> str | None:
    if value < rng.min or value > rng.max:
        return f"{label} must be between {rng.min:g} and {rng.max:g} {rng.unit}"
    return None


def validate_measurement_field(range_key: str, value: float | None, label: str = "") -> str | None:
    """Check one value against its configured range; returns an error or None."""
    label = label or range_key
    if value is None:
        return f"{label} is required"
    rng = get_engine_settings().measurement_ranges.get(range_key)
    if rng is None:
        logger.warning("No measurement range configured for %s", range_key)
        return None
    if value <= 0:
        return f"{label} must be greater than zero"
    return _range_error(label, value, rng)


def validate_truck_measurements(truck: TruckMeasurements) -> ValidationResult:
    """Validate imperial truck measurements."""
    errors: dict[str, str] = {}
    warnings: list[str] = []
    values = truck.model_dump(by_alias=True)

    for field, (range_key, label) in TRUCK_FIELDS.items():
        error = validate_measurement_field(range_key, values[field], label)
        if error:
            errors[field] = error

    if (
        "bedLengthWithTailgate" not in errors
        and truck.bed_length_with_tailgate < truck.bed_length_closed
    ):
        errors["bedLengthWithTailgate"] = (
            "Bed length with tailgate open must be at least the closed bed length"
        )

    if truck.has_tonneau:
        if truck.tonneau_type is None:
            errors["tonneauType"] = "Select your tonneau cover type"
        elif truck.tonneau_type.is_roll_up and truck.roll_direction is None:
            errors["rollDirection"] = "Select which way your roll-up cover rolls"

    short_bed = get_engine_settings().advisories.short_bed_warning_inches
    if "bedLengthClosed" not in errors and truck.bed_length_closed < short_bed:
        warnings.append(
            f'Bed length under {short_bed:g}" is unusually short - please double-check'
        )

    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)


def validate_motorcycle_measurements(moto: MotorcycleMeasurements) -> ValidationResult:
    """Validate imperial motorcycle measurements."""
    settings = get_engine_settings()
    errors: dict[str, str] = {}
    warnings: list[str] = []
    values = moto.model_dump(by_alias=True)

    for field, (range_key, label) in MOTORCYCLE_FIELDS.items():
        error = validate_measurement_field(range_key, values[field], label)
        if error:
            errors[field] = error

    max_weight = settings.measurement_ranges["motorcycleWeight"].max
    if moto.weight > max_weight:
        errors["weight"] = (
            f"Motorcycle weight exceeds {max_weight:g} lbs - contact us about custom solutions"
        )

    if "wheelbase" not in errors and "totalLength" not in errors:
        if moto.wheelbase >= moto.total_length:
            errors["wheelbase"] = "Wheelbase must be shorter than the motorcycle's total length"

    heavy = settings.advisories.heavy_motorcycle_lbs
    if "weight" not in errors and moto.weight > heavy:
        warnings.append(
            f"Motorcycles over {heavy:g} lbs should be loaded with a helper"
        )

    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)


def validate_quick_flow_input(fitment_input: QuickFlowInput) -> ValidationResult:
    errors: dict[str, str] = {}
    warnings: list[str] = []

    if fitment_input.has_tonneau:
        if fitment_input.tonneau_type is None:
            errors["tonneauType"] = "Select your tonneau cover type"
        elif fitment_input.tonneau_type.is_roll_up and fitment_input.roll_direction is None:
            errors["rollDirection"] = "Select which way your roll-up cover rolls"

    if fitment_input.bed_length == BedLengthAnswer.UNSURE:
        warnings.append(
            "Bed length unknown - the recommendation will be conservative"
        )
    if fitment_input.motorcycle_loaded_when_closed and not fitment_input.tailgate_must_close:
        warnings.append("Loaded tailgate closure ignored because the tailgate may stay open")

    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)


def validate_advanced_flow_input(fitment_input: AdvancedFlowInput) -> ValidationResult:
    """Validate a full precise-flow input; error keys are prefixed by section."""
    normalized = normalize_to_imperial(fitment_input)
    truck_result = validate_truck_measurements(normalized.truck)
    moto_result = validate_motorcycle_measurements(normalized.motorcycle)

    errors = {f"truck.{k}": v for k, v in truck_result.errors.items()}
    errors.update({f"motorcycle.{k}": v for k, v in moto_result.errors.items()})
    warnings = truck_result.warnings + moto_result.warnings

    if (
        not errors
        and normalized.tailgate_must_close
        and normalized.motorcycle_loaded_when_closed
    ):
        truck = normalized.truck
        penalty = determine_tonneau_penalty(
            truck.has_tonneau, truck.tonneau_type, truck.roll_direction
        )
        buffer = get_engine_settings().tailgate_close_buffer_inches
        if normalized.motorcycle.total_length + buffer > truck.bed_length_closed - penalty:
            warnings.append(
                "Motorcycle appears too long to close the tailgate with it loaded"
            )

    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)
