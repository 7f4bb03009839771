"""Advanced (measurement) configurator flow.

A fixed sequence of steps, each gating forward navigation on its own
validation::

    vehicle -> truck-measurements -> motorcycle-measurements
            -> tailgate-requirements -> review -> result

State is an immutable ``AdvancedFlowState``. Field setters return a new
state with the affected step re-validated. Only leaving ``review`` runs the
precise evaluation and builds a quote.
"""

import logging
from typing import Any

from pydantic import ValidationError

from ramp_fitment.core.enums import TonneauType, UnitSystem, VehicleType
from ramp_fitment.models.fitment import ValidationResult
from ramp_fitment.models.flows import AdvancedFlowState
from ramp_fitment.models.inputs import (
    AdvancedFlowInput,
    MotorcycleMeasurements,
    TruckMeasurements,
)
from ramp_fitment.services.quote import build_quote
from ramp_fitment.services.ramp_selector import evaluate_advanced_flow
from ramp_fitment.services.validation import (
    validate_advanced_flow_input,
    validate_motorcycle_measurements,
    validate_truck_measurements,
)
from ramp_fitment.utils.converters import (
    motorcycle_to_imperial,
    safe_float,
    truck_to_imperial,
)

logger = logging.getLogger(__name__)

VEHICLE = "vehicle"
TRUCK = "truck-measurements"
MOTORCYCLE = "motorcycle-measurements"
TAILGATE = "tailgate-requirements"
REVIEW = "review"
RESULT = "result"

STEPS: tuple[str, ...] = (VEHICLE, TRUCK, MOTORCYCLE, TAILGATE, REVIEW)

STEP_TITLES: dict[str, str] = {
    VEHICLE: "Vehicle Type",
    TRUCK: "Truck Measurements",
    MOTORCYCLE: "Motorcycle Measurements",
    TAILGATE: "Tailgate & Units",
    REVIEW: "Review",
    RESULT: "Your Recommendation",
}

STEP_DESCRIPTIONS: dict[str, str] = {
    VEHICLE: "Tell us what you're hauling with",
    TRUCK: "Measure your bed, tailgate and tonneau cover",
    MOTORCYCLE: "Length, wheelbase and weight of your motorcycle",
    TAILGATE: "Does your tailgate need to close?",
    REVIEW: "Check your measurements before we calculate",
    RESULT: "Ramp, accessories and quote",
}

TRUCK_NUMERIC_FIELDS = ("bedLengthClosed", "bedLengthWithTailgate", "tailgateHeight")
TRUCK_FIELDS = TRUCK_NUMERIC_FIELDS + ("hasTonneau", "tonneauType", "rollDirection")
MOTORCYCLE_FIELDS = ("totalLength", "wheelbase", "weight")

SUPPORTED_VEHICLES = (VehicleType.PICKUP,)


# =============================================================================
# Model assembly
# =============================================================================


def _missing(values: dict[str, Any], fields: tuple[str, ...]) -> dict[str, str]:
    return {f: f"{f} is required" for f in fields if values.get(f) in (None, "")}


def _errors_from_pydantic(exc: ValidationError) -> dict[str, str]:
    return {str(err["loc"][0]) if err["loc"] else "_": err["msg"] for err in exc.errors()}


def build_truck(state: AdvancedFlowState) -> tuple[TruckMeasurements | None, dict[str, str]]:
    """Build imperial truck measurements from a state, or field errors."""
    errors = _missing(state.truck, TRUCK_NUMERIC_FIELDS)
    if errors:
        return None, errors
    try:
        truck = TruckMeasurements.model_validate(state.truck)
    except ValidationError as e:
        return None, _errors_from_pydantic(e)
    return truck_to_imperial(truck, state.unit_system), {}


def build_motorcycle(
    state: AdvancedFlowState,
) -> tuple[MotorcycleMeasurements | None, dict[str, str]]:
    errors = _missing(state.motorcycle, MOTORCYCLE_FIELDS)
    if errors:
        return None, errors
    try:
        moto = MotorcycleMeasurements.model_validate(state.motorcycle)
    except ValidationError as e:
        return None, _errors_from_pydantic(e)
    return motorcycle_to_imperial(moto, state.unit_system), {}


def to_advanced_input(state: AdvancedFlowState) -> AdvancedFlowInput | None:
    """The evaluation input described by a state, in the state's units."""
    try:
        return AdvancedFlowInput(
            truck=TruckMeasurements.model_validate(state.truck),
            motorcycle=MotorcycleMeasurements.model_validate(state.motorcycle),
            tailgate_must_close=state.tailgate_must_close,
            motorcycle_loaded_when_closed=state.motorcycle_loaded_when_closed,
            unit_system=state.unit_system,
        )
    except ValidationError:
        return None


# =============================================================================
# Validation
# =============================================================================


def validate_step(state: AdvancedFlowState, step: str) -> ValidationResult:
    """Validate one step of a state."""
    if step == VEHICLE:
        if state.vehicle_type is None:
            return ValidationResult(is_valid=False, errors={"vehicleType": "Select a vehicle type"})
        if state.vehicle_type not in SUPPORTED_VEHICLES:
            return ValidationResult(
                is_valid=False,
                errors={"vehicleType": "Ramp fitment is currently available for pickup trucks only"},
            )
        return ValidationResult(is_valid=True)

    if step == TRUCK:
        truck, errors = build_truck(state)
        if truck is None:
            return ValidationResult(is_valid=False, errors=errors)
        return validate_truck_measurements(truck)

    if step == MOTORCYCLE:
        moto, errors = build_motorcycle(state)
        if moto is None:
            return ValidationResult(is_valid=False, errors=errors)
        return validate_motorcycle_measurements(moto)

    if step == TAILGATE:
        if state.motorcycle_loaded_when_closed and not state.tailgate_must_close:
            return ValidationResult(
                is_valid=False,
                errors={"motorcycleLoadedWhenClosed": "Only applies when the tailgate must close"},
            )
        return ValidationResult(is_valid=True)

    if step == REVIEW:
        errors: dict[str, str] = {}
        warnings: list[str] = []
        for earlier in STEPS[:-1]:
            result = validate_step(state, earlier)
            errors.update({f"{earlier}.{k}": v for k, v in result.errors.items()})
            warnings.extend(result.warnings)
        return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)

    raise ValueError(f"Unknown step: {step}")


def _touch(state: AdvancedFlowState, name: str) -> tuple[str, ...]:
    if name in state.touched_fields:
        return state.touched_fields
    return state.touched_fields + (name,)


def _revalidate(state: AdvancedFlowState, step: str, **update: Any) -> AdvancedFlowState:
    updated = state.model_copy(update=update)
    result = validate_step(updated, step)
    return updated.model_copy(
        update={
            "step_validation": {**updated.step_validation, step: result.is_valid},
            "errors": result.errors,
            "warnings": result.warnings,
            "result": None,
            "quote": None,
        }
    )


# =============================================================================
# Field setters
# =============================================================================


def _parse_enum(enum_cls: Any, value: Any) -> Any:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        return enum_cls.from_string(value)
    return None


def _known_fields(values: Any, fields: tuple[str, ...]) -> dict[str, Any]:
    if not isinstance(values, dict):
        return {}
    return {k: v for k, v in values.items() if k in fields}


def create_advanced_flow_state(prefill: dict[str, Any] | None = None) -> AdvancedFlowState:
    """Initial state, optionally pre-filled (e.g. from a flow-sync record).

    Unknown fields and unparseable vehicle or unit values are dropped, so a
    bad prefill leaves the affected step unanswered instead of raising.
    """
    prefill = prefill or {}
    state = AdvancedFlowState(
        vehicle_type=_parse_enum(VehicleType, prefill.get("vehicleType")),
        truck=_known_fields(prefill.get("truck"), TRUCK_FIELDS),
        motorcycle=_known_fields(prefill.get("motorcycle"), MOTORCYCLE_FIELDS),
        tailgate_must_close=prefill.get("tailgateMustClose") is True,
        motorcycle_loaded_when_closed=prefill.get("motorcycleLoadedWhenClosed") is True,
        unit_system=_parse_enum(UnitSystem, prefill.get("unitSystem")) or UnitSystem.IMPERIAL,
    )
    validation = {step: validate_step(state, step).is_valid for step in STEPS[:-1]}
    return state.model_copy(update={"step_validation": validation})


def set_vehicle_type(state: AdvancedFlowState, vehicle_type: VehicleType | str) -> AdvancedFlowState:
    return _revalidate(state, VEHICLE, vehicle_type=VehicleType(vehicle_type))


def set_truck_field(state: AdvancedFlowState, field: str, value: Any) -> AdvancedFlowState:
    """Set one truck field; clearing a tonneau answer clears what depended on it."""
    if field not in TRUCK_FIELDS:
        raise ValueError(f"Unknown truck field: {field}")

    truck = dict(state.truck)
    if field in TRUCK_NUMERIC_FIELDS:
        truck[field] = safe_float(value, default=0.0) if value not in (None, "") else None
    else:
        truck[field] = value

    if field == "hasTonneau" and not value:
        truck.pop("tonneauType", None)
        truck.pop("rollDirection", None)
    if field == "tonneauType":
        tonneau = TonneauType.from_string(value) if isinstance(value, str) else value
        if tonneau is None or not tonneau.is_roll_up:
            truck.pop("rollDirection", None)

    return _revalidate(state, TRUCK, truck=truck, touched_fields=_touch(state, f"truck.{field}"))


def set_motorcycle_field(state: AdvancedFlowState, field: str, value: Any) -> AdvancedFlowState:
    if field not in MOTORCYCLE_FIELDS:
        raise ValueError(f"Unknown motorcycle field: {field}")
    motorcycle = {**state.motorcycle, field: safe_float(value) if value not in (None, "") else None}
    return _revalidate(
        state, MOTORCYCLE, motorcycle=motorcycle, touched_fields=_touch(state, f"motorcycle.{field}")
    )


def set_tailgate_requirements(
    state: AdvancedFlowState, must_close: bool, loaded: bool = False
) -> AdvancedFlowState:
    return _revalidate(
        state,
        TAILGATE,
        tailgate_must_close=must_close,
        motorcycle_loaded_when_closed=loaded and must_close,
    )


def set_unit_system(state: AdvancedFlowState, unit_system: UnitSystem | str) -> AdvancedFlowState:
    """Switch units. Entered values are kept as typed, not converted."""
    updated = state.model_copy(update={"unit_system": UnitSystem(unit_system)})
    validation = {step: validate_step(updated, step).is_valid for step in STEPS[:-1]}
    return updated.model_copy(update={"step_validation": validation, "result": None, "quote": None})


# =============================================================================
# Navigation
# =============================================================================


def next_step(state: AdvancedFlowState) -> AdvancedFlowState:
    """Advance if the current step validates; leaving review evaluates."""
    if state.step == RESULT:
        return state
    validation = validate_step(state, state.step)
    if not validation.is_valid:
        logger.debug("Advanced flow blocked at %s: %s", state.step, validation.errors)
        return state.model_copy(
            update={
                "errors": validation.errors,
                "warnings": validation.warnings,
                "step_validation": {**state.step_validation, state.step: False},
            }
        )
    if state.step == REVIEW:
        return evaluate_and_complete(state)

    following = STEPS[STEPS.index(state.step) + 1]
    return state.model_copy(
        update={
            "step": following,
            "errors": {},
            "warnings": validation.warnings,
            "step_validation": {**state.step_validation, state.step: True},
        }
    )


def previous_step(state: AdvancedFlowState) -> AdvancedFlowState:
    if state.step == RESULT:
        return state.model_copy(update={"step": REVIEW, "errors": {}})
    index = STEPS.index(state.step)
    if index == 0:
        return state
    return state.model_copy(update={"step": STEPS[index - 1], "errors": {}})


def go_to_step(state: AdvancedFlowState, step: str) -> AdvancedFlowState:
    """Jump to a step; forward jumps require every step before it to be valid."""
    if step not in STEPS:
        raise ValueError(f"Unknown step: {step}")
    target = STEPS.index(step)
    for earlier in STEPS[:target]:
        if not validate_step(state, earlier).is_valid:
            return state
    return state.model_copy(update={"step": step, "errors": {}})


def evaluate_and_complete(state: AdvancedFlowState) -> AdvancedFlowState:
    """Run the precise evaluation and build a quote."""
    fitment_input = to_advanced_input(state)
    if fitment_input is None:
        return state.model_copy(update={"errors": validate_step(state, REVIEW).errors})

    validation = validate_advanced_flow_input(fitment_input)
    if not validation.is_valid:
        return state.model_copy(
            update={"errors": validation.errors, "warnings": validation.warnings}
        )

    result = evaluate_advanced_flow(fitment_input)
    quote = build_quote(result) if result.success else None
    return state.model_copy(
        update={
            "step": RESULT,
            "errors": {},
            "warnings": validation.warnings,
            "result": result,
            "quote": quote,
        }
    )


def get_progress(state: AdvancedFlowState) -> dict[str, Any]:
    index = len(STEPS) if state.step == RESULT else STEPS.index(state.step)
    return {
        "step": state.step,
        "index": index,
        "total": len(STEPS),
        "percent": round(index / len(STEPS) * 100),
        "title": STEP_TITLES[state.step],
        "description": STEP_DESCRIPTIONS[state.step],
    }
