"""Ramp selector: orchestrates the engines into a FitmentResult.

DECISION PRIORITY ORDER:
1. Tailgate closure requirement (can hard-fail)
2. Bed category and usable bed length (tonneau penalty applied)
3. Candidate ramps: tailgate requirement first, then bed category
4. Required and optional accessories per candidate
5. Loading angle (advisory)
6. Tonneau guidance
7. Recommendation assembly and pricing
8. Timestamp and input hash

Two entry points share the orchestration. ``evaluate_quick_flow`` works
from categorical answers and answers conservatively with warnings when it
lacks information. ``evaluate_advanced_flow`` works from exact
measurements and is the only path that can produce a hard failure.
"""

import hashlib
import json
import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel

from ramp_fitment.core.enums import (
    BedCategory,
    BedLengthAnswer,
    FailureKind,
    RampModelId,
    RecommendationType,
    RollDirection,
    TonneauType,
)
from ramp_fitment.core.logging import log_evaluation
from ramp_fitment.models.fitment import (
    CalculatedValues,
    FitmentFailure,
    FitmentResult,
    RampRecommendation,
)
from ramp_fitment.models.inputs import AdvancedFlowInput, QuickFlowInput
from ramp_fitment.services.accessories import (
    calculate_required_accessories_total,
    get_optional_accessories,
    get_required_accessories,
    requires_bed_extension,
)
from ramp_fitment.services.angle import calculate_and_evaluate_angle
from ramp_fitment.services.bed_length import (
    categorize_bed_length,
    determine_tonneau_penalty,
    get_estimated_midpoint,
    get_usable_bed_length,
    is_near_category_boundary,
)
from ramp_fitment.services.config_store import (
    get_accessory,
    get_engine_settings,
    get_message,
    get_ramp_model,
)
from ramp_fitment.services.tailgate import (
    can_tailgate_close_loaded,
    get_ramp_for_tailgate_requirement,
    get_tailgate_notes,
)
from ramp_fitment.utils.converters import normalize_to_imperial

logger = logging.getLogger(__name__)


class _Candidate(BaseModel):
    ramp_id: RampModelId
    type: RecommendationType
    reasons: list[str] = []
    warnings: list[str] = []


# =============================================================================
# Shared helpers
# =============================================================================


def create_input_hash(fitment_input: QuickFlowInput | AdvancedFlowInput) -> str:
    """Stable hash of the input's canonical JSON form."""
    payload = {
        "flow": type(fitment_input).__name__,
        "input": fitment_input.model_dump(mode="json", by_alias=True),
    }
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_tonneau_notes(
    has_tonneau: bool,
    tonneau_type: TonneauType | None = None,
    roll_direction: RollDirection | None = None,
) -> list[str]:
    """Guidance for the customer's tonneau cover; empty without one."""
    if not has_tonneau or tonneau_type is None or tonneau_type == TonneauType.NONE:
        return []

    penalty = f"{get_engine_settings().tonneau_penalty_inches:g}"
    if tonneau_type.is_roll_up:
        if roll_direction == RollDirection.INTO_BED:
            return [get_message("warnings.tonneau.rollsIntoBed", penalty=penalty)]
        if roll_direction == RollDirection.ON_TOP:
            return [get_message("warnings.tonneau.rollsOnTop")]
        return []
    if tonneau_type.is_tri_fold:
        return [get_message("warnings.tonneau.triFold")]
    if tonneau_type == TonneauType.BI_FOLD:
        return [get_message("warnings.tonneau.biFold")]
    if tonneau_type == TonneauType.HINGED:
        return [get_message("warnings.tonneau.hinged")]
    if tonneau_type == TonneauType.RETRACTABLE:
        return [get_message("warnings.tonneau.retractable", penalty=penalty)]
    return [get_message("warnings.tonneau.other", penalty=penalty)]


def _dedupe(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


def _build_recommendation(
    candidate: _Candidate,
    fitment_input: QuickFlowInput | AdvancedFlowInput,
    calculated_values: CalculatedValues,
) -> RampRecommendation:
    model = get_ramp_model(candidate.ramp_id)
    required = get_required_accessories(candidate.ramp_id, fitment_input, calculated_values)
    optional = get_optional_accessories(
        candidate.ramp_id, exclude=[a.accessory_id for a in required]
    )
    tailgate_notes = get_tailgate_notes(
        candidate.ramp_id,
        fitment_input.tailgate_must_close,
        fitment_input.motorcycle_loaded_when_closed,
    )
    return RampRecommendation(
        ramp_id=candidate.ramp_id,
        type=candidate.type,
        name=model.name,
        price=model.price,
        required_accessories=required,
        optional_accessories=optional,
        total_with_required=model.price + calculate_required_accessories_total(required),
        reasons=_dedupe(candidate.reasons),
        warnings=_dedupe(candidate.warnings + tailgate_notes),
    )


def _by_bed_category(
    category: BedCategory, bed_extension_warning: str
) -> tuple[_Candidate, _Candidate]:
    """Candidates when no tailgate requirement applies."""
    if category == BedCategory.LONG:
        return (
            _Candidate(
                ramp_id=RampModelId.AUN210,
                type=RecommendationType.PRIMARY,
                reasons=[get_message("reasons.longBed"), get_message("reasons.noBedExtension")],
            ),
            _Candidate(
                ramp_id=RampModelId.AUN250,
                type=RecommendationType.ALTERNATIVE,
                reasons=[get_message("reasons.alternativeOption")],
                warnings=[get_message(bed_extension_warning)],
            ),
        )

    reason = "reasons.shortBed" if category == BedCategory.SHORT else "reasons.standardBed"
    return (
        _Candidate(
            ramp_id=RampModelId.AUN210,
            type=RecommendationType.PRIMARY,
            reasons=[get_message(reason)],
        ),
        _Candidate(
            ramp_id=RampModelId.AUN250,
            type=RecommendationType.ALTERNATIVE,
            reasons=[get_message("reasons.foldingUpsell")],
        ),
    )


def _by_unloaded_closure() -> tuple[_Candidate, _Candidate]:
    return (
        _Candidate(
            ramp_id=RampModelId.AUN250,
            type=RecommendationType.PRIMARY,
            reasons=[get_message("reasons.unloadedClosure")],
        ),
        _Candidate(
            ramp_id=RampModelId.AUN210,
            type=RecommendationType.ALTERNATIVE,
            reasons=[get_message("tailgate.closesUnloaded", ramp=RampModelId.AUN210.value)],
        ),
    )


def _assemble(
    fitment_input: QuickFlowInput | AdvancedFlowInput,
    flow: str,
    calculated_values: CalculatedValues,
    candidates: list[_Candidate],
    tonneau_notes: list[str],
    angle_warning: str | None = None,
    failure: FitmentFailure | None = None,
) -> FitmentResult:
    recommendations = [
        _build_recommendation(c, fitment_input, calculated_values) for c in candidates
    ]
    result = FitmentResult(
        success=failure is None,
        primary_recommendation=recommendations[0] if recommendations else None,
        alternative_recommendation=recommendations[1] if len(recommendations) > 1 else None,
        failure=failure,
        calculated_values=calculated_values,
        tonneau_notes=tonneau_notes,
        angle_warning=angle_warning,
        timestamp=_now(),
        input_hash=create_input_hash(fitment_input),
    )
    log_evaluation(
        flow,
        result.input_hash,
        result.success,
        result.primary_recommendation.ramp_id.value if result.primary_recommendation else None,
    )
    return result


# =============================================================================
# Coarse path
# =============================================================================


def evaluate_quick_flow(fitment_input: QuickFlowInput) -> FitmentResult:
    """Recommend a ramp from categorical answers.

    Never hard-fails: when the answers cannot settle a question the result
    is a conservative default carrying an explicit warning.
    """
    penalty = determine_tonneau_penalty(
        fitment_input.has_tonneau, fitment_input.tonneau_type, fitment_input.roll_direction
    )
    category = fitment_input.bed_length.to_category()
    midpoint = get_estimated_midpoint(fitment_input.bed_length)
    usable = max(0.0, midpoint - penalty) if midpoint is not None else 0.0

    calculated = CalculatedValues(
        usable_bed_length=usable,
        tonneau_penalty=penalty,
        bed_category=category,
        tailgate_close_with_load_possible=False,  # unknowable without measurements
        exceeds_bed_extension_threshold=False,
    )

    if fitment_input.bed_length == BedLengthAnswer.UNSURE:
        candidates = [
            _Candidate(
                ramp_id=RampModelId.AUN250,
                type=RecommendationType.PRIMARY,
                reasons=[get_message("reasons.unsureBedLength")],
                warnings=[get_message("warnings.usePreciseFlow")],
            )
        ]
    else:
        choice = get_ramp_for_tailgate_requirement(
            fitment_input.tailgate_must_close, fitment_input.motorcycle_loaded_when_closed
        )
        if choice.primary_ramp == RampModelId.AUN210 and choice.measurements_needed:
            warnings = [get_message("warnings.confirmMeasurements")]
            if category != BedCategory.LONG:
                warnings.append(get_message("warnings.bedMayBeTooShort"))
            candidates = [
                _Candidate(
                    ramp_id=RampModelId.AUN210,
                    type=RecommendationType.PRIMARY,
                    reasons=[
                        get_message("reasons.loadedClosureRequiresAUN210"),
                        choice.reason,
                    ],
                    warnings=warnings,
                )
            ]
        elif choice.primary_ramp is not None:
            candidates = list(_by_unloaded_closure())
        else:
            candidates = list(_by_bed_category(category, "warnings.bedExtensionMayBeRequired"))

    notes = get_tonneau_notes(
        fitment_input.has_tonneau, fitment_input.tonneau_type, fitment_input.roll_direction
    )
    return _assemble(fitment_input, "quick", calculated, candidates, notes)


# =============================================================================
# Precise path
# =============================================================================


def _hard_failure(motorcycle_length: float, calculated: CalculatedValues) -> FitmentFailure:
    buffer = get_engine_settings().tailgate_close_buffer_inches
    return FitmentFailure(
        kind=FailureKind.HARD,
        message=get_message("errors.hardFailure.message"),
        suggestion=get_message("errors.hardFailure.suggestion"),
        details=get_message(
            "errors.hardFailure.details",
            motorcycleLength=f"{motorcycle_length:g}",
            buffer=f"{buffer:g}",
            total=f"{motorcycle_length + buffer:g}",
            usableBedLength=f"{calculated.usable_bed_length:.1f}",
        ),
    )


def evaluate_advanced_flow(fitment_input: AdvancedFlowInput) -> FitmentResult:
    """Recommend a ramp from exact measurements.

    Metric input is converted to inches and pounds before any rule runs.
    Input is expected to have passed ``validate_advanced_flow_input``.
    """
    normalized = normalize_to_imperial(fitment_input)
    truck = normalized.truck
    moto = normalized.motorcycle
    settings = get_engine_settings()

    usable, penalty = get_usable_bed_length(
        truck.bed_length_closed, truck.has_tonneau, truck.tonneau_type, truck.roll_direction
    )
    category = categorize_bed_length(truck.bed_length_closed)
    loaded_check = can_tailgate_close_loaded(RampModelId.AUN210, moto.total_length, usable)
    calculated = CalculatedValues(
        usable_bed_length=usable,
        tonneau_penalty=penalty,
        bed_category=category,
        tailgate_close_with_load_possible=loaded_check.can_close,
        exceeds_bed_extension_threshold=(
            truck.bed_length_with_tailgate > settings.beam_extension_threshold_inches
        ),
        required_bed_length_for_load=moto.total_length + settings.tailgate_close_buffer_inches,
    )
    notes = get_tonneau_notes(truck.has_tonneau, truck.tonneau_type, truck.roll_direction)

    # 1. Tailgate requirement
    choice = get_ramp_for_tailgate_requirement(
        normalized.tailgate_must_close,
        normalized.motorcycle_loaded_when_closed,
        moto.total_length,
        usable,
    )
    if choice.is_hard_failure:
        failure = _hard_failure(moto.total_length, calculated)
        return _assemble(normalized, "advanced", calculated, [], notes, failure=failure)

    # 3. Candidates
    if choice.primary_ramp == RampModelId.AUN210:
        candidates = [
            _Candidate(
                ramp_id=RampModelId.AUN210,
                type=RecommendationType.PRIMARY,
                reasons=[get_message("reasons.loadedClosure"), choice.reason],
            )
        ]
    elif choice.primary_ramp is not None:
        candidates = list(_by_unloaded_closure())
    else:
        candidates = list(_by_bed_category(category, "warnings.bedExtensionRequired"))

    for candidate in candidates:
        if (
            candidate.ramp_id == RampModelId.AUN250
            and category != BedCategory.LONG
            and requires_bed_extension(
                candidate.ramp_id, category, truck.bed_length_with_tailgate
            )
        ):
            candidate.reasons.append(
                "4-Beam Extension required (total length exceeds threshold)"
            )

    near, boundary = is_near_category_boundary(truck.bed_length_closed)
    if near:
        candidates[0].warnings.append(
            get_message(
                "warnings.nearBoundary",
                bedLength=f"{truck.bed_length_closed:g}",
                boundary=boundary,
            )
        )

    # 5. Loading angle
    angle_warning = None
    evaluation = calculate_and_evaluate_angle(truck.tailgate_height, usable)
    if evaluation is not None:
        calculated.loading_angle = round(evaluation.angle_degrees, 2)
        angle_warning = evaluation.safety.warning
        if angle_warning and evaluation.suggested_extension:
            ext = get_accessory(evaluation.suggested_extension)
            angle_warning += f" Suggested: {ext.name}."

    return _assemble(normalized, "advanced", calculated, candidates, notes, angle_warning)


# =============================================================================
# Explanation
# =============================================================================


def explain_recommendation(result: FitmentResult) -> Optional[str]:
    """One-line explanation of the primary recommendation."""
    if not result.success or result.primary_recommendation is None:
        return result.failure.message if result.failure else None
    rec = result.primary_recommendation
    if rec.reasons:
        return f"{rec.name}: {rec.reasons[0]}"
    return rec.name
