"""Tailgate engine.

Decides whether a ramp model lets the tailgate close, with or without the
motorcycle loaded. The folding ramp can only close the tailgate after it
has been folded, which is impossible with a motorcycle on it; the
non-folding ramp closes loaded when the motorcycle plus the safety buffer
fits inside the usable bed.
"""

import logging
from typing import Optional

from pydantic import BaseModel

from ramp_fitment.core.enums import RampModelId
from ramp_fitment.services.config_store import (
    get_engine_settings,
    get_message,
    get_ramp_model,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


class TailgateCloseCheck(BaseModel):
    can_close: bool
    requires_tailgate_accessory: bool = False
    requires_folding: bool = False
    margin_inches: Optional[float] = None


class TailgateRequirementResult(BaseModel):
    is_possible: bool
    is_hard_failure: bool = False
    requires_tailgate_accessory: bool = False
    requires_folding: bool = False
    reason: str
    margin_inches: Optional[float] = None


class TailgateRampChoice(BaseModel):
    primary_ramp: Optional[RampModelId] = None
    alternative_ramp: Optional[RampModelId] = None
    is_hard_failure: bool = False
    measurements_needed: bool = False
    reason: str


# ---------------------------------------------------------------------------
# Capability checks
# ---------------------------------------------------------------------------


def supports_tailgate_close(ramp: RampModelId, loaded: bool) -> bool:
    """Catalog capability: can this ramp ever close the tailgate in this state."""
    model = get_ramp_model(ramp)
    return model.can_close_tailgate_loaded if loaded else True


def can_tailgate_close_loaded(
    ramp: RampModelId, motorcycle_length: float, usable_bed_length: float
) -> TailgateCloseCheck:
    """Check tailgate closure with the motorcycle loaded.

    Exact fit (zero margin) counts as closing.
    """
    buffer = get_engine_settings().tailgate_close_buffer_inches
    margin = usable_bed_length - (motorcycle_length + buffer)

    if not supports_tailgate_close(ramp, loaded=True):
        return TailgateCloseCheck(can_close=False, margin_inches=margin)

    if margin >= 0:
        return TailgateCloseCheck(
            can_close=True, requires_tailgate_accessory=True, margin_inches=margin
        )
    return TailgateCloseCheck(can_close=False, margin_inches=margin)


def can_tailgate_close_unloaded(ramp: RampModelId) -> TailgateCloseCheck:
    """Without a motorcycle aboard every ramp allows closure; folding ramps must fold."""
    return TailgateCloseCheck(can_close=True, requires_folding=get_ramp_model(ramp).folds)


# ---------------------------------------------------------------------------
# Requirement validation
# ---------------------------------------------------------------------------


def validate_tailgate_requirement(
    ramp: RampModelId,
    must_close: bool,
    loaded: bool,
    motorcycle_length: float | None = None,
    usable_bed_length: float | None = None,
) -> TailgateRequirementResult:
    """Evaluate a customer's tailgate requirement against one ramp model."""
    name = ramp.value

    if not must_close:
        return TailgateRequirementResult(
            is_possible=True, reason=get_message("tailgate.noRequirement")
        )

    if not loaded:
        check = can_tailgate_close_unloaded(ramp)
        template = "tailgate.foldToClose" if check.requires_folding else "tailgate.closesUnloaded"
        return TailgateRequirementResult(
            is_possible=True,
            requires_folding=check.requires_folding,
            reason=get_message(template, ramp=name),
        )

    if not supports_tailgate_close(ramp, loaded=True):
        return TailgateRequirementResult(
            is_possible=False,
            is_hard_failure=True,
            reason=get_message("tailgate.cannotCloseLoaded", ramp=name),
        )

    if motorcycle_length is None or usable_bed_length is None:
        return TailgateRequirementResult(
            is_possible=False,
            is_hard_failure=False,
            reason=get_message("tailgate.measurementsRequired"),
        )

    check = can_tailgate_close_loaded(ramp, motorcycle_length, usable_bed_length)
    if check.can_close:
        return TailgateRequirementResult(
            is_possible=True,
            requires_tailgate_accessory=True,
            reason=get_message("tailgate.fits", margin=f"{check.margin_inches:.1f}"),
            margin_inches=check.margin_inches,
        )
    return TailgateRequirementResult(
        is_possible=False,
        is_hard_failure=True,
        reason=get_message("tailgate.tooLong"),
        margin_inches=check.margin_inches,
    )


def get_ramp_for_tailgate_requirement(
    must_close: bool,
    loaded: bool,
    motorcycle_length: float | None = None,
    usable_bed_length: float | None = None,
) -> TailgateRampChoice:
    """Pick candidate ramps driven purely by the tailgate requirement.

    With no requirement this engine expresses no preference and both ramp
    fields are None.
    """
    if not must_close:
        return TailgateRampChoice(reason=get_message("tailgate.noRequirement"))

    if not loaded:
        return TailgateRampChoice(
            primary_ramp=RampModelId.AUN250,
            alternative_ramp=RampModelId.AUN210,
            reason=get_message("reasons.unloadedClosure"),
        )

    result = validate_tailgate_requirement(
        RampModelId.AUN210, True, True, motorcycle_length, usable_bed_length
    )
    if result.is_possible:
        return TailgateRampChoice(primary_ramp=RampModelId.AUN210, reason=result.reason)
    if result.is_hard_failure:
        logger.debug(
            "Loaded tailgate closure impossible: margin=%s", result.margin_inches
        )
        return TailgateRampChoice(is_hard_failure=True, reason=result.reason)
    # Measurements missing: still propose the only ramp that can do it
    return TailgateRampChoice(
        primary_ramp=RampModelId.AUN210,
        measurements_needed=True,
        reason=result.reason,
    )


def get_tailgate_notes(ramp: RampModelId, must_close: bool, loaded: bool) -> list[str]:
    """Human guidance for the tailgate requirement; empty with no requirement."""
    if not must_close:
        return []

    model = get_ramp_model(ramp)
    name = ramp.value
    if loaded:
        if not model.can_close_tailgate_loaded:
            return [get_message("tailgate.cannotCloseLoaded", ramp=name)]
        return [
            get_message("tailgate.accessoryRequired"),
            get_message("tailgate.accessoryRemovable"),
        ]
    if model.folds:
        return [get_message("tailgate.foldToClose", ramp=name)]
    return []
