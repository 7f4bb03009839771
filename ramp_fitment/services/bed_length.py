"""Bed length engine: categorization, tonneau penalty, usable length.

Category edges come from engine settings and are boundary-exact: the short
category is ``[0, shortMax)``, standard is ``[shortMax, standardMax)`` and
long is ``[standardMax, inf)``.
"""

import logging

from ramp_fitment.core.enums import (
    BedCategory,
    BedLengthAnswer,
    RollDirection,
    TonneauType,
)
from ramp_fitment.services.config_store import get_bed_category, get_engine_settings

logger = logging.getLogger(__name__)


# =============================================================================
# Categorization
# =============================================================================


def categorize_bed_length(inches: float) -> BedCategory:
    """Categorize a closed-tailgate bed length."""
    thresholds = get_engine_settings().bed_length_categories
    if inches < thresholds.short_max_inches:
        return BedCategory.SHORT
    if inches < thresholds.standard_max_inches:
        return BedCategory.STANDARD
    return BedCategory.LONG


def get_category_bounds(category: BedCategory) -> tuple[float, float | None]:
    """Return (inclusive min, exclusive max) for a category; max None is open."""
    cat = get_bed_category(category)
    return cat.min_inches, cat.max_inches


def is_in_category(inches: float, category: BedCategory) -> bool:
    return categorize_bed_length(inches) == category


def get_category_display_info(category: BedCategory) -> dict[str, str]:
    cat = get_bed_category(category)
    return {
        "id": cat.id.value,
        "name": cat.name,
        "range": cat.display_range,
    }


def is_near_category_boundary(
    inches: float, tolerance: float | None = None
) -> tuple[bool, str | None]:
    """Check whether a length sits within ``tolerance`` of a category edge.

    Advisory only: callers may surface it as a "double-check" hint, but it
    never changes a fitment outcome.

    Returns:
        (near, boundary) where boundary is "short-standard" or "standard-long"
    """
    settings = get_engine_settings()
    if tolerance is None:
        tolerance = settings.boundary_tolerance_inches
    edges = (
        (settings.bed_length_categories.short_max_inches, "short-standard"),
        (settings.bed_length_categories.standard_max_inches, "standard-long"),
    )
    for edge, name in edges:
        if abs(inches - edge) <= tolerance:
            return True, name
    return False, None


# =============================================================================
# Tonneau penalty and usable length
# =============================================================================


def determine_tonneau_penalty(
    has_tonneau: bool,
    tonneau_type: TonneauType | None = None,
    roll_direction: RollDirection | None = None,
) -> float:
    """Inches of bed length lost to the tonneau cover.

    Roll-up covers only intrude when they roll into the bed. Folding and
    hinged covers lift clear. Retractable canisters and unknown designs are
    assumed to intrude.
    """
    if not has_tonneau or tonneau_type is None or tonneau_type == TonneauType.NONE:
        return 0.0

    penalty = get_engine_settings().tonneau_penalty_inches
    if tonneau_type.is_roll_up:
        return penalty if roll_direction == RollDirection.INTO_BED else 0.0
    if tonneau_type.is_tri_fold or tonneau_type in (TonneauType.BI_FOLD, TonneauType.HINGED):
        return 0.0
    # retractable, other
    return penalty


def calculate_usable_bed_length(bed_length: float, penalty: float) -> float:
    return max(0.0, bed_length - penalty)


def get_usable_bed_length(
    bed_length: float,
    has_tonneau: bool,
    tonneau_type: TonneauType | None = None,
    roll_direction: RollDirection | None = None,
) -> tuple[float, float]:
    """Return (usable bed length, tonneau penalty applied)."""
    penalty = determine_tonneau_penalty(has_tonneau, tonneau_type, roll_direction)
    return calculate_usable_bed_length(bed_length, penalty), penalty


# =============================================================================
# Coarse-flow estimates
# =============================================================================


def estimate_bed_length_from_category(
    answer: BedLengthAnswer,
) -> tuple[float, float | None] | None:
    """Map a categorical answer to its (min, max) inch range; "unsure" is None."""
    category = answer.to_category()
    if category is None:
        return None
    return get_category_bounds(category)


def get_estimated_midpoint(answer: BedLengthAnswer) -> float | None:
    """Midpoint of the answer's range, capping open-ended ranges."""
    bounds = estimate_bed_length_from_category(answer)
    if bounds is None:
        return None
    low, high = bounds
    cap = get_engine_settings().max_estimated_bed_length_inches
    high = cap if high is None else min(high, cap)
    return (low + high) / 2


# =============================================================================
# Validation
# =============================================================================


def is_valid_bed_length(inches: float) -> bool:
    rng = get_engine_settings().measurement_ranges["bedLengthClosed"]
    return rng.min <= inches <= rng.max


def is_valid_total_length(inches: float) -> bool:
    rng = get_engine_settings().measurement_ranges["bedLengthWithTailgate"]
    return rng.min <= inches <= rng.max
