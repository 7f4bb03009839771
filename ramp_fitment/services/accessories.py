"""Accessory engine: required/optional accessories and compatibility.

Which accessory attaches to which ramp is read from the compatibility
matrix in accessories.json. The tailgate extension (AC004) only fits the
non-folding ramp and the 4-Beam bed extension only fits the folding ramp;
height extensions and the tie-down kit fit both.
"""

import logging

from pydantic import BaseModel

from ramp_fitment.core.enums import (
    HEIGHT_EXTENSIONS,
    AccessoryCategory,
    AccessoryId,
    BedCategory,
    RampModelId,
    RequirementType,
)
from ramp_fitment.models.config import Accessory
from ramp_fitment.models.fitment import AccessoryRequirement, CalculatedValues
from ramp_fitment.models.inputs import AdvancedFlowInput, QuickFlowInput
from ramp_fitment.services.config_store import (
    get_accessory,
    get_compatible_accessories,
    get_config,
    get_engine_settings,
    is_accessory_compatible,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

ACCESSORY_NOTES: dict[AccessoryId, list[str]] = {
    AccessoryId.AC004: [
        "Place on tailgate during loading/unloading",
        "Remove and store after motorcycle is loaded",
        "Not needed when tailgate can remain open",
    ],
    AccessoryId.FOUR_BEAM: [
        "Provides additional support for longer configurations",
        "Required for AUN250 on long beds",
    ],
    AccessoryId.AC001_1: [
        "Height extension ensures proper loading angle",
        "Selected based on your tailgate height measurement",
    ],
    AccessoryId.AC001_2: [
        "Height extension ensures proper loading angle",
        "Selected based on your tailgate height measurement",
    ],
    AccessoryId.AC001_3: [
        "Height extension ensures proper loading angle",
        "Selected based on your tailgate height measurement",
    ],
    AccessoryId.AC012: [
        "Optional - allows securing ramp without drilling",
        "Quick-release system for easy removal",
    ],
}


class AccessoryCompatibility(BaseModel):
    is_compatible: bool
    reason: str


# =============================================================================
# Rules
# =============================================================================


def get_height_extension(tailgate_height: float | None) -> AccessoryId | None:
    """Map a tailgate height onto its inclusive height-extension band."""
    if tailgate_height is None:
        return None
    for ext_id in HEIGHT_EXTENSIONS:
        band = get_accessory(ext_id).height_range
        if band.min <= tailgate_height <= band.max:
            return ext_id
    return None


def requires_tailgate_accessory(ramp: RampModelId, must_close: bool, loaded: bool) -> bool:
    """AC004 is needed only when the AUN210 must close the tailgate loaded."""
    return (
        must_close
        and loaded
        and is_accessory_compatible(AccessoryId.AC004, ramp)
    )


def requires_bed_extension(
    ramp: RampModelId,
    bed_category: BedCategory | None,
    total_length_inches: float | None = None,
) -> bool:
    """4-Beam is needed for the AUN250 on long beds or past the length threshold."""
    if not is_accessory_compatible(AccessoryId.FOUR_BEAM, ramp):
        return False
    if bed_category == BedCategory.LONG:
        return True
    threshold = get_engine_settings().beam_extension_threshold_inches
    return total_length_inches is not None and total_length_inches > threshold


def _requirement(
    accessory: Accessory,
    reason: str,
    requirement_type: RequirementType = RequirementType.REQUIRED,
) -> AccessoryRequirement:
    return AccessoryRequirement(
        accessory_id=accessory.id,
        required=requirement_type == RequirementType.REQUIRED,
        requirement_type=requirement_type,
        reason=reason,
        price=accessory.price,
        name=accessory.name,
    )


def get_required_accessories(
    ramp: RampModelId,
    fitment_input: QuickFlowInput | AdvancedFlowInput,
    calculated_values: CalculatedValues,
) -> list[AccessoryRequirement]:
    """Assemble the accessories this ramp cannot be used without.

    Quick-flow input carries no measurements, so the length-threshold and
    height-band checks are skipped for it.
    """
    required: list[AccessoryRequirement] = []
    total_length: float | None = None
    tailgate_height: float | None = None
    if isinstance(fitment_input, AdvancedFlowInput):
        total_length = fitment_input.truck.bed_length_with_tailgate
        tailgate_height = fitment_input.truck.tailgate_height

    if requires_tailgate_accessory(
        ramp,
        fitment_input.tailgate_must_close,
        fitment_input.motorcycle_loaded_when_closed,
    ):
        required.append(
            _requirement(
                get_accessory(AccessoryId.AC004),
                "Required for loading/unloading with tailgate closure",
            )
        )

    if requires_bed_extension(ramp, calculated_values.bed_category, total_length):
        reason = (
            "Required for long bed configuration"
            if calculated_values.bed_category == BedCategory.LONG
            else "Required - total length exceeds threshold"
        )
        required.append(_requirement(get_accessory(AccessoryId.FOUR_BEAM), reason))

    ext_id = get_height_extension(tailgate_height)
    if ext_id and is_accessory_compatible(ext_id, ramp):
        required.append(
            _requirement(
                get_accessory(ext_id),
                f'Required for tailgate height of {tailgate_height:g}"',
            )
        )

    return required


def get_optional_accessories(
    ramp: RampModelId, exclude: list[AccessoryId] | None = None
) -> list[AccessoryRequirement]:
    """Optional catalog items for this ramp that are not already mandatory."""
    exclude = exclude or []
    return [
        _requirement(acc, acc.description, RequirementType.OPTIONAL)
        for acc in get_compatible_accessories(ramp)
        if acc.category == AccessoryCategory.OPTIONAL and acc.id not in exclude
    ]


def get_all_compatible_accessories(ramp: RampModelId) -> list[AccessoryRequirement]:
    return [
        _requirement(acc, acc.description, RequirementType.RECOMMENDED)
        for acc in get_compatible_accessories(ramp)
    ]


# =============================================================================
# Compatibility
# =============================================================================


def validate_accessory_compatibility(
    accessory_id: AccessoryId | str, ramp: RampModelId
) -> AccessoryCompatibility:
    """Check whether an accessory can attach to a ramp. Never raises."""
    accessory = get_accessory(accessory_id)
    if accessory is None:
        return AccessoryCompatibility(is_compatible=False, reason="Unknown accessory")

    if is_accessory_compatible(accessory.id, ramp):
        return AccessoryCompatibility(
            is_compatible=True, reason=f"{accessory.name} is compatible with {ramp.value}"
        )

    designed_for = [
        r.value
        for r, entry in get_config().accessories.compatibility_matrix.items()
        if accessory.id in entry.compatible
    ]
    reason = f"{accessory.name} is not compatible with {ramp.value}."
    if designed_for:
        reason += f" It is designed for {' and '.join(designed_for)} only."
    return AccessoryCompatibility(is_compatible=False, reason=reason)


def filter_compatible_accessories(
    accessory_ids: list[AccessoryId | str], ramp: RampModelId
) -> list[AccessoryId]:
    """Drop unknown and incompatible ids, preserving order."""
    kept: list[AccessoryId] = []
    for raw in accessory_ids:
        accessory = get_accessory(raw)
        if accessory and is_accessory_compatible(accessory.id, ramp):
            kept.append(accessory.id)
        else:
            logger.debug("Dropping accessory %s for %s", raw, ramp.value)
    return kept


# =============================================================================
# Pricing and notes
# =============================================================================


def calculate_accessories_total(accessories: list[AccessoryRequirement]) -> float:
    return sum(a.price for a in accessories)


def calculate_required_accessories_total(
    accessories: list[AccessoryRequirement],
) -> float:
    return sum(a.price for a in accessories if a.required)


def get_accessory_notes(accessory_id: AccessoryId) -> list[str]:
    return list(ACCESSORY_NOTES.get(accessory_id, []))
