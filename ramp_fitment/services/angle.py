"""Loading angle engine.

Advisory only: nothing here can fail a fitment. When
``angleCalculation.enabled`` is false every entry point short-circuits and
no angle warning is produced.
"""

import logging
import math
from typing import Optional

from pydantic import BaseModel

from ramp_fitment.core.enums import HEIGHT_EXTENSIONS, AccessoryId, AngleClassification
from ramp_fitment.services.config_store import get_accessory, get_engine_settings, get_message
from ramp_fitment.utils.converters import format_angle

logger = logging.getLogger(__name__)


class AngleSafety(BaseModel):
    is_safe: bool
    classification: AngleClassification
    warning: Optional[str] = None


class AngleEvaluation(BaseModel):
    angle_degrees: float
    safety: AngleSafety
    suggested_extension: Optional[AccessoryId] = None


class ExtensionSuggestion(BaseModel):
    accessory_id: AccessoryId
    resulting_angle: float
    brings_under_threshold: bool


def is_angle_calculation_enabled() -> bool:
    return get_engine_settings().angle_calculation.enabled


def calculate_loading_angle(height: float, usable_bed_length: float) -> float:
    """Angle in degrees of a ramp rising ``height`` over ``usable_bed_length``."""
    if usable_bed_length <= 0:
        return 0.0
    return math.degrees(math.atan(height / usable_bed_length))


def classify_angle(angle_degrees: float) -> AngleClassification:
    settings = get_engine_settings().angle_calculation
    if angle_degrees < settings.safe_below_degrees:
        return AngleClassification.SAFE
    if angle_degrees < settings.warning_threshold_degrees:
        return AngleClassification.MODERATE
    if angle_degrees <= settings.max_safe_degrees:
        return AngleClassification.STEEP
    return AngleClassification.CRITICAL


def evaluate_angle_safety(angle_degrees: float) -> AngleSafety:
    settings = get_engine_settings().angle_calculation
    classification = classify_angle(angle_degrees)

    if angle_degrees < settings.warning_threshold_degrees:
        return AngleSafety(is_safe=True, classification=classification)
    if angle_degrees > settings.max_safe_degrees:
        warning = get_message(
            "warnings.angleCritical",
            angle=format_angle(angle_degrees),
            maxSafe=format_angle(settings.max_safe_degrees),
        )
        return AngleSafety(is_safe=False, classification=classification, warning=warning)
    warning = get_message("warnings.angleHigh", angle=format_angle(angle_degrees))
    return AngleSafety(is_safe=False, classification=classification, warning=warning)


def suggest_height_extension(
    height: float, usable_bed_length: float
) -> ExtensionSuggestion | None:
    """Find the shortest height extension that brings the angle under the threshold.

    Falls back to the longest extension when none is enough. Returns None when
    the angle is already under the threshold.
    """
    threshold = get_engine_settings().angle_calculation.warning_threshold_degrees
    if calculate_loading_angle(height, usable_bed_length) < threshold:
        return None

    best: ExtensionSuggestion | None = None
    for ext_id in HEIGHT_EXTENSIONS:
        added = get_accessory(ext_id).extension_length_inches or 0
        angle = calculate_loading_angle(height, usable_bed_length + added)
        best = ExtensionSuggestion(
            accessory_id=ext_id,
            resulting_angle=angle,
            brings_under_threshold=angle < threshold,
        )
        if best.brings_under_threshold:
            return best
    return best


def calculate_and_evaluate_angle(
    height: float, usable_bed_length: float
) -> AngleEvaluation | None:
    if not is_angle_calculation_enabled():
        return None
    angle = calculate_loading_angle(height, usable_bed_length)
    safety = evaluate_angle_safety(angle)
    suggestion = None
    if not safety.is_safe:
        found = suggest_height_extension(height, usable_bed_length)
        suggestion = found.accessory_id if found else None
    logger.debug("Loading angle %.1f classified %s", angle, safety.classification.value)
    return AngleEvaluation(
        angle_degrees=angle, safety=safety, suggested_extension=suggestion
    )


def get_angle_recommendations(angle_degrees: float) -> list[str]:
    """Practical loading tips for a given angle."""
    classification = classify_angle(angle_degrees)
    if classification == AngleClassification.SAFE:
        return []
    tips = ["Use a spotter when loading"]
    if classification in (AngleClassification.STEEP, AngleClassification.CRITICAL):
        tips.append("Back the truck against a curb or slope to reduce the angle")
        tips.append("Add a height extension to lengthen the ramp")
    if classification == AngleClassification.CRITICAL:
        tips.append("Consider loading from a dock for low-clearance motorcycles")
    return tips
