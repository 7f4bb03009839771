from typing import Optional

from ramp_fitment.core.enums import (
    AccessoryId,
    BedCategory,
    FailureKind,
    RampModelId,
    RecommendationType,
    RequirementType,
)
from ramp_fitment.models.base import CamelModel


class AccessoryRequirement(CamelModel):
    accessory_id: AccessoryId
    required: bool
    requirement_type: RequirementType
    reason: str
    price: float
    name: str


class CalculatedValues(CamelModel):
    usable_bed_length: float
    tonneau_penalty: float
    bed_category: Optional[BedCategory] = None  # None when the bed length is unknown
    tailgate_close_with_load_possible: bool
    exceeds_bed_extension_threshold: bool
    required_bed_length_for_load: Optional[float] = None
    loading_angle: Optional[float] = None  # degrees


class RampRecommendation(CamelModel):
    ramp_id: RampModelId
    type: RecommendationType
    name: str
    price: float
    required_accessories: list[AccessoryRequirement] = []
    optional_accessories: list[AccessoryRequirement] = []
    total_with_required: float
    reasons: list[str] = []
    warnings: list[str] = []


class FitmentFailure(CamelModel):
    kind: FailureKind
    message: str
    suggestion: str
    details: Optional[str] = None


class FitmentResult(CamelModel):
    success: bool
    primary_recommendation: Optional[RampRecommendation] = None
    alternative_recommendation: Optional[RampRecommendation] = None
    failure: Optional[FitmentFailure] = None
    calculated_values: CalculatedValues
    tonneau_notes: list[str] = []
    angle_warning: Optional[str] = None
    timestamp: str  # ISO-8601 UTC
    input_hash: str


class ValidationResult(CamelModel):
    is_valid: bool
    errors: dict[str, str] = {}  # field -> message
    warnings: list[str] = []
