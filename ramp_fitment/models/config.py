"""Typed models for the engine configuration documents.

Each JSON document under ``ramp_fitment/data`` is parsed into one of the
catalog models below. Everything is frozen: the loaded configuration is a
read-only handle shared by every evaluation.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from ramp_fitment.core.enums import (
    HEIGHT_EXTENSIONS,
    AccessoryCategory,
    AccessoryId,
    BedCategory,
    RampModelId,
)


class ConfigModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )


# ---------------------------------------------------------------------------
# Engine settings
# ---------------------------------------------------------------------------


class BedLengthThresholds(ConfigModel):
    short_max_inches: float = Field(gt=0)  # short < this
    standard_max_inches: float = Field(gt=0)  # standard < this <= long


class AngleSettings(ConfigModel):
    enabled: bool = True
    safe_below_degrees: float = Field(gt=0)
    warning_threshold_degrees: float = Field(gt=0)
    max_safe_degrees: float = Field(gt=0)

    @model_validator(mode="after")
    def _ordered(self) -> "AngleSettings":
        if not (
            self.safe_below_degrees
            <= self.warning_threshold_degrees
            <= self.max_safe_degrees
        ):
            raise ValueError(
                "angle thresholds must satisfy safeBelow <= warningThreshold <= maxSafe"
            )
        return self


class MeasurementRange(ConfigModel):
    min: float
    max: float
    unit: str

    @model_validator(mode="after")
    def _ordered(self) -> "MeasurementRange":
        if self.min >= self.max:
            raise ValueError(f"range min ({self.min}) must be below max ({self.max})")
        return self


class AdvisorySettings(ConfigModel):
    short_bed_warning_inches: float
    heavy_motorcycle_lbs: float


class PricingConfig(ConfigModel):
    currency: str = "USD"
    tax_rate: float = Field(ge=0, lt=1)
    processing_fee_rate: float = Field(ge=0, lt=1)
    free_shipping_threshold: float = Field(ge=0)
    shipping_cost: float = Field(ge=0)


class BulkDiscountTier(ConfigModel):
    min_quantity: int = Field(ge=1)
    discount_percent: float = Field(ge=0, le=100)


class SyncSettings(ConfigModel):
    ttl_hours: float = Field(gt=0)
    stale_after_minutes: float = Field(gt=0)


REQUIRED_MEASUREMENT_RANGES: tuple[str, ...] = (
    "bedLengthClosed",
    "bedLengthWithTailgate",
    "tailgateHeight",
    "motorcycleWeight",
    "motorcycleWheelbase",
    "motorcycleLength",
)


class EngineSettings(ConfigModel):
    version: str = Field(min_length=1)
    bed_length_categories: BedLengthThresholds
    tonneau_penalty_inches: float = Field(ge=0)
    tailgate_close_buffer_inches: float = Field(ge=0)
    beam_extension_threshold_inches: float = Field(gt=0)
    boundary_tolerance_inches: float = Field(default=3, ge=0)
    max_estimated_bed_length_inches: float = Field(default=120, gt=0)
    angle_calculation: AngleSettings
    measurement_ranges: dict[str, MeasurementRange]
    advisories: AdvisorySettings
    pricing: PricingConfig
    bulk_discounts: tuple[BulkDiscountTier, ...] = ()
    sync: SyncSettings

    @model_validator(mode="after")
    def _check(self) -> "EngineSettings":
        cats = self.bed_length_categories
        if cats.short_max_inches >= cats.standard_max_inches:
            raise ValueError("shortMaxInches must be below standardMaxInches")
        missing = [
            name
            for name in REQUIRED_MEASUREMENT_RANGES
            if name not in self.measurement_ranges
        ]
        if missing:
            raise ValueError(f"measurementRanges missing: {', '.join(missing)}")
        return self


# ---------------------------------------------------------------------------
# Ramp catalog
# ---------------------------------------------------------------------------


class RampModel(ConfigModel):
    id: RampModelId
    name: str = Field(min_length=1)
    sku: str
    price: float = Field(gt=0)
    folds: bool
    can_close_tailgate_loaded: bool
    active: bool = True
    description: str = ""
    features: tuple[str, ...] = ()


class RampCatalog(ConfigModel):
    models: dict[RampModelId, RampModel]

    @model_validator(mode="after")
    def _check(self) -> "RampCatalog":
        for key, model in self.models.items():
            if key != model.id:
                raise ValueError(f"ramp model keyed {key.value} declares id {model.id.value}")
        missing = [r.value for r in RampModelId if r not in self.models]
        if missing:
            raise ValueError(f"ramp models missing: {', '.join(missing)}")
        return self


# ---------------------------------------------------------------------------
# Accessory catalog
# ---------------------------------------------------------------------------


class HeightRange(ConfigModel):
    min: float
    max: float


class Accessory(ConfigModel):
    id: AccessoryId
    name: str = Field(min_length=1)
    sku: str
    price: float = Field(gt=0)
    category: AccessoryCategory
    type: str
    description: str = ""
    height_range: Optional[HeightRange] = None
    extension_length_inches: Optional[float] = None


class CompatibilityEntry(ConfigModel):
    compatible: tuple[AccessoryId, ...]
    incompatible: tuple[AccessoryId, ...] = ()


class AccessoryCatalog(ConfigModel):
    accessories: dict[AccessoryId, Accessory]
    compatibility_matrix: dict[RampModelId, CompatibilityEntry]

    @model_validator(mode="after")
    def _check(self) -> "AccessoryCatalog":
        for key, acc in self.accessories.items():
            if key != acc.id:
                raise ValueError(f"accessory keyed {key.value} declares id {acc.id.value}")
        missing = [a.value for a in AccessoryId if a not in self.accessories]
        if missing:
            raise ValueError(f"accessories missing: {', '.join(missing)}")

        # Ramp-exclusive accessories
        matrix = self.compatibility_matrix
        for ramp in RampModelId:
            if ramp not in matrix:
                raise ValueError(f"compatibilityMatrix missing ramp {ramp.value}")
            overlap = set(matrix[ramp].compatible) & set(matrix[ramp].incompatible)
            if overlap:
                raise ValueError(
                    f"{ramp.value} lists {sorted(a.value for a in overlap)} as both "
                    "compatible and incompatible"
                )
        if AccessoryId.AC004 in matrix[RampModelId.AUN250].compatible:
            raise ValueError("AC004 may only be compatible with AUN210")
        if AccessoryId.FOUR_BEAM in matrix[RampModelId.AUN210].compatible:
            raise ValueError("4-BEAM may only be compatible with AUN250")

        # Height bands present and non-overlapping
        bands: list[tuple[float, float, AccessoryId]] = []
        for ext_id in HEIGHT_EXTENSIONS:
            band = self.accessories[ext_id].height_range
            if band is None:
                raise ValueError(f"{ext_id.value} is missing heightRange")
            if band.min > band.max:
                raise ValueError(f"{ext_id.value} heightRange min exceeds max")
            bands.append((band.min, band.max, ext_id))
        bands.sort()
        for (_, prev_max, prev_id), (cur_min, _, cur_id) in zip(bands, bands[1:]):
            if cur_min <= prev_max:
                raise ValueError(
                    f"height bands for {prev_id.value} and {cur_id.value} overlap"
                )
        return self


# ---------------------------------------------------------------------------
# Bed categories
# ---------------------------------------------------------------------------


class BedCategoryConfig(ConfigModel):
    id: BedCategory
    name: str
    display_range: str
    min_inches: float  # inclusive
    max_inches: Optional[float] = None  # exclusive; None means open-ended
    notes: tuple[str, ...] = ()


class QuickFlowOption(ConfigModel):
    value: str
    label: str
    sublabel: Optional[str] = None


class BedCategoryCatalog(ConfigModel):
    categories: dict[BedCategory, BedCategoryConfig]
    quick_flow_options: tuple[QuickFlowOption, ...]
    measurement_hints: dict[str, str] = {}

    @model_validator(mode="after")
    def _check(self) -> "BedCategoryCatalog":
        missing = [c.value for c in BedCategory if c not in self.categories]
        if missing:
            raise ValueError(f"bed categories missing: {', '.join(missing)}")
        return self


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


class MessageCatalog(ConfigModel):
    reasons: dict[str, str] = {}
    warnings: dict[str, Any] = {}
    tailgate: dict[str, str] = {}
    errors: dict[str, Any] = {}
    info: dict[str, str] = {}
    labels: dict[str, str] = {}


# ---------------------------------------------------------------------------
# Combined handle
# ---------------------------------------------------------------------------


class FitmentConfig(BaseModel):
    """Immutable handle over all five configuration documents."""

    model_config = ConfigDict(frozen=True)

    engine_settings: EngineSettings
    ramp_models: RampCatalog
    accessories: AccessoryCatalog
    bed_categories: BedCategoryCatalog
    messages: MessageCatalog
    source: str = ""

    @model_validator(mode="after")
    def _check_bed_thresholds(self) -> "FitmentConfig":
        thresholds = self.engine_settings.bed_length_categories
        cats = self.bed_categories.categories
        expected = {
            "short.maxInches": (cats[BedCategory.SHORT].max_inches, thresholds.short_max_inches),
            "standard.minInches": (cats[BedCategory.STANDARD].min_inches, thresholds.short_max_inches),
            "standard.maxInches": (cats[BedCategory.STANDARD].max_inches, thresholds.standard_max_inches),
            "long.minInches": (cats[BedCategory.LONG].min_inches, thresholds.standard_max_inches),
        }
        for name, (actual, wanted) in expected.items():
            if actual != wanted:
                raise ValueError(
                    f"bed category {name} is {actual}, engine settings expect {wanted}"
                )
        return self
