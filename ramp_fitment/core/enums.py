"""Enums for ramp fitment constants."""

from enum import Enum


class RampModelId(str, Enum):
    """Ramp products in the catalog."""

    AUN210 = "AUN210"  # non-folding
    AUN250 = "AUN250"  # folding

    @classmethod
    def from_string(cls, value: str | None) -> "RampModelId | None":
        """Convert string to enum, returning None if invalid."""
        if not value:
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


class AccessoryId(str, Enum):
    """Accessories in the catalog."""

    AC004 = "AC004"  # tailgate extension, AUN210 only
    FOUR_BEAM = "4-BEAM"  # bed extension, AUN250 only
    AC001_1 = "AC001-1"
    AC001_2 = "AC001-2"
    AC001_3 = "AC001-3"
    AC012 = "AC012"  # boltless tie-down kit

    @classmethod
    def from_string(cls, value: str | None) -> "AccessoryId | None":
        """Convert string to enum, returning None if invalid."""
        if not value:
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


HEIGHT_EXTENSIONS: tuple[AccessoryId, ...] = (
    AccessoryId.AC001_1,
    AccessoryId.AC001_2,
    AccessoryId.AC001_3,
)


class AccessoryCategory(str, Enum):
    REQUIRED_CONDITIONAL = "required-conditional"
    OPTIONAL = "optional"


class RequirementType(str, Enum):
    REQUIRED = "required"
    RECOMMENDED = "recommended"
    OPTIONAL = "optional"


class BedCategory(str, Enum):
    """Pickup bed length categories."""

    SHORT = "short"
    STANDARD = "standard"
    LONG = "long"


class BedLengthAnswer(str, Enum):
    """Categorical bed length answer from the quick flow."""

    SHORT = "short"
    STANDARD = "standard"
    LONG = "long"
    UNSURE = "unsure"

    def to_category(self) -> BedCategory | None:
        if self is BedLengthAnswer.UNSURE:
            return None
        return BedCategory(self.value)


class TonneauType(str, Enum):
    """Tonneau cover designs."""

    ROLL_UP_SOFT = "roll-up-soft"
    ROLL_UP_HARD = "roll-up-hard"
    TRI_FOLD_SOFT = "tri-fold-soft"
    TRI_FOLD_HARD = "tri-fold-hard"
    BI_FOLD = "bi-fold"
    HINGED = "hinged"
    RETRACTABLE = "retractable"
    OTHER = "other"
    NONE = "none"

    @property
    def is_roll_up(self) -> bool:
        return self in (TonneauType.ROLL_UP_SOFT, TonneauType.ROLL_UP_HARD)

    @property
    def is_tri_fold(self) -> bool:
        return self in (TonneauType.TRI_FOLD_SOFT, TonneauType.TRI_FOLD_HARD)

    @classmethod
    def from_string(cls, value: str | None) -> "TonneauType | None":
        """Convert string to enum, handling common variations."""
        if not value:
            return None
        value_lower = value.strip().lower()
        mappings = {
            "roll-up": cls.ROLL_UP_SOFT,
            "rollup": cls.ROLL_UP_SOFT,
            "soft roll-up": cls.ROLL_UP_SOFT,
            "hard roll-up": cls.ROLL_UP_HARD,
            "tri-fold": cls.TRI_FOLD_SOFT,
            "trifold": cls.TRI_FOLD_SOFT,
            "bifold": cls.BI_FOLD,
            "retractable": cls.RETRACTABLE,
            "unknown": cls.OTHER,
        }
        if value_lower in mappings:
            return mappings[value_lower]
        try:
            return cls(value_lower)
        except ValueError:
            return None


class RollDirection(str, Enum):
    ON_TOP = "on-top"
    INTO_BED = "into-bed"


class UnitSystem(str, Enum):
    IMPERIAL = "imperial"
    METRIC = "metric"

    @classmethod
    def from_string(cls, value: str | None) -> "UnitSystem | None":
        """Convert string to enum, returning None if invalid."""
        if not value:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class VehicleType(str, Enum):
    PICKUP = "pickup"
    VAN = "van"
    TRAILER = "trailer"

    @classmethod
    def from_string(cls, value: str | None) -> "VehicleType | None":
        """Convert string to enum, handling common variations."""
        if not value:
            return None
        value_lower = value.strip().lower()
        if value_lower in ("truck", "pickup truck", "pick-up"):
            return cls.PICKUP
        try:
            return cls(value_lower)
        except ValueError:
            return None


class RecommendationType(str, Enum):
    PRIMARY = "primary"
    ALTERNATIVE = "alternative"


class FailureKind(str, Enum):
    HARD = "hard"
    SOFT = "soft"


class FlowSource(str, Enum):
    """Which configurator flow produced a piece of data."""

    QUICK = "quick"
    ADVANCED = "advanced"


class AngleClassification(str, Enum):
    SAFE = "safe"
    MODERATE = "moderate"
    STEEP = "steep"
    CRITICAL = "critical"
