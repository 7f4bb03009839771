from typing import Optional

from ramp_fitment.core.enums import (
    BedLengthAnswer,
    RollDirection,
    TonneauType,
    UnitSystem,
)
from ramp_fitment.models.base import FrozenCamelModel


class TruckMeasurements(FrozenCamelModel):
    bed_length_closed: float  # inches (or cm when unit_system is metric)
    bed_length_with_tailgate: float
    tailgate_height: float
    has_tonneau: bool = False
    tonneau_type: Optional[TonneauType] = None
    roll_direction: Optional[RollDirection] = None


class MotorcycleMeasurements(FrozenCamelModel):
    total_length: float
    wheelbase: float
    weight: float  # lbs (or kg when unit_system is metric)


class QuickFlowInput(FrozenCamelModel):
    bed_length: BedLengthAnswer
    has_tonneau: bool = False
    tonneau_type: Optional[TonneauType] = None
    roll_direction: Optional[RollDirection] = None
    tailgate_must_close: bool = False
    motorcycle_loaded_when_closed: bool = False


class AdvancedFlowInput(FrozenCamelModel):
    truck: TruckMeasurements
    motorcycle: MotorcycleMeasurements
    tailgate_must_close: bool = False
    motorcycle_loaded_when_closed: bool = False
    unit_system: UnitSystem = UnitSystem.IMPERIAL
