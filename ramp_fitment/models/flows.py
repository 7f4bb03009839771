from typing import Any, Optional, Union

from ramp_fitment.core.enums import FlowSource, RampModelId, UnitSystem, VehicleType
from ramp_fitment.models.base import CamelModel, FrozenCamelModel
from ramp_fitment.models.fitment import FitmentResult
from ramp_fitment.models.quote import QuoteBreakdown

AnswerValue = Union[str, bool]


class QuestionOption(FrozenCamelModel):
    value: AnswerValue
    label: str
    sublabel: Optional[str] = None


class Question(FrozenCamelModel):
    id: str
    prompt: str
    options: tuple[QuestionOption, ...]
    help_text: Optional[str] = None


class QuickFlowState(FrozenCamelModel):
    answers: dict[str, AnswerValue] = {}
    history: tuple[str, ...] = ()  # question ids in the order they were answered
    current_question_id: Optional[str] = None
    is_complete: bool = False
    result: Optional[FitmentResult] = None


class AdvancedFlowState(FrozenCamelModel):
    step: str = "vehicle"
    vehicle_type: Optional[VehicleType] = None
    truck: dict[str, Any] = {}
    motorcycle: dict[str, Any] = {}
    tailgate_must_close: bool = False
    motorcycle_loaded_when_closed: bool = False
    unit_system: UnitSystem = UnitSystem.IMPERIAL
    step_validation: dict[str, bool] = {}
    errors: dict[str, str] = {}
    warnings: list[str] = []
    touched_fields: tuple[str, ...] = ()
    result: Optional[FitmentResult] = None
    quote: Optional[QuoteBreakdown] = None


class FlowSyncRecord(CamelModel):
    session_id: str
    source: FlowSource
    quick_data: dict[str, AnswerValue] = {}
    advanced_data: dict[str, Any] = {}
    last_recommendation: Optional[RampModelId] = None
    created_at: float  # epoch seconds
    updated_at: float
    expires_at: float
