"""Quick (categorical) configurator flow.

The question sequence is a pure function of the answers given so far:
follow-up questions only appear once their prerequisite is answered, and
the current question is the first unanswered one. State is an immutable
``QuickFlowState``; every transition returns a new state. Answering the
last question runs the quick-flow evaluation exactly once.
"""

import logging

from ramp_fitment.core.enums import BedLengthAnswer, RollDirection, TonneauType
from ramp_fitment.models.flows import AnswerValue, Question, QuestionOption, QuickFlowState
from ramp_fitment.models.inputs import QuickFlowInput
from ramp_fitment.services.config_store import get_quick_flow_bed_options
from ramp_fitment.services.ramp_selector import evaluate_quick_flow

logger = logging.getLogger(__name__)

BED_LENGTH = "bedLength"
HAS_TONNEAU = "hasTonneau"
TONNEAU_TYPE = "tonneauType"
ROLL_DIRECTION = "rollDirection"
TAILGATE_REQUIRED = "tailgateRequired"
MOTORCYCLE_LOADED = "motorcycleLoadedWhenClosed"

QUESTION_ORDER: tuple[str, ...] = (
    BED_LENGTH,
    HAS_TONNEAU,
    TONNEAU_TYPE,
    ROLL_DIRECTION,
    TAILGATE_REQUIRED,
    MOTORCYCLE_LOADED,
)

YES_NO: tuple[QuestionOption, ...] = (
    QuestionOption(value=True, label="Yes"),
    QuestionOption(value=False, label="No"),
)

YES_NO_QUESTIONS: frozenset[str] = frozenset({HAS_TONNEAU, TAILGATE_REQUIRED, MOTORCYCLE_LOADED})

TONNEAU_OPTIONS: tuple[QuestionOption, ...] = (
    QuestionOption(value=TonneauType.ROLL_UP_SOFT.value, label="Soft roll-up"),
    QuestionOption(value=TonneauType.ROLL_UP_HARD.value, label="Hard roll-up"),
    QuestionOption(value=TonneauType.TRI_FOLD_SOFT.value, label="Soft tri-fold"),
    QuestionOption(value=TonneauType.TRI_FOLD_HARD.value, label="Hard tri-fold"),
    QuestionOption(value=TonneauType.BI_FOLD.value, label="Bi-fold"),
    QuestionOption(value=TonneauType.HINGED.value, label="Hinged (one-piece)"),
    QuestionOption(value=TonneauType.RETRACTABLE.value, label="Retractable"),
    QuestionOption(value=TonneauType.OTHER.value, label="Other / not sure"),
)

ROLL_OPTIONS: tuple[QuestionOption, ...] = (
    QuestionOption(
        value=RollDirection.ON_TOP.value,
        label="Rolls on top",
        sublabel="Cover rolls up against the cab, above the bed rails",
    ),
    QuestionOption(
        value=RollDirection.INTO_BED.value,
        label="Rolls into the bed",
        sublabel="Rolled cover sits inside the bed",
    ),
)


# =============================================================================
# Question flow
# =============================================================================


def _question(question_id: str) -> Question:
    if question_id == BED_LENGTH:
        return Question(
            id=BED_LENGTH,
            prompt="How long is your truck bed?",
            options=tuple(
                QuestionOption(value=o.value, label=o.label, sublabel=o.sublabel)
                for o in get_quick_flow_bed_options()
            ),
        )
    if question_id == HAS_TONNEAU:
        return Question(id=HAS_TONNEAU, prompt="Do you have a tonneau cover?", options=YES_NO)
    if question_id == TONNEAU_TYPE:
        return Question(
            id=TONNEAU_TYPE, prompt="What type of tonneau cover?", options=TONNEAU_OPTIONS
        )
    if question_id == ROLL_DIRECTION:
        return Question(
            id=ROLL_DIRECTION,
            prompt="Which way does your cover roll?",
            options=ROLL_OPTIONS,
        )
    if question_id == TAILGATE_REQUIRED:
        return Question(
            id=TAILGATE_REQUIRED,
            prompt="Do you need to close your tailgate?",
            options=YES_NO,
        )
    if question_id == MOTORCYCLE_LOADED:
        return Question(
            id=MOTORCYCLE_LOADED,
            prompt="Does the tailgate need to close with the motorcycle loaded?",
            options=YES_NO,
            help_text="Only the AUN210 can close the tailgate with a motorcycle aboard",
        )
    raise ValueError(f"Unknown question: {question_id}")


def should_show_question(question_id: str, answers: dict[str, AnswerValue]) -> bool:
    """Whether a question's prerequisites are satisfied by ``answers``."""
    if question_id == TONNEAU_TYPE:
        return answers.get(HAS_TONNEAU) is True
    if question_id == ROLL_DIRECTION:
        if not should_show_question(TONNEAU_TYPE, answers):
            return False
        tonneau = TonneauType.from_string(str(answers.get(TONNEAU_TYPE, "")))
        return tonneau is not None and tonneau.is_roll_up
    if question_id == MOTORCYCLE_LOADED:
        return answers.get(TAILGATE_REQUIRED) is True
    return question_id in QUESTION_ORDER


def build_question_flow(answers: dict[str, AnswerValue]) -> list[Question]:
    """Ordered questions applicable to the given answers."""
    return [_question(q) for q in QUESTION_ORDER if should_show_question(q, answers)]


def get_current_question(answers: dict[str, AnswerValue]) -> Question | None:
    """First unanswered question, or None when the flow is complete."""
    for question in build_question_flow(answers):
        if question.id not in answers:
            return question
    return None


def _coerce_answer(question: Question, value: AnswerValue) -> AnswerValue:
    if question.id in YES_NO_QUESTIONS:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("yes", "true", "y"):
                return True
            if lowered in ("no", "false", "n"):
                return False
        if isinstance(value, bool):
            return value
    elif isinstance(value, str):
        value = value.strip().lower()
        if any(o.value == value for o in question.options):
            return value
    raise ValueError(f"Invalid answer {value!r} for question {question.id}")


def _prune(answers: dict[str, AnswerValue]) -> dict[str, AnswerValue]:
    """Drop answers whose question no longer applies."""
    return {
        q: answers[q]
        for q in QUESTION_ORDER
        if q in answers and should_show_question(q, answers)
    }


# =============================================================================
# State transitions
# =============================================================================


def answers_to_input(answers: dict[str, AnswerValue]) -> QuickFlowInput:
    tonneau = answers.get(TONNEAU_TYPE)
    roll = answers.get(ROLL_DIRECTION)
    return QuickFlowInput(
        bed_length=BedLengthAnswer(answers[BED_LENGTH]),
        has_tonneau=answers.get(HAS_TONNEAU) is True,
        tonneau_type=TonneauType(tonneau) if tonneau else None,
        roll_direction=RollDirection(roll) if roll else None,
        tailgate_must_close=answers.get(TAILGATE_REQUIRED) is True,
        motorcycle_loaded_when_closed=answers.get(MOTORCYCLE_LOADED) is True,
    )


def _with_answers(
    answers: dict[str, AnswerValue], history: tuple[str, ...]
) -> QuickFlowState:
    current = get_current_question(answers)
    if current is not None:
        return QuickFlowState(
            answers=answers, history=history, current_question_id=current.id
        )
    result = evaluate_quick_flow(answers_to_input(answers))
    return QuickFlowState(answers=answers, history=history, is_complete=True, result=result)


def _valid_answers(answers: dict[str, AnswerValue]) -> dict[str, AnswerValue]:
    """Coerce pre-filled answers, dropping any outside their question's options."""
    valid: dict[str, AnswerValue] = {}
    for question_id in QUESTION_ORDER:
        if question_id not in answers:
            continue
        try:
            valid[question_id] = _coerce_answer(_question(question_id), answers[question_id])
        except ValueError:
            logger.debug("Dropping pre-filled answer %s=%r", question_id, answers[question_id])
    return valid


def create_quick_flow_state(
    answers: dict[str, AnswerValue] | None = None,
) -> QuickFlowState:
    """Initial state, optionally pre-filled (e.g. from a flow-sync record)."""
    answers = _prune(_valid_answers(dict(answers or {})))
    history = tuple(q for q in QUESTION_ORDER if q in answers)
    return _with_answers(answers, history)


def process_answer(
    state: QuickFlowState, question_id: str, value: AnswerValue
) -> QuickFlowState:
    """Record an answer and advance.

    Changing a prerequisite answer clears every answer that depended on it.
    Raises ValueError for an unknown question or an answer outside its options.
    """
    if not should_show_question(question_id, state.answers):
        raise ValueError(f"Question {question_id} is not part of the current flow")
    answer = _coerce_answer(_question(question_id), value)

    answers = _prune({**state.answers, question_id: answer})
    history = tuple(q for q in state.history if q in answers and q != question_id)
    history += (question_id,)
    logger.debug("Quick flow answer %s=%s", question_id, answer)
    return _with_answers(answers, history)


def go_back(state: QuickFlowState) -> QuickFlowState:
    """Un-answer the most recently answered question and anything depending on it."""
    if not state.history:
        return state
    last = state.history[-1]
    answers = _prune({k: v for k, v in state.answers.items() if k != last})
    history = tuple(q for q in state.history[:-1] if q in answers)
    current = get_current_question(answers)
    return QuickFlowState(
        answers=answers,
        history=history,
        current_question_id=current.id if current else last,
    )


def reset() -> QuickFlowState:
    return create_quick_flow_state()


def get_progress(state: QuickFlowState) -> dict[str, int]:
    total = len(build_question_flow(state.answers))
    answered = sum(1 for q in build_question_flow(state.answers) if q.id in state.answers)
    return {
        "answered": answered,
        "total": total,
        "percent": round(answered / total * 100) if total else 0,
    }


def get_recommendation_summary(state: QuickFlowState) -> dict | None:
    """Compact summary of the primary recommendation once complete."""
    if not state.is_complete or state.result is None:
        return None
    rec = state.result.primary_recommendation
    if rec is None:
        return None
    return {
        "rampId": rec.ramp_id.value,
        "name": rec.name,
        "price": rec.price,
        "totalWithRequired": rec.total_with_required,
        "warnings": list(rec.warnings),
        "tonneauNotes": list(state.result.tonneau_notes),
    }
