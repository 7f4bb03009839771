"""Quick (categorical) flow controller tests."""

import pytest

from ramp_fitment.core.enums import RampModelId
from ramp_fitment.services import quick_flow
from ramp_fitment.services.quick_flow import (
    build_question_flow,
    create_quick_flow_state,
    get_current_question,
    get_progress,
    get_recommendation_summary,
    go_back,
    process_answer,
    reset,
    should_show_question,
)


def _answer_all(state, *pairs):
    for question_id, value in pairs:
        state = process_answer(state, question_id, value)
    return state


class TestQuestionFlow:
    def test_initial_questions(self):
        ids = [q.id for q in build_question_flow({})]
        assert ids == ["bedLength", "hasTonneau", "tailgateRequired"]

    def test_tonneau_sub_questions_need_prerequisites(self):
        assert not should_show_question("tonneauType", {})
        assert should_show_question("tonneauType", {"hasTonneau": True})
        assert not should_show_question(
            "rollDirection", {"hasTonneau": True, "tonneauType": "hinged"}
        )
        assert should_show_question(
            "rollDirection", {"hasTonneau": True, "tonneauType": "roll-up-hard"}
        )

    def test_loaded_question_follows_tailgate_required(self):
        ids = [q.id for q in build_question_flow({"tailgateRequired": True})]
        assert ids[-1] == "motorcycleLoadedWhenClosed"

    def test_bed_length_options_from_config(self):
        question = build_question_flow({})[0]
        assert [o.value for o in question.options] == ["short", "standard", "long", "unsure"]

    def test_current_question_is_first_unanswered(self):
        assert get_current_question({"bedLength": "long"}).id == "hasTonneau"


class TestStateTransitions:
    def test_initial_state(self):
        state = create_quick_flow_state()
        assert state.current_question_id == "bedLength"
        assert state.is_complete is False
        assert get_progress(state) == {"answered": 0, "total": 3, "percent": 0}

    def test_yes_no_strings_are_coerced(self):
        state = _answer_all(create_quick_flow_state(), ("bedLength", "short"), ("hasTonneau", "yes"))
        assert state.answers["hasTonneau"] is True
        assert state.current_question_id == "tonneauType"
        assert get_progress(state) == {"answered": 2, "total": 4, "percent": 50}

    def test_full_run_completes_with_result(self):
        state = _answer_all(
            create_quick_flow_state(),
            ("bedLength", "short"),
            ("hasTonneau", True),
            ("tonneauType", "roll-up-soft"),
            ("rollDirection", "into-bed"),
            ("tailgateRequired", "no"),
        )
        assert state.is_complete is True
        assert state.current_question_id is None
        assert state.result.primary_recommendation.ramp_id == RampModelId.AUN210
        assert state.result.calculated_values.usable_bed_length == 56
        assert state.history == (
            "bedLength",
            "hasTonneau",
            "tonneauType",
            "rollDirection",
            "tailgateRequired",
        )

    def test_changing_prerequisite_clears_dependents(self):
        state = _answer_all(
            create_quick_flow_state(),
            ("bedLength", "standard"),
            ("hasTonneau", True),
            ("tonneauType", "roll-up-soft"),
            ("rollDirection", "on-top"),
        )
        state = process_answer(state, "hasTonneau", False)
        assert "tonneauType" not in state.answers
        assert "rollDirection" not in state.answers
        assert state.history == ("bedLength", "hasTonneau")

    def test_hidden_question_rejected(self):
        with pytest.raises(ValueError):
            process_answer(create_quick_flow_state(), "tonneauType", "hinged")

    def test_invalid_option_rejected(self):
        with pytest.raises(ValueError):
            process_answer(create_quick_flow_state(), "bedLength", "enormous")

    def test_evaluates_exactly_once(self, monkeypatch):
        calls = []
        original = quick_flow.evaluate_quick_flow

        def counting(fitment_input):
            calls.append(fitment_input)
            return original(fitment_input)

        monkeypatch.setattr(quick_flow, "evaluate_quick_flow", counting)
        state = _answer_all(
            create_quick_flow_state(),
            ("bedLength", "long"),
            ("hasTonneau", False),
        )
        assert calls == []
        state = process_answer(state, "tailgateRequired", True)
        assert calls == []
        state = process_answer(state, "motorcycleLoadedWhenClosed", True)
        assert len(calls) == 1
        assert state.is_complete is True


class TestNavigation:
    def test_go_back_un_answers_last(self):
        state = _answer_all(
            create_quick_flow_state(),
            ("bedLength", "long"),
            ("hasTonneau", False),
            ("tailgateRequired", False),
        )
        assert state.is_complete
        previous = go_back(state)
        assert previous.is_complete is False
        assert previous.result is None
        assert previous.current_question_id == "tailgateRequired"
        assert "tailgateRequired" not in previous.answers

    def test_go_back_at_start(self):
        state = create_quick_flow_state()
        assert go_back(state) == state

    def test_reset(self):
        assert reset().answers == {}

    def test_prefilled_state(self):
        state = create_quick_flow_state(
            {"bedLength": "standard", "hasTonneau": False, "tailgateRequired": False}
        )
        assert state.is_complete is True

    def test_go_back_clears_dependents_of_reanswered_prerequisite(self):
        state = _answer_all(
            create_quick_flow_state(),
            ("bedLength", "short"),
            ("hasTonneau", True),
            ("tonneauType", "hinged"),
            ("hasTonneau", True),
        )
        assert state.history == ("bedLength", "tonneauType", "hasTonneau")
        previous = go_back(state)
        assert previous.answers == {"bedLength": "short"}
        assert previous.history == ("bedLength",)
        assert previous.current_question_id == "hasTonneau"

    def test_prefill_drops_invalid_answers(self):
        state = create_quick_flow_state(
            {"bedLength": "huge", "hasTonneau": "yes", "tonneauType": 7}
        )
        assert state.answers == {"hasTonneau": True}
        assert state.current_question_id == "bedLength"
        assert state.result is None


class TestSummary:
    def test_incomplete(self):
        assert get_recommendation_summary(create_quick_flow_state()) is None

    def test_complete(self):
        state = create_quick_flow_state(
            {"bedLength": "short", "hasTonneau": False, "tailgateRequired": False}
        )
        summary = get_recommendation_summary(state)
        assert summary["rampId"] == "AUN210"
        assert summary["totalWithRequired"] == 999
