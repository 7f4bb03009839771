"""Advanced (measurement) flow controller tests."""

import pytest

from ramp_fitment.core.enums import RampModelId, UnitSystem, VehicleType
from ramp_fitment.services.advanced_flow import (
    MOTORCYCLE,
    RESULT,
    REVIEW,
    TAILGATE,
    TRUCK,
    VEHICLE,
    create_advanced_flow_state,
    get_progress,
    go_to_step,
    next_step,
    previous_step,
    set_motorcycle_field,
    set_tailgate_requirements,
    set_truck_field,
    set_unit_system,
    set_vehicle_type,
    validate_step,
)

TRUCK_B = {"bedLengthClosed": 96, "bedLengthWithTailgate": 114, "tailgateHeight": 22}
MOTO_B = {"totalLength": 85, "wheelbase": 60, "weight": 450}


def _fill(state, truck=TRUCK_B, moto=MOTO_B):
    for field, value in truck.items():
        state = set_truck_field(state, field, value)
    for field, value in moto.items():
        state = set_motorcycle_field(state, field, value)
    return state


def _walk_to_review(state):
    state = next_step(set_vehicle_type(state, "pickup"))
    state = _fill(state)
    state = next_step(state)  # -> motorcycle
    state = next_step(state)  # -> tailgate
    return state


class TestInitialState:
    def test_starts_at_vehicle(self):
        state = create_advanced_flow_state()
        assert state.step == VEHICLE
        assert state.step_validation[VEHICLE] is False
        assert state.step_validation[TAILGATE] is True

    def test_prefill(self):
        state = create_advanced_flow_state(
            {"vehicleType": "pickup", "truck": TRUCK_B, "unitSystem": "imperial"}
        )
        assert state.vehicle_type == VehicleType.PICKUP
        assert state.step_validation[VEHICLE] is True
        assert state.step_validation[TRUCK] is True
        assert state.step_validation[MOTORCYCLE] is False

    def test_prefill_ignores_unknown_fields(self):
        state = create_advanced_flow_state({"truck": {"bedLengthClosed": 80, "color": "red"}})
        assert state.truck == {"bedLengthClosed": 80}

    def test_unparseable_prefill_is_dropped(self):
        state = create_advanced_flow_state(
            {
                "vehicleType": "car",
                "unitSystem": "furlongs",
                "truck": "96 inches",
                "motorcycle": {"totalLength": "long", "cc": 1200},
                "tailgateMustClose": "yes",
            }
        )
        assert state.vehicle_type is None
        assert state.unit_system == UnitSystem.IMPERIAL
        assert state.truck == {}
        assert state.motorcycle == {"totalLength": "long"}
        assert state.tailgate_must_close is False
        assert state.step_validation[VEHICLE] is False
        assert state.step_validation[MOTORCYCLE] is False

    def test_prefill_accepts_vehicle_aliases(self):
        state = create_advanced_flow_state({"vehicleType": "Truck", "unitSystem": "METRIC"})
        assert state.vehicle_type == VehicleType.PICKUP
        assert state.unit_system == UnitSystem.METRIC


class TestStepGating:
    def test_vehicle_required(self):
        state = next_step(create_advanced_flow_state())
        assert state.step == VEHICLE
        assert "vehicleType" in state.errors

    def test_only_pickups_supported(self):
        state = set_vehicle_type(create_advanced_flow_state(), "van")
        assert state.step_validation[VEHICLE] is False
        assert next_step(state).step == VEHICLE

    def test_missing_truck_fields_block(self):
        state = next_step(set_vehicle_type(create_advanced_flow_state(), "pickup"))
        assert state.step == TRUCK
        state = set_truck_field(state, "bedLengthClosed", 96)
        blocked = next_step(state)
        assert blocked.step == TRUCK
        assert "tailgateHeight" in blocked.errors

    def test_out_of_range_truck_blocks(self):
        state = next_step(set_vehicle_type(create_advanced_flow_state(), "pickup"))
        state = _fill(state, truck={**TRUCK_B, "bedLengthClosed": 30})
        assert next_step(state).step == TRUCK

    def test_review_runs_evaluation(self):
        state = _walk_to_review(create_advanced_flow_state())
        state = set_tailgate_requirements(state, True, True)
        state = next_step(state)
        assert state.step == REVIEW
        done = next_step(state)
        assert done.step == RESULT
        assert done.result.success is True
        assert done.result.primary_recommendation.ramp_id == RampModelId.AUN210
        assert done.quote.total == 1262.23

    def test_hard_failure_has_no_quote(self):
        state = _walk_to_review(create_advanced_flow_state())
        state = set_motorcycle_field(state, "totalLength", 95)
        state = next_step(set_tailgate_requirements(state, True, True))
        done = next_step(state)
        assert done.step == RESULT
        assert done.result.success is False
        assert done.quote is None


class TestFieldSetters:
    def test_unknown_field(self):
        with pytest.raises(ValueError):
            set_truck_field(create_advanced_flow_state(), "paintColor", "red")
        with pytest.raises(ValueError):
            set_motorcycle_field(create_advanced_flow_state(), "cc", 1200)

    def test_removing_tonneau_clears_dependents(self):
        state = create_advanced_flow_state()
        state = set_truck_field(state, "hasTonneau", True)
        state = set_truck_field(state, "tonneauType", "roll-up-soft")
        state = set_truck_field(state, "rollDirection", "into-bed")
        state = set_truck_field(state, "hasTonneau", False)
        assert "tonneauType" not in state.truck
        assert "rollDirection" not in state.truck

    def test_non_roll_up_clears_direction(self):
        state = create_advanced_flow_state()
        state = set_truck_field(state, "rollDirection", "on-top")
        state = set_truck_field(state, "tonneauType", "hinged")
        assert "rollDirection" not in state.truck

    def test_loaded_implies_must_close(self):
        state = set_tailgate_requirements(create_advanced_flow_state(), False, True)
        assert state.motorcycle_loaded_when_closed is False

    def test_touched_fields(self):
        state = set_truck_field(create_advanced_flow_state(), "bedLengthClosed", "96")
        state = set_truck_field(state, "bedLengthClosed", 97)
        assert state.touched_fields == ("truck.bedLengthClosed",)
        assert state.truck["bedLengthClosed"] == 97

    def test_metric_values_validated_after_conversion(self):
        state = set_unit_system(create_advanced_flow_state(), UnitSystem.METRIC)
        state = _fill(
            state,
            truck={"bedLengthClosed": 243.84, "bedLengthWithTailgate": 289.56, "tailgateHeight": 55.88},
            moto={"totalLength": 215.9, "wheelbase": 152.4, "weight": 204},
        )
        assert validate_step(state, TRUCK).is_valid is True
        assert validate_step(state, MOTORCYCLE).is_valid is True

    def test_unit_switch_keeps_values(self):
        state = _fill(create_advanced_flow_state())
        switched = set_unit_system(state, "metric")
        assert switched.truck == state.truck
        # 96 cm is far below the minimum bed length
        assert switched.step_validation[TRUCK] is False


class TestNavigation:
    def test_previous_step(self):
        state = next_step(set_vehicle_type(create_advanced_flow_state(), "pickup"))
        assert previous_step(state).step == VEHICLE
        assert previous_step(create_advanced_flow_state()).step == VEHICLE

    def test_forward_jump_needs_valid_steps(self):
        state = create_advanced_flow_state()
        assert go_to_step(state, REVIEW).step == VEHICLE
        ready = _fill(set_vehicle_type(state, "pickup"))
        assert go_to_step(ready, REVIEW).step == REVIEW

    def test_backward_jump_always_allowed(self):
        state = _walk_to_review(create_advanced_flow_state())
        assert go_to_step(state, VEHICLE).step == VEHICLE

    def test_unknown_step(self):
        with pytest.raises(ValueError):
            go_to_step(create_advanced_flow_state(), "payment")


class TestProgress:
    def test_start(self):
        progress = get_progress(create_advanced_flow_state())
        assert progress["index"] == 0
        assert progress["total"] == 5
        assert progress["title"] == "Vehicle Type"

    def test_result(self):
        state = next_step(next_step(_walk_to_review(create_advanced_flow_state())))
        assert state.step == RESULT
        progress = get_progress(state)
        assert progress["percent"] == 100
        assert progress["title"] == "Your Recommendation"
