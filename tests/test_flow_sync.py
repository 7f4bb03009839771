"""Flow sync store and cross-flow mapping tests."""

import pytest

from ramp_fitment.core.enums import FlowSource, RampModelId, VehicleType
from ramp_fitment.services.flow_sync import (
    FlowSyncStore,
    advanced_state_from_record,
    get_bed_length_hints,
    get_flow_sync_store,
    get_sync_message,
    map_advanced_to_quick,
    map_quick_to_advanced,
    quick_state_from_record,
    resolve_conflicts,
)

TRUCK_B = {"bedLengthClosed": 96, "bedLengthWithTailgate": 114, "tailgateHeight": 22}


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return FlowSyncStore(maxsize=8, ttl=24 * 3600, timer=clock)


# =============================================================================
# Store
# =============================================================================


class TestStore:
    def test_save_and_get(self, store):
        store.save("s1", FlowSource.QUICK, quick_data={"bedLength": "short"})
        record = store.get("s1")
        assert record.source == FlowSource.QUICK
        assert record.quick_data == {"bedLength": "short"}
        assert record.advanced_data == {}
        assert len(store) == 1

    def test_missing_session(self, store):
        assert store.get("nope") is None

    def test_merge_keeps_both_flows(self, store, clock):
        first = store.save("s1", FlowSource.QUICK, quick_data={"bedLength": "short"})
        clock.advance(30)
        second = store.save("s1", FlowSource.ADVANCED, advanced_data={"truck": TRUCK_B})
        assert second.source == FlowSource.ADVANCED
        assert second.quick_data == {"bedLength": "short"}
        assert second.advanced_data == {"truck": TRUCK_B}
        assert second.created_at == first.created_at
        assert second.updated_at == first.updated_at + 30

    def test_newer_values_win_and_nested_dicts_merge(self, store):
        store.save("s1", FlowSource.ADVANCED, advanced_data={"truck": {"bedLengthClosed": 96}})
        store.save(
            "s1",
            FlowSource.ADVANCED,
            advanced_data={"truck": {"bedLengthClosed": 97, "tailgateHeight": 22}},
        )
        assert store.get("s1").advanced_data["truck"] == {
            "bedLengthClosed": 97,
            "tailgateHeight": 22,
        }

    def test_recommendation_is_kept(self, store):
        store.save("s1", FlowSource.QUICK, recommendation=RampModelId.AUN210)
        store.save("s1", FlowSource.QUICK, quick_data={"hasTonneau": False})
        assert store.get("s1").last_recommendation == RampModelId.AUN210

    def test_expiry(self, clock):
        store = FlowSyncStore(ttl=60, timer=clock)
        record = store.save("s1", FlowSource.QUICK)
        assert record.expires_at == clock.now + 60
        clock.advance(59)
        assert store.get("s1") is not None
        clock.advance(2)
        assert store.get("s1") is None

    def test_clear(self, store):
        store.save("s1", FlowSource.QUICK)
        assert store.clear("s1") is True
        assert store.clear("s1") is False
        assert store.get("s1") is None

    def test_status(self, store, clock):
        assert store.status("s1") == {
            "hasData": False,
            "source": None,
            "ageMinutes": None,
            "isStale": False,
        }
        store.save("s1", FlowSource.QUICK)
        assert store.status("s1")["isStale"] is False
        clock.advance(61 * 60)
        status = store.status("s1")
        assert status["hasData"] is True
        assert status["source"] == "quick"
        assert status["ageMinutes"] == 61.0
        assert status["isStale"] is True


class TestStoreFactory:
    def test_default_ttl_from_engine_settings(self):
        assert get_flow_sync_store().ttl == 24 * 3600

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("SYNC_TTL_SECONDS", "120")
        assert get_flow_sync_store().ttl == 120

    def test_singleton(self):
        assert get_flow_sync_store() is get_flow_sync_store()


# =============================================================================
# Mapping
# =============================================================================


class TestMapping:
    def test_quick_to_advanced(self):
        prefill = map_quick_to_advanced(
            {
                "bedLength": "short",
                "hasTonneau": True,
                "tonneauType": "roll-up-soft",
                "rollDirection": "into-bed",
                "tailgateRequired": True,
                "motorcycleLoadedWhenClosed": False,
            }
        )
        assert prefill == {
            "vehicleType": "pickup",
            "truck": {
                "hasTonneau": True,
                "tonneauType": "roll-up-soft",
                "rollDirection": "into-bed",
            },
            "tailgateMustClose": True,
            "motorcycleLoadedWhenClosed": False,
        }

    def test_advanced_to_quick(self):
        answers = map_advanced_to_quick(
            {"truck": {"bedLengthClosed": 78, "hasTonneau": False}, "tailgateMustClose": False}
        )
        assert answers == {"bedLength": "standard", "hasTonneau": False, "tailgateRequired": False}

    def test_advanced_to_quick_metric(self):
        answers = map_advanced_to_quick({"truck": {"bedLengthClosed": 250}, "unitSystem": "metric"})
        assert answers["bedLength"] == "long"

    def test_loaded_answer_only_when_closing(self):
        answers = map_advanced_to_quick(
            {"tailgateMustClose": False, "motorcycleLoadedWhenClosed": True}
        )
        assert "motorcycleLoadedWhenClosed" not in answers

    def test_bed_length_hints(self):
        hints = get_bed_length_hints("long")
        assert hints == {
            "category": "long",
            "displayRange": "8'+",
            "minInches": 96,
            "maxInches": None,
            "estimateInches": 108,
        }
        assert get_bed_length_hints("unsure") is None

    def test_advanced_wins_conflicts(self):
        merged, conflicts = resolve_conflicts(
            {"bedLength": "short", "hasTonneau": False},
            {"truck": {"bedLengthClosed": 84, "hasTonneau": False}},
        )
        assert merged["bedLength"] == "standard"
        assert conflicts == ["bedLength"]

    def test_no_conflicts(self):
        merged, conflicts = resolve_conflicts({"bedLength": "long"}, {})
        assert merged == {"bedLength": "long"}
        assert conflicts == []


class TestPrefilledStates:
    def test_sync_message(self, store):
        record = store.save("s1", FlowSource.QUICK, quick_data={"bedLength": "short"})
        assert get_sync_message(record, FlowSource.ADVANCED).startswith("We pre-filled")
        assert get_sync_message(record, FlowSource.QUICK) is None
        assert get_sync_message(None, FlowSource.QUICK) is None

    def test_quick_state_from_record(self, store):
        record = store.save("s1", FlowSource.QUICK, quick_data={"bedLength": "short"})
        state = quick_state_from_record(record)
        assert state.answers == {"bedLength": "short"}
        assert state.current_question_id == "hasTonneau"

    def test_quick_state_prefers_measurements(self, store):
        store.save("s1", FlowSource.QUICK, quick_data={"bedLength": "short"})
        record = store.save("s1", FlowSource.ADVANCED, advanced_data={"truck": TRUCK_B})
        assert quick_state_from_record(record).answers["bedLength"] == "long"

    def test_advanced_state_from_record(self, store):
        record = store.save(
            "s1",
            FlowSource.ADVANCED,
            quick_data={"hasTonneau": False, "tailgateRequired": True},
            advanced_data={"truck": TRUCK_B},
        )
        state = advanced_state_from_record(record)
        assert state.vehicle_type == VehicleType.PICKUP
        assert state.truck == {**TRUCK_B, "hasTonneau": False}
        assert state.tailgate_must_close is True
        assert state.step_validation["truck-measurements"] is True

    def test_empty_record(self):
        assert quick_state_from_record(None).answers == {}
        assert advanced_state_from_record(None).vehicle_type is None
