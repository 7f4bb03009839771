"""Flow sync: carry answers between the quick and advanced flows.

A short-lived, keyed snapshot of whatever one flow already knows, so a user
who switches flows starts pre-filled. Records expire after the configured
TTL. When both flows have an opinion on the same field the advanced
(measured) value wins.

Thread-safe via a threading.Lock around a cachetools TTLCache. Each uvicorn
worker gets its own store (no cross-process sharing).
"""

import logging
import threading
import time
from functools import lru_cache
from typing import Any, Callable

from cachetools import TTLCache

from ramp_fitment.config import get_settings
from ramp_fitment.core.enums import (
    BedLengthAnswer,
    FlowSource,
    RampModelId,
    UnitSystem,
    VehicleType,
)
from ramp_fitment.models.flows import AdvancedFlowState, AnswerValue, FlowSyncRecord, QuickFlowState
from ramp_fitment.services.advanced_flow import create_advanced_flow_state
from ramp_fitment.services.bed_length import (
    categorize_bed_length,
    estimate_bed_length_from_category,
    get_estimated_midpoint,
)
from ramp_fitment.services.config_store import get_bed_category, get_engine_settings, get_message
from ramp_fitment.services.quick_flow import (
    BED_LENGTH,
    HAS_TONNEAU,
    MOTORCYCLE_LOADED,
    ROLL_DIRECTION,
    TAILGATE_REQUIRED,
    TONNEAU_TYPE,
    create_quick_flow_state,
)
from ramp_fitment.utils.converters import cm_to_inches, safe_float

logger = logging.getLogger(__name__)


class FlowSyncStore:
    """TTL store of flow-sync records keyed by session id."""

    def __init__(
        self,
        maxsize: int = 1024,
        ttl: float = 24 * 60 * 60,
        timer: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the store.

        Args:
            maxsize: Max sessions held at once.
            ttl: Time-to-live in seconds (default 24 hours).
            timer: Clock used for expiry and record timestamps.
        """
        self._ttl = ttl
        self._timer = timer
        self._cache: TTLCache[str, FlowSyncRecord] = TTLCache(
            maxsize=maxsize, ttl=ttl, timer=timer
        )
        self._lock = threading.Lock()

    @property
    def ttl(self) -> float:
        return self._ttl

    def save(
        self,
        session_id: str,
        source: FlowSource,
        quick_data: dict[str, AnswerValue] | None = None,
        advanced_data: dict[str, Any] | None = None,
        recommendation: RampModelId | None = None,
    ) -> FlowSyncRecord:
        """Merge new data into the session's record; newer values win."""
        now = self._timer()
        with self._lock:
            existing = self._cache.get(session_id)
            if existing is None:
                record = FlowSyncRecord(
                    session_id=session_id,
                    source=source,
                    quick_data=dict(quick_data or {}),
                    advanced_data=dict(advanced_data or {}),
                    last_recommendation=recommendation,
                    created_at=now,
                    updated_at=now,
                    expires_at=now + self._ttl,
                )
            else:
                record = FlowSyncRecord(
                    session_id=session_id,
                    source=source,
                    quick_data={**existing.quick_data, **(quick_data or {})},
                    advanced_data=_merge_advanced(existing.advanced_data, advanced_data or {}),
                    last_recommendation=recommendation or existing.last_recommendation,
                    created_at=existing.created_at,
                    updated_at=now,
                    expires_at=now + self._ttl,
                )
            self._cache[session_id] = record
        logger.debug("Flow sync saved: %s source=%s", session_id, source.value)
        return record

    def get(self, session_id: str) -> FlowSyncRecord | None:
        """Get a live record (thread-safe). Returns None when missing or expired."""
        with self._lock:
            return self._cache.get(session_id)

    def clear(self, session_id: str) -> bool:
        with self._lock:
            return self._cache.pop(session_id, None) is not None

    def status(self, session_id: str) -> dict[str, Any]:
        record = self.get(session_id)
        if record is None:
            return {"hasData": False, "source": None, "ageMinutes": None, "isStale": False}
        age_minutes = (self._timer() - record.updated_at) / 60
        stale_after = get_engine_settings().sync.stale_after_minutes
        return {
            "hasData": True,
            "source": record.source.value,
            "ageMinutes": round(age_minutes, 1),
            "isStale": age_minutes > stale_after,
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)


def _merge_advanced(old: dict[str, Any], new: dict[str, Any]) -> dict[str, Any]:
    merged = dict(old)
    for key, value in new.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


@lru_cache
def get_flow_sync_store() -> FlowSyncStore:
    settings = get_settings()
    ttl = settings.sync_ttl_seconds or get_engine_settings().sync.ttl_hours * 3600
    return FlowSyncStore(maxsize=settings.sync_max_entries, ttl=ttl)


# =============================================================================
# Mapping between flows
# =============================================================================


def map_quick_to_advanced(quick_data: dict[str, AnswerValue]) -> dict[str, Any]:
    """Advanced-flow prefill from quick answers. Bed length stays unmeasured."""
    truck: dict[str, Any] = {}
    if HAS_TONNEAU in quick_data:
        truck["hasTonneau"] = quick_data[HAS_TONNEAU] is True
    if quick_data.get(TONNEAU_TYPE):
        truck["tonneauType"] = quick_data[TONNEAU_TYPE]
    if quick_data.get(ROLL_DIRECTION):
        truck["rollDirection"] = quick_data[ROLL_DIRECTION]

    prefill: dict[str, Any] = {"vehicleType": VehicleType.PICKUP.value, "truck": truck}
    if TAILGATE_REQUIRED in quick_data:
        prefill["tailgateMustClose"] = quick_data[TAILGATE_REQUIRED] is True
    if MOTORCYCLE_LOADED in quick_data:
        prefill["motorcycleLoadedWhenClosed"] = quick_data[MOTORCYCLE_LOADED] is True
    return prefill


def map_advanced_to_quick(advanced_data: dict[str, Any]) -> dict[str, AnswerValue]:
    """Quick answers implied by advanced-flow data; measured bed length is categorized."""
    answers: dict[str, AnswerValue] = {}
    truck = advanced_data.get("truck")
    if not isinstance(truck, dict):
        truck = {}

    bed = safe_float(truck.get("bedLengthClosed"), default=0.0)
    if bed > 0:
        if advanced_data.get("unitSystem") == UnitSystem.METRIC.value:
            bed = cm_to_inches(bed)
        answers[BED_LENGTH] = categorize_bed_length(bed).value

    if "hasTonneau" in truck:
        answers[HAS_TONNEAU] = bool(truck["hasTonneau"])
        if truck["hasTonneau"] and truck.get("tonneauType"):
            answers[TONNEAU_TYPE] = str(truck["tonneauType"])
            if truck.get("rollDirection"):
                answers[ROLL_DIRECTION] = str(truck["rollDirection"])

    if "tailgateMustClose" in advanced_data:
        answers[TAILGATE_REQUIRED] = bool(advanced_data["tailgateMustClose"])
        if advanced_data["tailgateMustClose"] and "motorcycleLoadedWhenClosed" in advanced_data:
            answers[MOTORCYCLE_LOADED] = bool(advanced_data["motorcycleLoadedWhenClosed"])
    return answers


def get_bed_length_hints(answer: BedLengthAnswer | str) -> dict[str, Any] | None:
    """Measuring hints for the advanced flow from a quick bed-length answer."""
    answer = BedLengthAnswer(answer)
    bounds = estimate_bed_length_from_category(answer)
    if bounds is None:
        return None
    category = get_bed_category(answer.to_category())
    return {
        "category": category.id.value,
        "displayRange": category.display_range,
        "minInches": bounds[0],
        "maxInches": bounds[1],
        "estimateInches": get_estimated_midpoint(answer),
    }


def resolve_conflicts(
    quick_data: dict[str, AnswerValue], advanced_data: dict[str, Any]
) -> tuple[dict[str, AnswerValue], list[str]]:
    """Merge both flows' answers; advanced values win and conflicts are listed."""
    from_advanced = map_advanced_to_quick(advanced_data)
    conflicts = [
        key
        for key, value in from_advanced.items()
        if key in quick_data and quick_data[key] != value
    ]
    if conflicts:
        logger.info("Flow sync conflicts resolved in favor of advanced: %s", conflicts)
    return {**quick_data, **from_advanced}, conflicts


def get_sync_message(record: FlowSyncRecord | None, target: FlowSource) -> str | None:
    """Banner text for a flow that was pre-filled from the other one."""
    if record is None or record.source == target:
        return None
    if record.source == FlowSource.QUICK:
        return get_message("info.syncFromQuick")
    return get_message("info.syncFromAdvanced")


# =============================================================================
# Pre-populated flow states
# =============================================================================


def quick_state_from_record(record: FlowSyncRecord | None) -> QuickFlowState:
    if record is None:
        return create_quick_flow_state()
    answers, _ = resolve_conflicts(record.quick_data, record.advanced_data)
    return create_quick_flow_state(answers)


def advanced_state_from_record(record: FlowSyncRecord | None) -> AdvancedFlowState:
    if record is None:
        return create_advanced_flow_state()
    prefill = _merge_advanced(map_quick_to_advanced(record.quick_data), record.advanced_data)
    return create_advanced_flow_state(prefill)
