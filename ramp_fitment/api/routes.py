"""FastAPI route definitions for the Ramp Fitment API."""

from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ramp_fitment.api.deps import get_sync_store, verify_admin_key
from ramp_fitment.core.enums import FlowSource, RampModelId
from ramp_fitment.core.logging import log_error, logger
from ramp_fitment.models.base import CamelModel
from ramp_fitment.models.fitment import ValidationResult
from ramp_fitment.models.inputs import AdvancedFlowInput, QuickFlowInput
from ramp_fitment.services.accessories import (
    get_accessory_notes,
    validate_accessory_compatibility,
)
from ramp_fitment.services.config_store import (
    ConfigError,
    get_active_ramp_models,
    get_all_accessories,
    get_config,
    get_quick_flow_bed_options,
    reload_config,
    validate_config,
)
from ramp_fitment.services.flow_sync import (
    FlowSyncStore,
    advanced_state_from_record,
    get_sync_message,
    quick_state_from_record,
)
from ramp_fitment.services.output_builder import (
    build_calculated_values_summary,
    build_plain_text_summary,
)
from ramp_fitment.services.quick_flow import (
    QUESTION_ORDER,
    build_question_flow,
    create_quick_flow_state,
    get_progress,
    process_answer,
    should_show_question,
)
from ramp_fitment.services.quote import build_quote
from ramp_fitment.services.ramp_selector import (
    evaluate_advanced_flow,
    evaluate_quick_flow,
    explain_recommendation,
)
from ramp_fitment.services.validation import (
    validate_advanced_flow_input,
    validate_quick_flow_input,
)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request / Response Models
# ---------------------------------------------------------------------------


class CompatibilityRequest(CamelModel):
    accessory_id: str
    ramp_id: RampModelId


class SyncRequest(CamelModel):
    source: FlowSource
    quick_data: Optional[dict[str, Any]] = None
    advanced_data: Optional[dict[str, Any]] = None
    recommendation: Optional[RampModelId] = None


def _reject(validation: ValidationResult) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={"errors": validation.errors, "warnings": validation.warnings},
    )


# ---------------------------------------------------------------------------
# Fitment evaluation
# ---------------------------------------------------------------------------


@router.post("/fitment/quick")
async def quick_fitment(req: QuickFlowInput):
    """Coarse recommendation from categorical answers."""
    validation = validate_quick_flow_input(req)
    if not validation.is_valid:
        raise _reject(validation)

    result = evaluate_quick_flow(req)
    return {
        **result.to_json_dict(),
        "validationWarnings": validation.warnings,
        "explanation": explain_recommendation(result),
    }


@router.post("/fitment/advanced")
async def advanced_fitment(
    req: AdvancedFlowInput,
    quantity: Annotated[int, Query(ge=1, le=100)] = 1,
    extras: Annotated[Optional[list[str]], Query()] = None,
):
    """Precise recommendation from exact measurements, with a quote on success."""
    validation = validate_advanced_flow_input(req)
    if not validation.is_valid:
        raise _reject(validation)

    result = evaluate_advanced_flow(req)
    quote = build_quote(result, quantity=quantity, extras=extras)
    return {
        **result.to_json_dict(),
        "validationWarnings": validation.warnings,
        "explanation": explain_recommendation(result),
        "quote": quote.to_json_dict() if quote else None,
        "calculatedValuesSummary": build_calculated_values_summary(result.calculated_values),
        "summaryText": build_plain_text_summary(result, quote),
    }


# ---------------------------------------------------------------------------
# Quick flow questions
# ---------------------------------------------------------------------------


@router.get("/quick-flow/questions")
async def quick_flow_questions(request: Request):
    """Question flow for the answers given as query parameters.

    Example: ``/api/quick-flow/questions?bedLength=short&hasTonneau=yes``
    """
    state = create_quick_flow_state()
    try:
        for question_id in QUESTION_ORDER:
            value = request.query_params.get(question_id)
            if value is None or not should_show_question(question_id, state.answers):
                continue
            state = process_answer(state, question_id, value)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return {
        "questions": [q.to_json_dict() for q in build_question_flow(state.answers)],
        "answers": state.answers,
        "currentQuestionId": state.current_question_id,
        "isComplete": state.is_complete,
        "progress": get_progress(state),
        "result": state.result.to_json_dict() if state.result else None,
    }


# ---------------------------------------------------------------------------
# Accessories
# ---------------------------------------------------------------------------


@router.post("/accessories/compatibility")
async def accessory_compatibility(req: CompatibilityRequest):
    """Check whether an accessory can attach to a ramp model."""
    check = validate_accessory_compatibility(req.accessory_id, req.ramp_id)
    return {
        "accessoryId": req.accessory_id,
        "rampId": req.ramp_id.value,
        "isCompatible": check.is_compatible,
        "reason": check.reason,
    }


# ---------------------------------------------------------------------------
# Flow sync
# ---------------------------------------------------------------------------


@router.put("/sync/{session_id}")
async def save_sync(
    session_id: str,
    req: SyncRequest,
    store: Annotated[FlowSyncStore, Depends(get_sync_store)],
):
    """Save (merge) a flow's data for the session."""
    record = store.save(
        session_id,
        req.source,
        quick_data=req.quick_data,
        advanced_data=req.advanced_data,
        recommendation=req.recommendation,
    )
    return {"record": record.to_json_dict(), "status": store.status(session_id)}


@router.get("/sync/{session_id}")
async def get_sync(
    session_id: str,
    store: Annotated[FlowSyncStore, Depends(get_sync_store)],
    target: Optional[FlowSource] = None,
):
    """Fetch a session's sync record, plus a pre-filled state for ``target``."""
    record = store.get(session_id)
    if record is None:
        raise HTTPException(status_code=404, detail="No sync data for session")

    response: dict[str, Any] = {
        "record": record.to_json_dict(),
        "status": store.status(session_id),
    }
    if target is not None:
        if target == FlowSource.QUICK:
            state = quick_state_from_record(record)
        else:
            state = advanced_state_from_record(record)
        response["message"] = get_sync_message(record, target)
        response["state"] = state.to_json_dict()
    return response


@router.delete("/sync/{session_id}")
async def clear_sync(
    session_id: str,
    store: Annotated[FlowSyncStore, Depends(get_sync_store)],
):
    return {"cleared": store.clear(session_id)}


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@router.get("/config")
async def config_summary():
    """Catalog summary for clients: ramps, accessories, bed-length options."""
    config = get_config()
    return {
        "version": config.engine_settings.version,
        "ramps": [
            {
                "id": m.id.value,
                "name": m.name,
                "price": m.price,
                "folds": m.folds,
                "canCloseTailgateLoaded": m.can_close_tailgate_loaded,
                "features": list(m.features),
            }
            for m in get_active_ramp_models()
        ],
        "accessories": [
            {
                "id": a.id.value,
                "name": a.name,
                "price": a.price,
                "category": a.category.value,
                "notes": get_accessory_notes(a.id),
            }
            for a in get_all_accessories()
        ],
        "bedLengthOptions": [o.model_dump(by_alias=True) for o in get_quick_flow_bed_options()],
    }


@router.post("/config/reload")
async def config_reload(_admin: Annotated[bool, Depends(verify_admin_key)]):
    """Reload configuration documents from disk.

    Requires X-Admin-Key header for authentication.
    """
    try:
        config = reload_config()
    except ConfigError as e:
        log_error("Config reload failed", e, document=e.document)
        raise HTTPException(status_code=500, detail=f"Invalid configuration: {e}")

    ok, problems = validate_config(config)
    logger.info(f"Reloaded fitment config version={config.engine_settings.version}")
    return {
        "status": "reloaded",
        "version": config.engine_settings.version,
        "valid": ok,
        "problems": problems,
    }
