"""FastAPI dependency injection."""

import logging
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request

from ramp_fitment.config import Settings, get_settings
from ramp_fitment.services.flow_sync import FlowSyncStore, get_flow_sync_store

logger = logging.getLogger(__name__)


def get_sync_store() -> FlowSyncStore:
    """Dependency for the flow-sync store."""
    return get_flow_sync_store()


async def verify_admin_key(
    request: Request,
    x_admin_key: Annotated[str | None, Header()] = None,
    settings: Settings = Depends(get_settings),
) -> bool:
    """Verify admin API key for protected endpoints."""
    if not settings.api_admin_key:
        logger.warning("API_ADMIN_KEY not set - admin endpoints disabled")
        raise HTTPException(
            status_code=503,
            detail="Admin endpoints not configured. Set API_ADMIN_KEY environment variable.",
        )

    if not x_admin_key:
        raise HTTPException(status_code=401, detail="Missing X-Admin-Key header")

    if x_admin_key != settings.api_admin_key:
        logger.warning(f"Invalid admin key attempt from {request.client}")
        raise HTTPException(status_code=403, detail="Invalid admin key")

    return True
