from __future__ import annotations

"""Admin endpoint: read, reset and re-limit usage statistics."""

from fastapi import APIRouter, Depends

from lovebridge.api.deps import get_state, require_admin
from lovebridge.api.errors import ClientInputError
from lovebridge.schemas.api_io import AdminAction, AdminActionResponse, UsageSnapshot
from lovebridge.services.logging import get_logger
from lovebridge.services.state import AppState


router = APIRouter(prefix="/api", dependencies=[Depends(require_admin)])


@router.get("/admin", response_model=UsageSnapshot)
async def usage_snapshot(state: AppState = Depends(get_state)) -> UsageSnapshot:
    return state.usage.snapshot()


@router.post("/admin", response_model=AdminActionResponse)
async def admin_action(body: AdminAction, state: AppState = Depends(get_state)) -> AdminActionResponse:
    logger = get_logger().bind(action=body.action)
    if body.action == "reset":
        stats = state.usage.reset()
        logger.info("usage_reset")
        return AdminActionResponse(message="Statistics reset successfully", usage_stats=stats)

    if body.action == "updateLimits":
        stats = state.usage.update_limits(
            max_translations=body.max_translations,
            max_speech_requests=body.max_speech_requests,
        )
        logger.info(
            "usage_limits_updated",
            max_translations=stats.daily_limits.max_translations,
            max_speech_requests=stats.daily_limits.max_speech_requests,
        )
        return AdminActionResponse(message="Limits updated successfully", usage_stats=stats)

    raise ClientInputError("Invalid action")
