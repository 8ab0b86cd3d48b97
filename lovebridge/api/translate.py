from __future__ import annotations

"""Translation endpoints: single-mode and three-language composite."""

from fastapi import APIRouter, Depends

from lovebridge.api.deps import enforce_daily_quota, get_state, require_api_secret, translation_minute_gate
from lovebridge.api.errors import ClientInputError
from lovebridge.schemas.api_io import (
    FullTranslationRequest,
    TranslateRequest,
    TranslateResponse,
    TranslationResult,
)
from lovebridge.services.logging import get_logger, preview
from lovebridge.services.state import AppState
from lovebridge.services.translator import FULL_MODES, MODES, TranslationError, demo_translation


router = APIRouter(prefix="/api", dependencies=[Depends(require_api_secret)])


def _admit_text(state: AppState, text: str, mode: str, allowed_modes: tuple[str, ...]) -> None:
    """Validate and filter input, then charge the daily quota."""

    if not text or not mode:
        raise ClientInputError("Invalid input parameters")
    max_len = state.settings.translation.max_text_length
    if len(text) > max_len:
        raise ClientInputError(f"Text too long. Maximum {max_len} characters.")
    if mode not in allowed_modes:
        raise ClientInputError("Invalid translation mode")

    blocked = state.content_filter.check(text)
    if blocked is not None:
        get_logger().warning("content_blocked", pattern=blocked, preview=preview(text))
        raise ClientInputError("Content not allowed")

    enforce_daily_quota(state, "translation")


@router.post("/translate", response_model=TranslateResponse)
async def translate(
    body: TranslateRequest,
    caller: str = Depends(translation_minute_gate),
    state: AppState = Depends(get_state),
) -> TranslateResponse:
    _admit_text(state, body.text, body.mode, MODES)
    get_logger().info("translation_request", caller=caller, mode=body.mode, text_len=len(body.text))
    try:
        translation = await state.translator.translate(body.text, body.mode)
    except TranslationError:
        state.metrics.inc("translations_total", labels={"mode": body.mode, "outcome": "failed"})
        raise
    state.metrics.inc("translations_total", labels={"mode": body.mode, "outcome": "ok"})
    return TranslateResponse(translation=translation)


@router.post("/translate/full", response_model=TranslationResult)
async def translate_full(
    body: FullTranslationRequest,
    caller: str = Depends(translation_minute_gate),
    state: AppState = Depends(get_state),
) -> TranslationResult:
    _admit_text(state, body.text, body.mode, FULL_MODES)
    logger = get_logger().bind(caller=caller, mode=body.mode)
    try:
        result = await state.translator.process_full_translation(body.text, body.mode)
    except TranslationError as e:
        state.metrics.inc("translations_total", labels={"mode": body.mode, "outcome": "failed"})
        if not state.settings.translation.demo_fallback:
            raise
        logger.warning("translation_demo_fallback", error=str(e))
        return demo_translation(body.mode)
    state.metrics.inc("translations_total", labels={"mode": body.mode, "outcome": "ok"})
    return result
