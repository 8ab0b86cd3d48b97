from __future__ import annotations

"""Speech-to-text endpoint."""

import base64
import binascii
import re

from fastapi import APIRouter, Depends

from lovebridge.api.deps import enforce_daily_quota, get_state, require_api_secret, speech_minute_gate
from lovebridge.api.errors import ClientInputError
from lovebridge.schemas.api_io import SpeechRequest, TranscriptionResult
from lovebridge.services.logging import get_logger
from lovebridge.services.state import AppState
from lovebridge.services.stt_clients import SOURCE_PRIMARY, SOURCE_SECONDARY


router = APIRouter(prefix="/api")

DEFAULT_MIME_TYPE = "audio/wav"
_MIME_RE = re.compile(r"[A-Za-z0-9.+-]+/[A-Za-z0-9.+-]+(\s*;[ -~]*)?")
_URLSAFE = str.maketrans("-_", "+/")


def clean_mime_type(mime_type: str | None) -> str:
    """Return an ASCII type/subtype (params allowed), else audio/wav."""

    if mime_type and _MIME_RE.fullmatch(mime_type.strip()):
        return mime_type.strip()
    return DEFAULT_MIME_TYPE


def decode_audio(audio_data: str | None) -> bytes:
    """Decode base64 audio as leniently as browsers produce it.

    Accepts a data: URL prefix, embedded line breaks, the URL-safe
    alphabet and missing padding.
    """

    if not audio_data:
        raise ClientInputError("No audio data provided")
    # Browsers sometimes send a data: URL instead of bare base64
    if audio_data.startswith("data:") and "," in audio_data:
        audio_data = audio_data.split(",", 1)[1]
    compact = "".join(audio_data.split()).translate(_URLSAFE)
    compact += "=" * (-len(compact) % 4)
    try:
        audio = base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError):
        raise ClientInputError("Invalid audio data encoding")
    if not audio:
        raise ClientInputError("No audio data provided")
    return audio


@router.post(
    "/speech-to-text",
    response_model=TranscriptionResult,
    response_model_exclude_none=True,
    dependencies=[Depends(require_api_secret)],
)
async def speech_to_text(
    body: SpeechRequest,
    caller: str = Depends(speech_minute_gate),
    state: AppState = Depends(get_state),
) -> TranscriptionResult:
    logger = get_logger().bind(caller=caller)
    audio = decode_audio(body.audio_data)
    enforce_daily_quota(state, "speech")

    mime_type = clean_mime_type(body.mime_type)
    logger.info("speech_request", audio_bytes=len(audio), mime_type=mime_type)
    result = await state.transcriber.run(audio, mime_type)

    real = result.source in {SOURCE_PRIMARY, SOURCE_SECONDARY}
    state.usage.track("speech", cost=None if real else 0.0)
    return result
