from __future__ import annotations

"""Shared FastAPI dependencies: state access, caller key, bearer auth."""

from fastapi import Depends, Request

from lovebridge.api.errors import AuthError, QuotaExceeded
from lovebridge.services.logging import get_logger
from lovebridge.services.state import AppState
from lovebridge.utils.time import utcnow


def get_state(request: Request) -> AppState:
    return request.app.state.lovebridge


def caller_key(request: Request) -> str:
    """Best-effort caller identity for rate limiting.

    X-Forwarded-For is client-controlled; the first hop is used as-is.
    """

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",", 1)[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _bearer_matches(request: Request, secret: str) -> bool:
    header = request.headers.get("authorization")
    return bool(header) and header == f"Bearer {secret}"


def require_api_secret(request: Request, state: AppState = Depends(get_state)) -> None:
    """Require the shared API secret when one is configured."""

    secret = state.settings.api_secret
    if not secret:
        return
    if not _bearer_matches(request, secret):
        raise AuthError("Unauthorized")


def require_admin(request: Request, state: AppState = Depends(get_state)) -> None:
    secret = state.settings.admin_secret
    if not secret or not _bearer_matches(request, secret):
        raise AuthError("Admin access required")


def _minute_gate(kind: str):
    def dependency(request: Request, state: AppState = Depends(get_state)) -> str:
        gate = state.speech_gate if kind == "speech" else state.translation_gate
        key = caller_key(request)
        decision = gate.check_minute(key, utcnow())
        if not decision.allowed:
            get_logger().warning("quota_rejected", kind=kind, gate="minute", caller=key, count=decision.count)
            state.metrics.inc("quota_rejections_total", labels={"kind": kind, "gate": "minute"})
            raise QuotaExceeded(_MINUTE_MESSAGES[kind], retryAfter=decision.retry_after)
        return key

    return dependency


def enforce_daily_quota(state: AppState, kind: str) -> None:
    gate = state.speech_gate if kind == "speech" else state.translation_gate
    decision = gate.check_day(utcnow())
    if not decision.allowed:
        get_logger().warning("quota_rejected", kind=kind, gate="day", count=decision.count, limit=decision.limit)
        state.metrics.inc("quota_rejections_total", labels={"kind": kind, "gate": "day"})
        raise QuotaExceeded(_DAILY_MESSAGES[kind], dailyUsage=decision.count, maxDaily=decision.limit)


_MINUTE_MESSAGES = {
    "speech": "Speech rate limit exceeded. Please wait before recording again.",
    "translation": "Rate limit exceeded. Please wait before making more requests.",
}
_DAILY_MESSAGES = {
    "speech": "Daily speech recognition limit reached. Please use text input or try again tomorrow.",
    "translation": "Daily translation limit reached. Service will reset tomorrow.",
}

speech_minute_gate = _minute_gate("speech")
translation_minute_gate = _minute_gate("translation")
