from __future__ import annotations

"""Usage and rough cost accounting for the admin endpoint.

In-memory only: values are lost on restart and not shared between
process instances.
"""

from datetime import datetime
from threading import Lock
from typing import Callable, Literal

from lovebridge.schemas.api_io import DailyLimits, UsageSnapshot, UsageStats
from lovebridge.utils.time import utcnow


UsageKind = Literal["translation", "speech"]

# Rough per-call USD estimates when the caller supplies no explicit cost
DEFAULT_COSTS: dict[str, float] = {"translation": 0.0001, "speech": 0.001}


class UsageTracker:
    def __init__(
        self,
        *,
        max_translations: int,
        max_speech_requests: int,
        now: datetime | None = None,
    ) -> None:
        self._lock = Lock()
        self._limits = DailyLimits(max_translations=max_translations, max_speech_requests=max_speech_requests)
        self._stats = self._fresh(now or utcnow())
        self._limit_listeners: list[Callable[[DailyLimits], None]] = []

    def _fresh(self, now: datetime) -> UsageStats:
        return UsageStats(last_reset=now, daily_limits=self._limits.model_copy())

    def on_limits_changed(self, listener: Callable[[DailyLimits], None]) -> None:
        self._limit_listeners.append(listener)

    def track(self, kind: UsageKind, cost: float | None = None) -> None:
        if kind not in DEFAULT_COSTS:
            raise ValueError(f"unknown usage kind: {kind}")
        amount = DEFAULT_COSTS[kind] if cost is None else cost
        with self._lock:
            if kind == "translation":
                self._stats.total_translations += 1
            else:
                self._stats.total_speech_requests += 1
            self._stats.estimated_cost += amount

    def stats(self) -> UsageStats:
        with self._lock:
            return self._stats.model_copy(deep=True)

    def snapshot(self, now: datetime | None = None) -> UsageSnapshot:
        now = now or utcnow()
        stats = self.stats()
        uptime_hours = max(0.0, (now - stats.last_reset).total_seconds() / 3600)
        limits = stats.daily_limits
        return UsageSnapshot(
            **stats.model_dump(),
            uptime_hours=round(uptime_hours, 2),
            average_translations_per_hour=round(stats.total_translations / max(uptime_hours, 0.1), 2),
            remaining_daily_translations=max(0, limits.max_translations - stats.total_translations),
            remaining_daily_speech=max(0, limits.max_speech_requests - stats.total_speech_requests),
        )

    def reset(self, now: datetime | None = None) -> UsageStats:
        with self._lock:
            self._stats = self._fresh(now or utcnow())
            return self._stats.model_copy(deep=True)

    def update_limits(
        self,
        *,
        max_translations: int | None = None,
        max_speech_requests: int | None = None,
    ) -> UsageStats:
        """Apply new daily ceilings; falsy values leave a limit unchanged."""

        with self._lock:
            if max_translations:
                self._limits.max_translations = int(max_translations)
            if max_speech_requests:
                self._limits.max_speech_requests = int(max_speech_requests)
            self._stats.daily_limits = self._limits.model_copy()
            limits = self._limits.model_copy()
            result = self._stats.model_copy(deep=True)
        for listener in self._limit_listeners:
            listener(limits)
        return result
