from __future__ import annotations

"""Quota gate: per-caller fixed-window rate limit plus a global daily counter.

State is per-process. Parallel instances each enforce their own limits; a
globally correct gate needs a shared, atomically-incrementable store.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from threading import Lock

from lovebridge.config.settings import QuotaSettings
from lovebridge.utils.time import day_key


@dataclass
class GateDecision:
    allowed: bool
    count: int
    limit: int
    retry_after: int = 0


@dataclass
class RateLimitEntry:
    caller_key: str
    count: int
    window_reset_at: datetime


class RateLimiter:
    """Fixed (tumbling) window counter keyed by caller."""

    def __init__(self, max_per_window: int, window_seconds: int = 60, *, prune_every: int = 100) -> None:
        self.max_per_window = max_per_window
        self.window = timedelta(seconds=window_seconds)
        self.prune_every = max(1, prune_every)
        self._entries: dict[str, RateLimitEntry] = {}
        self._checks = 0
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def check(self, caller_key: str, now: datetime) -> GateDecision:
        with self._lock:
            self._checks += 1
            if self._checks % self.prune_every == 0:
                self._prune(now)

            entry = self._entries.get(caller_key)
            if entry is None or now > entry.window_reset_at:
                self._entries[caller_key] = RateLimitEntry(caller_key, 1, now + self.window)
                return GateDecision(allowed=True, count=1, limit=self.max_per_window)

            entry.count += 1
            if entry.count > self.max_per_window:
                remaining = (entry.window_reset_at - now).total_seconds()
                return GateDecision(
                    allowed=False,
                    count=entry.count,
                    limit=self.max_per_window,
                    retry_after=max(1, math.ceil(remaining)),
                )
            return GateDecision(allowed=True, count=entry.count, limit=self.max_per_window)

    def _prune(self, now: datetime) -> None:
        stale = [k for k, e in self._entries.items() if now > e.window_reset_at]
        for k in stale:
            del self._entries[k]


class DailyCounter:
    """Global per-day counter, reset lazily when the date key changes."""

    def __init__(self, max_allowed: int, *, offset_minutes: int = 0) -> None:
        self.max_allowed = max_allowed
        self.offset_minutes = offset_minutes
        self.count = 0
        self.last_reset_date: str | None = None
        self._lock = Lock()

    def check(self, now: datetime) -> GateDecision:
        today = day_key(now, self.offset_minutes)
        with self._lock:
            if self.last_reset_date != today:
                self.count = 0
                self.last_reset_date = today
            self.count += 1
            return GateDecision(
                allowed=self.count <= self.max_allowed,
                count=self.count,
                limit=self.max_allowed,
            )

    def update_limit(self, max_allowed: int) -> None:
        with self._lock:
            self.max_allowed = max_allowed


class QuotaGate:
    """Per-minute limiter and daily counter for one request kind."""

    def __init__(self, kind: str, settings: QuotaSettings, *, offset_minutes: int = 0) -> None:
        self.kind = kind
        self.limiter = RateLimiter(
            settings.per_minute,
            settings.window_seconds,
            prune_every=settings.prune_every,
        )
        self.daily = DailyCounter(settings.per_day, offset_minutes=offset_minutes)

    def check_minute(self, caller_key: str, now: datetime) -> GateDecision:
        return self.limiter.check(caller_key, now)

    def check_day(self, now: datetime) -> GateDecision:
        return self.daily.check(now)
