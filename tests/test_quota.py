from __future__ import annotations

from datetime import datetime, timedelta, timezone

from lovebridge.config.settings import QuotaSettings
from lovebridge.services.quota import DailyCounter, QuotaGate, RateLimiter
from lovebridge.utils.time import day_key


T0 = datetime(2026, 3, 14, 12, 0, 0, tzinfo=timezone.utc)


def test_rate_limiter_allows_up_to_threshold_then_rejects():
    limiter = RateLimiter(5, 60)
    for i in range(5):
        decision = limiter.check("1.2.3.4", T0 + timedelta(seconds=i))
        assert decision.allowed
        assert decision.count == i + 1

    sixth = limiter.check("1.2.3.4", T0 + timedelta(seconds=10))
    assert not sixth.allowed
    assert sixth.retry_after == 50


def test_rate_limiter_retry_after_is_positive_at_window_edge():
    limiter = RateLimiter(1, 60)
    limiter.check("k", T0)
    decision = limiter.check("k", T0 + timedelta(seconds=60))
    assert not decision.allowed
    assert decision.retry_after >= 1


def test_rate_limiter_window_is_tumbling():
    limiter = RateLimiter(2, 60)
    assert limiter.check("k", T0).allowed
    assert limiter.check("k", T0 + timedelta(seconds=59)).allowed
    assert not limiter.check("k", T0 + timedelta(seconds=59, milliseconds=500)).allowed
    # first request after the window closes starts a fresh window
    fresh = limiter.check("k", T0 + timedelta(seconds=61))
    assert fresh.allowed
    assert fresh.count == 1


def test_rate_limiter_keys_are_independent():
    limiter = RateLimiter(1, 60)
    assert limiter.check("a", T0).allowed
    assert limiter.check("b", T0).allowed
    assert not limiter.check("a", T0).allowed


def test_rate_limiter_prunes_expired_entries():
    limiter = RateLimiter(5, 60, prune_every=3)
    limiter.check("old-1", T0)
    limiter.check("old-2", T0)
    assert len(limiter) == 2
    limiter.check("new", T0 + timedelta(minutes=5))
    assert len(limiter) == 1


def test_daily_counter_rejects_over_ceiling():
    counter = DailyCounter(3)
    results = [counter.check(T0).allowed for _ in range(4)]
    assert results == [True, True, True, False]
    assert counter.count == 4


def test_daily_counter_resets_once_after_skipped_days():
    counter = DailyCounter(2)
    counter.check(T0)
    counter.check(T0)
    assert not counter.check(T0).allowed

    later = T0 + timedelta(days=9)
    first = counter.check(later)
    assert first.allowed
    assert first.count == 1
    assert counter.last_reset_date == "2026-03-23"
    assert counter.check(later + timedelta(hours=1)).count == 2


def test_daily_counter_respects_timezone_offset():
    late_utc = datetime(2026, 3, 14, 23, 30, tzinfo=timezone.utc)
    assert day_key(late_utc) == "2026-03-14"
    assert day_key(late_utc, offset_minutes=60) == "2026-03-15"

    counter = DailyCounter(1, offset_minutes=60)
    counter.check(datetime(2026, 3, 14, 22, 0, tzinfo=timezone.utc))
    assert counter.check(late_utc).allowed


def test_daily_counter_update_limit():
    counter = DailyCounter(1)
    counter.check(T0)
    assert not counter.check(T0).allowed
    counter.update_limit(10)
    assert counter.check(T0).allowed


def test_quota_gate_uses_settings():
    gate = QuotaGate("speech", QuotaSettings(per_minute=1, per_day=2))
    assert gate.check_minute("ip", T0).allowed
    assert not gate.check_minute("ip", T0).allowed
    assert gate.check_day(T0).allowed
    assert gate.check_day(T0).allowed
    assert not gate.check_day(T0).allowed
