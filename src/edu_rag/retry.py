from __future__ import annotations

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Mapping, Optional

from tenacity import RetryCallState, wait_exponential, wait_random
from tenacity.wait import wait_base


def parse_retry_after(headers: Mapping[str, str], now: Optional[datetime] = None) -> Optional[float]:
    """
    Read a retry hint (seconds) from response headers.
    Understands `retry-after-ms`, and `Retry-After` as seconds or an HTTP-date.
    """
    ms = headers.get("retry-after-ms")
    if ms:
        try:
            return max(0.0, float(ms) / 1000.0)
        except ValueError:
            pass

    value = headers.get("retry-after")
    if not value:
        return None

    try:
        return max(0.0, float(value))
    except ValueError:
        pass

    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return max(0.0, (when - now).total_seconds())


def backoff_with_jitter(base_s: float, jitter_s: float, max_s: float) -> wait_base:
    """
    base, 2*base, 4*base, ... plus uniform jitter in [0, jitter_s].
    """
    return wait_exponential(multiplier=base_s, min=0, max=max_s) + wait_random(0, jitter_s)


class wait_retry_hint(wait_base):
    """
    Wait for the server-supplied hint carried on the last exception
    (its `retry_after` attribute), otherwise fall back to another wait.
    """

    def __init__(self, fallback: wait_base, max_s: float) -> None:
        self.fallback = fallback
        self.max_s = max_s

    def __call__(self, retry_state: RetryCallState) -> float:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        hint = getattr(exc, "retry_after", None)
        if hint is not None:
            return min(float(hint), self.max_s)
        return self.fallback(retry_state)
