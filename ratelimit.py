"""Per-client sliding-window quota for /api/translate.

Each call to the translation provider spends one slot of the caller's quota.
Slots are timestamps kept per client key and expire RATE_LIMIT_WINDOW seconds
after they were spent.
"""
import math
import time
from collections import defaultdict

from fastapi import HTTPException, Request

from log import get_logger

logger = get_logger("wordmatch.ratelimit")

# --- Config ---
RATE_LIMIT_REQUESTS = 30
RATE_LIMIT_WINDOW = 60
SWEEP_EVERY = 100  # quota checks between sweeps of idle clients
_rate_buckets: dict = defaultdict(list)  # client key -> timestamps of spent slots
_checks_since_sweep = 0


def get_rate_limit_key(request: Request) -> str:
    """First hop of X-Forwarded-For when behind a proxy, else the peer address."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def spend_slot(key: str, now: float = None) -> float:
    """Spend one slot of the client's quota.

    Returns 0 when the slot was granted, otherwise the seconds until the
    oldest spent slot expires.
    """
    now = time.time() if now is None else now
    live = [t for t in _rate_buckets[key] if t > now - RATE_LIMIT_WINDOW]
    _rate_buckets[key] = live
    if len(live) >= RATE_LIMIT_REQUESTS:
        return live[0] + RATE_LIMIT_WINDOW - now
    live.append(now)
    return 0.0


def sweep_idle_clients(now: float = None) -> int:
    """Every SWEEP_EVERY calls, forget clients with no live slots. Returns how many were dropped."""
    global _checks_since_sweep
    _checks_since_sweep += 1
    if _checks_since_sweep < SWEEP_EVERY:
        return 0
    _checks_since_sweep = 0
    now = time.time() if now is None else now
    idle = [key for key, spent in _rate_buckets.items() if not spent or spent[-1] <= now - RATE_LIMIT_WINDOW]
    for key in idle:
        del _rate_buckets[key]
    return len(idle)


def require_translate_quota(request: Request):
    """Route dependency: reject with 429 and Retry-After once the quota is spent."""
    key = get_rate_limit_key(request)
    sweep_idle_clients()
    wait = spend_slot(key)
    if wait:
        logger.info("Translate quota exhausted", extra={"component": "ratelimit", "ip": key})
        raise HTTPException(
            429, "Too many requests. Please wait a minute.",
            headers={"Retry-After": str(max(1, math.ceil(wait)))},
        )
