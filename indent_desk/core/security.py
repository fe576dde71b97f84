"""
Request throttling and response headers.

Throttling is a token bucket per (client IP, tier). Tiers:

    submit  — POST /submit            burst 10, 1 token / 5s
    pdf     — GET /indent/<n>/pdf     burst 10, 1 token / 5s
    sheet   — GET|POST /exec          burst 30, 1 token / s
    default — anything else decorated burst 60, 2 tokens / s

Over the limit: 429 with {"ok": false, "error": ...}. Set
DISABLE_RATE_LIMIT=true to switch throttling off (tests do).
"""

import os
import time
import logging
import functools
import threading
from typing import NamedTuple

from flask import request, jsonify

log = logging.getLogger("indent.security")


class Tier(NamedTuple):
    burst: int
    per_second: float


TIERS = {
    "default": Tier(60, 2.0),
    "submit": Tier(10, 0.2),
    "pdf": Tier(10, 0.2),
    "sheet": Tier(30, 1.0),
}


class RateLimiter:
    """Token buckets keyed by string; state is (tokens, last_seen, tier).

    Every ``sweep_every`` calls, buckets that have refilled to their burst
    are dropped. A dropped bucket and a missing one behave the same.
    """

    def __init__(self, clock=time.monotonic, sweep_every: int = 500):
        self._clock = clock
        self._sweep_every = sweep_every
        self._calls = 0
        self._buckets = {}
        self._lock = threading.Lock()

    @staticmethod
    def _refilled(state, now) -> float:
        tokens, seen, tier = state
        return min(float(tier.burst), tokens + (now - seen) * tier.per_second)

    def allow(self, key: str, tier: Tier) -> bool:
        now = self._clock()
        with self._lock:
            state = self._buckets.get(key, (float(tier.burst), now, tier))
            tokens = self._refilled(state, now)
            allowed = tokens >= 1
            self._buckets[key] = (tokens - 1 if allowed else tokens, now, tier)
            self._calls += 1
            if self._calls >= self._sweep_every:
                self._calls = 0
                self._sweep(now)
        return allowed

    def _sweep(self, now):
        idle = [k for k, state in self._buckets.items()
                if self._refilled(state, now) >= state[2].burst]
        for k in idle:
            del self._buckets[k]
        if idle:
            log.debug("Dropped %d idle rate-limit buckets", len(idle))

    def __len__(self):
        with self._lock:
            return len(self._buckets)

    def reset(self):
        with self._lock:
            self._buckets.clear()
            self._calls = 0


limiter = RateLimiter()


def _throttling_disabled() -> bool:
    return os.environ.get("DISABLE_RATE_LIMIT", "").lower() == "true"


def rate_limit(tier: str = "default"):
    """Route decorator: 429 once the caller's bucket for ``tier`` is empty."""
    limits = TIERS.get(tier, TIERS["default"])

    def decorator(view):
        @functools.wraps(view)
        def wrapper(*args, **kwargs):
            if not _throttling_disabled():
                ip = request.remote_addr or "unknown"
                if not limiter.allow(f"{ip}:{tier}", limits):
                    log.warning("Throttled %s on %s (tier=%s)", ip, request.path, tier)
                    return jsonify({"ok": False,
                                    "error": "Too many requests, try again shortly."}), 429
            return view(*args, **kwargs)
        return wrapper
    return decorator


SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def add_security_headers(response):
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    # Form pages embed the stock snapshot; never cache them.
    if "Cache-Control" not in response.headers:
        response.headers["Cache-Control"] = "no-store"
    return response


def init_security(app):
    app.after_request(add_security_headers)
    log.info("Security headers on; throttling %s",
             "disabled" if _throttling_disabled() else "enabled")
