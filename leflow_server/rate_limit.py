# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""In-memory rate limiting for auth endpoints (brute-force protection) and
the contact form (spam protection), plus client address resolution."""

import math
import time
from collections import defaultdict

from fastapi import Request

from leflow_server.config import settings
from leflow_server.errors import TooManyRequests

# (client_key, scope) -> list of request timestamps in window
_buckets: defaultdict[tuple[str, str], list[float]] = defaultdict(list)
# scope -> window seconds, used when sweeping idle buckets
_windows: dict[str, float] = {}
_last_sweep = 0.0
SWEEP_INTERVAL = 60
# Window seconds; max requests per window per endpoint
AUTH_WINDOW = 60
AUTH_LIMITS: dict[str, int] = {
    "/api/login": 10,
    "/api/register": 5,
    "/api/verify-email": 10,
    "/api/resend-verification": 5,
}
LOCAL_ADDRESSES = frozenset({"127.0.0.1", "::1", "::ffff:127.0.0.1"})


def client_ip(request: Request) -> str:
    """Client address as seen by the outermost trusted proxy.

    Each of the ``trusted_proxy_hops`` proxies appends the address it received
    the request from to X-Forwarded-For, so the entry that many places from
    the right is the client. Entries further left are client-supplied and
    ignored. With no trusted proxies the socket peer is used.
    """
    hops = settings.trusted_proxy_hops
    if hops > 0:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            chain = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
            if chain:
                return chain[-min(hops, len(chain))]
    if request.client:
        return request.client.host or "unknown"
    return "unknown"


def _clean_old(bucket: list[float], now: float, window: float) -> None:
    cutoff = now - window
    while bucket and bucket[0] <= cutoff:
        bucket.pop(0)


def sweep(now: float | None = None) -> None:
    """Drop buckets with no request left inside their window."""
    global _last_sweep
    now = time.monotonic() if now is None else now
    for key, bucket in list(_buckets.items()):
        _clean_old(bucket, now, _windows.get(key[1], 0))
        if not bucket:
            del _buckets[key]
    _last_sweep = now


def hit(key: str, scope: str, limit: int, window: float, now: float | None = None) -> float | None:
    """Record a request. Returns None if allowed, else seconds until a slot frees up."""
    now = time.monotonic() if now is None else now
    _windows[scope] = window
    if now - _last_sweep >= SWEEP_INTERVAL:
        sweep(now)
    bucket = _buckets[(key, scope)]
    _clean_old(bucket, now, window)
    if len(bucket) >= limit:
        return window - (now - bucket[0])
    bucket.append(now)
    return None


def reset() -> None:
    """Forget all recorded requests."""
    global _last_sweep
    _buckets.clear()
    _windows.clear()
    _last_sweep = 0.0


def check_rate_limit(request: Request, path: str) -> None:
    """
    Raise 429 if the client has exceeded the limit for this path.
    Call this at the start of the endpoint (or via a dependency).
    """
    limit = AUTH_LIMITS.get(path)
    if limit is None:
        return
    if hit(client_ip(request), path, limit, AUTH_WINDOW) is not None:
        raise TooManyRequests()


async def rate_limit_auth_dep(request: Request) -> None:
    """FastAPI dependency: rate limit auth endpoints. Add Depends(rate_limit_auth_dep) to routes."""
    path = request.url.path.rstrip("/")
    if path in AUTH_LIMITS:
        check_rate_limit(request, path)


def check_contact_rate_limit(ip: str, now: float | None = None) -> None:
    """Raise 429 naming the wait in minutes once an address exceeds the contact limit.

    Local addresses are never limited.
    """
    if not ip or ip in LOCAL_ADDRESSES:
        return
    retry_after = hit(
        ip,
        "contact",
        settings.contact_rate_limit,
        settings.contact_rate_window_seconds,
        now=now,
    )
    if retry_after is not None:
        minutes = max(1, math.ceil(retry_after / 60))
        raise TooManyRequests(
            f"Poslali ste previše upita. Molimo pokušajte ponovo za {minutes} minuta."
        )
