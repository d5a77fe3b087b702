"""In-memory fixed-window throttling for the signup and login endpoints.

Every request is counted against its client address. Login attempts are also
counted against the account email, so spreading guesses for one account over
many addresses still trips the limit. Counters live in process memory; with
several workers each one keeps its own.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

from fastapi import HTTPException, Request, status

from app.core.config import settings

WINDOW_SECONDS = 60


@dataclass
class _Window:
    started_at: float
    hits: int = 0

    def expired(self, now: float) -> bool:
        return now - self.started_at >= WINDOW_SECONDS

    def retry_after(self, now: float) -> int:
        return max(1, int(WINDOW_SECONDS - (now - self.started_at)))


# "<scope>|<kind>:<value>" -> window
_WINDOWS: dict[str, _Window] = {}


def _now() -> float:
    return time.time()


def client_address(request: Request) -> str:
    """First hop of ``X-Forwarded-For`` when behind a proxy, else the peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _keys(request: Request, scope: str, account: str | None) -> list[str]:
    keys = [f"{scope}|ip:{client_address(request)}"]
    if account:
        keys.append(f"{scope}|account:{account.strip().lower()}")
    return keys


def reset_rate_limits() -> None:
    """Forget every counter."""
    _WINDOWS.clear()


def enforce_rate_limit(
    request: Request,
    *,
    limit_per_minute: int,
    scope: str,
    account: str | None = None,
) -> None:
    """Count one attempt against the client address and, if given, the account.

    A rejected attempt is not counted.

    Raises:
        HTTPException(429) when any of the counters is already at the limit.
    """
    if not settings.rate_limit_enabled:
        return

    now = _now()
    windows = []
    for key in _keys(request, scope, account):
        window = _WINDOWS.get(key)
        if window is None or window.expired(now):
            window = _Window(started_at=now)
            _WINDOWS[key] = window
        windows.append(window)

    blocked = [w for w in windows if w.hits >= limit_per_minute]
    if blocked:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests. Please try again later.",
            headers={"Retry-After": str(max(w.retry_after(now) for w in blocked))},
        )

    for window in windows:
        window.hits += 1
