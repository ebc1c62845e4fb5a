"""
Mneme Sync Server - Rate Limiting

Fixed one-minute window request limit per client IP address.
"""

import logging
import threading
import time
from typing import Dict, Optional, Tuple

from fastapi import HTTPException, Request, status

from mneme_server import runtime

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60
SWEEP_INTERVAL_SECONDS = 5 * 60

# client ip -> (window start, request count)
_windows: Dict[str, Tuple[float, int]] = {}
_windows_lock = threading.Lock()
_last_sweep: Optional[float] = None


def ResetRateLimits() -> None:
    """Forget all request counts. Called during server startup"""
    global _last_sweep
    with _windows_lock:
        _windows.clear()
        _last_sweep = None


def _SweepExpiredWindows(now: float) -> None:
    """Forget clients whose window has closed. Caller must hold _windows_lock."""
    expired = [ip for ip, (window_start, _) in _windows.items() if now - window_start >= WINDOW_SECONDS]
    for client_ip in expired:
        del _windows[client_ip]
    if expired:
        logger.debug(f"Dropped {len(expired)} expired rate limit window(s)")


def RegisterRequest(client_ip: str, limit: int, now: float = None) -> bool:
    """
    Count one request for client_ip

    Returns:
        True if the request is within the limit
    """
    global _last_sweep
    now = time.monotonic() if now is None else now

    with _windows_lock:
        if _last_sweep is None or now - _last_sweep >= SWEEP_INTERVAL_SECONDS:
            _SweepExpiredWindows(now)
            _last_sweep = now

        window_start, count = _windows.get(client_ip, (now, 0))
        if now - window_start >= WINDOW_SECONDS:
            window_start, count = now, 0
        count += 1
        _windows[client_ip] = (window_start, count)

    return count <= limit


def CheckRateLimit(request: Request) -> None:
    """
    FastAPI dependency enforcing rate_limit_per_minute

    Raises:
        HTTPException: 429 when the caller's window is exhausted
    """
    limit = runtime.config_manager.GetRateLimitPerMinute()
    if limit <= 0:
        return

    client_ip = request.client.host if request.client else "unknown"
    if not RegisterRequest(client_ip, limit):
        logger.warning(f"Rate limit exceeded for {client_ip}")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests"
        )
