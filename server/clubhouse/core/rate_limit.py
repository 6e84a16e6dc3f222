"""Rate limiting for the public kiosk endpoints and login, using slowapi."""

import ipaddress
import re
from functools import lru_cache

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from clubhouse.core.config import get_settings

DEFAULT_RETRY_AFTER_SECONDS = 60

_PERIOD_SECONDS = {"second": 1, "minute": 60, "hour": 3600, "day": 86400}
_LIMIT_PATTERN = re.compile(r"per\s+(\d+)\s+(second|minute|hour|day)")


@lru_cache(maxsize=1)
def _get_trusted_proxies() -> tuple[
    frozenset[str],
    tuple[ipaddress.IPv4Network | ipaddress.IPv6Network, ...],
]:
    """Split the TRUSTED_PROXIES setting into exact IPs and CIDR networks (cached)."""
    exact = set()
    networks = []
    for entry in get_settings().trusted_proxies.split(","):
        entry = entry.strip()
        if not entry:
            continue
        if "/" in entry:
            networks.append(ipaddress.ip_network(entry, strict=False))
        else:
            exact.add(entry)
    return frozenset(exact), tuple(networks)


def _is_trusted_proxy(ip: str) -> bool:
    exact, networks = _get_trusted_proxies()
    if ip in exact:
        return True
    if not networks:
        return False
    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return any(addr in net for net in networks)


def get_client_ip(request: Request) -> str:
    """Resolve the client IP used as the rate limit and lockout key.

    Proxy headers are only honoured when the direct peer is a trusted proxy:
    X-Real-IP first (nginx overwrites it), then the first X-Forwarded-For hop.
    """
    direct_ip = get_remote_address(request)
    if not _is_trusted_proxy(direct_ip):
        return direct_ip

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    return direct_ip


def _retry_after_seconds(exc: RateLimitExceeded) -> int:
    """Derive Retry-After from a limit description like '10 per 1 minute'."""
    match = _LIMIT_PATTERN.search(str(getattr(exc, "detail", "")))
    if not match:
        return DEFAULT_RETRY_AFTER_SECONDS
    amount, period = match.groups()
    return int(amount) * _PERIOD_SECONDS[period]


limiter = Limiter(key_func=get_client_ip, enabled=get_settings().is_rate_limit_enabled)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    retry_after = _retry_after_seconds(exc)
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Rate limit exceeded. Please try again later.",
            "retry_after": retry_after,
        },
        headers={"Retry-After": str(retry_after)},
    )
