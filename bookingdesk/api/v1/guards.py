import logging

from fastapi import Depends, Header, HTTPException, Request

from bookingdesk.application.exceptions import StoreUnavailableError
from bookingdesk.application.use_cases.admin_auth import AdminAuthenticator
from bookingdesk.application.utils.rate_limiter import FixedWindowRateLimiter
from bookingdesk.core.config import settings
from bookingdesk.wiring.dependencies import (
    get_admin_authenticator,
    get_booking_rate_limiter,
    get_login_rate_limiter,
)

logger = logging.getLogger(__name__)


def client_key(request: Request, trusted_hops: int | None = None) -> str:
    """Address used to key rate limits.

    X-Forwarded-For is only read behind ``TRUSTED_PROXY_HOPS`` proxies, and
    then the entry appended by the outermost trusted proxy is used. Entries
    to its left were supplied by the client.
    """
    hops = settings.TRUSTED_PROXY_HOPS if trusted_hops is None else trusted_hops
    if hops > 0:
        forwarded = [part.strip() for part in request.headers.get("x-forwarded-for", "").split(",") if part.strip()]
        if len(forwarded) >= hops:
            return forwarded[-hops]
    return request.client.host if request.client else "unknown"


def _enforce(limiter: FixedWindowRateLimiter, request: Request, route: str) -> None:
    client = client_key(request)
    if not limiter.hit(client, route):
        logger.warning("Rate limit exceeded", extra={"client": client, "route": route})
        raise HTTPException(status_code=429, detail="Too many requests - please wait a minute")


def limit_bookings(
    request: Request,
    limiter: FixedWindowRateLimiter = Depends(get_booking_rate_limiter),
) -> None:
    _enforce(limiter, request, "bookings")


def limit_login(
    request: Request,
    limiter: FixedWindowRateLimiter = Depends(get_login_rate_limiter),
) -> None:
    _enforce(limiter, request, "admin_login")


def require_admin(
    x_admin_token: str | None = Header(None),
    auth: AdminAuthenticator = Depends(get_admin_authenticator),
) -> None:
    try:
        valid = auth.verify(x_admin_token)
    except StoreUnavailableError as e:
        logger.exception("Admin token check failed", extra={"error": str(e)})
        raise HTTPException(status_code=500, detail="Authentication error")
    if not valid:
        raise HTTPException(status_code=401, detail="Not authenticated")
