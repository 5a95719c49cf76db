"""Tenant access token caching.

Feishu's "internal app" flow trades ``app_id`` / ``app_secret`` for a
tenant access token valid for ``expire`` seconds (two hours at the time of
writing).  :class:`TenantTokenCache` keeps the current token and reports it
stale ``refresh_margin`` seconds before it actually expires, so requests
never race the expiry.

The cache only stores state; fetching is done by the transports, which
hold a lock around the check-then-fetch sequence.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from larkpost.errors import LarkpostAuthError

TOKEN_PATH = "/auth/v3/tenant_access_token/internal"

# Envelope codes meaning the bearer token is invalid or expired.  A request
# failing with one of these is retried once with a freshly fetched token.
TOKEN_INVALID_CODES: frozenset[int] = frozenset({99991661, 99991663, 99991664, 99991668})


class TenantTokenCache:
    """Holds the current tenant access token and its deadline.

    Parameters
    ----------
    refresh_margin:
        Seconds before expiry at which the token counts as stale.
    clock:
        Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        refresh_margin: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._refresh_margin = refresh_margin
        self._clock = clock
        self._token: str | None = None
        self._deadline: float = 0.0

    def current(self) -> str | None:
        """Return the cached token, or ``None`` if missing or stale."""
        if self._token is None or self._clock() >= self._deadline:
            return None
        return self._token

    def store(self, token: str, expire_seconds: float) -> None:
        self._token = token
        self._deadline = self._clock() + max(expire_seconds - self._refresh_margin, 0.0)

    def invalidate(self) -> None:
        self._token = None
        self._deadline = 0.0


def token_request_body(app_id: str, app_secret: str) -> dict[str, str]:
    """Build the JSON body for :data:`TOKEN_PATH`."""
    if not app_id or not app_secret:
        raise LarkpostAuthError(
            message="app_id and app_secret are required to obtain a tenant access token",
            context={"app_id": app_id},
        )
    return {"app_id": app_id, "app_secret": app_secret}


def parse_token_response(body: dict[str, Any], app_id: str) -> tuple[str, float]:
    """Extract ``(token, expire_seconds)`` from a token endpoint response.

    Raises
    ------
    LarkpostAuthError
        If the envelope reports an error or the token is missing.
    """
    code = body.get("code", 0)
    token = body.get("tenant_access_token")
    if code != 0 or not token:
        raise LarkpostAuthError(
            message=f"Tenant access token request failed: {body.get('msg', 'no token returned')}",
            context={"lark_code": code, "app_id": app_id},
        )
    return token, float(body.get("expire", 0))
