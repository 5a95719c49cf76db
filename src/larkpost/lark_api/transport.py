"""Sync and async HTTP transports for the Feishu Open API.

Each transport handles the full request lifecycle:

1. Attach ``Authorization: Bearer <tenant token>``, fetching or refreshing
   the token when the cache is empty or stale.
2. Acquire a token-bucket slot (wait if needed).
3. Send the request.
4. Parse the ``{code, msg, data}`` envelope.
5. ``code == 0`` on a 2xx response -- return the envelope.
6. Token-invalid ``code`` -- drop the cached token and retry once.
7. ``429`` / ``5xx`` / frequency-limit ``code`` / network error --
   exponential backoff and retry.
8. Anything else -- raise the matching typed error immediately.
9. Attempts exhausted -- raise :class:`LarkpostRetryExhaustedError`.
"""

from __future__ import annotations

import asyncio
import json as _json
import sys
import threading
import time
from dataclasses import dataclass
from typing import Any, NoReturn

import httpx

from larkpost.config import LarkpostConfig
from larkpost.errors import (
    LarkpostAPIError,
    LarkpostAuthError,
    LarkpostNetworkError,
    LarkpostNotFoundError,
    LarkpostPermissionError,
    LarkpostRetryExhaustedError,
    LarkpostValidationError,
)
from larkpost.observability import get_logger, resolve_metrics

from .auth import (
    TOKEN_INVALID_CODES,
    TOKEN_PATH,
    TenantTokenCache,
    parse_token_response,
    token_request_body,
)
from .rate_limit import AsyncTokenBucket, TokenBucket
from .retries import (
    _RETRYABLE_STATUSES,
    compute_backoff,
    is_rate_limited,
    should_retry,
)

log = get_logger("larkpost.transport")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _parse_retry_after(response: httpx.Response) -> float | None:
    """Extract the ``Retry-After`` header value as a float, or ``None``."""
    raw = response.headers.get("retry-after")
    if raw is None:
        return None
    try:
        return float(raw)
    except (ValueError, TypeError):
        return None


def _parse_body(response: httpx.Response) -> dict[str, Any]:
    """Return the decoded JSON envelope, or ``{}`` if there is none."""
    if not response.content:
        return {}
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _lark_code(body: dict[str, Any]) -> int | None:
    code = body.get("code")
    return code if isinstance(code, int) else None


def _raise_for_status(
    response: httpx.Response,
    body: dict[str, Any],
    method: str,
    path: str,
) -> NoReturn:
    """Raise the typed error for a non-retryable HTTP error status."""
    status = response.status_code
    lark_msg = body.get("msg", response.text[:500])
    ctx: dict[str, Any] = {"status_code": status, "lark_code": _lark_code(body)}

    if status == 401:
        raise LarkpostAuthError(
            message=f"Authentication failed on {method} {path}: {lark_msg}",
            context=ctx,
        )
    if status == 403:
        raise LarkpostPermissionError(
            message=f"Permission denied on {method} {path}: {lark_msg}",
            context={**ctx, "operation": f"{method} {path}"},
        )
    if status == 404:
        raise LarkpostNotFoundError(
            message=f"Resource not found on {method} {path}: {lark_msg}",
            context={**ctx, "path": path},
        )
    raise LarkpostValidationError(
        message=f"Client error {status} on {method} {path}: {lark_msg}",
        context={**ctx, "body": body},
    )


def _raise_for_code(body: dict[str, Any], method: str, path: str) -> NoReturn:
    """Raise :class:`LarkpostAPIError` for a non-zero envelope code."""
    lark_code = _lark_code(body)
    lark_msg = body.get("msg", "")
    raise LarkpostAPIError(
        message=f"Feishu API error on {method} {path} (code={lark_code} msg={lark_msg})",
        context={
            "lark_code": lark_code,
            "lark_msg": lark_msg,
            "method": method,
            "path": path,
        },
    )


def _dump_payload(
    method: str,
    url: str,
    payload: Any | None,
    response_status: int | None,
    response_body: Any | None,
    secrets: tuple[str, ...] = (),
) -> None:
    """Write a redacted debug dump of the request/response to stderr."""
    from larkpost.utils.redact import redact

    dump: dict[str, Any] = {"method": method, "url": url}
    if payload is not None:
        dump["request_body"] = payload
    if response_status is not None:
        dump["response_status"] = response_status
    if response_body is not None:
        dump["response_body"] = response_body
    print(
        _json.dumps(redact(dump, secrets), indent=2, default=str, ensure_ascii=False),
        file=sys.stderr,
    )


# ---------------------------------------------------------------------------
# Shared request helpers (used by both sync and async transports)
# ---------------------------------------------------------------------------

@dataclass
class _Outcome:
    """What the request loop should do after one attempt."""

    body: dict[str, Any] | None = None
    delay: float = 0.0
    refresh_token: bool = False


def _handle_network_exception(
    config: LarkpostConfig,
    metrics: Any,
    method: str,
    path: str,
    exc: Exception,
    attempt: int,
) -> float:
    """Return the backoff delay for a network error, or raise when exhausted."""
    metrics.increment(
        "larkpost.requests_total",
        tags={"method": method, "path": path, "status": "error"},
    )
    log.warning(
        "Request network error",
        extra={
            "extra_fields": {
                "op": "request",
                "method": method,
                "path": path,
                "attempt": attempt + 1,
                "error": str(exc),
            }
        },
    )
    if should_retry(None, exc, attempt, config.retry_max_attempts):
        metrics.increment(
            "larkpost.retries_total",
            tags={"method": method, "path": path, "reason": "network_error"},
        )
        return compute_backoff(
            attempt,
            base=config.retry_base_delay,
            maximum=config.retry_max_delay,
            jitter=config.retry_jitter,
        )
    raise LarkpostNetworkError(
        message=f"Network error on {method} {path}: {exc}",
        context={"url": path, "attempt": attempt + 1},
        cause=exc,
    ) from exc


def _evaluate_response(
    config: LarkpostConfig,
    metrics: Any,
    method: str,
    path: str,
    response: httpx.Response,
    elapsed_ms: float,
    attempt: int,
    *,
    authed: bool,
    refreshed: bool,
    envelope: bool,
    json_payload: Any,
    secrets: tuple[str, ...],
) -> _Outcome:
    """Classify one response: return it, retry it, or raise."""
    status = response.status_code
    body = _parse_body(response)
    lark_code = _lark_code(body)
    tags = {"method": method, "path": path, "status": str(status)}

    metrics.increment("larkpost.requests_total", tags=tags)
    metrics.timing("larkpost.request_duration_ms", elapsed_ms, tags=tags)

    if config.debug_dump_payload:
        _dump_payload(method, str(response.url), json_payload, status, body, secrets)

    if authed and lark_code in TOKEN_INVALID_CODES:
        if not refreshed:
            return _Outcome(refresh_token=True)
        raise LarkpostAuthError(
            message=f"Tenant access token rejected on {method} {path} after refresh",
            context={"status_code": status, "lark_code": lark_code},
        )

    if 200 <= status < 300 and (not envelope or not lark_code):
        return _Outcome(body=body)

    if status not in _RETRYABLE_STATUSES and not is_rate_limited(status, lark_code):
        if 200 <= status < 300:
            _raise_for_code(body, method, path)
        _raise_for_status(response, body, method, path)

    if not should_retry(status, None, attempt, config.retry_max_attempts, lark_code):
        raise LarkpostRetryExhaustedError(
            message=(
                f"All {attempt + 1} attempts exhausted for {method} {path} "
                f"(last status: {status}, last code: {lark_code})"
            ),
            context={
                "attempts": attempt + 1,
                "last_status_code": status,
                "last_lark_code": lark_code,
            },
        )

    retry_after: float | None = None
    reason = "server_error"
    if is_rate_limited(status, lark_code):
        retry_after = _parse_retry_after(response)
        reason = "rate_limited"
        metrics.increment("larkpost.rate_limited_total", tags={"method": method, "path": path})
        log.warning(
            "Rate limited by Feishu API",
            extra={
                "extra_fields": {
                    "op": "request",
                    "method": method,
                    "path": path,
                    "status_code": status,
                    "lark_code": lark_code,
                    "retry_after": retry_after,
                    "attempt": attempt + 1,
                }
            },
        )

    metrics.increment(
        "larkpost.retries_total",
        tags={"method": method, "path": path, "reason": reason},
    )
    return _Outcome(
        delay=compute_backoff(
            attempt,
            base=config.retry_base_delay,
            maximum=config.retry_max_delay,
            jitter=config.retry_jitter,
            retry_after=retry_after,
        )
    )


def _build_client_kwargs(config: LarkpostConfig) -> dict[str, Any]:
    # No default Content-Type: httpx sets JSON or multipart per request.
    return {
        "base_url": config.base_url,
        "timeout": httpx.Timeout(config.timeout_seconds),
        "proxy": config.http_proxy,
    }


# ---------------------------------------------------------------------------
# Sync transport
# ---------------------------------------------------------------------------

class LarkTransport:
    """Synchronous HTTP transport with tenant auth, retry, and rate limiting.

    Parameters
    ----------
    config:
        A :class:`LarkpostConfig` with ``app_id`` and ``app_secret`` set.
    """

    def __init__(self, config: LarkpostConfig) -> None:
        self._config = config
        self._bucket = TokenBucket(rate_rps=config.rate_limit_rps, burst=10)
        self._metrics = resolve_metrics(config.metrics)
        self._tokens = TenantTokenCache(config.token_refresh_margin)
        self._token_lock = threading.Lock()
        self._client = httpx.Client(**_build_client_kwargs(config))

    # -- auth --------------------------------------------------------------

    def tenant_token(self) -> str:
        """Return a valid tenant access token, fetching one if needed.

        Raises
        ------
        LarkpostAuthError
            If the credentials are missing or refused.
        """
        with self._token_lock:
            token = self._tokens.current()
            if token is not None:
                return token
            body_in = token_request_body(self._config.app_id, self._config.app_secret)
            try:
                body = self.request("POST", TOKEN_PATH, auth=False, envelope=False, json=body_in)
            except LarkpostValidationError as exc:
                raise LarkpostAuthError(
                    message=f"Tenant access token request refused: {exc.message}",
                    context={"app_id": self._config.app_id},
                    cause=exc,
                ) from exc
            token, expire = parse_token_response(body, self._config.app_id)
            self._tokens.store(token, expire)
            self._metrics.increment("larkpost.token_refresh_total")
            log.debug(
                "Tenant access token refreshed",
                extra={"extra_fields": {"op": "tenant_token", "expire": expire}},
            )
            return token

    def _secrets(self) -> tuple[str, ...]:
        return tuple(s for s in (self._config.app_secret, self._tokens.current()) if s)

    # -- public API --------------------------------------------------------

    def request(
        self,
        method: str,
        path: str,
        *,
        auth: bool = True,
        envelope: bool = True,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Execute an HTTP request against the Feishu Open API.

        Parameters
        ----------
        method:
            HTTP method (``GET``, ``POST``, ``PUT``, ``DELETE``, ...).
        path:
            API path relative to ``base_url`` (e.g. ``/im/v1/messages``).
        auth:
            Attach the tenant access token.  Only the token endpoint
            itself passes ``False``.
        envelope:
            Treat a non-zero ``code`` in a 2xx response as an error.
        **kwargs:
            Forwarded to :meth:`httpx.Client.request` (``json=``,
            ``params=``, ``data=``, ``files=``, ``headers=``).

        Returns
        -------
        dict
            The decoded response envelope (``{"code": 0, "data": {...}}``).

        Raises
        ------
        LarkpostAuthError
            On 401, or when the token is rejected after a refresh.
        LarkpostPermissionError
            On 403.
        LarkpostNotFoundError
            On 404.
        LarkpostValidationError
            On 400 and other non-retryable 4xx.
        LarkpostAPIError
            On a 2xx response whose envelope ``code`` is non-zero.
        LarkpostRetryExhaustedError
            When all retry attempts have been used.
        LarkpostNetworkError
            On transport-level failures after exhausting retries.
        """
        base_headers = dict(kwargs.pop("headers", None) or {})
        json_payload = kwargs.get("json")
        attempt = 0
        refreshed = False

        while True:
            headers = dict(base_headers)
            if auth:
                headers["Authorization"] = f"Bearer {self.tenant_token()}"

            wait = self._bucket.acquire()
            if wait > 0:
                self._metrics.timing(
                    "larkpost.rate_limit_wait_ms",
                    wait * 1000,
                    tags={"method": method, "path": path},
                )

            t0 = time.monotonic()
            try:
                response = self._client.request(method, path, headers=headers, **kwargs)
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                delay = _handle_network_exception(
                    self._config, self._metrics, method, path, exc, attempt,
                )
                time.sleep(delay)
                attempt += 1
                continue
            elapsed_ms = (time.monotonic() - t0) * 1000

            outcome = _evaluate_response(
                self._config, self._metrics, method, path, response, elapsed_ms, attempt,
                authed=auth, refreshed=refreshed, envelope=envelope,
                json_payload=json_payload, secrets=self._secrets(),
            )
            if outcome.refresh_token:
                self._tokens.invalidate()
                refreshed = True
                continue
            if outcome.body is not None:
                return outcome.body

            time.sleep(outcome.delay)
            attempt += 1

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> LarkTransport:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Async transport
# ---------------------------------------------------------------------------

class AsyncLarkTransport:
    """Asynchronous HTTP transport with tenant auth, retry, and rate limiting.

    Mirrors :class:`LarkTransport` on top of ``httpx.AsyncClient``.
    """

    def __init__(self, config: LarkpostConfig) -> None:
        self._config = config
        self._bucket = AsyncTokenBucket(rate_rps=config.rate_limit_rps, burst=10)
        self._metrics = resolve_metrics(config.metrics)
        self._tokens = TenantTokenCache(config.token_refresh_margin)
        self._token_lock = asyncio.Lock()
        self._client = httpx.AsyncClient(**_build_client_kwargs(config))

    async def tenant_token(self) -> str:
        """Return a valid tenant access token, fetching one if needed."""
        async with self._token_lock:
            token = self._tokens.current()
            if token is not None:
                return token
            body_in = token_request_body(self._config.app_id, self._config.app_secret)
            try:
                body = await self.request(
                    "POST", TOKEN_PATH, auth=False, envelope=False, json=body_in,
                )
            except LarkpostValidationError as exc:
                raise LarkpostAuthError(
                    message=f"Tenant access token request refused: {exc.message}",
                    context={"app_id": self._config.app_id},
                    cause=exc,
                ) from exc
            token, expire = parse_token_response(body, self._config.app_id)
            self._tokens.store(token, expire)
            self._metrics.increment("larkpost.token_refresh_total")
            log.debug(
                "Tenant access token refreshed",
                extra={"extra_fields": {"op": "tenant_token", "expire": expire}},
            )
            return token

    def _secrets(self) -> tuple[str, ...]:
        return tuple(s for s in (self._config.app_secret, self._tokens.current()) if s)

    async def request(
        self,
        method: str,
        path: str,
        *,
        auth: bool = True,
        envelope: bool = True,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Execute an HTTP request against the Feishu Open API (async).

        See :meth:`LarkTransport.request`; the semantics are identical.
        """
        base_headers = dict(kwargs.pop("headers", None) or {})
        json_payload = kwargs.get("json")
        attempt = 0
        refreshed = False

        while True:
            headers = dict(base_headers)
            if auth:
                headers["Authorization"] = f"Bearer {await self.tenant_token()}"

            wait = await self._bucket.acquire()
            if wait > 0:
                self._metrics.timing(
                    "larkpost.rate_limit_wait_ms",
                    wait * 1000,
                    tags={"method": method, "path": path},
                )

            t0 = time.monotonic()
            try:
                response = await self._client.request(method, path, headers=headers, **kwargs)
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                delay = _handle_network_exception(
                    self._config, self._metrics, method, path, exc, attempt,
                )
                await asyncio.sleep(delay)
                attempt += 1
                continue
            elapsed_ms = (time.monotonic() - t0) * 1000

            outcome = _evaluate_response(
                self._config, self._metrics, method, path, response, elapsed_ms, attempt,
                authed=auth, refreshed=refreshed, envelope=envelope,
                json_payload=json_payload, secrets=self._secrets(),
            )
            if outcome.refresh_token:
                self._tokens.invalidate()
                refreshed = True
                continue
            if outcome.body is not None:
                return outcome.body

            await asyncio.sleep(outcome.delay)
            attempt += 1

    async def close(self) -> None:
        """Close the underlying async HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncLarkTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
