"""SDK configuration for larkpost.

:class:`LarkpostConfig` is a dataclass that captures every tuneable knob
exposed by the SDK.  Instances are passed to the Markdown converter and to
both :class:`LarkpostClient` and :class:`AsyncLarkpostClient`.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

DEFAULT_BASE_URL = "https://open.feishu.cn/open-apis"
"""Feishu Open API root.  Use ``https://open.larksuite.com/open-apis`` for Lark."""

DEFAULT_PLACEHOLDER_TEXT = "Thinking... 💭"


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass
class LarkpostConfig:
    """Complete configuration for a larkpost converter or client.

    Every parameter has a sensible default.  The converter needs none of
    the credential fields; the clients need ``app_id`` and ``app_secret``.

    Parameters
    ----------
    app_id:
        Feishu app ID used to obtain a tenant access token.
    app_secret:
        Feishu app secret.  Never logged.
    base_url:
        API root URL.  Override for Lark (international) or testing.
    locale:
        Key under which the post body is nested (``zh_cn``, ``en_us``, ...).
    bullet:
        Glyph substituted for ``- `` / ``* `` list markers.
    enable_italic:
        Recognise single-asterisk ``*italic*`` markup.  Off by default so
        that output matches the established post renderer, which never
        emits italic runs.
    placeholder_enabled:
        Whether :meth:`send_placeholder` sends anything.
    placeholder_text:
        Text of the placeholder message.
    uuid_prefix:
        Prefix of the idempotency ``uuid`` attached to sent messages.
    token_refresh_margin:
        Seconds before expiry at which a cached tenant token is refreshed.
    retry_max_attempts:
        Maximum number of attempts per request for retryable failures.
    retry_base_delay:
        Base delay (seconds) for exponential backoff.
    retry_max_delay:
        Upper cap (seconds) on computed backoff delay.
    retry_jitter:
        Scale backoff intervals randomly to 50-100 % of their value.
    rate_limit_rps:
        Target requests per second for client-side pacing (token bucket).
    timeout_seconds:
        HTTP request timeout in seconds.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    metrics:
        Optional :class:`~larkpost.observability.MetricsHook` backend.
    debug_dump_document:
        Write each converted document (as post JSON) to *stderr*.
    debug_dump_payload:
        Write the (redacted) request and response of every API call to
        *stderr*.
    """

    # ── Credentials ─────────────────────────────────────────────────────
    app_id: str = ""

    app_secret: str = ""

    base_url: str = DEFAULT_BASE_URL

    # ── Rendering ───────────────────────────────────────────────────────
    locale: str = "zh_cn"

    bullet: str = "•"

    enable_italic: bool = False

    # ── Placeholder / send ──────────────────────────────────────────────
    placeholder_enabled: bool = False

    placeholder_text: str = DEFAULT_PLACEHOLDER_TEXT

    uuid_prefix: str = "larkpost"

    # ── Auth ────────────────────────────────────────────────────────────
    token_refresh_margin: float = 60.0

    # ── Retry & rate ────────────────────────────────────────────────────
    retry_max_attempts: int = 5

    retry_base_delay: float = 1.0

    retry_max_delay: float = 60.0

    retry_jitter: bool = True

    rate_limit_rps: float = 5.0

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float = 30.0

    http_proxy: str | None = None

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_document: bool = False

    debug_dump_payload: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        from urllib.parse import urlparse

        parsed = urlparse(self.base_url)
        if parsed.scheme == "http" and parsed.hostname not in (
            "localhost",
            "127.0.0.1",
            "::1",
        ):
            raise ValueError(
                f"base_url uses insecure HTTP for non-local host '{parsed.hostname}'. "
                "Use HTTPS to protect your app secret, or target localhost for testing."
            )

        if not self.locale:
            raise ValueError("locale must be a non-empty string")
        if self.retry_max_attempts < 1:
            raise ValueError(f"retry_max_attempts must be >= 1, got {self.retry_max_attempts}")
        if self.retry_base_delay < 0:
            raise ValueError(f"retry_base_delay must be >= 0, got {self.retry_base_delay}")
        if self.retry_max_delay < 0:
            raise ValueError(f"retry_max_delay must be >= 0, got {self.retry_max_delay}")
        if self.rate_limit_rps <= 0:
            raise ValueError(f"rate_limit_rps must be > 0, got {self.rate_limit_rps}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if self.token_refresh_margin < 0:
            raise ValueError(
                f"token_refresh_margin must be >= 0, got {self.token_refresh_margin}"
            )

    def __repr__(self) -> str:
        """Mask the app secret to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "app_secret":
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"app_secret='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"LarkpostConfig({', '.join(parts)})"
