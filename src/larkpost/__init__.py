"""larkpost — Markdown to Feishu/Lark rich-text message SDK.

Public re-exports
-----------------

* **Clients:** :class:`LarkpostClient`, :class:`AsyncLarkpostClient`
* **Conversion:** :class:`MarkdownToPostConverter`, :func:`render_markdown`
* **Configuration:** :class:`LarkpostConfig`
* **Errors:** Every :class:`LarkpostError` subclass and :class:`ErrorCode`
* **Models:** Run types, documents, enums and result dataclasses

Usage::

    from larkpost import LarkpostClient, render_markdown

    msg_type, content = render_markdown("## Done\\n\\n- **all** tests pass")

    client = LarkpostClient(app_id="cli_xxx", app_secret="secret")
    client.send_markdown("oc_123", "## Done")
"""

from __future__ import annotations

from larkpost.async_client import AsyncLarkpostClient

# ── Clients ────────────────────────────────────────────────────────────
from larkpost.client import LarkpostClient

# ── Configuration ───────────────────────────────────────────────────────
from larkpost.config import DEFAULT_BASE_URL, DEFAULT_PLACEHOLDER_TEXT, LarkpostConfig

# ── Conversion ──────────────────────────────────────────────────────────
from larkpost.converter import MarkdownToPostConverter, render_markdown

# ── Errors ──────────────────────────────────────────────────────────────
from larkpost.errors import (
    ErrorCode,
    LarkpostAPIError,
    LarkpostAuthError,
    LarkpostError,
    LarkpostMediaError,
    LarkpostNetworkError,
    LarkpostNotFoundError,
    LarkpostPermissionError,
    LarkpostRateLimitError,
    LarkpostRetryExhaustedError,
    LarkpostSerializationError,
    LarkpostValidationError,
)

# ── Models ──────────────────────────────────────────────────────────────
from larkpost.models import (
    Block,
    BlockKind,
    Document,
    Link,
    MediaPart,
    MessageType,
    PlainText,
    Reaction,
    RenderResult,
    SendResult,
    Style,
    StyledText,
)

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Clients
    "LarkpostClient",
    "AsyncLarkpostClient",
    # Conversion
    "MarkdownToPostConverter",
    "render_markdown",
    # Configuration
    "LarkpostConfig",
    "DEFAULT_BASE_URL",
    "DEFAULT_PLACEHOLDER_TEXT",
    # Error base + code enum
    "LarkpostError",
    "ErrorCode",
    # API / transport errors
    "LarkpostValidationError",
    "LarkpostAuthError",
    "LarkpostPermissionError",
    "LarkpostNotFoundError",
    "LarkpostRateLimitError",
    "LarkpostRetryExhaustedError",
    "LarkpostNetworkError",
    "LarkpostAPIError",
    # Conversion / media errors
    "LarkpostSerializationError",
    "LarkpostMediaError",
    # Models: runs and documents
    "PlainText",
    "StyledText",
    "Link",
    "Document",
    "Block",
    # Models: enums
    "Style",
    "BlockKind",
    "MessageType",
    # Models: results
    "RenderResult",
    "SendResult",
    "Reaction",
    "MediaPart",
]
