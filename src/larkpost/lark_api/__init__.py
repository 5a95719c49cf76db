"""larkpost.lark_api -- Feishu Open API transport and endpoint wrappers.

This sub-package provides:

* :mod:`.rate_limit` -- Token bucket rate limiters (sync and async).
* :mod:`.retries` -- Retry decision logic and exponential backoff.
* :mod:`.auth` -- Tenant access token cache and token endpoint helpers.
* :mod:`.transport` -- HTTP transport with auth, retries, and rate limiting.
* :mod:`.messages` -- Message send/edit/reaction wrappers.
* :mod:`.media` -- Image and file upload wrappers.
"""

from __future__ import annotations

from .auth import TenantTokenCache
from .media import AsyncMediaAPI, MediaAPI, infer_file_type
from .messages import AsyncMessageAPI, MessageAPI
from .rate_limit import AsyncTokenBucket, TokenBucket
from .retries import compute_backoff, should_retry
from .transport import AsyncLarkTransport, LarkTransport

__all__ = [
    "AsyncLarkTransport",
    "AsyncMediaAPI",
    "AsyncMessageAPI",
    "AsyncTokenBucket",
    "LarkTransport",
    "MediaAPI",
    "MessageAPI",
    "TenantTokenCache",
    "TokenBucket",
    "compute_backoff",
    "infer_file_type",
    "should_retry",
]
