"""Shared test fixtures for the larkpost test suite."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from larkpost.config import LarkpostConfig
from larkpost.converter.md_to_post import MarkdownToPostConverter


class RecordingMetricsHook:
    """A metrics backend that records all calls for assertion."""

    def __init__(self) -> None:
        self.increments: list[dict[str, Any]] = []
        self.timings: list[dict[str, Any]] = []
        self.gauges: list[dict[str, Any]] = []

    def increment(self, name: str, value: int = 1, tags: dict[str, str] | None = None) -> None:
        self.increments.append({"name": name, "value": value, "tags": tags})

    def timing(self, name: str, ms: float, tags: dict[str, str] | None = None) -> None:
        self.timings.append({"name": name, "ms": ms, "tags": tags})

    def gauge(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        self.gauges.append({"name": name, "value": value, "tags": tags})

    def names(self) -> list[str]:
        return [c["name"] for c in self.increments]


def make_response(
    status_code: int = 200,
    body: dict | None = None,
    headers: dict | None = None,
) -> httpx.Response:
    """Build a minimal httpx.Response with a request attached."""
    content = json.dumps(body).encode() if body is not None else b""
    resp = httpx.Response(status_code, content=content, headers=headers or {})
    resp.request = httpx.Request("POST", "https://open.feishu.cn/open-apis/test")
    return resp


def ok(data: dict | None = None) -> httpx.Response:
    """A successful ``{code: 0}`` envelope."""
    return make_response(200, {"code": 0, "msg": "success", "data": data or {}})


def make_config(**overrides: Any) -> LarkpostConfig:
    """Return a LarkpostConfig tuned for fast, deterministic tests."""
    defaults: dict[str, Any] = dict(
        app_id="cli_test",
        app_secret="test-secret-1234",
        retry_max_attempts=3,
        retry_base_delay=0.0,
        retry_max_delay=0.0,
        retry_jitter=False,
        # High RPS so the token bucket never blocks.
        rate_limit_rps=10_000.0,
    )
    defaults.update(overrides)
    return LarkpostConfig(**defaults)


@pytest.fixture
def config() -> LarkpostConfig:
    """Default test configuration with dummy credentials."""
    return make_config()


@pytest.fixture
def converter(config: LarkpostConfig) -> MarkdownToPostConverter:
    """Markdown-to-post converter using the default test config."""
    return MarkdownToPostConverter(config)


@pytest.fixture
def metrics() -> RecordingMetricsHook:
    return RecordingMetricsHook()
