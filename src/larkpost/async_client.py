"""Asynchronous Feishu messaging client.

Mirrors :class:`~larkpost.client.LarkpostClient` with ``async def``
methods on top of :class:`~larkpost.lark_api.transport.AsyncLarkTransport`.
Rendering is CPU-only and stays synchronous; media files are read in the
default executor so the event loop is not blocked.

Usage::

    async with AsyncLarkpostClient(app_id="cli_xxx", app_secret="s") as client:
        placeholder = await client.send_placeholder("oc_123")
        ...
        await client.edit_markdown(placeholder, final_answer)
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Iterable
from typing import Any

from larkpost.client import (
    _log_reaction_failure,
    _log_sent,
    _message_id,
    _new_uuid,
    _placeholder_text,
    _read_media,
    _require,
    _resolve_media,
)
from larkpost.config import LarkpostConfig
from larkpost.converter.md_to_post import MarkdownToPostConverter
from larkpost.converter.serializer import encode_json
from larkpost.errors import LarkpostError
from larkpost.lark_api.media import AsyncMediaAPI
from larkpost.lark_api.messages import AsyncMessageAPI
from larkpost.lark_api.transport import AsyncLarkTransport
from larkpost.models import MediaPart, MessageType, Reaction, RenderResult, SendResult
from larkpost.observability import get_logger, resolve_metrics

log = get_logger("larkpost.async_client")


class AsyncLarkpostClient:
    """Asynchronous Feishu client that sends Markdown as rich-text posts.

    Accepts the same arguments as :class:`~larkpost.client.LarkpostClient`.
    """

    def __init__(self, app_id: str = "", app_secret: str = "", **kwargs: Any) -> None:
        self._config = LarkpostConfig(app_id=app_id, app_secret=app_secret, **kwargs)
        self._transport = AsyncLarkTransport(self._config)
        self._messages = AsyncMessageAPI(self._transport)
        self._media = AsyncMediaAPI(self._transport)
        self._converter = MarkdownToPostConverter(self._config)
        self._metrics = resolve_metrics(self._config.metrics)

    def render(self, content: str) -> RenderResult:
        """Render *content* without sending it."""
        return self._converter.render(content)

    async def send_markdown(
        self,
        chat_id: str,
        content: str,
        *,
        receive_id_type: str = "chat_id",
    ) -> SendResult:
        """Render *content* and send it to *chat_id*."""
        _require(chat_id, "chat ID")
        rendered = self._converter.render(content)
        data = await self._messages.create(
            chat_id,
            rendered.msg_type.value,
            rendered.content,
            receive_id_type=receive_id_type,
            uuid=_new_uuid(self._config.uuid_prefix),
        )
        message_id = _message_id(data, "send_markdown")
        self._metrics.increment(
            "larkpost.messages_sent_total", tags={"msg_type": rendered.msg_type.value},
        )
        _log_sent("send_markdown", chat_id, rendered.msg_type, rendered.degraded)
        return SendResult(
            message_id=message_id,
            msg_type=rendered.msg_type,
            degraded=rendered.degraded,
        )

    async def edit_markdown(self, message_id: str, content: str) -> SendResult:
        _require(message_id, "message ID")
        rendered = self._converter.render(content)
        await self._messages.update(message_id, rendered.msg_type.value, rendered.content)
        _log_sent("edit_markdown", message_id, rendered.msg_type, rendered.degraded)
        return SendResult(
            message_id=message_id,
            msg_type=rendered.msg_type,
            degraded=rendered.degraded,
        )

    async def send_placeholder(self, chat_id: str) -> str | None:
        if not self._config.placeholder_enabled:
            return None
        _require(chat_id, "chat ID")
        rendered = self._converter.render(_placeholder_text(self._config))
        data = await self._messages.create(
            chat_id,
            rendered.msg_type.value,
            rendered.content,
            uuid=_new_uuid(self._config.uuid_prefix, "ph"),
        )
        return _message_id(data, "send_placeholder")

    async def add_reaction(self, message_id: str, emoji_type: str = "Typing") -> Reaction:
        data = await self._messages.add_reaction(message_id, emoji_type)
        return Reaction(
            message_id=message_id,
            reaction_id=data.get("reaction_id", ""),
            emoji_type=emoji_type,
        )

    async def remove_reaction(self, reaction: Reaction) -> None:
        if reaction.removed or not reaction.reaction_id:
            return
        try:
            await self._messages.delete_reaction(reaction.message_id, reaction.reaction_id)
        except LarkpostError as exc:
            _log_reaction_failure(reaction, exc)
        reaction.removed = True

    async def _read(self, path: str, kind: str) -> tuple[str, bytes]:
        file_path = _resolve_media(path, kind)
        loop = asyncio.get_running_loop()
        data = await loop.run_in_executor(None, _read_media, file_path, kind)
        return file_path.name, data

    async def send_image(self, chat_id: str, path: str) -> SendResult:
        _require(chat_id, "chat ID")
        name, data = await self._read(path, "image")
        image_key = await self._media.upload_image(data, name)
        return await self._send_keyed(chat_id, MessageType.IMAGE, {"image_key": image_key}, "img")

    async def send_file(self, chat_id: str, path: str, filename: str | None = None) -> SendResult:
        _require(chat_id, "chat ID")
        name, data = await self._read(path, "file")
        file_key = await self._media.upload_file(data, filename or name)
        return await self._send_keyed(chat_id, MessageType.FILE, {"file_key": file_key}, "file")

    async def send_media(self, chat_id: str, parts: Iterable[MediaPart]) -> list[SendResult]:
        """Send each part in order; missing files are logged and skipped."""
        results: list[SendResult] = []
        for part in parts:
            if not os.path.isfile(os.path.expanduser(part.path)):
                log.error(
                    "Media file not found; skipping",
                    extra={"extra_fields": {"op": "send_media", "path": part.path}},
                )
                continue
            if part.kind == "image":
                results.append(await self.send_image(chat_id, part.path))
            else:
                results.append(await self.send_file(chat_id, part.path, part.filename))
        return results

    async def _send_keyed(
        self,
        chat_id: str,
        msg_type: MessageType,
        payload: dict[str, str],
        uuid_kind: str,
    ) -> SendResult:
        data = await self._messages.create(
            chat_id,
            msg_type.value,
            encode_json(payload),
            uuid=_new_uuid(self._config.uuid_prefix, uuid_kind),
        )
        message_id = _message_id(data, f"send_{msg_type.value}")
        self._metrics.increment("larkpost.messages_sent_total", tags={"msg_type": msg_type.value})
        _log_sent(f"send_{msg_type.value}", chat_id, msg_type)
        return SendResult(message_id=message_id, msg_type=msg_type)

    async def close(self) -> None:
        """Close the HTTP transport."""
        await self._transport.close()

    async def __aenter__(self) -> AsyncLarkpostClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
