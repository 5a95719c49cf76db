"""Synchronous Feishu messaging client.

:class:`LarkpostClient` ties the Markdown converter to the message and media
APIs: Markdown goes in, a ``post`` message (or its plain-text fallback)
comes out on the other side.

Usage::

    from larkpost import LarkpostClient

    with LarkpostClient(app_id="cli_xxx", app_secret="secret") as client:
        result = client.send_markdown("oc_123", "## Done\\n\\nSee [logs](https://x)")
        print(result.message_id, result.msg_type)
"""

from __future__ import annotations

import os
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from larkpost.config import DEFAULT_PLACEHOLDER_TEXT, LarkpostConfig
from larkpost.converter.md_to_post import MarkdownToPostConverter
from larkpost.converter.serializer import encode_json
from larkpost.errors import (
    LarkpostAPIError,
    LarkpostError,
    LarkpostMediaError,
    LarkpostValidationError,
)
from larkpost.lark_api.media import MediaAPI
from larkpost.lark_api.messages import MessageAPI
from larkpost.lark_api.transport import LarkTransport
from larkpost.models import MediaPart, MessageType, Reaction, RenderResult, SendResult
from larkpost.observability import get_logger, resolve_metrics

log = get_logger("larkpost.client")


# ---------------------------------------------------------------------------
# Helpers shared with the async client
# ---------------------------------------------------------------------------

def _require(value: str, what: str) -> None:
    if not value:
        raise LarkpostValidationError(message=f"{what} is empty", context={"field": what})


def _new_uuid(prefix: str, kind: str = "") -> str:
    """Idempotency key for a send, e.g. ``larkpost-img-1700000000000000000``."""
    stem = f"{prefix}-{kind}" if kind else prefix
    return f"{stem}-{time.time_ns()}"


def _placeholder_text(config: LarkpostConfig) -> str:
    return config.placeholder_text or DEFAULT_PLACEHOLDER_TEXT


def _resolve_media(path: str, kind: str) -> Path:
    file_path = Path(path).expanduser()
    if not file_path.is_file():
        raise LarkpostMediaError(
            message=f"Media file not found: {path}",
            context={"path": path, "kind": kind},
        )
    return file_path


def _read_media(file_path: Path, kind: str) -> bytes:
    try:
        return file_path.read_bytes()
    except OSError as exc:
        raise LarkpostMediaError(
            message=f"Could not read media file {file_path}: {exc}",
            context={"path": str(file_path), "kind": kind},
            cause=exc,
        ) from exc


def _message_id(data: dict[str, Any], op: str) -> str:
    message_id = data.get("message_id")
    if not message_id:
        raise LarkpostAPIError(
            message=f"{op} returned no message_id",
            context={"op": op, "data": data},
        )
    return message_id


def _log_reaction_failure(reaction: Reaction, exc: LarkpostError) -> None:
    log.warning(
        "Could not remove reaction",
        extra={
            "extra_fields": {
                "op": "remove_reaction",
                "message_id": reaction.message_id,
                "emoji_type": reaction.emoji_type,
                "error_code": exc.code.value,
                "error": exc.message,
            }
        },
    )


def _log_sent(op: str, target: str, msg_type: MessageType, degraded: bool = False) -> None:
    log.debug(
        "Feishu message sent",
        extra={
            "extra_fields": {
                "op": op,
                "target": target,
                "msg_type": msg_type.value,
                "degraded": degraded,
            }
        },
    )


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class LarkpostClient:
    """Synchronous Feishu client that sends Markdown as rich-text posts.

    Parameters
    ----------
    app_id:
        Feishu app ID.
    app_secret:
        Feishu app secret.
    **kwargs:
        All remaining keyword arguments are forwarded to
        :class:`LarkpostConfig`.
    """

    def __init__(self, app_id: str = "", app_secret: str = "", **kwargs: Any) -> None:
        self._config = LarkpostConfig(app_id=app_id, app_secret=app_secret, **kwargs)
        self._transport = LarkTransport(self._config)
        self._messages = MessageAPI(self._transport)
        self._media = MediaAPI(self._transport)
        self._converter = MarkdownToPostConverter(self._config)
        self._metrics = resolve_metrics(self._config.metrics)

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    def render(self, content: str) -> RenderResult:
        """Render *content* without sending it."""
        return self._converter.render(content)

    def send_markdown(
        self,
        chat_id: str,
        content: str,
        *,
        receive_id_type: str = "chat_id",
    ) -> SendResult:
        """Render *content* and send it to *chat_id*.

        Returns
        -------
        SendResult
            The new message ID, the message type actually sent, and whether
            the plain-text fallback was used.

        Raises
        ------
        LarkpostValidationError
            If *chat_id* is empty.
        """
        _require(chat_id, "chat ID")
        rendered = self._converter.render(content)
        data = self._messages.create(
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

    def edit_markdown(self, message_id: str, content: str) -> SendResult:
        """Replace the content of *message_id* with rendered *content*.

        Feishu only allows editing a post into a post, which is why
        placeholders are sent as posts too.
        """
        _require(message_id, "message ID")
        rendered = self._converter.render(content)
        self._messages.update(message_id, rendered.msg_type.value, rendered.content)
        _log_sent("edit_markdown", message_id, rendered.msg_type, rendered.degraded)
        return SendResult(
            message_id=message_id,
            msg_type=rendered.msg_type,
            degraded=rendered.degraded,
        )

    def send_placeholder(self, chat_id: str) -> str | None:
        """Send the configured placeholder message and return its ID.

        Returns ``None`` without sending anything when placeholders are
        disabled.
        """
        if not self._config.placeholder_enabled:
            return None
        _require(chat_id, "chat ID")
        rendered = self._converter.render(_placeholder_text(self._config))
        data = self._messages.create(
            chat_id,
            rendered.msg_type.value,
            rendered.content,
            uuid=_new_uuid(self._config.uuid_prefix, "ph"),
        )
        return _message_id(data, "send_placeholder")

    # ------------------------------------------------------------------
    # Reactions
    # ------------------------------------------------------------------

    def add_reaction(self, message_id: str, emoji_type: str = "Typing") -> Reaction:
        """Add *emoji_type* to *message_id*; pass the result to :meth:`remove_reaction`."""
        data = self._messages.add_reaction(message_id, emoji_type)
        return Reaction(
            message_id=message_id,
            reaction_id=data.get("reaction_id", ""),
            emoji_type=emoji_type,
        )

    def remove_reaction(self, reaction: Reaction) -> None:
        """Remove *reaction* on a best-effort basis.

        API failures are logged, not raised, so the call is safe in a
        ``finally`` block.  Either way the reaction is marked removed and
        later calls do nothing, as do calls for a reaction without an ID.
        """
        if reaction.removed or not reaction.reaction_id:
            return
        try:
            self._messages.delete_reaction(reaction.message_id, reaction.reaction_id)
        except LarkpostError as exc:
            _log_reaction_failure(reaction, exc)
        reaction.removed = True

    # ------------------------------------------------------------------
    # Media
    # ------------------------------------------------------------------

    def send_image(self, chat_id: str, path: str) -> SendResult:
        """Upload the image at *path* and send it as an image message."""
        _require(chat_id, "chat ID")
        file_path = _resolve_media(path, "image")
        image_key = self._media.upload_image(_read_media(file_path, "image"), file_path.name)
        return self._send_keyed(chat_id, MessageType.IMAGE, {"image_key": image_key}, "img")

    def send_file(self, chat_id: str, path: str, filename: str | None = None) -> SendResult:
        """Upload the file at *path* and send it as a file message."""
        _require(chat_id, "chat ID")
        file_path = _resolve_media(path, "file")
        name = filename or file_path.name
        file_key = self._media.upload_file(_read_media(file_path, "file"), name)
        return self._send_keyed(chat_id, MessageType.FILE, {"file_key": file_key}, "file")

    def send_media(self, chat_id: str, parts: Iterable[MediaPart]) -> list[SendResult]:
        """Send each part as an image or file message, in order.

        Parts whose file does not exist are logged and skipped; upload and
        send failures propagate.
        """
        results: list[SendResult] = []
        for part in parts:
            if not os.path.isfile(os.path.expanduser(part.path)):
                log.error(
                    "Media file not found; skipping",
                    extra={"extra_fields": {"op": "send_media", "path": part.path}},
                )
                continue
            if part.kind == "image":
                results.append(self.send_image(chat_id, part.path))
            else:
                results.append(self.send_file(chat_id, part.path, part.filename))
        return results

    def _send_keyed(
        self,
        chat_id: str,
        msg_type: MessageType,
        payload: dict[str, str],
        uuid_kind: str,
    ) -> SendResult:
        data = self._messages.create(
            chat_id,
            msg_type.value,
            encode_json(payload),
            uuid=_new_uuid(self._config.uuid_prefix, uuid_kind),
        )
        message_id = _message_id(data, f"send_{msg_type.value}")
        self._metrics.increment("larkpost.messages_sent_total", tags={"msg_type": msg_type.value})
        _log_sent(f"send_{msg_type.value}", chat_id, msg_type)
        return SendResult(message_id=message_id, msg_type=msg_type)

    # ------------------------------------------------------------------
    # Resource management
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the HTTP transport."""
        self._transport.close()

    def __enter__(self) -> LarkpostClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
