"""Message API wrappers for the Feishu Open API.

Provides :class:`MessageAPI` (sync) and :class:`AsyncMessageAPI` (async)
thin wrappers around the ``/im/v1/messages`` endpoints.  Both delegate all
HTTP concerns (auth, retries, rate limiting) to the underlying transport and
return the ``data`` object of the response envelope.
"""

from __future__ import annotations

from typing import Any

from .transport import AsyncLarkTransport, LarkTransport

MESSAGES_PATH = "/im/v1/messages"


def _create_body(
    receive_id: str,
    msg_type: str,
    content: str,
    uuid: str | None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "receive_id": receive_id,
        "msg_type": msg_type,
        "content": content,
    }
    if uuid:
        body["uuid"] = uuid
    return body


def _reaction_body(emoji_type: str) -> dict[str, Any]:
    return {"reaction_type": {"emoji_type": emoji_type}}


class MessageAPI:
    """Synchronous wrapper for the Feishu message endpoints.

    Parameters
    ----------
    transport:
        A configured :class:`LarkTransport` instance.
    """

    def __init__(self, transport: LarkTransport) -> None:
        self._transport = transport

    def create(
        self,
        receive_id: str,
        msg_type: str,
        content: str,
        *,
        receive_id_type: str = "chat_id",
        uuid: str | None = None,
    ) -> dict[str, Any]:
        """Send a new message.

        Parameters
        ----------
        receive_id:
            Chat, user or open ID of the recipient.
        msg_type:
            ``post``, ``text``, ``image``, ``file``, ...
        content:
            JSON-encoded message content matching *msg_type*.
        receive_id_type:
            Kind of *receive_id*: ``chat_id``, ``open_id``, ``user_id``,
            ``union_id`` or ``email``.
        uuid:
            Optional idempotency key; Feishu de-duplicates sends that reuse
            it within one hour.

        Returns
        -------
        dict
            The created message object (contains ``message_id``).
        """
        response = self._transport.request(
            "POST",
            MESSAGES_PATH,
            params={"receive_id_type": receive_id_type},
            json=_create_body(receive_id, msg_type, content, uuid),
        )
        return response.get("data") or {}

    def update(self, message_id: str, msg_type: str, content: str) -> dict[str, Any]:
        """Replace the content of a message the bot sent earlier."""
        response = self._transport.request(
            "PUT",
            f"{MESSAGES_PATH}/{message_id}",
            json={"msg_type": msg_type, "content": content},
        )
        return response.get("data") or {}

    def add_reaction(self, message_id: str, emoji_type: str) -> dict[str, Any]:
        """Add an emoji reaction; the result contains ``reaction_id``."""
        response = self._transport.request(
            "POST",
            f"{MESSAGES_PATH}/{message_id}/reactions",
            json=_reaction_body(emoji_type),
        )
        return response.get("data") or {}

    def delete_reaction(self, message_id: str, reaction_id: str) -> dict[str, Any]:
        """Remove a reaction previously added by the bot."""
        response = self._transport.request(
            "DELETE",
            f"{MESSAGES_PATH}/{message_id}/reactions/{reaction_id}",
        )
        return response.get("data") or {}


class AsyncMessageAPI:
    """Asynchronous wrapper for the Feishu message endpoints.

    See :class:`MessageAPI` for parameter documentation.
    """

    def __init__(self, transport: AsyncLarkTransport) -> None:
        self._transport = transport

    async def create(
        self,
        receive_id: str,
        msg_type: str,
        content: str,
        *,
        receive_id_type: str = "chat_id",
        uuid: str | None = None,
    ) -> dict[str, Any]:
        response = await self._transport.request(
            "POST",
            MESSAGES_PATH,
            params={"receive_id_type": receive_id_type},
            json=_create_body(receive_id, msg_type, content, uuid),
        )
        return response.get("data") or {}

    async def update(self, message_id: str, msg_type: str, content: str) -> dict[str, Any]:
        response = await self._transport.request(
            "PUT",
            f"{MESSAGES_PATH}/{message_id}",
            json={"msg_type": msg_type, "content": content},
        )
        return response.get("data") or {}

    async def add_reaction(self, message_id: str, emoji_type: str) -> dict[str, Any]:
        response = await self._transport.request(
            "POST",
            f"{MESSAGES_PATH}/{message_id}/reactions",
            json=_reaction_body(emoji_type),
        )
        return response.get("data") or {}

    async def delete_reaction(self, message_id: str, reaction_id: str) -> dict[str, Any]:
        response = await self._transport.request(
            "DELETE",
            f"{MESSAGES_PATH}/{message_id}/reactions/{reaction_id}",
        )
        return response.get("data") or {}
