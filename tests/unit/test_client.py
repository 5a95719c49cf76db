"""Tests for LarkpostClient and AsyncLarkpostClient.

The message and media API objects are replaced with mocks so that the
tests exercise rendering, argument plumbing, and result handling only.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from conftest import RecordingMetricsHook, ok

import larkpost.client as client_module
from larkpost import AsyncLarkpostClient, LarkpostClient
from larkpost.config import DEFAULT_PLACEHOLDER_TEXT
from larkpost.errors import (
    LarkpostAPIError,
    LarkpostMediaError,
    LarkpostNetworkError,
    LarkpostValidationError,
)
from larkpost.models import MediaPart, MessageType, Reaction, SendResult

FAST = dict(retry_base_delay=0.0, retry_max_delay=0.0, retry_jitter=False, rate_limit_rps=10_000.0)


def make_client(**kwargs) -> LarkpostClient:
    client = LarkpostClient(app_id="cli_test", app_secret="test-secret-1234", **{**FAST, **kwargs})
    client._messages = MagicMock()
    client._messages.create.return_value = {"message_id": "om_1"}
    client._messages.update.return_value = {}
    client._messages.add_reaction.return_value = {"reaction_id": "r_1"}
    client._messages.delete_reaction.return_value = {}
    client._media = MagicMock()
    client._media.upload_image.return_value = "img_key"
    client._media.upload_file.return_value = "file_key"
    return client


def make_async_client(**kwargs) -> AsyncLarkpostClient:
    client = AsyncLarkpostClient(app_id="cli_test", app_secret="test-secret-1234", **{**FAST, **kwargs})
    client._messages = MagicMock()
    client._messages.create = AsyncMock(return_value={"message_id": "om_1"})
    client._messages.update = AsyncMock(return_value={})
    client._messages.add_reaction = AsyncMock(return_value={"reaction_id": "r_1"})
    client._messages.delete_reaction = AsyncMock(return_value={})
    client._media = MagicMock()
    client._media.upload_image = AsyncMock(return_value="img_key")
    client._media.upload_file = AsyncMock(return_value="file_key")
    return client


# ---------------------------------------------------------------------------
# Sync client: text
# ---------------------------------------------------------------------------


class TestSendMarkdown:
    def test_sends_post(self):
        client = make_client()
        result = client.send_markdown("oc_1", "**hi**")

        assert result == SendResult(message_id="om_1", msg_type=MessageType.POST)
        args, kwargs = client._messages.create.call_args
        assert args[:2] == ("oc_1", "post")
        assert json.loads(args[2])["zh_cn"]["content"] == [
            [{"tag": "text", "text": "hi", "style": ["bold"]}]
        ]
        assert kwargs["receive_id_type"] == "chat_id"
        assert kwargs["uuid"].startswith("larkpost-")

    def test_receive_id_type_forwarded(self):
        client = make_client()
        client.send_markdown("ou_1", "x", receive_id_type="open_id")
        assert client._messages.create.call_args.kwargs["receive_id_type"] == "open_id"

    def test_uuid_prefix_from_config(self):
        client = make_client(uuid_prefix="bot")
        client.send_markdown("oc_1", "x")
        assert client._messages.create.call_args.kwargs["uuid"].startswith("bot-")

    def test_fallback_sends_text(self):
        client = make_client()
        result = client.send_markdown("oc_1", "bad \ud800")
        assert result.msg_type is MessageType.TEXT
        assert result.degraded is True
        args = client._messages.create.call_args.args
        assert args[1] == "text"
        assert json.loads(args[2]) == {"text": "bad \ud800"}

    def test_empty_chat_id(self):
        client = make_client()
        with pytest.raises(LarkpostValidationError, match="chat ID is empty"):
            client.send_markdown("", "x")
        client._messages.create.assert_not_called()

    def test_missing_message_id(self):
        hook = RecordingMetricsHook()
        client = make_client(metrics=hook)
        client._messages.create.return_value = {}
        with pytest.raises(LarkpostAPIError, match="send_markdown returned no message_id"):
            client.send_markdown("oc_1", "x")
        assert "larkpost.messages_sent_total" not in hook.names()

    def test_metrics(self):
        hook = RecordingMetricsHook()
        client = make_client(metrics=hook)
        client.send_markdown("oc_1", "x")
        sent = [c for c in hook.increments if c["name"] == "larkpost.messages_sent_total"]
        assert sent == [{"name": "larkpost.messages_sent_total", "value": 1, "tags": {"msg_type": "post"}}]

    def test_render_does_not_send(self):
        client = make_client()
        msg_type, content = client.render("# T")
        assert msg_type is MessageType.POST
        assert "T" in content
        client._messages.create.assert_not_called()


class TestEditMarkdown:
    def test_updates_message(self):
        client = make_client()
        result = client.edit_markdown("om_9", "done")
        assert result == SendResult(message_id="om_9", msg_type=MessageType.POST)
        args = client._messages.update.call_args.args
        assert args[:2] == ("om_9", "post")
        assert json.loads(args[2])["zh_cn"]["content"] == [[{"tag": "text", "text": "done"}]]

    def test_empty_message_id(self):
        with pytest.raises(LarkpostValidationError):
            make_client().edit_markdown("", "x")


class TestPlaceholder:
    def test_disabled_returns_none(self):
        client = make_client()
        assert client.send_placeholder("oc_1") is None
        client._messages.create.assert_not_called()

    def test_sends_configured_text(self):
        client = make_client(placeholder_enabled=True, placeholder_text="Working...")
        assert client.send_placeholder("oc_1") == "om_1"
        args, kwargs = client._messages.create.call_args
        assert args[1] == "post"
        assert json.loads(args[2])["zh_cn"]["content"] == [[{"tag": "text", "text": "Working..."}]]
        assert "-ph-" in kwargs["uuid"]

    def test_empty_text_uses_default(self):
        client = make_client(placeholder_enabled=True, placeholder_text="")
        client.send_placeholder("oc_1")
        content = json.loads(client._messages.create.call_args.args[2])
        assert content["zh_cn"]["content"][0][0]["text"] == DEFAULT_PLACEHOLDER_TEXT

    def test_missing_message_id(self):
        client = make_client(placeholder_enabled=True)
        client._messages.create.return_value = {}
        with pytest.raises(LarkpostAPIError, match="no message_id"):
            client.send_placeholder("oc_1")


class TestReactions:
    def test_add_and_remove(self):
        client = make_client()
        reaction = client.add_reaction("om_1")
        assert reaction == Reaction(message_id="om_1", reaction_id="r_1", emoji_type="Typing")
        client._messages.add_reaction.assert_called_once_with("om_1", "Typing")

        client.remove_reaction(reaction)
        client._messages.delete_reaction.assert_called_once_with("om_1", "r_1")
        assert reaction.removed is True

    def test_remove_twice_is_noop(self):
        client = make_client()
        reaction = client.add_reaction("om_1", "OK")
        client.remove_reaction(reaction)
        client.remove_reaction(reaction)
        assert client._messages.delete_reaction.call_count == 1

    def test_remove_without_id_is_noop(self):
        client = make_client()
        client.remove_reaction(Reaction(message_id="om_1", reaction_id=""))
        client._messages.delete_reaction.assert_not_called()

    def test_remove_failure_is_logged_not_raised(self, monkeypatch):
        log = MagicMock()
        monkeypatch.setattr(client_module, "log", log)
        client = make_client()
        client._messages.delete_reaction.side_effect = LarkpostNetworkError("reset")
        reaction = client.add_reaction("om_1")

        client.remove_reaction(reaction)
        client.remove_reaction(reaction)

        assert reaction.removed is True
        assert client._messages.delete_reaction.call_count == 1
        log.warning.assert_called_once()
        fields = log.warning.call_args.kwargs["extra"]["extra_fields"]
        assert fields["error_code"] == "NETWORK_ERROR"


# ---------------------------------------------------------------------------
# Sync client: media
# ---------------------------------------------------------------------------


class TestMedia:
    def test_send_image(self, tmp_path):
        path = tmp_path / "shot.png"
        path.write_bytes(b"\x89PNG data")
        client = make_client()

        result = client.send_image("oc_1", str(path))

        client._media.upload_image.assert_called_once_with(b"\x89PNG data", "shot.png")
        args, kwargs = client._messages.create.call_args
        assert args == ("oc_1", "image", '{"image_key":"img_key"}')
        assert "-img-" in kwargs["uuid"]
        assert result.msg_type is MessageType.IMAGE

    def test_send_file_default_name(self, tmp_path):
        path = tmp_path / "report.pdf"
        path.write_bytes(b"%PDF")
        client = make_client()

        result = client.send_file("oc_1", str(path))

        client._media.upload_file.assert_called_once_with(b"%PDF", "report.pdf")
        assert client._messages.create.call_args.args == ("oc_1", "file", '{"file_key":"file_key"}')
        assert result == SendResult(message_id="om_1", msg_type=MessageType.FILE)

    def test_send_file_custom_name(self, tmp_path):
        path = tmp_path / "tmp123"
        path.write_bytes(b"x")
        client = make_client()
        client.send_file("oc_1", str(path), filename="notes.txt")
        client._media.upload_file.assert_called_once_with(b"x", "notes.txt")

    def test_missing_file(self, tmp_path):
        client = make_client()
        with pytest.raises(LarkpostMediaError) as exc_info:
            client.send_image("oc_1", str(tmp_path / "nope.png"))
        assert exc_info.value.context["kind"] == "image"
        client._media.upload_image.assert_not_called()

    def test_send_media_skips_missing(self, tmp_path):
        image = tmp_path / "a.jpg"
        image.write_bytes(b"img")
        audio = tmp_path / "b.opus"
        audio.write_bytes(b"aud")
        client = make_client()

        results = client.send_media("oc_1", [
            MediaPart(str(image), kind="image"),
            MediaPart(str(tmp_path / "missing.mp4"), kind="video"),
            MediaPart(str(audio), kind="audio"),
        ])

        assert [r.msg_type for r in results] == [MessageType.IMAGE, MessageType.FILE]
        client._media.upload_image.assert_called_once_with(b"img", "a.jpg")
        client._media.upload_file.assert_called_once_with(b"aud", "b.opus")

    def test_send_image_missing_message_id(self, tmp_path):
        path = tmp_path / "a.png"
        path.write_bytes(b"x")
        client = make_client()
        client._messages.create.return_value = {"message_id": ""}
        with pytest.raises(LarkpostAPIError, match="send_image returned no message_id"):
            client.send_image("oc_1", str(path))

    def test_send_media_upload_error_propagates(self, tmp_path):
        path = tmp_path / "a.png"
        path.write_bytes(b"x")
        client = make_client()
        client._media.upload_image.side_effect = LarkpostAPIError("upload failed")
        with pytest.raises(LarkpostAPIError):
            client.send_media("oc_1", [MediaPart(str(path), kind="image")])


class TestLifecycle:
    def test_context_manager_closes_transport(self):
        with make_client() as client:
            client._transport = MagicMock()
        client._transport.close.assert_called_once()

    def test_config_kwargs_forwarded(self):
        client = LarkpostClient(app_id="a", app_secret="b", locale="en_us")
        assert client._config.locale == "en_us"
        client.close()

    def test_invalid_config(self):
        with pytest.raises(ValueError):
            LarkpostClient(app_id="a", app_secret="b", retry_max_attempts=0)

    def test_end_to_end_through_transport(self):
        client = LarkpostClient(app_id="cli_test", app_secret="test-secret-1234", **FAST)
        client._transport._tokens.store("t-token", 7200)
        client._transport._client.request = MagicMock(return_value=ok({"message_id": "om_42"}))

        result = client.send_markdown("oc_1", "## Done")

        assert result.message_id == "om_42"
        call = client._transport._client.request.call_args
        assert call.args == ("POST", "/im/v1/messages")
        assert call.kwargs["params"] == {"receive_id_type": "chat_id"}
        body = call.kwargs["json"]
        assert body["msg_type"] == "post"
        assert json.loads(body["content"]) == {
            "zh_cn": {"title": "", "content": [[{"tag": "text", "text": "Done", "style": ["bold"]}]]}
        }
        client.close()


# ---------------------------------------------------------------------------
# Async client
# ---------------------------------------------------------------------------


class TestAsyncClient:
    @pytest.mark.asyncio
    async def test_send_markdown(self):
        client = make_async_client()
        result = await client.send_markdown("oc_1", "~~old~~")
        assert result.message_id == "om_1"
        args = client._messages.create.await_args.args
        assert json.loads(args[2])["zh_cn"]["content"] == [
            [{"tag": "text", "text": "old", "style": ["lineThrough"]}]
        ]

    @pytest.mark.asyncio
    async def test_send_markdown_empty_chat(self):
        client = make_async_client()
        with pytest.raises(LarkpostValidationError):
            await client.send_markdown("", "x")

    @pytest.mark.asyncio
    async def test_edit_markdown(self):
        client = make_async_client()
        result = await client.edit_markdown("om_5", "x")
        assert result.message_id == "om_5"
        client._messages.update.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_placeholder(self):
        client = make_async_client(placeholder_enabled=True)
        assert await client.send_placeholder("oc_1") == "om_1"

    @pytest.mark.asyncio
    async def test_placeholder_disabled(self):
        client = make_async_client()
        assert await client.send_placeholder("oc_1") is None

    @pytest.mark.asyncio
    async def test_reactions(self):
        client = make_async_client()
        reaction = await client.add_reaction("om_1")
        await client.remove_reaction(reaction)
        await client.remove_reaction(reaction)
        client._messages.delete_reaction.assert_awaited_once_with("om_1", "r_1")

    @pytest.mark.asyncio
    async def test_reaction_removal_failure_swallowed(self, monkeypatch):
        monkeypatch.setattr(client_module, "log", MagicMock())
        client = make_async_client()
        client._messages.delete_reaction.side_effect = LarkpostAPIError("gone")
        reaction = await client.add_reaction("om_1")
        await client.remove_reaction(reaction)
        assert reaction.removed is True

    @pytest.mark.asyncio
    async def test_send_markdown_missing_message_id(self):
        client = make_async_client()
        client._messages.create.return_value = {}
        with pytest.raises(LarkpostAPIError, match="no message_id"):
            await client.send_markdown("oc_1", "x")

    @pytest.mark.asyncio
    async def test_send_image(self, tmp_path):
        path = tmp_path / "a.png"
        path.write_bytes(b"png")
        client = make_async_client()
        result = await client.send_image("oc_1", str(path))
        client._media.upload_image.assert_awaited_once_with(b"png", "a.png")
        assert result.msg_type is MessageType.IMAGE

    @pytest.mark.asyncio
    async def test_send_media(self, tmp_path):
        path = tmp_path / "a.pdf"
        path.write_bytes(b"pdf")
        client = make_async_client()
        results = await client.send_media("oc_1", [
            MediaPart(str(tmp_path / "gone.png"), kind="image"),
            MediaPart(str(path), filename="Report.pdf"),
        ])
        assert len(results) == 1
        client._media.upload_file.assert_awaited_once_with(b"pdf", "Report.pdf")

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        client = make_async_client()
        with pytest.raises(LarkpostMediaError):
            await client.send_file("oc_1", str(tmp_path / "nope"))

    @pytest.mark.asyncio
    async def test_context_manager(self):
        async with make_async_client() as client:
            client._transport = MagicMock()
            client._transport.close = AsyncMock()
        client._transport.close.assert_awaited_once()
