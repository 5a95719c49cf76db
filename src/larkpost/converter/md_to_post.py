"""Full Markdown-to-post conversion pipeline.

:class:`MarkdownToPostConverter` orchestrates the pipeline:

1. **Split** — :func:`split_blocks` partitions the text into blocks.
2. **Tokenize & assemble** — :func:`assemble_document` turns blocks into a
   :class:`Document`, tokenizing normal lines inline.
3. **Serialize** — :func:`encode_document` plus an encoder produce the post
   ``content`` string.  If encoding fails the converter falls back to a
   plain-text message carrying the original input.

Conversion is a pure function of its input; one converter may be shared
across threads.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from typing import Any

from larkpost.config import LarkpostConfig
from larkpost.converter.assembler import assemble_document
from larkpost.converter.block_splitter import split_blocks
from larkpost.converter.inline_tokenizer import build_patterns
from larkpost.converter.serializer import (
    build_text_content,
    encode_document,
    encode_json,
)
from larkpost.errors import LarkpostSerializationError
from larkpost.models import Document, MessageType, RenderResult
from larkpost.observability import get_logger, resolve_metrics

log = get_logger("larkpost.converter")

Encoder = Callable[[dict[str, Any]], str]


class MarkdownToPostConverter:
    """Convert Markdown text to Feishu post message content.

    Parameters
    ----------
    config:
        SDK configuration.  Only the rendering fields (``locale``,
        ``bullet``, ``enable_italic``), ``metrics`` and
        ``debug_dump_document`` are consulted.
    encoder:
        Callable turning the post body dict into the ``content`` string.
        Defaults to :func:`encode_json`.  Any ``TypeError`` or
        ``ValueError`` it raises triggers the plain-text fallback.

    Examples
    --------
    >>> converter = MarkdownToPostConverter(LarkpostConfig())
    >>> msg_type, content = converter.render("## Title")
    >>> msg_type.value
    'post'
    >>> content
    '{"zh_cn":{"title":"","content":[[{"tag":"text","text":"Title","style":["bold"]}]]}}'
    """

    def __init__(
        self,
        config: LarkpostConfig | None = None,
        *,
        encoder: Encoder | None = None,
    ) -> None:
        self._config = config if config is not None else LarkpostConfig()
        self._patterns = build_patterns(enable_italic=self._config.enable_italic)
        self._encoder: Encoder = encoder if encoder is not None else encode_json
        self._metrics = resolve_metrics(self._config.metrics)

    def convert(self, markdown: str) -> Document:
        """Parse *markdown* into a :class:`Document`.  Never raises."""
        blocks = split_blocks(markdown)
        return assemble_document(blocks, self._patterns, self._config.bullet)

    def render(self, markdown: str) -> RenderResult:
        """Render *markdown* as post content, falling back to plain text.

        Returns
        -------
        RenderResult
            ``msg_type=POST`` with the structured content, or
            ``msg_type=TEXT`` with ``{"text": markdown}`` and
            ``degraded=True`` when the post could not be encoded.

        Raises
        ------
        LarkpostSerializationError
            If the plain-text fallback cannot be encoded either.
        """
        document = self.convert(markdown)

        try:
            content = self._encoder(encode_document(document, self._config.locale))
        except (TypeError, ValueError) as exc:
            return self._fallback(markdown, exc)

        if self._config.debug_dump_document:
            print("[larkpost] Post content:", content, file=sys.stderr)

        self._metrics.increment(
            "larkpost.documents_rendered_total",
            tags={"msg_type": MessageType.POST.value},
        )
        return RenderResult(MessageType.POST, content)

    def _fallback(self, markdown: str, exc: Exception) -> RenderResult:
        log.warning(
            "Post rendering failed; falling back to plain text",
            extra={
                "extra_fields": {
                    "op": "render",
                    "error": f"{type(exc).__name__}: {exc}",
                    "content_length": len(markdown),
                }
            },
        )
        self._metrics.increment("larkpost.render_fallback_total")
        try:
            content = build_text_content(markdown)
        except (TypeError, ValueError) as fallback_exc:
            raise LarkpostSerializationError(
                message=f"Could not encode plain-text fallback: {fallback_exc}",
                context={"content_length": len(markdown)},
                cause=fallback_exc,
            ) from fallback_exc

        self._metrics.increment(
            "larkpost.documents_rendered_total",
            tags={"msg_type": MessageType.TEXT.value},
        )
        return RenderResult(MessageType.TEXT, content, degraded=True)


def render_markdown(markdown: str, config: LarkpostConfig | None = None) -> tuple[str, str]:
    """Render *markdown* and return the ``(msg_type, content)`` pair.

    Convenience wrapper around :meth:`MarkdownToPostConverter.render` for
    callers that do not keep a converter around.
    """
    result = MarkdownToPostConverter(config).render(markdown)
    return result.msg_type.value, result.content
