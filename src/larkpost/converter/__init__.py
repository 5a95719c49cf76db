"""Markdown -> Feishu post conversion pipeline.

Public API:

- :class:`MarkdownToPostConverter` — Markdown → post content with fallback.
- :func:`render_markdown` — one-shot ``(msg_type, content)`` rendering.
- :func:`split_blocks` — partition text into block descriptors.
- :func:`tokenize_line` — tokenize one line into runs.
- :func:`find_earliest` — earliest-match-then-priority pattern selection.
- :func:`assemble_document` — blocks → :class:`~larkpost.models.Document`.
- :func:`encode_document` — document → post body dict.
"""

from larkpost.converter.assembler import assemble_document
from larkpost.converter.block_splitter import split_blocks
from larkpost.converter.inline_tokenizer import (
    DEFAULT_PATTERNS,
    ITALIC_PATTERN,
    InlinePattern,
    build_patterns,
    find_earliest,
    tokenize_line,
)
from larkpost.converter.md_to_post import MarkdownToPostConverter, render_markdown
from larkpost.converter.serializer import (
    build_text_content,
    encode_document,
    encode_run,
)

__all__ = [
    "DEFAULT_PATTERNS",
    "ITALIC_PATTERN",
    "InlinePattern",
    "MarkdownToPostConverter",
    "assemble_document",
    "build_patterns",
    "build_text_content",
    "encode_document",
    "encode_run",
    "find_earliest",
    "render_markdown",
    "split_blocks",
    "tokenize_line",
]
