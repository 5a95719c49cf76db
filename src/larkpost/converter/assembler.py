"""Assemble block descriptors into a :class:`~larkpost.models.Document`."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from larkpost.converter.inline_tokenizer import (
    DEFAULT_BULLET,
    DEFAULT_PATTERNS,
    InlinePattern,
    tokenize_line,
)
from larkpost.models import (
    Block,
    BlockKind,
    Document,
    Line,
    PlainText,
    Style,
    StyledText,
)

_CODE = frozenset({Style.CODE_BLOCK})
_BOLD = frozenset({Style.BOLD})


def assemble_document(
    blocks: Iterable[Block],
    patterns: Sequence[InlinePattern] = DEFAULT_PATTERNS,
    bullet: str = DEFAULT_BULLET,
) -> Document:
    """Map each block to its line, preserving block order.

    * ``CODE`` -> one code-styled run holding the whole block.
    * ``HEADING`` -> one bold run holding the heading text.
    * ``BLANK`` -> one empty plain run.
    * ``NORMAL`` -> the runs from :func:`tokenize_line`.  A normal line
      that tokenizes to nothing is dropped rather than emitted as an empty
      line; this is the only case where a block produces no line.
    """
    lines: list[Line] = []

    for block in blocks:
        if block.kind is BlockKind.CODE:
            lines.append((StyledText(block.text, _CODE),))
        elif block.kind is BlockKind.HEADING:
            lines.append((StyledText(block.text, _BOLD),))
        elif block.kind is BlockKind.BLANK:
            lines.append((PlainText(""),))
        elif block.kind is BlockKind.NORMAL:
            runs = tokenize_line(block.text, patterns, bullet)
            if runs:
                lines.append(tuple(runs))
        else:
            raise TypeError(f"unsupported block kind: {block.kind!r}")

    return Document(tuple(lines))
