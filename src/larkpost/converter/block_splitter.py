"""Split Markdown source text into block descriptors.

The splitter walks source lines left to right and consumes a variable
number of lines per block:

* A line whose stripped form starts with three backticks opens a fenced
  code block that runs to the next such line (or the end of input).
* ``#`` to ``######`` followed by ASCII whitespace and text is a heading.
* A whitespace-only line is blank.
* Everything else is a normal line, handed to the inline tokenizer later.

Malformed input never raises; an unterminated fence simply swallows the
rest of the text.
"""

from __future__ import annotations

import re

from larkpost.models import Block, BlockKind

FENCE = "```"

# Characters trimmed from line ends: ASCII whitespace, NEL, NBSP and the
# Unicode space separators.  The \x1c-\x1f separators are not included.
SPACE_CHARS = (
    "\t\n\v\f\r \x85\xa0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000"
)

# Only ASCII whitespace may separate the hashes from the heading text.
_HEADING_RE = re.compile(r"^#{1,6}[\t\n\f\r ]+(.+)$")


def is_fence(line: str) -> bool:
    """Return ``True`` if *line* opens or closes a fenced code block."""
    return line.strip(SPACE_CHARS).startswith(FENCE)


def split_blocks(text: str) -> list[Block]:
    """Partition *text* into an ordered list of :class:`Block` descriptors.

    Parameters
    ----------
    text:
        Full source text using ``\\n`` as the line separator.

    Returns
    -------
    list[Block]
        Blocks in source order.  ``CODE`` blocks carry the inner lines
        joined by ``\\n`` (fence lines excluded), ``HEADING`` blocks the
        heading text, ``NORMAL`` blocks the raw line.
    """
    lines = text.split("\n")
    blocks: list[Block] = []

    i = 0
    while i < len(lines):
        line = lines[i]

        if is_fence(line):
            i += 1
            start = i
            while i < len(lines) and not is_fence(lines[i]):
                i += 1
            blocks.append(Block(BlockKind.CODE, "\n".join(lines[start:i])))
            if i < len(lines):
                i += 1  # closing fence
            continue

        match = _HEADING_RE.match(line)
        if match:
            blocks.append(Block(BlockKind.HEADING, match.group(1)))
        elif not line.strip(SPACE_CHARS):
            blocks.append(Block(BlockKind.BLANK))
        else:
            blocks.append(Block(BlockKind.NORMAL, line))
        i += 1

    return blocks
