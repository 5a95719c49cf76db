"""Public data models for the larkpost SDK.

This module contains the rich-text document model produced by the
converter, the block descriptors emitted by the block splitter, and the
result types returned by the clients.  All types are frozen dataclasses
so that a converted document is an immutable value.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Style(str, Enum):
    """Text styles understood by the Feishu post ``style`` array.

    The enum values are the exact wire names.
    """

    BOLD = "bold"
    ITALIC = "italic"
    STRIKETHROUGH = "lineThrough"
    CODE_BLOCK = "code_block"


class BlockKind(str, Enum):
    """Block-level units recognised by the block splitter."""

    CODE = "code"
    """A fenced code block; ``text`` holds the joined inner lines."""

    HEADING = "heading"
    """An ATX heading; ``text`` holds the remainder after the hashes."""

    BLANK = "blank"
    """A line that is empty after stripping whitespace."""

    NORMAL = "normal"
    """Any other line; ``text`` holds the raw source line."""


class MessageType(str, Enum):
    """Feishu ``msg_type`` values produced or sent by larkpost."""

    POST = "post"
    TEXT = "text"
    IMAGE = "image"
    FILE = "file"


# ---------------------------------------------------------------------------
# Runs, lines, documents
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PlainText:
    """Unstyled text run."""

    text: str


@dataclass(frozen=True)
class StyledText:
    """Text run carrying one or more :class:`Style` tags."""

    text: str
    styles: frozenset[Style] = field(default_factory=frozenset)


@dataclass(frozen=True)
class Link:
    """Hyperlink run.  ``text`` is never empty."""

    text: str
    href: str


Run = Union[PlainText, StyledText, Link]
"""A single styled unit inside a :data:`Line`."""

Line = tuple[Run, ...]
"""Runs rendered together as one visual row."""


@dataclass(frozen=True)
class Document:
    """An ordered sequence of lines converted from one source text."""

    lines: tuple[Line, ...] = ()

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self) -> Iterator[Line]:
        return iter(self.lines)


@dataclass(frozen=True)
class Block:
    """A block descriptor emitted by :func:`~larkpost.converter.split_blocks`."""

    kind: BlockKind
    text: str = ""


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RenderResult:
    """The message produced from a Markdown source text.

    Attributes
    ----------
    msg_type:
        ``MessageType.POST`` for the structured payload, or
        ``MessageType.TEXT`` when rendering fell back to plain text.
    content:
        JSON-encoded message content, ready for the ``content`` field of
        the Feishu send/edit message APIs.
    degraded:
        ``True`` when the plain-text fallback was used.

    Iterating a result yields ``(msg_type, content)`` so it can be
    unpacked directly::

        msg_type, content = converter.render(text)
    """

    msg_type: MessageType
    content: str
    degraded: bool = False

    def __iter__(self) -> Iterator:
        return iter((self.msg_type, self.content))


@dataclass(frozen=True)
class SendResult:
    """Outcome of a send or edit call."""

    message_id: str
    msg_type: MessageType
    degraded: bool = False


@dataclass
class Reaction:
    """An emoji reaction added to a message.

    ``removed`` flips to ``True`` after the first successful
    :meth:`~larkpost.client.LarkpostClient.remove_reaction` so that
    removing twice is a no-op.
    """

    message_id: str
    reaction_id: str
    emoji_type: str = "Typing"
    removed: bool = False


@dataclass(frozen=True)
class MediaPart:
    """A local file to deliver with :meth:`send_media`.

    Attributes
    ----------
    path:
        Path of the file on the local filesystem.
    kind:
        ``"image"`` sends an image message; anything else (``"audio"``,
        ``"video"``, ``"file"``) sends a file message.
    filename:
        Display name for file messages.  Defaults to the path's basename.
    """

    path: str
    kind: str = "file"
    filename: str | None = None
