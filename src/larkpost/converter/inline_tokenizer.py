"""Tokenize one Markdown line into post runs.

The tokenizer repeatedly looks for the *earliest* inline markup in the
remaining text.  Each kind of markup is an :class:`InlinePattern`; the
patterns compete through :func:`find_earliest`, a pure reduction over an
ordered tuple:

* the match with the smallest start offset wins;
* on equal offsets the pattern listed first wins.

Default priority (:data:`DEFAULT_PATTERNS`)::

    link [t](u)  >  code `c`  >  bold **b**  >  bold __b__  >  strike ~~s~~

Single-asterisk italic is available as :data:`ITALIC_PATTERN` but is not
part of the default set.  :func:`build_patterns` slots it in after the two
bold forms when enabled.

Text between matches becomes :class:`PlainText`.  Unmatched markers are
never an error; they simply stay in the plain text.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from larkpost.converter.block_splitter import SPACE_CHARS
from larkpost.models import Link, PlainText, Run, Style, StyledText

DEFAULT_BULLET = "•"

_LIST_MARKERS = ("- ", "* ")


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InlinePattern:
    """One kind of inline markup.

    Attributes
    ----------
    name:
        Short identifier used in debug output and tests.
    regex:
        Compiled pattern.  Capture groups feed *build*.
    build:
        Turns a successful match into the emitted :data:`Run`.
    """

    name: str
    regex: re.Pattern[str]
    build: Callable[[re.Match[str]], Run]


@dataclass(frozen=True)
class InlineMatch:
    """The winning match of one :func:`find_earliest` round."""

    pattern: InlinePattern
    start: int
    end: int
    run: Run


def _styled(style: Style) -> Callable[[re.Match[str]], Run]:
    styles = frozenset({style})

    def build(match: re.Match[str]) -> Run:
        return StyledText(match.group(1), styles)

    return build


def _link(match: re.Match[str]) -> Run:
    return Link(match.group(1), match.group(2))


LINK_PATTERN = InlinePattern("link", re.compile(r"\[([^\]]+)\]\(([^)]+)\)"), _link)
CODE_PATTERN = InlinePattern("code", re.compile(r"`([^`]+)`"), _styled(Style.CODE_BLOCK))
BOLD_STAR_PATTERN = InlinePattern("bold", re.compile(r"\*\*(.+?)\*\*"), _styled(Style.BOLD))
BOLD_UNDERSCORE_PATTERN = InlinePattern("bold_underscore", re.compile(r"__(.+?)__"), _styled(Style.BOLD))
STRIKE_PATTERN = InlinePattern("strike", re.compile(r"~~(.+?)~~"), _styled(Style.STRIKETHROUGH))
ITALIC_PATTERN = InlinePattern(
    "italic", re.compile(r"(?<!\*)\*([^*]+)\*(?!\*)"), _styled(Style.ITALIC)
)

DEFAULT_PATTERNS: tuple[InlinePattern, ...] = (
    LINK_PATTERN,
    CODE_PATTERN,
    BOLD_STAR_PATTERN,
    BOLD_UNDERSCORE_PATTERN,
    STRIKE_PATTERN,
)


def build_patterns(*, enable_italic: bool = False) -> tuple[InlinePattern, ...]:
    """Return the priority-ordered pattern tuple.

    With *enable_italic* the italic pattern is placed after both bold
    patterns and before strikethrough, so ``**x**`` keeps resolving to bold.
    """
    if not enable_italic:
        return DEFAULT_PATTERNS
    return (
        LINK_PATTERN,
        CODE_PATTERN,
        BOLD_STAR_PATTERN,
        BOLD_UNDERSCORE_PATTERN,
        ITALIC_PATTERN,
        STRIKE_PATTERN,
    )


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

def find_earliest(text: str, patterns: Sequence[InlinePattern]) -> InlineMatch | None:
    """Return the earliest match of any pattern in *text*, or ``None``.

    Ties on the start offset go to the pattern that comes first in
    *patterns*.
    """
    best: InlineMatch | None = None
    for pattern in patterns:
        match = pattern.regex.search(text)
        if match is None:
            continue
        # Strictly smaller: an equal start keeps the earlier pattern.
        if best is None or match.start() < best.start:
            best = InlineMatch(pattern, match.start(), match.end(), pattern.build(match))
    return best


def normalize_list_marker(line: str, bullet: str = DEFAULT_BULLET) -> str:
    """Strip *line* and turn a leading ``- `` / ``* `` into *bullet*.

    Numbered list prefixes such as ``1.`` are left as written.
    """
    line = line.strip(SPACE_CHARS)
    if line.startswith(_LIST_MARKERS):
        line = f"{bullet} {line[2:]}"
    return line


def tokenize_line(
    line: str,
    patterns: Sequence[InlinePattern] = DEFAULT_PATTERNS,
    bullet: str = DEFAULT_BULLET,
) -> list[Run]:
    """Convert one normal Markdown line into an ordered list of runs.

    Parameters
    ----------
    line:
        Raw source line (no newline).
    patterns:
        Priority-ordered inline patterns, see :func:`build_patterns`.
    bullet:
        Glyph used for list-marker normalization.

    Returns
    -------
    list[Run]
        Runs in left-to-right order.  Adjacent plain runs are not merged.
        Empty only when *line* is blank.

    Examples
    --------
    >>> tokenize_line("a **b**")
    [PlainText(text='a '), StyledText(text='b', styles=frozenset({<Style.BOLD: 'bold'>}))]
    """
    remaining = normalize_list_marker(line, bullet)
    runs: list[Run] = []

    while remaining:
        found = find_earliest(remaining, patterns)
        if found is None:
            runs.append(PlainText(remaining))
            break
        if found.start > 0:
            runs.append(PlainText(remaining[:found.start]))
        runs.append(found.run)
        remaining = remaining[found.end:]

    return runs
