"""Encode a :class:`~larkpost.models.Document` as Feishu post content.

A post message's ``content`` is a JSON string shaped like::

    {
      "zh_cn": {
        "title": "",
        "content": [
          [ {"tag": "text", "text": "hello "},
            {"tag": "a", "text": "docs", "href": "https://..."} ],
          [ {"tag": "text", "text": "code", "style": ["code_block"]} ]
        ]
      }
    }

Each inner array is one line; each object is one run.  Styled runs carry a
``style`` array; plain runs omit it.

The plain-text fallback is ``{"text": "<original input>"}``.
"""

from __future__ import annotations

import json
from typing import Any

from larkpost.models import Document, Link, PlainText, Run, Style, StyledText

_STYLE_ORDER: tuple[Style, ...] = (
    Style.BOLD,
    Style.ITALIC,
    Style.STRIKETHROUGH,
    Style.CODE_BLOCK,
)


def encode_run(run: Run) -> dict[str, Any]:
    """Encode one run as a post element dict.

    Raises
    ------
    TypeError
        If *run* is not one of the known run types.
    """
    if isinstance(run, PlainText):
        return {"tag": "text", "text": run.text}
    if isinstance(run, StyledText):
        element: dict[str, Any] = {"tag": "text", "text": run.text}
        if run.styles:
            element["style"] = [s.value for s in _STYLE_ORDER if s in run.styles]
        return element
    if isinstance(run, Link):
        return {"tag": "a", "text": run.text, "href": run.href}
    raise TypeError(f"unsupported run type: {type(run).__name__}")


def encode_document(document: Document, locale: str = "zh_cn") -> dict[str, Any]:
    """Return the post body for *document* nested under *locale*."""
    return {
        locale: {
            "title": "",
            "content": [[encode_run(run) for run in line] for line in document.lines],
        },
    }


def encode_json(payload: dict[str, Any]) -> str:
    """Encode *payload* as compact JSON that is valid UTF-8.

    Non-ASCII text is kept as-is, so a string containing lone surrogates
    cannot be represented and raises :class:`UnicodeEncodeError`.
    """
    encoded = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    encoded.encode("utf-8")
    return encoded


def build_text_content(text: str) -> str:
    """Return the plain-text message content carrying *text* unchanged.

    Escapes non-ASCII characters so that any Python string, including one
    with lone surrogates, produces valid JSON.
    """
    return json.dumps({"text": text}, separators=(",", ":"))
