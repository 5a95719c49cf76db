"""Tests for larkpost.converter.serializer."""

from __future__ import annotations

import json

import pytest

from larkpost.converter.serializer import (
    build_text_content,
    encode_document,
    encode_json,
    encode_run,
)
from larkpost.models import Document, Link, PlainText, Style, StyledText


class TestEncodeRun:
    def test_plain(self):
        assert encode_run(PlainText("hi")) == {"tag": "text", "text": "hi"}

    def test_styled(self):
        run = StyledText("b", frozenset({Style.BOLD}))
        assert encode_run(run) == {"tag": "text", "text": "b", "style": ["bold"]}

    def test_strikethrough_wire_name(self):
        run = StyledText("s", frozenset({Style.STRIKETHROUGH}))
        assert encode_run(run)["style"] == ["lineThrough"]

    def test_code_wire_name(self):
        run = StyledText("c", frozenset({Style.CODE_BLOCK}))
        assert encode_run(run)["style"] == ["code_block"]

    def test_multiple_styles_have_stable_order(self):
        run = StyledText("x", frozenset({Style.CODE_BLOCK, Style.ITALIC, Style.BOLD}))
        assert encode_run(run)["style"] == ["bold", "italic", "code_block"]

    def test_styled_without_styles_omits_style_key(self):
        assert encode_run(StyledText("x")) == {"tag": "text", "text": "x"}

    def test_link(self):
        assert encode_run(Link("docs", "https://d")) == {
            "tag": "a",
            "text": "docs",
            "href": "https://d",
        }

    def test_unknown_run_type(self):
        with pytest.raises(TypeError, match="unsupported run type"):
            encode_run("just a string")  # type: ignore[arg-type]


class TestEncodeDocument:
    def test_structure(self):
        doc = Document(((PlainText("a"), Link("b", "u")), (PlainText(""),)))
        assert encode_document(doc) == {
            "zh_cn": {
                "title": "",
                "content": [
                    [{"tag": "text", "text": "a"}, {"tag": "a", "text": "b", "href": "u"}],
                    [{"tag": "text", "text": ""}],
                ],
            }
        }

    def test_locale(self):
        assert list(encode_document(Document(), "en_us")) == ["en_us"]

    def test_empty_document(self):
        assert encode_document(Document()) == {"zh_cn": {"title": "", "content": []}}


class TestEncodeJson:
    def test_compact_and_unescaped(self):
        assert encode_json({"t": "你好"}) == '{"t":"你好"}'

    def test_key_order_preserved(self):
        encoded = encode_json(encode_document(Document(((Link("x", "u"),),))))
        assert encoded == '{"zh_cn":{"title":"","content":[[{"tag":"a","text":"x","href":"u"}]]}}'

    def test_lone_surrogate_raises(self):
        with pytest.raises(UnicodeEncodeError):
            encode_json({"t": "bad \ud800"})

    def test_unicode_error_is_value_error(self):
        # The converter catches ValueError to trigger its fallback.
        with pytest.raises(ValueError):
            encode_json({"t": "\udfff"})


class TestBuildTextContent:
    def test_round_trips_text(self):
        text = "# Title\n**bold** 你好"
        assert json.loads(build_text_content(text)) == {"text": text}

    def test_lone_surrogate_is_escaped(self):
        content = build_text_content("x\ud800")
        assert content == '{"text":"x\\ud800"}'
        content.encode("utf-8")
