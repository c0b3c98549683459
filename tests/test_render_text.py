from UncsKit.markdown_parser import parse_markdown
from UncsKit.renderer_text import render_node, render_text


def test_plain_paragraphs_round_trip():
    source = "First paragraph.\nSecond one, with punctuation!\nThird"
    assert render_text(parse_markdown(source)) == source


def test_marks_are_dropped():
    doc = parse_markdown("Use `make` and **then** [ship](https://x.io)")
    assert render_text(doc) == "Use make and then ship"


def test_bullet_list_rendering():
    doc = parse_markdown("# Todo\n- one\n- **two**\n\nDone")
    assert render_text(doc) == "Todo\n- one\n- two\nDone"


def test_code_block_text_is_kept():
    assert render_text(parse_markdown("```\nx = 1\n```")) == "x = 1"


def test_unknown_node_without_content_is_empty():
    assert render_node({"type": "mediaSingle", "attrs": {"layout": "center"}}) == ""


def test_unknown_node_with_content_renders_children():
    doc = {
        "type": "doc",
        "version": 1,
        "content": [
            {"type": "panel", "content": [{"type": "paragraph", "content": [{"type": "text", "text": "note"}]}]},
            {"type": "rule"},
            {"type": "paragraph", "content": [{"type": "text", "text": "after"}]},
        ],
    }
    assert render_text(doc) == "noteafter"


def test_invalid_input_yields_empty_string():
    assert render_text(None) == ""
    assert render_text({"type": "doc"}) == ""
    assert render_text({"type": "doc", "content": "nope"}) == ""
    assert render_node("text") == ""
    assert render_node({"type": "text", "text": ""}) == ""
