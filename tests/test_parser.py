from UncsKit import markdown_parser
from UncsKit.model import (
    Bold,
    BulletList,
    Code,
    CodeBlock,
    Document,
    Heading,
    Link,
    ListItem,
    Paragraph,
    Text,
)


def test_parse_blocks_and_inline():
    md_text = """
# Release notes

Ships `uncskit` with **fewer** bugs, see [docs](https://example.com/docs).

- First item
* Second item

```python
print("hi")
```
"""
    document = markdown_parser.parse_markdown(md_text)
    assert isinstance(document.content[0], Heading)
    assert isinstance(document.content[1], Paragraph)
    assert any(Code() in t.marks for t in document.content[1].content)
    assert any(Bold() in t.marks for t in document.content[1].content)
    assert any(Link("https://example.com/docs") in t.marks for t in document.content[1].content)
    assert isinstance(document.content[2], BulletList)
    assert len(document.content[2].items) == 2
    assert document.content[3] == CodeBlock(code='print("hi")', language="python")
    assert len(document.content) == 4


def test_heading_levels_keep_text_literal():
    document = markdown_parser.parse_markdown("# Title\n## Sub\n### Third\n#### Fourth")
    assert document.content[0] == Heading(level=1, content=(Text("Title"),))
    assert document.content[1].level == 2
    assert document.content[2].level == 3
    # Only three levels are recognized.
    assert document.content[3] == Paragraph(content=(Text("#### Fourth"),))


def test_heading_markup_is_not_inline_parsed():
    document = markdown_parser.parse_markdown("# **Bold Title**")
    assert document.content == (Heading(level=1, content=(Text("**Bold Title**"),)),)


def test_bullets_accumulate_until_blank_line():
    document = markdown_parser.parse_markdown("- a\n- b\n\nc")
    assert document.content == (
        BulletList(
            items=(
                ListItem(paragraph=Paragraph(content=(Text("a"),))),
                ListItem(paragraph=Paragraph(content=(Text("b"),))),
            )
        ),
        Paragraph(content=(Text("c"),)),
    )


def test_paragraph_and_heading_terminate_list():
    document = markdown_parser.parse_markdown("- a\nafter\n- b\n# H")
    kinds = [type(block) for block in document.content]
    assert kinds == [BulletList, Paragraph, BulletList, Heading]


def test_code_fence_is_opaque():
    document = markdown_parser.parse_markdown("```js\n**not bold**\n- not a bullet\n\n```")
    assert document.content == (CodeBlock(code="**not bold**\n- not a bullet\n", language="js"),)


def test_fence_without_language_defaults_to_text():
    document = markdown_parser.parse_markdown("```\nx = 1\n```")
    assert document.content[0].language == "text"


def test_fence_flushes_pending_list():
    document = markdown_parser.parse_markdown("- a\n```\ncode\n```")
    assert isinstance(document.content[0], BulletList)
    assert isinstance(document.content[1], CodeBlock)


def test_unterminated_fence_is_dropped():
    document = markdown_parser.parse_markdown("intro\n- item\n```sh\nmake test")
    assert [type(block) for block in document.content] == [Paragraph, BulletList]


def test_inline_mark_order_follows_source():
    inline = markdown_parser.parse_inline("`code` and **bold**")
    assert inline == [
        Text("code", marks=(Code(),)),
        Text(" and "),
        Text("bold", marks=(Bold(),)),
    ]


def test_inline_link_and_stray_characters():
    inline = markdown_parser.parse_inline("see [here](http://x.io) * [oops")
    assert inline[0] == Text("see ")
    assert inline[1] == Text("here", marks=(Link("http://x.io"),))
    assert "".join(t.text for t in inline) == "see here * [oops"
    assert all(not t.marks for t in inline[2:])


def test_inline_empty_yields_single_space():
    assert markdown_parser.parse_inline("") == [Text(" ")]


def test_empty_and_blank_input_give_empty_document():
    assert markdown_parser.parse_markdown("") == Document()
    assert markdown_parser.parse_markdown("   \n\n  ") == Document()


def test_markdown_to_adf_shape():
    adf = markdown_parser.markdown_to_adf("# T\n\n- **x**\n\n```\n```")
    assert adf["type"] == "doc"
    assert adf["version"] == 1
    heading, bullets, code = adf["content"]
    assert heading == {"type": "heading", "attrs": {"level": 1}, "content": [{"type": "text", "text": "T"}]}
    item = bullets["content"][0]
    assert item["type"] == "listItem"
    assert item["content"][0]["content"][0] == {"type": "text", "text": "x", "marks": [{"type": "strong"}]}
    assert code == {"type": "codeBlock", "attrs": {"language": "text"}, "content": []}
