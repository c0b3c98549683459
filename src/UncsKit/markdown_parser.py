from __future__ import annotations

import re
from typing import Any, List

from .model import (
    Block,
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

FENCE = "```"

_HEADING_RES = (
    (1, re.compile(r"# (.+)")),
    (2, re.compile(r"## (.+)")),
    (3, re.compile(r"### (.+)")),
)
_BULLET_RE = re.compile(r"[-*] (.+)")

_CODE_RE = re.compile(r"`([^`]+)`")
_BOLD_RE = re.compile(r"\*\*([^*]+)\*\*")
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_PLAIN_RE = re.compile(r"[^`*\[]+")


def parse_markdown(text: str) -> Document:
    """Convert a markdown subset into an ADF document tree.

    Recognizes fenced code blocks, ``#``/``##``/``###`` headings, ``-``/``*``
    bullets and paragraphs, one physical line at a time. Anything else is
    kept as paragraph text, so this never fails.
    """
    blocks: List[Block] = []
    pending_items: List[ListItem] = []
    in_code = False
    code_lines: List[str] = []
    code_language = ""

    def flush_list() -> None:
        if pending_items:
            blocks.append(BulletList(items=tuple(pending_items)))
            pending_items.clear()

    for line in text.split("\n"):
        if line.startswith(FENCE):
            flush_list()
            if in_code:
                blocks.append(CodeBlock(code="\n".join(code_lines), language=code_language or "text"))
                code_lines = []
                code_language = ""
                in_code = False
            else:
                in_code = True
                code_language = line[len(FENCE) :].strip()
            continue

        if in_code:
            code_lines.append(line)
            continue

        if not line.strip():
            flush_list()
            continue

        heading = _match_heading(line)
        if heading is not None:
            flush_list()
            blocks.append(heading)
            continue

        bullet = _BULLET_RE.fullmatch(line)
        if bullet:
            pending_items.append(ListItem(paragraph=Paragraph(content=parse_inline(bullet.group(1)))))
            continue

        flush_list()
        blocks.append(Paragraph(content=parse_inline(line)))

    # Lines of a fence still open at end of input are not emitted.
    flush_list()

    return Document(content=blocks)


def markdown_to_adf(text: str) -> dict[str, Any]:
    """Serialized form of :func:`parse_markdown`, ready to send to Jira."""
    return parse_markdown(text).to_dict()


def _match_heading(line: str) -> Heading | None:
    for level, pattern in _HEADING_RES:
        match = pattern.fullmatch(line)
        if match:
            # Heading text is kept literal, inline markup is not parsed here.
            return Heading(level=level, content=(Text(match.group(1)),))
    return None


def parse_inline(text: str) -> List[Text]:
    result: List[Text] = []
    pos = 0
    while pos < len(text):
        match = _CODE_RE.match(text, pos)
        if match:
            result.append(Text(match.group(1), marks=(Code(),)))
            pos = match.end()
            continue

        match = _BOLD_RE.match(text, pos)
        if match:
            result.append(Text(match.group(1), marks=(Bold(),)))
            pos = match.end()
            continue

        match = _LINK_RE.match(text, pos)
        if match:
            result.append(Text(match.group(1), marks=(Link(href=match.group(2)),)))
            pos = match.end()
            continue

        match = _PLAIN_RE.match(text, pos)
        if match:
            result.append(Text(match.group(0)))
            pos = match.end()
            continue

        # A lone `, * or [ that does not open a complete construct.
        result.append(Text(text[pos]))
        pos += 1

    return result if result else [Text(" ")]
