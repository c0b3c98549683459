from __future__ import annotations

import html
import re
from typing import List

from bs4 import BeautifulSoup
from bs4.element import Comment, Declaration, Doctype, NavigableString, ProcessingInstruction, Tag

BULLET_MARKER = "-"
STRONG_DELIMITER = "**"
EM_DELIMITER = "*"

_HEADINGS = {f"h{level}": level for level in range(1, 7)}
_CONTAINERS = {
    "html",
    "body",
    "div",
    "section",
    "article",
    "main",
    "header",
    "footer",
    "ac:layout",
    "ac:layout-section",
    "ac:layout-cell",
    "ac:rich-text-body",
}
_BLOCK_TAGS = (
    {"p", "ul", "ol", "pre", "blockquote", "hr", "table", "ac:structured-macro"}
    | set(_HEADINGS)
    | _CONTAINERS
)
_CODE_MACROS = {"code", "noformat"}
_CDATA_RE = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)


def html_to_markdown(source: str) -> str:
    """Convert Confluence storage format (XHTML) to markdown."""
    # CDATA handling differs between parser versions; unwrap it to escaped text up front.
    source = _CDATA_RE.sub(lambda m: html.escape(m.group(1), quote=False), source)
    soup = BeautifulSoup(source, "html.parser")
    blocks = _render_blocks(soup)
    return "\n\n".join(blocks).strip()


def _render_blocks(parent: Tag) -> List[str]:
    blocks: List[str] = []
    inline: List[str] = []

    def flush_inline() -> None:
        text = _clean_inline("".join(inline))
        inline.clear()
        if text:
            blocks.append(text)

    for child in parent.children:
        if isinstance(child, Tag) and child.name in _BLOCK_TAGS:
            flush_inline()
            blocks.extend(block for block in _render_block(child) if block)
        else:
            inline.append(_render_inline(child))
    flush_inline()
    return blocks


def _render_block(el: Tag) -> List[str]:
    name = el.name
    if name == "p":
        return [_clean_inline(_render_inline_children(el))]
    if name in _HEADINGS:
        text = _clean_inline(_render_inline_children(el)).replace("\n", " ")
        return [f"{'#' * _HEADINGS[name]} {text}"] if text else []
    if name in ("ul", "ol"):
        return [_render_list(el)]
    if name == "pre":
        return [_fence(_pre_language(el), el.get_text())]
    if name == "ac:structured-macro":
        return _render_macro(el)
    if name == "blockquote":
        inner = "\n\n".join(_render_blocks(el))
        if not inner:
            return []
        return ["\n".join(f"> {line}".rstrip() for line in inner.split("\n"))]
    if name == "hr":
        return ["---"]
    if name == "table":
        return [_render_table(el)]
    return _render_blocks(el)


def _render_list(el: Tag, indent: str = "") -> str:
    ordered = el.name == "ol"
    lines: List[str] = []
    number = 1
    for li in el.find_all("li", recursive=False):
        marker = f"{number}." if ordered else BULLET_MARKER
        number += 1
        child_indent = indent + " " * (len(marker) + 1)
        parts: List[str] = []
        nested: List[str] = []
        for child in li.children:
            if isinstance(child, Tag) and child.name in ("ul", "ol"):
                nested.append(_render_list(child, child_indent))
            elif isinstance(child, Tag) and child.name in _BLOCK_TAGS:
                parts.append(" " + " ".join(_render_block(child)) + " ")
            else:
                parts.append(_render_inline(child))
        text = _clean_inline("".join(parts)).replace("\n", " ")
        lines.append(f"{indent}{marker} {text}".rstrip())
        lines.extend(block for block in nested if block)
    return "\n".join(lines)


def _render_macro(el: Tag) -> List[str]:
    macro = el.get("ac:name")
    if macro in _CODE_MACROS:
        language = ""
        for param in el.find_all("ac:parameter", recursive=False):
            if param.get("ac:name") == "language":
                language = param.get_text().strip()
        body = el.find("ac:plain-text-body")
        return [_fence(language, body.get_text() if body else "")]
    body = el.find("ac:rich-text-body")
    return _render_blocks(body) if body else []


def _render_table(el: Tag) -> str:
    rows: List[List[str]] = []
    for tr in el.find_all("tr"):
        cells = [
            _clean_inline(_render_inline_children(cell)).replace("\n", " ").replace("|", "\\|")
            for cell in tr.find_all(["th", "td"], recursive=False)
        ]
        if cells:
            rows.append(cells)
    if not rows:
        return ""
    width = max(len(row) for row in rows)
    rows = [row + [""] * (width - len(row)) for row in rows]
    lines = ["| " + " | ".join(rows[0]) + " |", "| " + " | ".join(["---"] * width) + " |"]
    lines.extend("| " + " | ".join(row) + " |" for row in rows[1:])
    return "\n".join(lines)


def _render_inline_children(el: Tag) -> str:
    return "".join(_render_inline(child) for child in el.children)


def _render_inline(node) -> str:
    if isinstance(node, (Comment, Declaration, Doctype, ProcessingInstruction)):
        return ""
    if isinstance(node, NavigableString):
        return re.sub(r"\s+", " ", str(node))
    if not isinstance(node, Tag):
        return ""

    name = node.name
    if name == "br":
        return "\n"
    if name in _BLOCK_TAGS:
        return " " + " ".join(_render_block(node)) + " "
    if name == "code":
        text = node.get_text()
        return f"`{text}`" if text else ""
    if name == "img":
        src = node.get("src")
        return f"![{node.get('alt', '')}]({src})" if src else ""
    if name == "ac:link":
        return _render_confluence_link(node)
    if name == "ac:emoticon":
        return node.get("ac:emoji-fallback", "")
    if name == "ac:parameter":
        return ""

    inner = _render_inline_children(node)
    if name in ("strong", "b"):
        return _wrap(inner, STRONG_DELIMITER)
    if name in ("em", "i"):
        return _wrap(inner, EM_DELIMITER)
    if name in ("s", "del", "strike"):
        return _wrap(inner, "~~")
    if name == "a":
        href = node.get("href")
        if not href:
            return inner
        return f"[{inner.strip() or href}]({href})"
    return inner


def _render_confluence_link(node: Tag) -> str:
    body = node.find(["ac:link-body", "ac:plain-text-link-body"])
    if body is not None and body.get_text().strip():
        return body.get_text().strip()
    target = node.find(["ri:page", "ri:attachment", "ri:user"])
    if target is not None:
        return target.get("ri:content-title") or target.get("ri:filename") or ""
    return ""


def _wrap(inner: str, marker: str) -> str:
    stripped = inner.strip()
    if not stripped:
        return inner
    lead = inner[: len(inner) - len(inner.lstrip())]
    trail = inner[len(inner.rstrip()) :]
    return f"{lead}{marker}{stripped}{marker}{trail}"


def _pre_language(el: Tag) -> str:
    code = el.find("code")
    for css_class in (code or el).get("class") or []:
        if css_class.startswith("language-"):
            return css_class[len("language-") :]
    return ""


def _fence(language: str, code: str) -> str:
    return f"```{language}\n{code.strip(chr(10))}\n```"


def _clean_inline(text: str) -> str:
    lines = [re.sub(r" {2,}", " ", line).strip() for line in text.split("\n")]
    return "\n".join(lines).strip()
