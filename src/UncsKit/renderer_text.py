from __future__ import annotations

from typing import Any, Mapping

from .model import Document

_LINE_BLOCKS = {"paragraph", "heading"}


def render_text(doc: Document | Mapping[str, Any] | None) -> str:
    """Flatten an ADF document into readable plain text.

    Marks are dropped and no markdown is regenerated, except for ``- ``
    prefixes on bullet items. Unknown node types contribute their children's
    text, or nothing, so documents from newer schemas still render.
    """
    if isinstance(doc, Document):
        doc = doc.to_dict()
    if not isinstance(doc, Mapping):
        return ""
    content = doc.get("content")
    if not isinstance(content, list):
        return ""

    parts: list[str] = []
    for node in content:
        text = render_node(node)
        if isinstance(node, Mapping) and node.get("type") in _LINE_BLOCKS:
            text += "\n"
        parts.append(text)
    return "".join(parts).strip()


def render_node(node: Any) -> str:
    if not isinstance(node, Mapping):
        return ""
    node_type = node.get("type")
    content = node.get("content")
    children = content if isinstance(content, list) else None

    if node_type == "text" and node.get("text"):
        return str(node["text"])

    if children is None:
        return ""

    if node_type == "bulletList":
        return "\n".join("- " + render_node(item).strip() for item in children) + "\n"

    if node_type == "listItem":
        return _join(children).strip()

    return _join(children)


def _join(children: list) -> str:
    return "".join(render_node(child) for child in children)
