from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import yaml
from markdown_it import MarkdownIt
from mdit_py_plugins.front_matter import front_matter_plugin

logger = logging.getLogger(__name__)


@dataclass
class StorageDocument:
    body: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def title(self) -> str | None:
        value = self.metadata.get("title")
        return str(value) if value else None


def _build_renderer() -> MarkdownIt:
    # commonmark preset already emits XHTML (<br />, <hr />) as storage format requires.
    return MarkdownIt("commonmark").use(front_matter_plugin).enable(["table", "strikethrough"])


def render_storage(text: str) -> StorageDocument:
    """Render markdown to Confluence storage XHTML.

    A leading YAML frontmatter block is kept out of the body and returned as
    metadata instead.
    """
    md = _build_renderer()
    tokens = md.parse(text)
    metadata: dict[str, Any] = {}
    for tok in tokens:
        if tok.type == "front_matter":
            metadata = _load_metadata(tok.content)
            break
    body = md.renderer.render(tokens, md.options, {})
    return StorageDocument(body=body.strip(), metadata=metadata)


def markdown_to_storage(text: str) -> str:
    return render_storage(text).body


def _load_metadata(raw: str) -> dict[str, Any]:
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        logger.debug("Ignoring unparsable frontmatter: %s", exc)
        return {}
    return data if isinstance(data, dict) else {}
