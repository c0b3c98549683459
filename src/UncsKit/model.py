from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Tuple, Union

ADF_VERSION = 1


@dataclass(frozen=True)
class Bold:
    def to_dict(self) -> dict[str, Any]:
        return {"type": "strong"}


@dataclass(frozen=True)
class Code:
    def to_dict(self) -> dict[str, Any]:
        return {"type": "code"}


@dataclass(frozen=True)
class Link:
    href: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "link", "attrs": {"href": self.href}}


Mark = Union[Bold, Code, Link]


@dataclass(frozen=True)
class Text:
    text: str
    marks: Tuple[Mark, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "marks", tuple(dict.fromkeys(self.marks)))

    def to_dict(self) -> dict[str, Any]:
        node: dict[str, Any] = {"type": "text", "text": self.text}
        if self.marks:
            node["marks"] = [mark.to_dict() for mark in self.marks]
        return node


def _inline_content(content) -> Tuple[Text, ...]:
    # Consumers reject empty content arrays, so a lone space stands in.
    items = tuple(content)
    return items if items else (Text(" "),)


@dataclass(frozen=True)
class Heading:
    level: int
    content: Tuple[Text, ...]

    def __post_init__(self) -> None:
        if self.level not in (1, 2, 3):
            raise ValueError(f"Heading level must be 1, 2 or 3, got {self.level}")
        object.__setattr__(self, "content", _inline_content(self.content))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "heading",
            "attrs": {"level": self.level},
            "content": [child.to_dict() for child in self.content],
        }


@dataclass(frozen=True)
class Paragraph:
    content: Tuple[Text, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "content", _inline_content(self.content))

    def to_dict(self) -> dict[str, Any]:
        return {"type": "paragraph", "content": [child.to_dict() for child in self.content]}


@dataclass(frozen=True)
class ListItem:
    paragraph: Paragraph

    def to_dict(self) -> dict[str, Any]:
        return {"type": "listItem", "content": [self.paragraph.to_dict()]}


@dataclass(frozen=True)
class BulletList:
    items: Tuple[ListItem, ...]

    def __post_init__(self) -> None:
        items = tuple(self.items)
        if not items:
            raise ValueError("BulletList needs at least one item")
        object.__setattr__(self, "items", items)

    def to_dict(self) -> dict[str, Any]:
        return {"type": "bulletList", "content": [item.to_dict() for item in self.items]}


@dataclass(frozen=True)
class CodeBlock:
    code: str
    language: str = "text"

    def __post_init__(self) -> None:
        if not self.language:
            object.__setattr__(self, "language", "text")

    def to_dict(self) -> dict[str, Any]:
        node: dict[str, Any] = {"type": "codeBlock", "attrs": {"language": self.language}}
        # Empty text nodes are invalid ADF; an empty block carries no content.
        node["content"] = [{"type": "text", "text": self.code}] if self.code else []
        return node


Block = Union[Heading, Paragraph, BulletList, CodeBlock]


@dataclass(frozen=True)
class Document:
    content: Tuple[Block, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "content", tuple(self.content))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "doc",
            "version": ADF_VERSION,
            "content": [block.to_dict() for block in self.content],
        }
