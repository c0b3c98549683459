from __future__ import annotations

import re
from typing import Mapping

MAX_FILENAME_LENGTH = 100


def sanitize_filename(title: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower())
    slug = re.sub(r"^-|-$", "", slug)
    return slug[:MAX_FILENAME_LENGTH]


def generate_frontmatter(metadata: Mapping[str, str]) -> str:
    """Render a ``---`` delimited block of double-quoted ``key: value`` lines."""
    lines = ["---"]
    for key, value in metadata.items():
        escaped = str(value).replace('"', '\\"')
        lines.append(f'{key}: "{escaped}"')
    lines.extend(["---", ""])
    return "\n".join(lines)
