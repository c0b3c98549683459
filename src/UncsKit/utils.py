from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(verbose: bool = False) -> None:
    """Send diagnostics to stderr; stdout stays free for command output."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_time=False, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def read_body(
    file: Optional[str] = None,
    text: Optional[str] = None,
    use_stdin: bool = False,
    stdin: Optional[TextIO] = None,
) -> Optional[str]:
    """Pick body content from stdin, a file, or inline text, in that order.

    Raises FileNotFoundError for a missing file.
    """
    if use_stdin:
        return (stdin or sys.stdin).read()
    if file:
        path = Path(file).expanduser()
        if not path.is_file():
            raise FileNotFoundError(str(path))
        return path.read_text(encoding="utf-8")
    return text
