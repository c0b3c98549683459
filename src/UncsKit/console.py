"""Terminal output helpers shared by the CLIs."""

from __future__ import annotations

import json
from typing import Iterable, Mapping

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

console = Console(highlight=False, emoji=False)

SUMMARY_WIDTH = 42


class _Log:
    def title(self, text: str) -> None:
        console.print(f"\n[bold cyan]{escape(text)}[/]")

    def subtitle(self) -> None:
        console.print("[dim]" + "─" * 50 + "[/]")

    def info(self, text: str) -> None:
        console.print(f"[blue]ℹ[/] {escape(text)}")

    def success(self, text: str) -> None:
        console.print(f"[green]✓[/] {escape(text)}")

    def warning(self, text: str) -> None:
        console.print(f"[yellow]⚠[/] {escape(text)}")

    def error(self, text: str) -> None:
        console.print(f"[red]✗[/] {escape(text)}")

    def dim(self, text: str) -> None:
        console.print(f"[dim]{escape(text)}[/]")

    def highlight(self, text: str) -> None:
        console.print(f"[bold white]{escape(text)}[/]")

    def item(self, text: str) -> None:
        console.print(f"[grey50]  •[/] {escape(text)}")

    def arrow(self, text: str) -> None:
        console.print(f"[yellow]   →[/] {escape(text)}")

    def blank(self) -> None:
        console.print()

    def raw(self, text: str) -> None:
        console.print(text, markup=False, soft_wrap=True)

    def step(self, current: int, total: int, text: str) -> None:
        console.print(f"[cyan]{escape(f'[{current}/{total}]')}[/] {escape(text)}")


log = _Log()


class Spinner:
    """Status line for a long-running step. Disabled spinners print nothing."""

    def __init__(self, text: str, enabled: bool = True) -> None:
        self.enabled = enabled
        self._status = console.status(escape(text), spinner="dots", spinner_style="cyan") if enabled else None

    def start(self) -> "Spinner":
        if self._status is not None:
            self._status.start()
        return self

    def update(self, text: str) -> None:
        if self._status is not None:
            self._status.update(text)

    def succeed(self, text: str) -> None:
        self._finish("[green]✓[/]", text)

    def fail(self, text: str) -> None:
        self._finish("[red]✗[/]", text)

    def warn(self, text: str) -> None:
        self._finish("[yellow]⚠[/]", text)

    def stop(self) -> None:
        if self._status is not None:
            self._status.stop()

    def _finish(self, symbol: str, text: str) -> None:
        if self._status is None:
            return
        self._status.stop()
        console.print(f"{symbol} {escape(text)}")

    def __enter__(self) -> "Spinner":
        return self.start()

    def __exit__(self, *exc) -> None:
        self.stop()


def spinner(text: str, enabled: bool = True) -> Spinner:
    return Spinner(text, enabled=enabled).start()


def create_table(headers: Iterable[str]) -> Table:
    table = Table(box=box.SQUARE, border_style="grey50", header_style="cyan")
    for header in headers:
        table.add_column(header)
    return table


def add_row(table: Table, *cells: object) -> None:
    """Add a row of plain text cells; markup in the values is not interpreted."""
    table.add_row(*(escape(str(cell)) for cell in cells))


def summary_box(title: str, stats: Mapping[str, object]) -> None:
    """Print a titled box of key/value stats. Keys mentioning "fail" are red."""
    grid = Table.grid(padding=(0, 1))
    grid.add_column()
    grid.add_column()
    for key, value in stats.items():
        color = "red" if "fail" in key.lower() else "green"
        grid.add_row(f"{escape(key)}:", f"[{color}]{escape(str(value))}[/]")
    log.blank()
    console.print(
        Panel(
            grid,
            title=f"[bold]{escape(title)}[/]",
            title_align="left",
            border_style="cyan",
            box=box.SQUARE,
            width=SUMMARY_WIDTH,
        )
    )


def item_list(header: str, items: list[str]) -> None:
    if not items:
        return
    log.blank()
    log.highlight(f"{header} ({len(items)}):")
    for item in items:
        log.arrow(item)


def print_json(data: object, indent: int | None = 2) -> None:
    log.raw(json.dumps(data, indent=indent, ensure_ascii=False))
