"""
regsnap CLI - Command-line interface.

Snapshot registry subtrees from the terminal.
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from regsnap.config import Backend, Settings, get_settings
from regsnap.core.exceptions import ConfigurationError, RegSnapError
from regsnap.core.models import ValueMode
from regsnap.snapshot.export import dump_json, load_record
from regsnap.snapshot.importer import SnapshotImporter
from regsnap.snapshot.nodes import KeyNode
from regsnap.snapshot.resolver import HIVES
from regsnap.store.base import RegistryStore
from regsnap.store.memory import MemoryStore
from regsnap.store.winreg_store import WinregStore

app = typer.Typer(
    name="regsnap",
    help="regsnap - snapshot hierarchical registry stores",
    no_args_is_help=True,
)
console = Console()

MAX_PREVIEW = 48


def _configure_logging(settings: Settings, verbose: bool) -> None:
    level = logging.DEBUG if verbose else settings.log_level_number
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


def _open_store(settings: Settings, source: Path | None) -> RegistryStore:
    if source is not None:
        if not source.exists():
            raise ConfigurationError(f"Snapshot file does not exist: {source}", config_key="source")
        try:
            return MemoryStore.from_record(load_record(source))
        except ValueError as e:
            raise ConfigurationError(f"Invalid snapshot file {source}: {e}", config_key="source") from e

    if settings.backend is Backend.MEMORY:
        raise ConfigurationError(
            "The memory backend needs a snapshot file (--source)",
            env_var="REGSNAP_BACKEND",
        )
    return WinregStore()


def _preview(node: KeyNode, name: str) -> str:
    entry = node.values[name]
    value = entry.resolve()
    text = repr(value.decode())
    if len(text) > MAX_PREVIEW:
        text = text[: MAX_PREVIEW - 3] + "..."
    name_label = escape(entry.name) or "(default)"
    kind_label = value.kind.name
    if value.type_code is not None:
        kind_label = f"{kind_label} {value.type_code}"
    return f"[green]{name_label}[/green] [dim]{kind_label}[/dim] = {escape(text)}"


def _render(node: KeyNode, branch: Tree, depth: int | None) -> None:
    for name in node.values:
        branch.add(_preview(node, name))
    if depth is not None and depth <= 0:
        if node.children:
            branch.add(f"[dim]... {len(node.children)} more keys[/dim]")
        return
    for child in node.iter_children():
        label = f"[bold cyan]{escape(child.name)}[/bold cyan]"
        if child.access_denied:
            label += " [red](access denied)[/red]"
        _render(child, branch.add(label), None if depth is None else depth - 1)


@app.command()
def snapshot(
    root_path: str = typer.Argument(..., help="Key path, e.g. HKLM\\Software\\Vendor"),
    source: Optional[Path] = typer.Option(
        None, "--source", "-s", help="Read from a JSON snapshot instead of the live registry"
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write snapshot JSON here"),
    lazy: bool = typer.Option(False, "--lazy", help="Read values on demand"),
    depth: Optional[int] = typer.Option(None, "--depth", "-d", help="Limit displayed tree depth"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Do not print the tree"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Snapshot a registry subtree."""
    try:
        settings = get_settings()
        _configure_logging(settings, verbose)
        store = _open_store(settings, source)
    except RegSnapError as e:
        console.print(f"[red]Snapshot failed:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    with store:
        _snapshot(store, settings, root_path, output, lazy, depth, quiet)


def _snapshot(
    store: RegistryStore,
    settings: Settings,
    root_path: str,
    output: Path | None,
    lazy: bool,
    depth: int | None,
    quiet: bool,
) -> None:
    try:
        importer = SnapshotImporter(
            store,
            value_mode=ValueMode.LAZY if lazy else None,
            settings=settings,
        )
        root = importer.import_path(root_path)
    except RegSnapError as e:
        console.print(f"[red]Snapshot failed:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if not quiet:
        tree = Tree(f"[bold blue]{escape(root.name)}[/bold blue]")
        try:
            _render(root, tree, depth)
        except RegSnapError as e:
            console.print(f"[red]Value read failed:[/red] {escape(str(e))}")
            raise typer.Exit(1)
        console.print(tree)

    summary = importer.summary
    table = Table(title="Snapshot Summary")
    table.add_column("Field", style="cyan")
    table.add_column("Value", justify="right")
    for key, value in summary.to_summary().items():
        table.add_row(key, str(value))
    console.print(table)

    if summary.denied_paths:
        console.print(f"[yellow]{len(summary.denied_paths)} keys could not be read:[/yellow]")
        for path in summary.denied_paths:
            console.print(f"  {escape(path)}")

    if output:
        try:
            written = dump_json(root, output)
        except RegSnapError as e:
            console.print(f"[red]Export failed:[/red] {escape(str(e))}")
            raise typer.Exit(1)
        console.print(f"\n[green]Snapshot saved to:[/green] {written}")


@app.command()
def hives():
    """List supported registry roots and their aliases."""
    table = Table(title="Registry Roots")
    table.add_column("Root", style="cyan")
    table.add_column("Aliases")
    for name, aliases in HIVES.items():
        table.add_row(name, ", ".join(aliases) or "-")
    console.print(table)


@app.command()
def version():
    """Show regsnap version."""
    from regsnap import __version__

    console.print(Panel.fit(f"regsnap v{__version__}"))


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
