"""
Human-readable output formatting.

Centralizes all CLI output formatting so CLI commands stay thin.
"""
from __future__ import annotations

from rich.console import Console
from rich.table import Table

from .facade import ImageSummary

_console = Console(soft_wrap=True)


def print_detect_result(source: str, is_layout: bool) -> None:
    if is_layout:
        _console.print(f"[green]{source}[/] is an OCI layout archive")
    else:
        _console.print(f"[yellow]{source}[/] is not an OCI layout archive")


def print_image_summary(summary: ImageSummary, verbose: bool = False) -> None:
    """
    Print labels and layers of an image.

    Args:
        summary: Image summary from Operations.inspect
        verbose: Show layer media types and sizes
    """
    _console.print(f"[bold]Source:[/] {summary.source}")
    _console.print(f"[bold]Config:[/] [dim]{summary.config_digest}[/]")
    if summary.os or summary.architecture:
        _console.print(f"[bold]Platform:[/] {summary.os or '?'}/{summary.architecture or '?'}")

    if summary.labels:
        table = Table(title="Labels")
        table.add_column("Name", style="cyan")
        table.add_column("Value", style="yellow")
        for name, value in sorted(summary.labels.items()):
            table.add_row(name, value)
        _console.print(table)
    else:
        _console.print("[dim]No labels defined[/]")

    table = Table(title=f"Layers ({len(summary.layers)})")
    table.add_column("#", justify="right")
    table.add_column("DiffID", style="cyan")
    table.add_column("Digest", style="dim")
    if verbose:
        table.add_column("Media Type")
        table.add_column("Size", justify="right")
    for i, layer in enumerate(summary.layers):
        row = [str(i), layer.diff_id, layer.digest]
        if verbose:
            row += [layer.media_type, _format_bytes(layer.size)]
        table.add_row(*row)
    _console.print(table)


def print_extract_summary(diff_id: str, dest: str, written: int) -> None:
    _console.print(f"Extracted layer {diff_id} to {dest} ({_format_bytes(written)})")


def _format_bytes(size_bytes: int) -> str:
    """
    Format byte count as human-readable string.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB", "42 KB")
    """
    if size_bytes == 0:
        return "0 B"
    elif size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"
