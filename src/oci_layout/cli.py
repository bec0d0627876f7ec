"""
OCI layout CLI

Implements 4 CLI verbs over the Operations facade:
- detect: Check whether a file or directory is an OCI layout
- inspect: Show labels and layers of the image
- label: Print a single label value
- extract-layer: Write one layer's uncompressed bytes to a file or stdout
"""
from __future__ import annotations

import logging
from typing import Optional

import typer

from .operations import Operations, run_and_exit
from .operations.printers import print_detect_result, print_extract_summary, print_image_summary
from .settings import create_settings_from_env

app = typer.Typer(name="oci-layout", help="Inspect container images packaged as OCI layout archives")


def _operations() -> Operations:
    return Operations(settings=create_settings_from_env())


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Inspect container images packaged as OCI layout archives."""
    def _configure() -> None:
        settings = create_settings_from_env()
        level = logging.DEBUG if verbose else settings.logging_level
        logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    run_and_exit(_configure)


@app.command()
def detect(
    path: str = typer.Argument(..., help="Archive file or layout directory"),
) -> None:
    """Check whether PATH is an OCI layout."""
    def _detect() -> None:
        print_detect_result(path, _operations().detect(path))

    run_and_exit(_detect)


@app.command()
def inspect(
    path: str = typer.Argument(..., help="Archive file or layout directory"),
    verbose: bool = typer.Option(False, "--verbose", help="Show layer media types and sizes"),
) -> None:
    """Show labels and layers of the image in PATH."""
    def _inspect() -> None:
        print_image_summary(_operations().inspect(path), verbose=verbose)

    run_and_exit(_inspect)


@app.command()
def label(
    path: str = typer.Argument(..., help="Archive file or layout directory"),
    name: str = typer.Argument(..., help="Label name"),
) -> None:
    """Print the value of label NAME (an empty line if the image has no such label)."""
    def _label() -> None:
        typer.echo(_operations().label(path, name))

    run_and_exit(_label)


@app.command("extract-layer")
def extract_layer(
    path: str = typer.Argument(..., help="Archive file or layout directory"),
    diff_id: str = typer.Argument(..., help="Layer diffID, e.g. sha256:<hex>"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Destination file (default: stdout)"),
) -> None:
    """Write the uncompressed content of layer DIFF_ID."""
    def _extract() -> None:
        ops = _operations()
        if output is None:
            ops.extract_layer(path, diff_id, typer.get_binary_stream("stdout"))
            return
        written = ops.extract_layer_to_file(path, diff_id, output)
        print_extract_summary(diff_id, output, written)

    run_and_exit(_extract)


if __name__ == "__main__":
    app()
