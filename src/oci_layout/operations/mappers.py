"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and a CLI command wrapper
to ensure consistent error handling across all Typer commands.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

import typer

T = TypeVar('T')

logger = logging.getLogger(__name__)

EXIT_CODES = {
    "OciEntryNotFound": 1,
    "OciLayerBlobNotFound": 1,
    "OciManifestNotFound": 1,
    "OciLayerNotFound": 1,
    "FileNotFoundError": 1,
    "NotADirectoryError": 1,
    "OciMalformedDocument": 2,
    "OciDecompressionError": 2,
    "ValueError": 2,
    "OciSourceError": 3,
}


def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.

    - 0: Success
    - 1: Something referenced does not exist (entry, manifest, layer, path)
    - 2: Malformed document or invalid input
    - 3: Source access failure or unknown error

    Args:
        exc: Exception to map

    Returns:
        Exit code (3 as fallback for unknown exceptions)
    """
    return EXIT_CODES.get(type(exc).__name__, 3)


def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.

    Executes the given function and maps any exception to an exit code
    using typer.Exit, after printing the error message to stderr.

    Args:
        func: Zero-argument function implementing the command

    Returns:
        Whatever func returns

    Raises:
        typer.Exit: On any exception raised by func
    """
    try:
        return func()
    except typer.Exit:
        raise
    except Exception as e:
        logger.debug("Command failed", exc_info=True)
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=exit_code_for(e)) from e


__all__ = ["EXIT_CODES", "exit_code_for", "run_and_exit"]
