"""
Error mapping and CLI utilities.

Maps blobfs errors to exit codes by their ``ErrorKind`` and wraps command
bodies so every Typer command fails the same way.
"""
from __future__ import annotations

import typer
from typing import Callable, TypeVar

from ..errors import BlobFsError, ErrorKind

T = TypeVar('T')

EXIT_CODES = {
    ErrorKind.NOT_FOUND: 1,
    ErrorKind.INVALID_ARGUMENT: 2,
    ErrorKind.BACKEND: 3,
    ErrorKind.CLOSED_CHANNEL: 3,
    ErrorKind.ALREADY_EXISTS: 4,
    ErrorKind.PRECONDITION_FAILED: 4,
    ErrorKind.UNSUPPORTED_OPERATION: 5,
    ErrorKind.PSEUDO_DIRECTORY: 6,
    ErrorKind.DIRECTORY_NOT_EMPTY: 6,
}


def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to exit code.

    - 1: Not found
    - 2: Invalid argument (any ``ValueError`` outside the taxonomy too)
    - 3: Backend or unknown error
    - 4: Already exists
    - 5: Unsupported operation
    - 6: Directory in the way (pseudo directory, or not empty)
    """
    if isinstance(exc, BlobFsError):
        return EXIT_CODES.get(exc.kind, 3)
    if isinstance(exc, ValueError):
        return 2
    return 3


def run_and_exit(func: Callable[[], T]) -> T:
    """
    Run a command body, turning any exception into ``typer.Exit``.

    The error message goes to stderr before exiting.
    """
    try:
        return func()
    except Exception as e:
        from .printers import print_error
        print_error(e)
        raise typer.Exit(code=exit_code_for(e)) from e
