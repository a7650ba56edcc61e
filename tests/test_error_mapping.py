"""
Test error mapping and CLI exit code functionality.

Validates that blobfs errors map to exit codes by kind and that the
run_and_exit wrapper handles errors appropriately for CLI commands.
"""
from __future__ import annotations

import pytest
import typer

from blobfs.errors import (
    AtomicMoveNotSupported,
    BackendError,
    BlobFsError,
    ChannelClosedError,
    DirectoryNotEmpty,
    ErrorKind,
    InvalidArgumentError,
    ObjectAlreadyExists,
    ObjectNotFound,
    PreconditionFailed,
    PseudoDirectoryError,
    UnsupportedOperationError,
)
from blobfs.operations.mappers import EXIT_CODES, exit_code_for, run_and_exit


class TestErrorTaxonomy:
    """Test error kinds and builtin bases."""

    @pytest.mark.parametrize("exc,kind,base", [
        (ObjectNotFound("x"), ErrorKind.NOT_FOUND, FileNotFoundError),
        (ObjectAlreadyExists("x"), ErrorKind.ALREADY_EXISTS, FileExistsError),
        (PseudoDirectoryError("x"), ErrorKind.PSEUDO_DIRECTORY, IsADirectoryError),
        (DirectoryNotEmpty("x"), ErrorKind.DIRECTORY_NOT_EMPTY, OSError),
        (InvalidArgumentError("x"), ErrorKind.INVALID_ARGUMENT, ValueError),
        (UnsupportedOperationError("x"), ErrorKind.UNSUPPORTED_OPERATION, NotImplementedError),
        (ChannelClosedError("x"), ErrorKind.CLOSED_CHANNEL, ValueError),
        (BackendError("x"), ErrorKind.BACKEND, OSError),
    ])
    def test_kind_and_base(self, exc, kind, base):
        assert exc.kind is kind
        assert isinstance(exc, base)
        assert isinstance(exc, BlobFsError)

    def test_path_is_carried(self):
        assert ObjectNotFound("missing", path="/a").path == "/a"

    def test_atomic_move_details(self):
        exc = AtomicMoveNotSupported("az://a/x", "az://b/x", "cross-namespace")
        assert exc.kind is ErrorKind.UNSUPPORTED_OPERATION
        assert exc.reason == "cross-namespace"
        assert "az://a/x -> az://b/x" in str(exc)


class TestExitCodeMapping:
    """Test exception to exit code mapping."""

    @pytest.mark.parametrize("exc,code", [
        (ObjectNotFound("x"), 1),
        (InvalidArgumentError("x"), 2),
        (BackendError("x"), 3),
        (ObjectAlreadyExists("x"), 4),
        (PreconditionFailed("x"), 4),
        (UnsupportedOperationError("x"), 5),
        (AtomicMoveNotSupported("a", "b", "c"), 5),
        (PseudoDirectoryError("x"), 6),
        (DirectoryNotEmpty("x"), 6),
    ])
    def test_blobfs_errors(self, exc, code):
        assert exit_code_for(exc) == code

    def test_standard_exceptions(self):
        assert exit_code_for(ValueError("test")) == 2
        assert exit_code_for(RuntimeError("test")) == 3
        assert exit_code_for(FileNotFoundError("test")) == 3

    def test_every_kind_mapped(self):
        assert set(EXIT_CODES) == set(ErrorKind)


class TestRunAndExit:
    """Test the CLI wrapper."""

    def test_success_returns_value(self):
        assert run_and_exit(lambda: 42) == 42

    def test_error_becomes_exit(self, capsys):
        def boom():
            raise ObjectNotFound("No such object: az://bucket/x")

        with pytest.raises(typer.Exit) as excinfo:
            run_and_exit(boom)
        assert excinfo.value.exit_code == 1
        assert "No such object" in capsys.readouterr().err
