"""
blobfs CLI

Filesystem verbs over ``az://container/path`` references:
- ls: List a directory (or show a single object)
- cat: Write an object's bytes to stdout
- put: Upload a local file
- cp: Copy between references or to/from local files
- mv: Move an object
- rm: Delete an object or empty directory
- stat: Show attributes
"""
from __future__ import annotations

import logging

import typer

from .operations import Operations, OpsConfig, run_and_exit
from .operations.printers import print_attributes, print_listing, print_long_listing, print_summary
from .provider import BlobFileSystemProvider
from .cli_context import CLIContext

app = typer.Typer(name="blobfs", help="POSIX-like filesystem over blob storage")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _create_provider() -> BlobFileSystemProvider:
    """Provider for this invocation, from environment settings."""
    return CLIContext.from_env().provider


def _ops(force: bool = False) -> Operations:
    return Operations(config=OpsConfig(force=force), provider=_create_provider())


@app.command()
def ls(
    uri: str = typer.Argument(..., help="Directory or object reference"),
    long: bool = typer.Option(False, "--long", "-l", help="Show size and modification time"),
) -> None:
    """List the immediate children of a directory."""

    def _ls() -> None:
        ops = _ops()
        if long:
            print_long_listing(ops.ls_long(uri))
        else:
            print_listing(ops.ls(uri))

    run_and_exit(_ls)


@app.command()
def cat(uri: str = typer.Argument(..., help="Object reference")) -> None:
    """Write an object's content to stdout."""

    def _cat() -> None:
        typer.echo(_ops().cat(uri), nl=False)

    run_and_exit(_cat)


@app.command()
def put(
    local_path: str = typer.Argument(..., help="Local file to upload"),
    uri: str = typer.Argument(..., help="Target object reference"),
    content_type: str = typer.Option(None, "--content-type", help="Content type to store"),
    force: bool = typer.Option(False, "--force", "-f", help="Replace an existing object"),
) -> None:
    """Upload a local file."""

    def _put() -> None:
        target = _ops(force).put(local_path, uri, content_type=content_type)
        print_summary(f"Uploaded {local_path} to {target.to_uri()}")

    run_and_exit(_put)


@app.command()
def cp(
    source: str = typer.Argument(..., help="Source reference or local path"),
    target: str = typer.Argument(..., help="Target reference or local path"),
    force: bool = typer.Option(False, "--force", "-f", help="Replace an existing target"),
) -> None:
    """Copy an object."""

    def _cp() -> None:
        _ops(force).cp(source, target)
        print_summary(f"Copied {source} to {target}")

    run_and_exit(_cp)


@app.command()
def mv(
    source: str = typer.Argument(..., help="Source reference"),
    target: str = typer.Argument(..., help="Target reference"),
    force: bool = typer.Option(False, "--force", "-f", help="Replace an existing target"),
    atomic: bool = typer.Option(False, "--atomic", help="Fail unless the move is atomic"),
) -> None:
    """Move an object."""

    def _mv() -> None:
        _ops(force).mv(source, target, atomic=atomic)
        print_summary(f"Moved {source} to {target}")

    run_and_exit(_mv)


@app.command()
def rm(
    uri: str = typer.Argument(..., help="Object or directory reference"),
    missing_ok: bool = typer.Option(False, "--missing-ok", help="Succeed if nothing exists"),
) -> None:
    """Delete an object or an empty directory."""

    def _rm() -> None:
        deleted = _ops().rm(uri, missing_ok=missing_ok)
        print_summary(f"Deleted {uri}" if deleted else f"Nothing to delete at {uri}")

    run_and_exit(_rm)


@app.command()
def stat(
    uri: str = typer.Argument(..., help="Object or directory reference"),
    attributes: str = typer.Option("blob:*", "--attributes", "-a", help="Attribute request, e.g. basic:size"),
) -> None:
    """Show attributes of an object or directory."""

    def _stat() -> None:
        path, values = _ops().stat(uri, attributes)
        print_attributes(path, values)

    run_and_exit(_stat)


if __name__ == "__main__":
    app()
