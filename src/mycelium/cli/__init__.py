"""
Mycelium CLI - inspect remote-import paths and run scripts.

Usage:
    mycelium --help
    mycelium encode https://example.test/mod.js
    mycelium decode /.mycelium/https:/example.test/mod.js
    mycelium cat https://example.test/mod.js
    mycelium run main.py
"""

import logging
import sys

import click

from mycelium.exceptions import MyceliumError
from mycelium.filesystem import FileSystemConfig, PathCodec
from mycelium.importer import PythonHost
from mycelium.session import ExecutionSession


def _config() -> FileSystemConfig:
    try:
        return FileSystemConfig.from_env()
    except ValueError as e:
        click.echo(f"Error: Invalid MYCELIUM_* configuration: {e}", err=True)
        sys.exit(1)


@click.group()
@click.version_option(package_name="mycelium")
@click.option("-v", "--verbose", is_flag=True, help="Log channel and filesystem activity")
def main(verbose: bool):
    """Mycelium - load modules from http(s) URIs as if they were local files."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )


@main.command()
@click.argument("uri")
def encode(uri: str):
    """Print the virtual path a URI is served under."""
    click.echo(PathCodec(_config()).encode(uri).as_posix())


@main.command()
@click.argument("path")
def decode(path: str):
    """Print the URI behind a virtual path, or LOCAL for real paths."""
    try:
        classified = PathCodec(_config()).classify(path)
    except MyceliumError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(classified.uri if classified.is_remote else "LOCAL")


@main.command()
@click.argument("reference")
@click.option("--chunk-size", default=8192, show_default=True, help="Bytes per read")
def cat(reference: str, chunk_size: int):
    """Stream a URI or path through the intercepting filesystem to stdout.

    \b
    Examples:
        mycelium cat https://example.test/mod.js
        mycelium cat /.mycelium/https:/example.test/mod.js
    """
    session = ExecutionSession(config=_config())
    sys.stdout.flush()
    out = sys.stdout.buffer
    try:
        with session.open(reference) as channel:
            while True:
                data = channel.read(chunk_size)
                if not data:
                    break
                out.write(data)
    except (MyceliumError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    out.flush()


@main.command()
@click.argument("script", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "-m",
    "--module",
    "modules",
    multiple=True,
    metavar="NAME=URI",
    help="Make a remote module importable under NAME",
)
def run(script: str, modules):
    """Run a Python script with remote modules importable.

    \b
    Examples:
        mycelium run main.py -m greetings=https://example.test/greetings.py
    """
    host = PythonHost()
    session = ExecutionSession(host=host, config=_config())
    for entry in modules:
        name, sep, uri = entry.partition("=")
        if not sep or not name or not uri:
            click.echo(f"Error: Expected NAME=URI, got '{entry}'", err=True)
            sys.exit(1)
        host.register_module(name, uri)

    try:
        session.run_file(script)
    except MyceliumError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
