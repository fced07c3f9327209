"""
Main CLI application
"""
import typer
from pathlib import Path
from typing import Optional

from ... import __version__
from ...core.logging import setup_logging, get_stdout_console
from .provision import register_provision_commands

console = get_stdout_console()

app = typer.Typer(
    name="piprovision",
    add_completion=False,
    help="Set up SSH key access to a Raspberry Pi and install .NET remote debugging tools",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

register_provision_commands(app)


def _print_version(value: bool) -> None:
    if value:
        console.print(f"piprovision {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        "-l",
        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Log file path",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_print_version,
        is_eager=True,
        help="Show the version and exit",
    ),
):
    """
    piprovision - Raspberry Pi provisioning for .NET remote debugging

    Commands run the workflow as a whole or one phase at a time:
    - provision: preflight, key setup and bootstrap
    - check: preflight checks only
    - push-key: key setup only
    - bootstrap: install .NET and vsdbg only
    """
    setup_logging(level=log_level, log_file=log_file)


def run():
    """CLI entry point"""
    app()


if __name__ == "__main__":
    run()
