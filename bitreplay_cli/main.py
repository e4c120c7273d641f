#!/usr/bin/env python3
"""
bitreplay CLI - Deterministic Bit Transformation Engine

Main entrypoint for the bitreplay command-line tool.
"""

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from bitreplay.logging_config import setup_logging

from bitreplay_cli.commands import catalog, console as console_cmd, replay, run, verify

# Initialize Typer app
app = typer.Typer(
    name="bitreplay",
    help="Deterministic bit transformation engine with replay verification",
    add_completion=False,
)

# Console for rich output
console = Console()


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", envvar="BITREPLAY_LOG_LEVEL", help="DEBUG, INFO, WARNING, ERROR"
    ),
    log_format: Optional[str] = typer.Option(
        None, "--log-format", envvar="BITREPLAY_LOG_FORMAT", help="json or text"
    ),
):
    """Configure logging before any command runs."""
    setup_logging(level=log_level or "WARNING", fmt=log_format)


# Add standalone commands
app.command(name="run")(run.run_command)
app.command(name="verify")(verify.verify_command)
app.command(name="verify-batch")(verify.verify_batch_command)
app.command(name="replay")(replay.replay_command)
app.command(name="console")(console_cmd.console_command)
app.command(name="ops")(catalog.ops_command)
app.command(name="metrics")(catalog.metrics_command)


@app.command()
def version():
    """Show version information."""
    from bitreplay import __version__ as engine_version
    from bitreplay_cli import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]bitreplay CLI[/bold]", f"v{__version__}")
    table.add_row("Engine", f"v{engine_version}")

    console.print(table)


def main():
    """Main entrypoint."""
    app()


if __name__ == "__main__":
    main()
