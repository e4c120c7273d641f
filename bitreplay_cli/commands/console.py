"""
Console command: interactive command loop over one session.

Lines are command-language input. Lines starting with ':' control the
console itself:
    :bits            show the running buffer
    :load <bits>     replace the buffer (clears recorded steps)
    :steps           list recorded steps
    :macros          list defined macros
    :suggest <text>  autocomplete candidates
    :save <dir>      store the session as an execution result
    :quit            leave
"""

from typing import Optional

import typer
from rich.markup import escape
from rich.table import Table

from bitreplay.config import EngineSettings
from bitreplay.core.errors import BitReplayError
from bitreplay.observability import init_metrics, start_metrics_server
from bitreplay.record import STATUS_COMPLETED, STATUS_FAILED, ResultStore
from bitreplay.session import Session

from ._output import EXIT_OK, console, fail, preview

PROMPT = "[bold cyan]bitreplay>[/bold cyan] "


def _show_steps(session: Session) -> None:
    table = Table(title=f"Steps ({len(session.recorder)})")
    table.add_column("#", justify="right")
    table.add_column("Operation", style="green")
    table.add_column("Params")
    table.add_column("After", style="yellow")
    for step in session.recorder.steps:
        table.add_row(
            str(step.index),
            step.operation,
            ", ".join(f"{k}={v}" for k, v in step.params.items()),
            preview(step.full_after_bits, 32),
        )
    console.print(table)


def _control(session: Session, line: str, strategy_id: str) -> bool:
    """Handle a ':' line. Returns False when the console should exit."""
    name, _, arg = line[1:].strip().partition(" ")
    name = name.lower()
    arg = arg.strip()

    if name in ("quit", "exit", "q"):
        return False
    if name == "bits":
        console.print(session.bits or "[dim](empty)[/dim]")
    elif name == "load":
        try:
            session.load(arg)
            console.print(f"[green]Loaded {len(session.bits)} bits[/green]")
        except BitReplayError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
    elif name == "steps":
        _show_steps(session)
    elif name == "macros":
        names = session.macros.names()
        console.print(", ".join(names) if names else "[dim](no macros)[/dim]")
    elif name == "suggest":
        for item in session.interpreter.suggestions(arg):
            console.print(item)
    elif name == "save":
        last = session.last_result
        failed = last is not None and not last.success
        try:
            result = session.snapshot(
                strategy_id=strategy_id,
                strategy_name="console",
                status=STATUS_FAILED if failed else STATUS_COMPLETED,
                error=last.error if failed else None,
            )
            path = ResultStore(arg or session.settings.results_dir).save(result)
            console.print(f"[green]Saved[/green] {path}")
        except (OSError, BitReplayError) as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
    else:
        console.print(f"[red]Unknown console command:[/red] :{name}")
    return True


def console_command(
    bits: str = typer.Option("", "--bits", "-b", help="Initial buffer"),
    strategy_id: str = typer.Option("console", "--id", help="Strategy id used by :save"),
    metrics_port: Optional[int] = typer.Option(
        None, "--metrics-port", help="Serve Prometheus metrics on this port"
    ),
):
    """
    Interactive console. Type HELP for the command language, :quit to leave.

    Examples:
        bitreplay console --bits 10101010
        bitreplay console --bits 1100 --metrics-port 9108
    """
    settings = EngineSettings.from_env()
    try:
        session = Session(settings=settings)
        session.load(bits.strip())
    except BitReplayError as e:
        raise fail(str(e), False)

    init_metrics()
    start_metrics_server(
        settings.metrics_enabled or metrics_port is not None,
        metrics_port if metrics_port is not None else settings.metrics_port,
    )

    console.print("[bold]bitreplay console[/bold] - HELP for commands, :quit to leave")
    while True:
        try:
            line = console.input(PROMPT)
        except (EOFError, KeyboardInterrupt):
            break
        line = line.strip()
        if not line:
            continue
        if line.startswith(":"):
            if not _control(session, line, strategy_id):
                break
            continue

        result = session.execute(line)
        if result.success:
            if result.message:
                console.print(result.message)
            console.print(
                f"[green]✓[/green] {result.operations_executed} ops  "
                f"[yellow]{preview(session.bits)}[/yellow]"
            )
        else:
            console.print(
                f"[red]✗ {escape(result.error or '')}[/red] ({result.operations_executed} ops completed)"
            )
        if result.condition_met is not None:
            console.print(f"  condition met: {result.condition_met}")

    raise typer.Exit(EXIT_OK)
