"""
Run command: execute a strategy against a buffer and record it.
"""

from pathlib import Path
from typing import List, Optional

import typer
from rich.table import Table

from bitreplay.config import EngineSettings
from bitreplay.core.errors import BitReplayError
from bitreplay.record import ResultStore
from bitreplay.session import Session
from bitreplay.verify.diff import execution_checksum, hash_bits

from ._output import EXIT_FAILED, EXIT_OK, console, fail, preview, print_json


def read_bits(bits: Optional[str], bits_file: Optional[Path]) -> str:
    """Buffer from --bits or --bits-file; whitespace in files is ignored."""
    if bits is not None:
        return bits.strip()
    if bits_file is not None:
        return "".join(bits_file.read_text(encoding="utf-8").split())
    raise typer.BadParameter("one of --bits or --bits-file is required")


def run_command(
    script: Optional[Path] = typer.Argument(None, help="Strategy file, one command per line"),
    commands: Optional[List[str]] = typer.Option(None, "--command", "-c", help="Command line (repeatable)"),
    bits: Optional[str] = typer.Option(None, "--bits", "-b", help="Initial buffer"),
    bits_file: Optional[Path] = typer.Option(None, "--bits-file", help="File holding the initial buffer"),
    strategy_id: str = typer.Option("", "--id", help="Strategy id recorded in the result"),
    name: str = typer.Option("", "--name", help="Strategy name recorded in the result"),
    save: Optional[Path] = typer.Option(None, "--save", "-s", help="Directory to store the result JSON"),
    show_steps: bool = typer.Option(False, "--steps", help="Show recorded steps"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Execute a strategy and record every step.

    Examples:
        bitreplay run strategy.txt --bits 10101010
        bitreplay run -c "NOT" -c "XOR 1100" --bits 1010 --save results/
        bitreplay run strategy.txt --bits-file input.txt --json
    """
    try:
        initial = read_bits(bits, bits_file)
        lines: List[str] = []
        if script is not None:
            lines.extend(script.read_text(encoding="utf-8").splitlines())
        lines.extend(commands or [])
        if not lines:
            raise typer.BadParameter("provide a strategy file or at least one --command")

        session = Session(settings=EngineSettings.from_env())
        result = session.run(
            lines,
            initial,
            strategy_id=strategy_id or (script.stem if script is not None else ""),
            strategy_name=name,
        )
        saved_path = ResultStore(str(save)).save(result) if save is not None else None
    except typer.BadParameter as e:
        raise fail(str(e), json_output)
    except FileNotFoundError as e:
        raise fail("File not found:", json_output, path=e.filename)
    except (BitReplayError, OSError) as e:
        raise fail(str(e), json_output)

    checksum = execution_checksum(
        result.initial_bits,
        [f"{s.operation}:{hash_bits(s.after_bits)}" for s in result.steps],
        result.final_bits,
    )

    if json_output:
        output = result.to_dict()
        output["checksum"] = checksum
        if saved_path:
            output["savedTo"] = saved_path
        if not show_steps:
            output.pop("steps")
        print_json(output)
    else:
        ok = result.status == "completed"
        mark = "[green]✓ Strategy completed[/green]" if ok else "[red]✗ Strategy failed[/red]"
        console.print(mark)
        console.print(f"  Result id: [cyan]{result.id}[/cyan]")
        console.print(f"  Final bits: [yellow]{preview(result.final_bits)}[/yellow]")
        console.print(f"  Operations: {result.operation_count}  Cost: {result.total_cost}")
        console.print(f"  Checksum: {checksum}")
        if result.budget_exceeded:
            console.print("[yellow]  Warning: cost budget exceeded[/yellow]")
        if result.error:
            console.print(f"  Error: [red]{result.error}[/red]")
        if saved_path:
            console.print(f"  Saved: [cyan]{saved_path}[/cyan]")

        if show_steps:
            table = Table(title="Steps")
            table.add_column("#", justify="right")
            table.add_column("Operation", style="green")
            table.add_column("Params")
            table.add_column("Range")
            table.add_column("Cost", justify="right")
            table.add_column("After", style="yellow")
            for step in result.steps:
                rng = step.bit_range
                table.add_row(
                    str(step.index),
                    step.operation,
                    ", ".join(f"{k}={v}" for k, v in step.params.items()),
                    f"[{rng.start}:{rng.end}]" if rng else "",
                    str(step.cost),
                    preview(step.full_after_bits, 32),
                )
            console.print(table)

    raise typer.Exit(EXIT_OK if result.status == "completed" else EXIT_FAILED)
