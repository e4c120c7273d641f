"""
Replay command: re-apply a stored result's steps and show where it ends up.
"""

from pathlib import Path

import typer

from bitreplay.core.errors import BitReplayError
from bitreplay.ops.registry import OperationRegistry
from bitreplay.record import ResultStore
from bitreplay.replay import replay_steps
from bitreplay.verify.diff import hash_bits

from ._output import EXIT_FAILED, EXIT_OK, console, fail, preview, print_json


def replay_command(
    result_path: Path = typer.Argument(..., help="Result JSON file"),
    until: int = typer.Option(-1, "--until", "-u", help="Replay steps up to this index (inclusive)"),
    keep_going: bool = typer.Option(False, "--keep-going", help="Do not stop at the first divergent step"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Replay a recorded result with its recorded resolved params.

    Examples:
        bitreplay replay results/3f2a9c.json
        bitreplay replay results/3f2a9c.json --until 3 --json
    """
    try:
        result = ResultStore.load_file(str(result_path))
        steps = [s for s in result.steps if until < 0 or s.index <= until]
        replayed = replay_steps(
            OperationRegistry.default(), result.initial_bits, steps, stop_on_divergence=not keep_going
        )
    except BitReplayError as e:
        raise fail(str(e), json_output)

    matches_final = until < 0 and replayed.bits == result.final_bits
    ok = replayed.ok and (until >= 0 or matches_final)

    if json_output:
        print_json({
            "success": ok,
            "stepsReplayed": replayed.applied,
            "bits": replayed.bits,
            "hash": hash_bits(replayed.bits),
            "divergentStep": replayed.divergent_step,
            "matchesFinal": matches_final,
            "error": replayed.error,
        })
    else:
        if ok:
            console.print(f"[green]✓ Replayed {replayed.applied} steps successfully[/green]")
        else:
            console.print(f"[red]✗ Replay diverged after {replayed.applied} steps[/red]")
        console.print(f"  Bits: [yellow]{preview(replayed.bits)}[/yellow]")
        console.print(f"  Hash: [cyan]{hash_bits(replayed.bits)}[/cyan]")
        if replayed.divergent_step is not None:
            console.print(f"  Divergent step: {replayed.divergent_step}")
        if replayed.error:
            console.print(f"  Error: [red]{replayed.error}[/red]")

    raise typer.Exit(EXIT_OK if ok else EXIT_FAILED)
