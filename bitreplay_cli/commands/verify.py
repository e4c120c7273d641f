"""
Verify commands: verify one stored result or a directory of results.
"""

from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from bitreplay.config import EngineSettings
from bitreplay.core.errors import BitReplayError
from bitreplay.ops.registry import OperationRegistry
from bitreplay.record import ResultStore
from bitreplay.verify import ReplayVerifier, TolerancePolicy, VerificationResult, VerificationStrategy

from ._output import EXIT_FAILED, EXIT_OK, console, fail, print_json


def _policy(tolerance: float) -> TolerancePolicy:
    return TolerancePolicy.exact() if tolerance == 0 else TolerancePolicy.tolerate_percent(tolerance)


def _verifier(settings: EngineSettings) -> ReplayVerifier:
    registry = OperationRegistry.default(
        script_step_budget=settings.script_step_budget,
        script_max_output=settings.script_max_output,
    )
    return ReplayVerifier(registry, max_positions=settings.max_mismatch_positions)


def _print_outcome(outcome: VerificationResult) -> None:
    if outcome.verified:
        console.print(f"[green]✓ Verified[/green] ({outcome.strategy.value})")
    else:
        console.print(f"[red]✗ Verification failed[/red] ({outcome.strategy.value})")
    console.print(f"  Match: {outcome.match_percentage:.4f}%  Mismatches: {outcome.mismatch_count}")
    console.print(f"  Expected hash: [yellow]{outcome.expected_hash}[/yellow]")
    console.print(f"  Actual hash:   [yellow]{outcome.actual_hash}[/yellow]")
    if outcome.length_delta:
        console.print(f"  Length delta: {outcome.length_delta}")
    if outcome.failed_step is not None:
        console.print(f"  Failed at step {outcome.failed_step} ({outcome.failed_operation})")
    if outcome.mismatch_positions:
        shown = ", ".join(str(p) for p in outcome.mismatch_positions[:20])
        console.print(f"  First mismatches: {shown}")
    if outcome.warning:
        console.print(f"[yellow]  Warning: {outcome.warning}[/yellow]")
    if outcome.error:
        console.print(f"  Error: [red]{escape(outcome.error)}[/red]")


def verify_command(
    result_path: Path = typer.Argument(..., help="Result JSON file"),
    strategy: VerificationStrategy = typer.Option(
        VerificationStrategy.RE_EXECUTE, "--strategy", help="Verification strategy"
    ),
    tolerance: float = typer.Option(
        0.0, "--tolerance", "-t", help="Tolerated mismatch percent (trust_and_check only)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Verify that a recorded result replays to its final bits.

    Examples:
        bitreplay verify results/3f2a9c.json
        bitreplay verify results/3f2a9c.json --strategy trust_and_check --tolerance 1
    """
    try:
        result = ResultStore.load_file(str(result_path))
        outcome = _verifier(EngineSettings.from_env()).verify_result(result, strategy, _policy(tolerance))
    except (ValueError, BitReplayError) as e:
        raise fail(str(e), json_output)

    if json_output:
        print_json(outcome.to_dict())
    else:
        console.print(f"Result [cyan]{result.id}[/cyan] ({len(result.steps)} steps)")
        _print_outcome(outcome)

    raise typer.Exit(EXIT_OK if outcome.verified else EXIT_FAILED)


def verify_batch_command(
    directory: Path = typer.Argument(..., help="Directory of result JSON files"),
    strategy: VerificationStrategy = typer.Option(
        VerificationStrategy.RE_EXECUTE, "--strategy", help="Verification strategy"
    ),
    tolerance: float = typer.Option(0.0, "--tolerance", "-t", help="Tolerated mismatch percent"),
    workers: int = typer.Option(0, "--workers", "-w", help="Worker threads (default from settings)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Verify every result in a directory in parallel.

    Examples:
        bitreplay verify-batch results/
        bitreplay verify-batch results/ --workers 8 --json
    """
    if not directory.is_dir():
        raise fail("Directory not found:", json_output, path=str(directory))

    settings = EngineSettings.from_env()
    try:
        results, unreadable = ResultStore(str(directory)).load_readable()
        outcomes = _verifier(settings).verify_many(
            results, strategy, _policy(tolerance), max_workers=workers or settings.verify_workers
        )
    except (ValueError, BitReplayError) as e:
        raise fail(str(e), json_output)
    for result_id, reason in unreadable.items():
        outcomes.append(VerificationResult.unreadable(strategy, result_id, reason))

    verified = sum(1 for o in outcomes if o.verified)
    failed = len(outcomes) - verified

    if json_output:
        print_json({
            "total": len(outcomes),
            "verified": verified,
            "failed": failed,
            "results": [o.to_dict() for o in outcomes],
        })
    else:
        table = Table(title=f"Verification ({strategy.value})")
        table.add_column("Result", style="cyan")
        table.add_column("Verdict")
        table.add_column("Match %", justify="right")
        table.add_column("Mismatches", justify="right")
        table.add_column("Failed step", justify="right")
        table.add_column("Error", style="red")
        for o in outcomes:
            table.add_row(
                o.result_id or "",
                "[green]verified[/green]" if o.verified else "[red]failed[/red]",
                f"{o.match_percentage:.2f}",
                str(o.mismatch_count),
                "" if o.failed_step is None else str(o.failed_step),
                escape(o.error or ""),
            )
        console.print(table)
        console.print(f"{verified} verified, {failed} failed")

    raise typer.Exit(EXIT_OK if failed == 0 else EXIT_FAILED)
