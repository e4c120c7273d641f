"""
Catalog commands: list registered operations and metrics.
"""

from typing import Optional

import typer
from rich.table import Table

from bitreplay.core.bits import validate_bits
from bitreplay.core.errors import BitReplayError
from bitreplay.metrics import MetricRegistry
from bitreplay.ops.registry import OperationRegistry

from ._output import EXIT_OK, console, fail, print_json


def ops_command(
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Only this category"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    List registered operations.

    Examples:
        bitreplay ops
        bitreplay ops --category logic --json
    """
    definitions = [
        d for d in OperationRegistry.default().definitions()
        if category is None or d.category == category.lower()
    ]

    if json_output:
        print_json({"count": len(definitions), "operations": [d.to_dict() for d in definitions]})
    else:
        table = Table(title=f"Operations ({len(definitions)})")
        table.add_column("Id", style="green")
        table.add_column("Category")
        table.add_column("Cost", justify="right")
        table.add_column("Mask", justify="center")
        table.add_column("Seed", justify="center")
        table.add_column("Description")
        for d in definitions:
            table.add_row(
                d.id,
                d.category,
                str(d.cost),
                "✓" if d.requires_mask else "",
                "✓" if d.requires_seed else "",
                d.description,
            )
        console.print(table)
    raise typer.Exit(EXIT_OK)


def metrics_command(
    bits: Optional[str] = typer.Option(None, "--bits", "-b", help="Evaluate every metric on this buffer"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    List registered metrics, optionally evaluated on a buffer.

    Examples:
        bitreplay metrics
        bitreplay metrics --bits 11001010 --json
    """
    registry = MetricRegistry.default()
    ids = registry.ids()
    values = {}
    if bits is not None:
        try:
            values = registry.evaluate_many(ids, validate_bits(bits.strip()))
        except BitReplayError as e:
            raise fail(str(e), json_output)

    if json_output:
        if bits is not None:
            print_json({"count": len(ids), "values": values})
        else:
            print_json({"count": len(ids), "metrics": ids})
    else:
        table = Table(title=f"Metrics ({len(ids)})")
        table.add_column("Id", style="green")
        if bits is not None:
            table.add_column("Value", justify="right", style="cyan")
        for metric_id in ids:
            if bits is not None:
                table.add_row(metric_id, f"{values[metric_id]:g}")
            else:
                table.add_row(metric_id)
        console.print(table)
    raise typer.Exit(EXIT_OK)
