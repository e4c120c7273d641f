"""
Shared output helpers for CLI commands.
"""

import json
from typing import Any, Dict, Optional

import typer
from rich.console import Console

console = Console()

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_ERROR = 2


def print_json(data: Dict[str, Any]) -> None:
    print(json.dumps(data, indent=2))


def fail(message: str, json_output: bool, path: Optional[str] = None) -> typer.Exit:
    """Report an error and return the exit to raise (code 2)."""
    if json_output:
        payload: Dict[str, Any] = {"error": message}
        if path is not None:
            payload["path"] = path
        print_json(payload)
    else:
        suffix = f" {path}" if path is not None else ""
        console.print(f"[red]Error:[/red] {message}{suffix}")
    return typer.Exit(EXIT_ERROR)


def preview(bits: str, width: int = 64) -> str:
    if len(bits) <= width:
        return bits
    return bits[:width] + f"... ({len(bits)} bits)"
