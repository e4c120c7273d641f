"""
Command language: parsing and interpretation of console lines.
"""

from .model import (
    Command,
    Condition,
    Conditional,
    Help,
    LiteralCode,
    Loop,
    MacroCall,
    MacroDefinition,
    OperationCall,
    Pipeline,
)
from .parser import parse, parse_operation, parse_operation_list, suggest
from .macros import MacroRegistry
from .interpreter import CommandResult, Interpreter, InterpreterState

__all__ = [
    "Command",
    "Condition",
    "Conditional",
    "Help",
    "LiteralCode",
    "Loop",
    "MacroCall",
    "MacroDefinition",
    "OperationCall",
    "Pipeline",
    "parse",
    "parse_operation",
    "parse_operation_list",
    "suggest",
    "MacroRegistry",
    "CommandResult",
    "Interpreter",
    "InterpreterState",
]
