"""
Command parser: one console line -> Command.

parse() never raises. Anything it cannot make sense of becomes an empty
Pipeline, which the interpreter runs as a no-op.

Grammar (keywords case-insensitive):
    HELP
    DEFINE <name> = <command>
    APPLY <name>
    CUSTOM <op_id> { key: value, ... }
    EXEC { <script> }
    REPEAT <n> { <op> [| or ; <op>]... }
    IF <metric> <cmp> <number> THEN <ops> [ELSE <ops>]
    <op> [mask_or_value] [count] [encode|decode] [key=value]... [[start:end]]
    <op> | <op> | ...
"""

import json
import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..core.bits import BitRange
from ..core.errors import ParseError
from ..ops.params import BINARY_PARAMS, DIRECTIONS, TEXT_PARAMS
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

logger = logging.getLogger(__name__)

KEYWORDS = ("DEFINE", "APPLY", "REPEAT", "IF", "THEN", "ELSE", "EXEC", "CUSTOM", "HELP")
MAX_SUGGESTIONS = 20

_DEFINE_RE = re.compile(r"^DEFINE\s+(\w+)\s*=\s*(.+)$", re.IGNORECASE | re.DOTALL)
_APPLY_RE = re.compile(r"^APPLY\s+(\w+)$", re.IGNORECASE)
_CUSTOM_RE = re.compile(r"^CUSTOM\s+(\w+)\s*(\{.*\})?$", re.IGNORECASE | re.DOTALL)
_EXEC_RE = re.compile(r"^EXEC\s*\{(.+)\}$", re.IGNORECASE | re.DOTALL)
_REPEAT_RE = re.compile(r"^REPEAT\s+(\d+)\s*\{(.+)\}$", re.IGNORECASE | re.DOTALL)
_IF_RE = re.compile(
    r"^IF\s+(\w+)\s*(>=|<=|==|!=|>|<)\s*(-?[\d.]+)\s+THEN\s+(.+?)(?:\s+ELSE\s+(.+))?$",
    re.IGNORECASE,
)

_RANGE_RE = re.compile(r"^\[(\d+):(\d+)\]$")
_BINARY_RE = re.compile(r"^[01]+$")
_COUNT_RE = re.compile(r"^\d+$")
_INT_RE = re.compile(r"^-?\d+$")
_KEY_VALUE_RE = re.compile(r"^(\w+)=(\S+)$")
_OP_ID_RE = re.compile(r"^\w+$")
_BARE_KEY_RE = re.compile(r"([{,]\s*)(\w+)\s*:")


def parse(text: str) -> Command:
    """
    Parse one command line.

    Args:
        text: Raw console input

    Returns:
        The structured command; an empty Pipeline for blank or unrecognised input
    """
    raw = (text or "").strip()
    if not raw:
        return Pipeline(raw=raw)

    if raw.upper() == "HELP":
        return Help(raw=raw)

    m = _DEFINE_RE.match(raw)
    if m:
        body_text = m.group(2).strip()
        return MacroDefinition(name=m.group(1), body_text=body_text, body=parse(body_text), raw=raw)

    m = _APPLY_RE.match(raw)
    if m:
        return MacroCall(name=m.group(1), raw=raw)

    m = _CUSTOM_RE.match(raw)
    if m:
        params = parse_custom_params(m.group(2)) if m.group(2) else {}
        return OperationCall(operation_id=m.group(1).upper(), params=params, raw=raw)

    m = _EXEC_RE.match(raw)
    if m:
        return LiteralCode(code=m.group(1).strip(), raw=raw)

    m = _REPEAT_RE.match(raw)
    if m:
        return Loop(count=int(m.group(1)), operations=parse_operation_list(m.group(2)), raw=raw)

    m = _IF_RE.match(raw)
    if m:
        try:
            return _parse_conditional(m, raw)
        except ParseError as e:
            logger.debug("Bad conditional", extra={"raw": raw, "error": str(e)})
            return Pipeline(raw=raw)

    if "|" in raw:
        return Pipeline(operations=parse_operation_list(raw, separators="|"), raw=raw)

    op = parse_operation(raw)
    if op is None:
        logger.debug("Unrecognised command", extra={"raw": raw})
        return Pipeline(raw=raw)
    return op


def _parse_conditional(m: "re.Match[str]", raw: str) -> Conditional:
    try:
        threshold = float(m.group(3))
    except ValueError as e:
        raise ParseError(f"bad threshold: {m.group(3)}") from e
    condition = Condition(metric=m.group(1).lower(), comparator=m.group(2), threshold=threshold)
    else_text = m.group(5)
    return Conditional(
        condition=condition,
        then_ops=parse_operation_list(m.group(4)),
        else_ops=parse_operation_list(else_text) if else_text else (),
        raw=raw,
    )


def parse_operation_list(text: str, separators: str = "|;") -> Tuple[OperationCall, ...]:
    """Split on the separators and parse each non-empty segment as one operation."""
    pattern = "[" + re.escape(separators) + "]"
    ops: List[OperationCall] = []
    for part in re.split(pattern, text):
        part = part.strip()
        if not part:
            continue
        op = parse_operation(part)
        if op is not None:
            ops.append(op)
    return tuple(ops)


def parse_operation(text: str) -> Optional[OperationCall]:
    """
    Parse `OP [tokens...]`.

    A `[a:b]` token is a range wherever it appears. A `^[01]+$` token sets
    both mask and value; the operation decides which one it reads.
    """
    tokens = text.split()
    bit_range: Optional[BitRange] = None
    rest: List[str] = []
    for token in tokens:
        rm = _RANGE_RE.match(token)
        if rm:
            bit_range = BitRange(start=int(rm.group(1)), end=int(rm.group(2)))
        else:
            rest.append(token)

    if not rest or not _OP_ID_RE.match(rest[0]):
        return None

    params: Dict[str, Any] = {}
    for token in rest[1:]:
        if _BINARY_RE.match(token):
            params["mask"] = token
            params["value"] = token
        elif _COUNT_RE.match(token):
            params["count"] = int(token)
        elif token.lower() in DIRECTIONS:
            params["direction"] = token.lower()
        else:
            kv = _KEY_VALUE_RE.match(token)
            if kv:
                key = kv.group(1).lower()
                params[key] = _typed_value(key, kv.group(2))

    return OperationCall(operation_id=rest[0].upper(), params=params, bit_range=bit_range, raw=text.strip())


def _typed_value(key: str, value: Any) -> Any:
    if key in BINARY_PARAMS:
        return str(value)
    if key in TEXT_PARAMS:
        return str(value).lower() if key == "direction" else str(value)
    if isinstance(value, str) and _INT_RE.match(value.strip()):
        return int(value.strip())
    return value


def parse_custom_params(body: str) -> Dict[str, Any]:
    """
    Parse the `{ ... }` part of CUSTOM.

    Accepts JSON, JSON with bare keys, and a loose `k: v, k: v` form.
    Malformed bodies yield {}.
    """
    for candidate in (body, _BARE_KEY_RE.sub(r'\1"\2":', body)):
        try:
            data = json.loads(candidate)
        except ValueError:
            continue
        if not isinstance(data, dict):
            return {}
        return {str(k).lower(): _typed_value(str(k).lower(), v) for k, v in data.items()}
    return _parse_loose_params(body)


def _parse_loose_params(body: str) -> Dict[str, Any]:
    inner = body.strip()
    if inner.startswith("{"):
        inner = inner[1:]
    if inner.endswith("}"):
        inner = inner[:-1]
    params: Dict[str, Any] = {}
    for pair in inner.split(","):
        pair = pair.strip()
        if not pair:
            continue
        sep = ":" if ":" in pair else "="
        if sep not in pair:
            return {}
        key, _, value = pair.partition(sep)
        key = key.strip().strip("\"'").lower()
        value = value.strip().strip("\"'")
        if not key:
            return {}
        params[key] = _typed_value(key, value)
    return params


def suggest(
    partial: str,
    operations: Iterable[str],
    metrics: Iterable[str],
    macros: Iterable[str],
    limit: int = MAX_SUGGESTIONS,
) -> List[str]:
    """
    Completion candidates for a partially typed line.

    Keywords and operation ids match by prefix, metrics are offered after
    `IF `, and macros as `APPLY <name>`. Order is stable and duplicates are
    dropped.
    """
    upper = partial.strip().upper()
    out: List[str] = []
    out.extend(k for k in KEYWORDS if k.startswith(upper))
    out.extend(op for op in operations if op.upper().startswith(upper))

    if upper.startswith("IF "):
        metric_partial = upper[3:].strip()
        out.extend(f"IF {m}" for m in metrics if m.upper().startswith(metric_partial))

    for name in macros:
        call = f"APPLY {name}"
        if name.upper().startswith(upper) or call.upper().startswith(upper):
            out.append(call)

    seen = set()
    unique = []
    for item in out:
        if item not in seen:
            seen.add(item)
            unique.append(item)
    return unique[:limit]
