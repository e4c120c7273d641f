"""
UserScript: a restricted expression language for EXEC blocks and
code-based custom operations.

Scripts are Python expressions parsed with `ast` and evaluated by a small
tree walker. Only `bits`, `params`, comprehension variables and the helpers
in HELPERS are visible. There is no attribute access beyond STR_METHODS,
no imports, no assignment and no lambdas, so a script cannot reach clocks,
randomness or the filesystem.

Every evaluated node costs one step; exceeding the step budget or producing
an oversized value raises ScriptError.

Example:
    script = UserScript("''.join('1' if b == '0' else '0' for b in bits)")
    assert script.run("1100") == "0011"
"""

import ast
import operator
from typing import Any, Callable, Dict, Mapping, Optional

from ..core.bits import cycle_to, from_int, invert, is_bits, to_int
from ..core.errors import ScriptError

DEFAULT_STEP_BUDGET = 100_000
DEFAULT_MAX_OUTPUT = 1 << 20


def _rotl(bits: str, n: int) -> str:
    if not bits:
        return bits
    n %= len(bits)
    return bits[n:] + bits[:n]


def _rotr(bits: str, n: int) -> str:
    return _rotl(bits, -n)


def _xor(a: str, b: str) -> str:
    if not a:
        return a
    return from_int(to_int(a) ^ to_int(cycle_to(b, len(a))), len(a))


def _join(items, sep: str = "") -> str:
    return sep.join(str(x) for x in items)


def _reversed(value):
    if isinstance(value, str):
        return value[::-1]
    return list(reversed(list(value)))


HELPERS: Dict[str, Callable[..., Any]] = {
    "len": len,
    "int": int,
    "str": str,
    "min": min,
    "max": max,
    "abs": abs,
    "sum": sum,
    "bin": bin,
    "range": range,
    "reversed": _reversed,
    "invert": invert,
    "rotl": _rotl,
    "rotr": _rotr,
    "xor": _xor,
    "join": _join,
}

STR_METHODS = frozenset({
    "count", "find", "rfind", "index", "startswith", "endswith", "replace",
    "zfill", "ljust", "rjust", "strip", "lstrip", "rstrip", "split", "join",
})

_BIN_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.BitAnd: operator.and_,
    ast.BitOr: operator.or_,
    ast.BitXor: operator.xor,
    ast.LShift: operator.lshift,
    ast.RShift: operator.rshift,
}

_UNARY_OPS = {
    ast.Not: operator.not_,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
    ast.Invert: operator.invert,
}

_COMPARE_OPS = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.In: lambda a, b: a in b,
    ast.NotIn: lambda a, b: a not in b,
}

_ALLOWED_NODES = (
    ast.Expression, ast.BinOp, ast.UnaryOp, ast.BoolOp, ast.Compare, ast.IfExp,
    ast.Call, ast.Name, ast.Load, ast.Store, ast.Constant, ast.Subscript,
    ast.Slice, ast.Tuple, ast.List, ast.ListComp, ast.GeneratorExp,
    ast.comprehension, ast.Attribute, ast.And, ast.Or,
) + tuple(_BIN_OPS) + tuple(_UNARY_OPS) + tuple(_COMPARE_OPS)


def normalize_source(source: str) -> str:
    """Strip a leading `return` and trailing semicolons."""
    text = (source or "").strip()
    while text.endswith(";"):
        text = text[:-1].rstrip()
    if text.startswith("return ") or text == "return":
        text = text[len("return"):].strip()
    return text


def compile_script(source: str) -> ast.Expression:
    """
    Parse and statically check a script.

    Raises:
        ScriptError: On syntax errors or disallowed constructs
    """
    text = normalize_source(source)
    if not text:
        raise ScriptError("script is empty")
    try:
        tree = ast.parse(text, mode="eval")
    except SyntaxError as e:
        raise ScriptError(f"syntax error: {e.msg}") from e

    for node in ast.walk(tree):
        if not isinstance(node, _ALLOWED_NODES):
            raise ScriptError(f"{type(node).__name__} is not allowed in scripts")
        if isinstance(node, ast.Attribute) and node.attr not in STR_METHODS:
            raise ScriptError(f"attribute '{node.attr}' is not allowed")
        if isinstance(node, ast.Call):
            if node.keywords:
                raise ScriptError("keyword arguments are not allowed")
            if not isinstance(node.func, (ast.Name, ast.Attribute)):
                raise ScriptError("only helper functions and string methods can be called")
        if isinstance(node, ast.comprehension) and node.is_async:
            raise ScriptError("async comprehensions are not allowed")
    return tree


class _Evaluator:
    def __init__(self, env: Dict[str, Any], step_budget: int, max_output: int) -> None:
        self.env = env
        self.steps = 0
        self.step_budget = step_budget
        self.max_output = max_output

    def tick(self) -> None:
        self.steps += 1
        if self.steps > self.step_budget:
            raise ScriptError(f"step budget of {self.step_budget} exhausted")

    def sized(self, value: Any) -> Any:
        if isinstance(value, (str, list, tuple)) and len(value) > self.max_output:
            raise ScriptError(f"value exceeds {self.max_output} elements")
        if isinstance(value, int) and value.bit_length() > self.max_output:
            raise ScriptError("integer too large")
        return value

    def eval(self, node: ast.AST) -> Any:
        self.tick()
        method = getattr(self, "eval_" + type(node).__name__, None)
        if method is None:
            raise ScriptError(f"{type(node).__name__} is not allowed in scripts")
        return method(node)

    def eval_Expression(self, node):
        return self.eval(node.body)

    def eval_Constant(self, node):
        if not isinstance(node.value, (str, int, float, bool, type(None))):
            raise ScriptError("unsupported constant")
        return node.value

    def eval_Name(self, node):
        if node.id in self.env:
            return self.env[node.id]
        if node.id in HELPERS:
            return HELPERS[node.id]
        raise ScriptError(f"name '{node.id}' is not defined")

    def eval_Tuple(self, node):
        return tuple(self.eval(elt) for elt in node.elts)

    def eval_List(self, node):
        return [self.eval(elt) for elt in node.elts]

    def eval_BinOp(self, node):
        left = self.eval(node.left)
        right = self.eval(node.right)
        op_type = type(node.op)
        if op_type is ast.Mult:
            for seq, n in ((left, right), (right, left)):
                if isinstance(seq, (str, list, tuple)) and isinstance(n, int):
                    if len(seq) * max(n, 0) > self.max_output:
                        raise ScriptError(f"value exceeds {self.max_output} elements")
        if op_type is ast.LShift and isinstance(right, int) and right > self.max_output:
            raise ScriptError("shift amount too large")
        try:
            return self.sized(_BIN_OPS[op_type](left, right))
        except (TypeError, ValueError, ZeroDivisionError) as e:
            raise ScriptError(str(e)) from e

    def eval_UnaryOp(self, node):
        operand = self.eval(node.operand)
        try:
            return _UNARY_OPS[type(node.op)](operand)
        except TypeError as e:
            raise ScriptError(str(e)) from e

    def eval_BoolOp(self, node):
        is_and = isinstance(node.op, ast.And)
        value = None
        for expr in node.values:
            value = self.eval(expr)
            if is_and and not value:
                return value
            if not is_and and value:
                return value
        return value

    def eval_Compare(self, node):
        left = self.eval(node.left)
        for op_node, comparator in zip(node.ops, node.comparators):
            right = self.eval(comparator)
            try:
                ok = _COMPARE_OPS[type(op_node)](left, right)
            except TypeError as e:
                raise ScriptError(str(e)) from e
            if not ok:
                return False
            left = right
        return True

    def eval_IfExp(self, node):
        return self.eval(node.body) if self.eval(node.test) else self.eval(node.orelse)

    def eval_Subscript(self, node):
        value = self.eval(node.value)
        if isinstance(node.slice, ast.Slice):
            s = node.slice
            key = slice(
                self.eval(s.lower) if s.lower is not None else None,
                self.eval(s.upper) if s.upper is not None else None,
                self.eval(s.step) if s.step is not None else None,
            )
        else:
            key = self.eval(node.slice)
        try:
            return value[key]
        except (TypeError, IndexError, KeyError, ValueError) as e:
            raise ScriptError(f"subscript failed: {e}") from e

    def eval_Attribute(self, node):
        value = self.eval(node.value)
        if not isinstance(value, str):
            raise ScriptError("methods are only available on strings")
        return getattr(value, node.attr)

    def eval_Call(self, node):
        func = self.eval(node.func)
        args = [self.eval(arg) for arg in node.args]
        try:
            self._guard_growth(func, args)
            return self.sized(func(*args))
        except ScriptError:
            raise
        except (TypeError, ValueError, IndexError, KeyError, ZeroDivisionError) as e:
            raise ScriptError(f"call failed: {e}") from e

    def _guard_growth(self, func, args):
        """Reject calls whose result would be built before it can be sized."""
        if func is range:
            if len(range(*args)) > self.max_output:
                raise ScriptError(f"range exceeds {self.max_output} elements")
            return
        owner = getattr(func, "__self__", None)
        if not isinstance(owner, str):
            return
        name = getattr(func, "__name__", "")
        if name in ("zfill", "ljust", "rjust") and args and isinstance(args[0], int):
            if args[0] > self.max_output:
                raise ScriptError(f"value exceeds {self.max_output} elements")
        elif name == "replace" and len(args) >= 2 and isinstance(args[1], str):
            if len(owner) * max(1, len(args[1])) > self.max_output:
                raise ScriptError(f"value exceeds {self.max_output} elements")

    def _comprehension(self, generators, emit):
        if not generators:
            emit()
            return
        gen = generators[0]
        iterable = self.eval(gen.iter)
        for item in iterable:
            self.tick()
            self._bind(gen.target, item)
            if all(self.eval(cond) for cond in gen.ifs):
                self._comprehension(generators[1:], emit)

    def _bind(self, target, item):
        if isinstance(target, ast.Name):
            if target.id in ("bits", "params") or target.id in HELPERS:
                raise ScriptError(f"cannot rebind '{target.id}'")
            self.env[target.id] = item
        elif isinstance(target, ast.Tuple):
            items = list(item)
            if len(items) != len(target.elts):
                raise ScriptError("unpacking length mismatch")
            for elt, value in zip(target.elts, items):
                self._bind(elt, value)
        else:
            raise ScriptError("unsupported comprehension target")

    def _collect(self, node):
        saved = dict(self.env)
        out = []

        def emit():
            out.append(self.eval(node.elt))
            if len(out) > self.max_output:
                raise ScriptError(f"value exceeds {self.max_output} elements")

        try:
            self._comprehension(node.generators, emit)
        finally:
            self.env = saved
        return out

    def eval_ListComp(self, node):
        return self._collect(node)

    def eval_GeneratorExp(self, node):
        return self._collect(node)


class UserScript:
    """
    A compiled, sandboxed bit transform.

    Args:
        source: Expression text; a leading `return` is tolerated
        step_budget: Maximum evaluated nodes per run
        max_output: Maximum length of any produced string or list
    """

    def __init__(
        self,
        source: str,
        step_budget: Optional[int] = None,
        max_output: Optional[int] = None,
    ) -> None:
        self.source = source
        self.step_budget = step_budget or DEFAULT_STEP_BUDGET
        self.max_output = max_output or DEFAULT_MAX_OUTPUT
        self._tree = compile_script(source)

    def run(self, bits: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """
        Evaluate the script against bits.

        Raises:
            ScriptError: If evaluation fails or the result is not a bit string
        """
        env = {"bits": bits, "params": dict(params or {})}
        evaluator = _Evaluator(env, self.step_budget, self.max_output)
        result = evaluator.eval(self._tree)
        if not isinstance(result, str):
            raise ScriptError(f"script must return a bit string, got {type(result).__name__}")
        if not is_bits(result):
            raise ScriptError("script returned a string that is not binary")
        return result
