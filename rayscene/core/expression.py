"""Expression evaluation for module templates, backed by simpleeval.

Expressions are Python-syntax arithmetic over the context bindings with
a small math vocabulary. ``^`` is exponentiation, as in the module files
authored for the editor. ``random()`` draws from the context's stream.
"""

from __future__ import annotations

import ast
import math
from typing import Any

from simpleeval import DEFAULT_OPERATORS, SimpleEval, safe_power

from rayscene.core.context import ExpansionContext
from rayscene.core.errors import ExpressionError

_OPERATORS = dict(DEFAULT_OPERATORS)
_OPERATORS[ast.BitXor] = safe_power


def _sign(x: float) -> int:
    return (x > 0) - (x < 0)


_FUNCTIONS: dict[str, Any] = {
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "asin": math.asin,
    "acos": math.acos,
    "atan": math.atan,
    "atan2": math.atan2,
    "sqrt": math.sqrt,
    "exp": math.exp,
    "log": math.log,
    "log10": math.log10,
    "abs": abs,
    "floor": math.floor,
    "ceil": math.ceil,
    "round": round,
    "min": min,
    "max": max,
    "sign": _sign,
}

_CONSTANTS: dict[str, Any] = {
    "pi": math.pi,
    "e": math.e,
    "true": True,
    "false": False,
}


def _make_evaluator(ctx: ExpansionContext) -> SimpleEval:
    functions = dict(_FUNCTIONS)
    if ctx.rng is not None:
        rng = ctx.rng
        functions["random"] = lambda: float(rng.random())
    names = dict(_CONSTANTS)
    names.update(ctx.bindings)
    return SimpleEval(operators=_OPERATORS, functions=functions, names=names)


def evaluate(expr: str, ctx: ExpansionContext) -> Any:
    """Evaluate ``expr`` against the bindings of ``ctx``.

    Raises:
        ExpressionError: On any syntax or evaluation failure.
    """
    try:
        return _make_evaluator(ctx).eval(expr.strip())
    except Exception as exc:
        raise ExpressionError(expr, exc) from exc


def format_value(value: Any) -> str:
    """Stringify an evaluated value for interpolation into text."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
