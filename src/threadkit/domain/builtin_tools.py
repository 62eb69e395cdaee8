"""Built-in Tools - Small Capabilities Registered by Default.

Concrete integrations (payments, on-chain transactions, name registration)
are supplied by embedding applications through the ToolDefinition contract.
These two tools are safe, dependency-free capabilities that make the
tool-use loop usable out of the box.

Both capabilities raise on bad input; the registry turns the exception into
a failure outcome the model can read and react to.
"""

from __future__ import annotations

import ast
import math
import operator
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from zoneinfo import ZoneInfo

from .domain_type import ParameterType
from .tools import ToolDefinition, ToolParameter, ToolSchema

MAX_RESULT_BITS = 10_000
MAX_FACTORIAL = 1_000


def _power(base: Any, exponent: Any) -> Any:
    # Integer powers are computed exactly and hold the GIL; bound the result size first
    if isinstance(base, int) and isinstance(exponent, int) and exponent > 0:
        if abs(base).bit_length() * exponent > MAX_RESULT_BITS:
            raise ValueError(f"Result of {base} ** {exponent} is too large")
    return operator.pow(base, exponent)


def _factorial(n: Any) -> int:
    if isinstance(n, int) and n > MAX_FACTORIAL:
        raise ValueError(f"factorial() argument above {MAX_FACTORIAL}")
    return math.factorial(n)


_OPERATORS: dict[type[ast.AST], Callable[..., Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Pow: _power,
    ast.Mod: operator.mod,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}

_NAMES: dict[str, Any] = {
    "abs": abs,
    "round": round,
    "min": min,
    "max": max,
    "sqrt": math.sqrt,
    "factorial": _factorial,
    "log": math.log,
    "log10": math.log10,
    "exp": math.exp,
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "pi": math.pi,
    "e": math.e,
}


def _evaluate(node: ast.expr) -> Any:
    """Walk a parsed expression, allowing only whitelisted nodes."""
    if isinstance(node, ast.Constant) and isinstance(node.value, int | float):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _OPERATORS:
        return _OPERATORS[type(node.op)](_evaluate(node.left), _evaluate(node.right))
    if isinstance(node, ast.UnaryOp) and type(node.op) in _OPERATORS:
        return _OPERATORS[type(node.op)](_evaluate(node.operand))
    if isinstance(node, ast.Name) and node.id in _NAMES:
        return _NAMES[node.id]
    if isinstance(node, ast.Call) and isinstance(node.func, ast.Name) and callable(_NAMES.get(node.func.id)):
        return _NAMES[node.func.id](*(_evaluate(arg) for arg in node.args))
    raise ValueError(f"Unsupported expression element: {ast.dump(node)[:60]}")


def calculate(arguments: dict[str, Any]) -> str:
    """Evaluate an arithmetic expression without eval()."""
    tree = ast.parse(arguments["expression"], mode="eval")
    return str(_evaluate(tree.body))


def current_time(arguments: dict[str, Any]) -> str:
    """ISO-8601 timestamp in the requested IANA timezone (UTC by default)."""
    zone = arguments.get("timezone") or "UTC"
    tz = UTC if zone.upper() == "UTC" else ZoneInfo(zone)
    return datetime.now(tz).isoformat(timespec="seconds")


CALCULATOR = ToolDefinition(
    name="calculator",
    description="Evaluate an arithmetic expression (+ - * / // % **, sqrt, factorial, log, trig, pi, e).",
    parameters=ToolSchema(
        parameters=(
            ToolParameter(
                name="expression",
                type=ParameterType.STRING,
                description="Expression to evaluate, e.g. 'factorial(5) / 3'",
            ),
        )
    ),
    capability=calculate,
)

CURRENT_TIME = ToolDefinition(
    name="current_time",
    description="Return the current date and time.",
    parameters=ToolSchema(
        parameters=(
            ToolParameter(
                name="timezone",
                type=ParameterType.STRING,
                description="IANA timezone name such as 'Europe/Paris'",
                required=False,
            ),
        )
    ),
    capability=current_time,
)

BUILTIN_TOOLS: tuple[ToolDefinition, ...] = (CALCULATOR, CURRENT_TIME)

__all__ = ["BUILTIN_TOOLS", "CALCULATOR", "CURRENT_TIME", "calculate", "current_time"]
