"""
Runtime values for the q9 interpreter.

A Value pairs raw Python data with its kind. Only two kinds exist: a
number (always a float) and void, the result of a statement sequence that
finished without hitting a return.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List

from ..ast import BinOp, Literal, Statement
from ..tokens import TokenType


class ValueKind(Enum):
    NUM = "number"
    VOID = "void"


@dataclass(frozen=True)
class Value:
    """
    A runtime value.

    The `data` field holds the Python float for numbers and None for void.
    """
    data: Any
    kind: ValueKind

    def __repr__(self) -> str:
        if self.kind == ValueKind.VOID:
            return "Value(void)"
        return f"Value({self.data!r}, {self.kind.value})"

    def __str__(self) -> str:
        if self.kind == ValueKind.VOID:
            return "void"
        return format_number(self.data)

    @property
    def is_void(self) -> bool:
        return self.kind == ValueKind.VOID


def num_val(x: float) -> Value:
    """Create a number value."""
    return Value(float(x), ValueKind.NUM)


VOID = Value(None, ValueKind.VOID)


def format_number(x: float) -> str:
    """Render 2.0 as '2' and 2.5 as '2.5'; inf and nan keep their repr."""
    if math.isfinite(x) and x == int(x) and abs(x) < 1e16:
        return str(int(x))
    return repr(x)


def literal_value(lit: Literal) -> Value:
    """Map a literal 1:1 to its runtime value."""
    if lit.literal_type == TokenType.NUMBER:
        return num_val(lit.value)
    raise ValueError(f"Unknown literal type: {lit.literal_type}")


def combine(lhs: float, op: BinOp, rhs: float) -> float:
    """
    Arithmetic combination rule for two numbers.

    Raises:
        ZeroDivisionError: for DIV with a zero right operand
    """
    if op == BinOp.ADD:
        return lhs + rhs
    if op == BinOp.SUB:
        return lhs - rhs
    if op == BinOp.MUL:
        return lhs * rhs
    if op == BinOp.DIV:
        if rhs == 0.0:
            raise ZeroDivisionError("cannot divide by zero")
        return lhs / rhs
    raise ValueError(f"Unknown operator: {op}")


@dataclass
class EvalVariable:
    """A mutable name -> value binding."""
    name: str
    value: Value


@dataclass
class EvalFunction:
    """
    A function registered in the function table.

    The body is taken from the AST at definition time and lives for the
    whole run; functions are never removed or redefined.
    """
    name: str
    body: List[Statement]
    parameters: List[str] = field(default_factory=list)

    @property
    def arity(self) -> int:
        return len(self.parameters)

    def bind(self, values: List[Value]) -> List[EvalVariable]:
        """Zip argument values with parameter names, positionally."""
        return [EvalVariable(name, value) for name, value in zip(self.parameters, values)]
