"""
q9 runtime - tree-walking interpreter.

This module provides:
- Interpreter: Evaluates statement sequences against an ExecutionContext
- Value: Runtime values (number or void)
- ExecutionContext: Global table, function table and scope frames
- run: Parse and evaluate source text, returning an ExecutionResult
"""

from .values import (
    Value,
    ValueKind,
    VOID,
    EvalVariable,
    EvalFunction,
    num_val,
    format_number,
    literal_value,
    combine,
)

from .context import (
    Frame,
    ExecutionContext,
)

from .interpreter import (
    Interpreter,
    ExecutionResult,
    run,
)

__all__ = [
    # Values
    'Value',
    'ValueKind',
    'VOID',
    'EvalVariable',
    'EvalFunction',
    'num_val',
    'format_number',
    'literal_value',
    'combine',

    # Context
    'Frame',
    'ExecutionContext',

    # Interpreter
    'Interpreter',
    'ExecutionResult',
    'run',
]
