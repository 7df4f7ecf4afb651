"""
Tree-walking interpreter for q9.

Evaluates a Program's statements directly against an ExecutionContext.
Every fault surfaces as a typed EvalError; nothing is retried.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .values import (
    Value, ValueKind, EvalFunction, EvalVariable, VOID, num_val, literal_value, combine,
)
from .context import ExecutionContext
from ..config import InterpreterConfig
from ..ast import (
    Program, Statement, CallStatement, ReturnStatement, FunctionDef, VarDecl,
    AssignmentStatement, BlockStatement,
    Expression, Literal, Identifier, FunctionCall, BinaryOp,
)
from ..errors import (
    Q9Error, ParseError, EvalError,
    error_duplicate_variable,
    error_duplicate_function,
    error_duplicate_parameter,
    error_undefined_variable,
    error_undefined_function,
    error_arity,
    error_return_outside_function,
    error_function_outside_global,
    error_divide_by_zero,
    error_void_operand,
    error_recursion_limit,
)
from ..tokens import SourceSpan

logger = logging.getLogger(__name__)


class Interpreter:
    """
    Tree-walking interpreter.

    Usage:
        interpreter = Interpreter()
        value = interpreter.evaluate(program.statements)

    One interpreter owns one ExecutionContext; globals and functions
    persist across evaluate() calls, so a host can feed it statements
    incrementally.
    """

    def __init__(self, config: Optional[InterpreterConfig] = None,
                 context: Optional[ExecutionContext] = None):
        self.config = config or InterpreterConfig()
        self.ctx = context or ExecutionContext()

    @property
    def globals(self) -> Dict[str, Value]:
        return self.ctx.globals

    @property
    def functions(self) -> Dict[str, EvalFunction]:
        return self.ctx.functions

    def evaluate(self, statements: List[Statement],
                 bindings: Optional[List[EvalVariable]] = None) -> Value:
        """
        Evaluate a statement sequence.

        Without bindings the statements run in the current context (global
        scope for a fresh interpreter) and the result is VOID. With
        bindings they run as a function body: a new activation is pushed
        with those bindings as its locals, and the first return hit
        becomes the result.
        """
        try:
            if bindings is None:
                self._execute_statements(statements)
                return VOID
            with self.ctx.call_scope("<evaluate>", bindings):
                return self._run_body(statements)
        except EvalError:
            self.ctx.reset()
            raise

    def run_program(self, program: Program) -> Value:
        return self.evaluate(program.statements)

    # =========================================================================
    # Statements
    # =========================================================================

    def _execute_statements(self, statements: List[Statement]) -> None:
        """Execute statements in order until one signals a return."""
        for stmt in statements:
            self._execute_statement(stmt)
            if self.ctx.should_return:
                break

    def _run_body(self, statements: List[Statement]) -> Value:
        """Run a function body inside an already pushed activation."""
        self._execute_statements(statements)
        if self.ctx.should_return:
            value = self.ctx.return_value
            self.ctx.clear_return()
            return value
        return VOID

    def _execute_statement(self, stmt: Statement) -> None:
        if isinstance(stmt, VarDecl):
            self._execute_var_decl(stmt)
        elif isinstance(stmt, AssignmentStatement):
            self._execute_assignment(stmt)
        elif isinstance(stmt, CallStatement):
            self._call_function(stmt.name, stmt.arguments, stmt.span)
        elif isinstance(stmt, ReturnStatement):
            self._execute_return(stmt)
        elif isinstance(stmt, BlockStatement):
            self._execute_block(stmt)
        elif isinstance(stmt, FunctionDef):
            self._execute_function_def(stmt)
        else:
            raise TypeError(f"Unknown statement type: {type(stmt).__name__}")

    def _execute_function_def(self, stmt: FunctionDef) -> None:
        if not self.ctx.is_global:
            raise error_function_outside_global(stmt.name, stmt.span)
        if self.ctx.get_function(stmt.name) is not None:
            raise error_duplicate_function(stmt.name, stmt.span)

        seen = set()
        for param in stmt.parameters:
            if param in seen:
                raise error_duplicate_parameter(stmt.name, param, stmt.span)
            seen.add(param)

        self.ctx.define_function(EvalFunction(
            name=stmt.name,
            body=list(stmt.function.body.statements),
            parameters=list(stmt.parameters),
        ))
        logger.debug("defined function %s(%s)", stmt.name, ", ".join(stmt.parameters))

    def _execute_var_decl(self, stmt: VarDecl) -> None:
        # Lookup is unified over globals and locals, so both must be free
        if self.ctx.is_defined(stmt.name):
            raise error_duplicate_variable(stmt.name, stmt.span)
        value = self._evaluate(stmt.initializer)
        self.ctx.define_variable(stmt.name, value)

    def _execute_assignment(self, stmt: AssignmentStatement) -> None:
        value = self._evaluate(stmt.value)
        if not self.ctx.update_variable(stmt.name, value):
            raise error_undefined_variable(stmt.name, stmt.span)

    def _execute_return(self, stmt: ReturnStatement) -> None:
        if not self.ctx.in_function:
            raise error_return_outside_function(stmt.span)
        self.ctx.signal_return(self._evaluate(stmt.value))

    def _execute_block(self, stmt: BlockStatement) -> None:
        with self.ctx.block_scope():
            self._execute_statements(stmt.block.statements)

    # =========================================================================
    # Calls
    # =========================================================================

    def _call_function(self, name: str, arguments: List[Expression], span: SourceSpan) -> Value:
        """
        Call a user-defined function.

        Lookup, arity and parameter checks all happen before any argument
        or body statement is evaluated. Arguments are evaluated left to
        right in the caller's scope, then bound positionally in a fresh
        activation that is popped again even if the body fails.

        A parameter named like an existing global is rejected with
        DuplicateDefinitionError. Lookup is global-first, so the body could
        never read such a parameter.

        Depth is bounded by max_call_depth; if the Python stack runs out
        first, the RecursionError is reported as the same E408 error.
        """
        function = self.ctx.get_function(name)
        if function is None:
            raise error_undefined_function(name, span)
        if function.arity != len(arguments):
            raise error_arity(name, function.arity, len(arguments), span)
        for param in function.parameters:
            if param in self.ctx.globals:
                raise error_duplicate_parameter(name, param, span)
        if self.ctx.call_depth >= self.config.max_call_depth:
            raise error_recursion_limit(name, self.config.max_call_depth, span)

        values = [self._evaluate(arg) for arg in arguments]

        try:
            with self.ctx.call_scope(name, function.bind(values)) as frame:
                if logger.isEnabledFor(logging.DEBUG):
                    logger.debug("call %s(%s) at depth %d", frame.name,
                                 ", ".join(str(v) for v in values), self.ctx.call_depth)
                result = self._run_body(function.body)
        except RecursionError:
            raise error_recursion_limit(name, self.ctx.call_depth + 1, span) from None
        logger.debug("%s returned %s", name, result)
        return result

    # =========================================================================
    # Expressions
    # =========================================================================

    def _evaluate(self, expr: Expression) -> Value:
        """Evaluate an expression to produce a Value."""
        if isinstance(expr, Literal):
            return literal_value(expr)
        elif isinstance(expr, Identifier):
            return self._eval_identifier(expr)
        elif isinstance(expr, FunctionCall):
            return self._call_function(expr.name, expr.arguments, expr.span)
        elif isinstance(expr, BinaryOp):
            return self._eval_binary_op(expr)
        else:
            raise TypeError(f"Unknown expression type: {type(expr).__name__}")

    def _eval_identifier(self, ident: Identifier) -> Value:
        value = self.ctx.get_variable(ident.name)
        if value is None:
            raise error_undefined_variable(ident.name, ident.span)
        return value

    def _eval_binary_op(self, op: BinaryOp) -> Value:
        left = self._evaluate(op.left)
        right = self._evaluate(op.right)
        for operand in (left, right):
            if operand.kind != ValueKind.NUM:
                raise error_void_operand(op.operator.value, op.span)
        try:
            return num_val(combine(left.data, op.operator, right.data))
        except ZeroDivisionError:
            raise error_divide_by_zero(op.span) from None


@dataclass
class ExecutionResult:
    """Result of running a source string."""
    success: bool
    value: Optional[Value] = None
    error: Optional[Q9Error] = None
    program: Optional[Program] = None
    interpreter: Optional[Interpreter] = None

    @property
    def error_message(self) -> Optional[str]:
        if self.error is None:
            return None
        return self.error.diagnostic.message

    @property
    def globals(self) -> Dict[str, Value]:
        if self.interpreter is None:
            return {}
        return self.interpreter.globals


def run(
    source: str,
    filename: Optional[str] = None,
    config: Optional[InterpreterConfig] = None,
) -> ExecutionResult:
    """
    Parse and evaluate source text in one call.

        from q9 import run

        result = run('''
            fn add(a, b) { return a + b }
            let x = add(3, 4)
        ''')
        if result.success:
            print(result.globals["x"])
        else:
            print(result.error)

    Never raises a q9 error: parse and evaluation failures are returned
    in ExecutionResult.error with the offending source line attached.
    """
    from ..parser import parse_source

    source_lines = source.splitlines()

    try:
        program = parse_source(source, filename)
    except ParseError as e:
        logger.debug("parse failed: %s", e.diagnostic.message)
        return ExecutionResult(success=False, error=e.with_source(source_lines))

    interpreter = Interpreter(config)
    try:
        value = interpreter.run_program(program)
    except EvalError as e:
        logger.debug("evaluation failed: %s", e.diagnostic.message)
        return ExecutionResult(
            success=False,
            error=e.with_source(source_lines),
            program=program,
            interpreter=interpreter,
        )

    return ExecutionResult(success=True, value=value, program=program, interpreter=interpreter)
