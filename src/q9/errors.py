"""
q9 exceptions and diagnostics.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E4xx: Runtime errors
- E5xx: Configuration errors

Every error carries a Diagnostic so hosts can report the position and the
offending source line without re-deriving them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List
from .tokens import SourceSpan, NO_SPAN


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"


@dataclass
class Diagnostic:
    """A single diagnostic message."""
    code: str                       # E001, E101, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity
    span: SourceSpan
    source_line: Optional[str] = None   # The actual line of source code
    hints: List[str] = field(default_factory=list)

    def format(self, show_source: bool = True) -> str:
        """Format the diagnostic for display."""
        parts = []

        # Header: location: severity[code]: message
        if self.span.start.line > 0:
            parts.append(f"{self.span.start}: {self.severity.value}[{self.code}]: {self.message}")
        else:
            parts.append(f"{self.severity.value}[{self.code}]: {self.message}")

        # Source line with caret
        if show_source and self.source_line is not None:
            parts.append("  |")
            line_num = str(self.span.start.line)
            parts.append(f"{line_num:>3} | {self.source_line}")

            col = self.span.start.column
            end_col = self.span.end.column if self.span.start.line == self.span.end.line else len(self.source_line) + 1
            underline_len = max(1, end_col - col)
            parts.append(f"    | {' ' * (col - 1)}{'^' * underline_len}")

        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        return "\n".join(parts)


class Q9Error(Exception):
    """Base exception for q9 errors."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    @property
    def code(self) -> str:
        return self.diagnostic.code

    @property
    def span(self) -> SourceSpan:
        return self.diagnostic.span

    def with_source(self, source_lines: List[str]) -> "Q9Error":
        """Attach the offending source line if it is not known yet."""
        line = self.diagnostic.span.start.line
        if self.diagnostic.source_line is None and 1 <= line <= len(source_lines):
            self.diagnostic.source_line = source_lines[line - 1]
        return self

    def __str__(self) -> str:
        return self.diagnostic.format()


class ParseError(Q9Error):
    """Error while turning source text into a Program."""
    pass


class LexerError(ParseError):
    """Error during lexical analysis (E0xx)."""
    pass


class SyntaxError(ParseError):
    """Grammar violation found by the parser (E1xx)."""
    pass


class EvalError(Q9Error):
    """Error during evaluation (E4xx)."""
    pass


class DuplicateDefinitionError(EvalError):
    """A variable, function or parameter name is defined twice."""
    pass


class UndefinedVariableError(EvalError):
    pass


class UndefinedFunctionError(EvalError):
    pass


class ArityError(EvalError):
    """Call argument count does not match the declared parameters."""
    pass


class InvalidContextError(EvalError):
    """Statement is not allowed in the current scope."""
    pass


class DivideByZeroError(EvalError):
    pass


class OperandError(EvalError):
    """Arithmetic applied to a value that is not a number."""
    pass


class RecursionLimitError(EvalError):
    pass


class ConfigError(Q9Error):
    """Invalid configuration (E5xx)."""
    pass


def _diag(code: str, message: str, span: Optional[SourceSpan],
          source_line: str = None, hints: List[str] = None) -> Diagnostic:
    return Diagnostic(
        code=code,
        message=message,
        severity=ErrorSeverity.ERROR,
        span=span or NO_SPAN,
        source_line=source_line,
        hints=hints or [],
    )


# --- Lexer error codes ---

def error_unexpected_character(char: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E001: Unexpected character."""
    return LexerError(_diag("E001", f"unexpected character '{char}'", span, source_line))


# --- Parser error codes ---

def error_unexpected_token(expected: str, found: str, span: SourceSpan,
                           source_line: str = None) -> SyntaxError:
    """E101: Unexpected token."""
    return SyntaxError(_diag("E101", f"expected {expected}, found {found}", span, source_line))


def error_unexpected_eof(expected: str, span: SourceSpan) -> SyntaxError:
    """E102: Unexpected end of input."""
    return SyntaxError(_diag("E102", f"unexpected end of input, expected {expected}", span))


def error_invalid_expression(found: str, span: SourceSpan,
                             source_line: str = None) -> SyntaxError:
    """E103: Invalid expression."""
    return SyntaxError(_diag("E103", f"invalid expression: {found}", span, source_line))


def error_invalid_number(text: str, span: SourceSpan, source_line: str = None) -> SyntaxError:
    """E104: Numeric literal that does not parse as a float."""
    return SyntaxError(_diag("E104", f"could not parse '{text}' as a number", span, source_line))


def error_nested_function(name: str, span: SourceSpan, source_line: str = None) -> SyntaxError:
    """E105: Function definition outside global scope."""
    return SyntaxError(_diag(
        "E105",
        f"cannot define function '{name}' inside a function or block",
        span,
        source_line,
        hints=["functions may only be defined at the top level"],
    ))


# --- Runtime error codes ---

def error_duplicate_variable(name: str, span: SourceSpan) -> DuplicateDefinitionError:
    """E401: Variable already defined."""
    return DuplicateDefinitionError(_diag(
        "E401", f"variable '{name}' is already defined; redefinition is not allowed", span,
        hints=[f"use '{name} = ...' to assign a new value"],
    ))


def error_duplicate_function(name: str, span: SourceSpan) -> DuplicateDefinitionError:
    """E401: Function already defined."""
    return DuplicateDefinitionError(_diag("E401", f"function '{name}' is already defined", span))


def error_duplicate_parameter(function: str, name: str, span: SourceSpan) -> DuplicateDefinitionError:
    """E401: Parameter name repeated or shadowing a global."""
    return DuplicateDefinitionError(_diag(
        "E401", f"parameter '{name}' of function '{function}' is already defined", span,
    ))


def error_undefined_variable(name: str, span: SourceSpan) -> UndefinedVariableError:
    """E402: Undefined variable."""
    return UndefinedVariableError(_diag("E402", f"variable '{name}' not found", span))


def error_undefined_function(name: str, span: SourceSpan) -> UndefinedFunctionError:
    """E403: Undefined function."""
    return UndefinedFunctionError(_diag("E403", f"function '{name}' not found", span))


def error_arity(name: str, expected: int, given: int, span: SourceSpan) -> ArityError:
    """E404: Wrong number of arguments."""
    return ArityError(_diag(
        "E404",
        f"function '{name}' takes {expected} argument(s), {given} given",
        span,
    ))


def error_return_outside_function(span: SourceSpan) -> InvalidContextError:
    """E405: Return from global scope."""
    return InvalidContextError(_diag("E405", "cannot return from global scope", span))


def error_function_outside_global(name: str, span: SourceSpan) -> InvalidContextError:
    """E405: Function definition in non-global scope."""
    return InvalidContextError(_diag(
        "E405", f"cannot define function '{name}' in non-global scope", span,
    ))


def error_divide_by_zero(span: SourceSpan) -> DivideByZeroError:
    """E406: Division by zero."""
    return DivideByZeroError(_diag("E406", "cannot divide by zero", span))


def error_void_operand(operator: str, span: SourceSpan) -> OperandError:
    """E407: Arithmetic on a void value."""
    return OperandError(_diag(
        "E407", f"cannot apply '{operator}' to a void value", span,
        hints=["a function without a return statement produces void"],
    ))


def error_recursion_limit(name: str, limit: int, span: SourceSpan) -> RecursionLimitError:
    """E408: Call depth exceeded."""
    return RecursionLimitError(_diag(
        "E408", f"maximum call depth of {limit} exceeded calling '{name}'", span,
    ))


# --- Configuration error codes ---

def error_invalid_config(message: str) -> ConfigError:
    """E501: Invalid configuration."""
    return ConfigError(_diag("E501", message, None))
