"""
Abstract Syntax Tree (AST) node definitions for q9.

The AST is pure data: the parser builds it, the interpreter walks it.
Every node owns its children exclusively (a tree, no sharing, no cycles).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List
from abc import ABC
from .tokens import SourceSpan, TokenType


# =============================================================================
# Base Classes
# =============================================================================

@dataclass
class AstNode(ABC):
    """Base class for all AST nodes."""
    span: SourceSpan  # Source location for error reporting

    def accept(self, visitor: "AstVisitor") -> Any:
        """Accept a visitor for traversal."""
        method_name = f"visit_{self.__class__.__name__}"
        method = getattr(visitor, method_name, visitor.generic_visit)
        return method(self)


class AstVisitor(ABC):
    """Base class for AST visitors."""

    def generic_visit(self, node: AstNode) -> Any:
        """Default visit method."""
        raise NotImplementedError(f"No visitor for {node.__class__.__name__}")


# =============================================================================
# Expression Nodes
# =============================================================================

class BinOp(Enum):
    """Arithmetic operators."""
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"


@dataclass
class Expression(AstNode):
    """Base class for all expressions."""
    pass


@dataclass
class Literal(Expression):
    """A literal value. Only numbers exist so far."""
    value: float
    literal_type: TokenType = TokenType.NUMBER


@dataclass
class Identifier(Expression):
    """A variable reference."""
    name: str


@dataclass
class FunctionCall(Expression):
    """A call of a user-defined function (e.g., add(1, 2))."""
    name: str
    arguments: List[Expression] = field(default_factory=list)


@dataclass
class BinaryOp(Expression):
    """A binary arithmetic operation (e.g., a + b)."""
    left: Expression
    operator: BinOp
    right: Expression


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass
class Statement(AstNode):
    """Base class for all statements."""
    pass


@dataclass
class CallStatement(Statement):
    """A function call evaluated for its effect; the result is discarded."""
    name: str
    arguments: List[Expression] = field(default_factory=list)


@dataclass
class ReturnStatement(Statement):
    """return <expr>"""
    value: Expression


@dataclass
class VarDecl(Statement):
    """let name = <expr>"""
    name: str
    initializer: Expression


@dataclass
class AssignmentStatement(Statement):
    """name = <expr>, only valid for an existing binding."""
    name: str
    value: Expression


@dataclass
class Block(AstNode):
    """A brace-delimited sequence of statements.

    Function bodies and bare blocks share this node; the parser does not
    tell them apart.
    """
    statements: List[Statement] = field(default_factory=list)


@dataclass
class BlockStatement(Statement):
    """A bare { ... } block at statement position."""
    block: Block


@dataclass
class Function(AstNode):
    """A named function body."""
    name: str
    body: Block


@dataclass
class FunctionDef(Statement):
    """fn name(a, b) { ... }

    Parameters are bare names; q9 has no type annotations.
    """
    function: Function
    parameters: List[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.function.name


# =============================================================================
# Program
# =============================================================================

@dataclass
class Program(AstNode):
    """The parse result: ordered top-level statements."""
    statements: List[Statement] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.statements)


# =============================================================================
# Visitor Helpers
# =============================================================================

class FormatVisitor(AstVisitor):
    """Debug visitor that renders the AST structure as indented text."""

    def __init__(self, indent: int = 0):
        self.indent = indent
        self.lines: List[str] = []

    def _emit(self, text: str, extra: int = 0) -> None:
        self.lines.append("  " * (self.indent + extra) + text)

    def _child(self, node: AstNode, extra: int) -> None:
        child = FormatVisitor(self.indent + extra)
        node.accept(child)
        self.lines.extend(child.lines)

    def generic_visit(self, node: AstNode) -> List[str]:
        self._emit(node.__class__.__name__)
        for name, value in node.__dict__.items():
            if name == "span":
                continue
            if isinstance(value, AstNode):
                self._emit(f"{name}:", 1)
                self._child(value, 2)
            elif isinstance(value, list):
                self._emit(f"{name}: [", 1)
                for item in value:
                    if isinstance(item, AstNode):
                        self._child(item, 2)
                    else:
                        self._emit(repr(item), 2)
                self._emit("]", 1)
            elif isinstance(value, Enum):
                self._emit(f"{name}: {value.name}", 1)
            else:
                self._emit(f"{name}: {value!r}", 1)
        return self.lines


def format_ast(node: AstNode) -> str:
    """Render an AST node as indented text."""
    return "\n".join(node.accept(FormatVisitor()))


def print_ast(node: AstNode) -> None:
    """Print an AST node for debugging."""
    print(format_ast(node))
