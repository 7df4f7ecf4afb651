"""
q9 - a minimal imperative scripting language.

This module provides:
- Lexer: Tokenizes q9 source code
- Parser: Builds a Program AST from tokens
- Interpreter: Tree-walking evaluation of the AST

Usage:
    from q9 import tokenize, parse, Interpreter

    source = '''
    fn add(a, b) { return a + b }
    let x = add(3, 4)
    '''
    program = parse(tokenize(source))
    interpreter = Interpreter()
    interpreter.evaluate(program.statements)
    print(interpreter.globals["x"])   # 7

Or in one call, with errors returned instead of raised:

    from q9 import run
    result = run(source)
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("q9")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"

from .tokens import (
    Token,
    TokenType,
    SourceLocation,
    SourceSpan,
    KEYWORDS,
)

from .lexer import (
    Lexer,
    TokenStream,
    tokenize,
)

from .parser import (
    Parser,
    parse,
    parse_source,
)

from .ast import (
    # Base
    AstNode,
    AstVisitor,
    # Expressions
    BinOp,
    Expression,
    Literal,
    Identifier,
    FunctionCall,
    BinaryOp,
    # Statements
    Statement,
    CallStatement,
    ReturnStatement,
    VarDecl,
    AssignmentStatement,
    Block,
    BlockStatement,
    Function,
    FunctionDef,
    Program,
    # Helpers
    format_ast,
    print_ast,
)

from .errors import (
    Q9Error,
    ParseError,
    LexerError,
    SyntaxError,
    EvalError,
    DuplicateDefinitionError,
    UndefinedVariableError,
    UndefinedFunctionError,
    ArityError,
    InvalidContextError,
    DivideByZeroError,
    OperandError,
    RecursionLimitError,
    ConfigError,
    Diagnostic,
    ErrorSeverity,
)

from .config import (
    InterpreterConfig,
    load_config,
    configure_logging,
)

from .runtime import (
    Interpreter,
    ExecutionResult,
    ExecutionContext,
    Value,
    ValueKind,
    VOID,
    num_val,
    run,
)

__all__ = [
    # Tokens
    'Token',
    'TokenType',
    'SourceLocation',
    'SourceSpan',
    'KEYWORDS',

    # Lexer
    'Lexer',
    'TokenStream',
    'tokenize',

    # Parser
    'Parser',
    'parse',
    'parse_source',

    # AST nodes
    'AstNode',
    'AstVisitor',
    'BinOp',
    'Expression',
    'Literal',
    'Identifier',
    'FunctionCall',
    'BinaryOp',
    'Statement',
    'CallStatement',
    'ReturnStatement',
    'VarDecl',
    'AssignmentStatement',
    'Block',
    'BlockStatement',
    'Function',
    'FunctionDef',
    'Program',
    'format_ast',
    'print_ast',

    # Errors
    'Q9Error',
    'ParseError',
    'LexerError',
    'SyntaxError',
    'EvalError',
    'DuplicateDefinitionError',
    'UndefinedVariableError',
    'UndefinedFunctionError',
    'ArityError',
    'InvalidContextError',
    'DivideByZeroError',
    'OperandError',
    'RecursionLimitError',
    'ConfigError',
    'Diagnostic',
    'ErrorSeverity',

    # Configuration
    'InterpreterConfig',
    'load_config',
    'configure_logging',

    # Runtime
    'Interpreter',
    'ExecutionResult',
    'ExecutionContext',
    'Value',
    'ValueKind',
    'VOID',
    'num_val',
    'run',
]
