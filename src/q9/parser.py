"""
Recursive descent parser for q9.

Converts a token stream into a Program AST. The parser pulls tokens one at
a time and keeps a two-token window (current + peek); it never needs to
look further ahead or backtrack.

Grammar:
    Program   := Statement* EOF
    Statement := ( "return" Expr
                 | "fn" Ident "(" Params? ")" Block     (global scope only)
                 | "let" Ident "=" Expr
                 | "{" Statement* "}"
                 | Ident "=" Expr
                 | Ident "(" Args? ")" ) ";"?
    Expr      := Term (("+" | "-") Term)*
    Term      := Primary (("*" | "/") Primary)*
    Primary   := Number | Ident | Ident "(" Args? ")" | "(" Expr ")"
"""

import logging
from typing import Iterable, List, Optional
from .tokens import Token, TokenType, SourceSpan, NONE_TOKEN, is_operator_token
from .lexer import Lexer, TokenStream
from .ast import (
    BinOp, Expression, Literal, Identifier, FunctionCall, BinaryOp,
    Statement, CallStatement, ReturnStatement, VarDecl, AssignmentStatement,
    Block, BlockStatement, Function, FunctionDef, Program,
)
from .errors import (
    error_unexpected_token,
    error_unexpected_eof,
    error_invalid_expression,
    error_invalid_number,
    error_nested_function,
)

logger = logging.getLogger(__name__)


class Parser:
    """
    Recursive descent parser for q9.

    Usage:
        parser = Parser(tokens)
        program = parser.parse_program()

    `tokens` may be a Lexer, a list of tokens or any iterable of tokens.

    Binary operators use standard precedence climbing, all left-associative:
        Lowest:  + -
        Highest: * /
    """

    # Operator precedence levels (higher = tighter binding)
    PRECEDENCE = {
        TokenType.PLUS: 1,
        TokenType.MINUS: 1,
        TokenType.STAR: 2,
        TokenType.SLASH: 2,
    }

    OPERATORS = {
        TokenType.PLUS: BinOp.ADD,
        TokenType.MINUS: BinOp.SUB,
        TokenType.STAR: BinOp.MUL,
        TokenType.SLASH: BinOp.DIV,
    }

    def __init__(self, tokens: Iterable[Token], source: Optional[str] = None):
        self.stream = TokenStream(tokens)
        if source is None and isinstance(tokens, Lexer):
            source = tokens.source
        self.source_lines = source.splitlines() if source else []
        self.current: Token = NONE_TOKEN
        self.peek: Token = NONE_TOKEN
        self.previous: Token = NONE_TOKEN
        self.depth = 0  # 0 while parsing global-scope statements
        self._advance()
        self._advance()

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _advance(self) -> Token:
        """Shift the window by one token and return the token shifted out."""
        token = self.current
        self.previous = token
        self.current = self.peek
        self.peek = self.stream.next()
        return token

    def _is_at_end(self) -> bool:
        return self.current.type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        return self.current.type == token_type

    def _match(self, token_type: TokenType) -> Optional[Token]:
        """Consume token if it matches."""
        if self._check(token_type):
            return self._advance()
        return None

    def _consume(self, token_type: TokenType, expected: str) -> Token:
        """Consume token of expected type, or raise error."""
        if self._check(token_type):
            return self._advance()
        raise self._error(expected)

    def _source_line(self, token: Token) -> Optional[str]:
        line = token.span.start.line
        if 1 <= line <= len(self.source_lines):
            return self.source_lines[line - 1]
        return None

    def _error(self, expected: str, token: Optional[Token] = None):
        """Build a parser error for the current (or given) token."""
        token = token or self.current
        if token.type == TokenType.EOF:
            return error_unexpected_eof(expected, token.span)
        return error_unexpected_token(expected, token.describe(), token.span,
                                      self._source_line(token))

    def _span_from(self, start: Token) -> SourceSpan:
        """Create a span from start token to the last consumed token."""
        return SourceSpan(start.span.start, self.previous.span.end)

    # =========================================================================
    # Expression Parsing (Precedence Climbing)
    # =========================================================================

    def _parse_expression(self) -> Expression:
        return self._parse_binary_expr(1)

    def _parse_binary_expr(self, min_precedence: int) -> Expression:
        """Parse binary expressions with precedence climbing."""
        left = self._parse_primary_expr()

        while True:
            op_token = self.current
            precedence = self.PRECEDENCE.get(op_token.type)

            if precedence is None or precedence < min_precedence:
                break

            self._advance()  # consume operator
            right = self._parse_binary_expr(precedence + 1)

            left = BinaryOp(
                span=SourceSpan(left.span.start, right.span.end),
                left=left,
                operator=self.OPERATORS[op_token.type],
                right=right,
            )

        return left

    def _parse_primary_expr(self) -> Expression:
        """Parse numbers, identifiers, calls and parenthesized expressions."""
        token = self.current

        if token.type == TokenType.NUMBER:
            self._advance()
            return Literal(span=token.span, value=self._parse_number(token))

        if token.type == TokenType.IDENTIFIER:
            if self.peek.type == TokenType.LPAREN:
                self._advance()  # consume name
                arguments = self._parse_arguments()
                return FunctionCall(
                    span=self._span_from(token),
                    name=token.value,
                    arguments=arguments,
                )
            self._advance()
            return Identifier(span=token.span, name=token.value)

        if token.type == TokenType.LPAREN:
            self._advance()
            expr = self._parse_expression()
            self._consume(TokenType.RPAREN, "')'")
            return expr

        if token.type == TokenType.EOF:
            raise error_unexpected_eof("expression", token.span)

        found = token.describe()
        if is_operator_token(token.type):
            found = f"operator '{token.lexeme}' needs a left operand"
        raise error_invalid_expression(found, token.span, self._source_line(token))

    def _parse_number(self, token: Token) -> float:
        try:
            return float(token.value)
        except ValueError:
            raise error_invalid_number(token.value, token.span, self._source_line(token)) from None

    def _parse_arguments(self) -> List[Expression]:
        """Parse '(' (Expr (',' Expr)*)? ')'."""
        self._consume(TokenType.LPAREN, "'('")
        args = []
        if not self._check(TokenType.RPAREN):
            args.append(self._parse_expression())
            while self._match(TokenType.COMMA):
                args.append(self._parse_expression())
        self._consume(TokenType.RPAREN, "')' or ','")
        return args

    # =========================================================================
    # Statement Parsing
    # =========================================================================

    def _parse_statement(self) -> Statement:
        """Parse a statement, with an optional trailing ';'."""
        token = self.current

        if token.type == TokenType.RETURN:
            stmt = self._parse_return_statement()
        elif token.type == TokenType.FN:
            if self.depth > 0:
                name = self.peek.value if self.peek.type == TokenType.IDENTIFIER else "?"
                raise error_nested_function(name, token.span, self._source_line(token))
            stmt = self._parse_function_def()
        elif token.type == TokenType.LET:
            stmt = self._parse_var_decl()
        elif token.type == TokenType.LBRACE:
            block = self._parse_block()
            stmt = BlockStatement(span=block.span, block=block)
        elif token.type == TokenType.IDENTIFIER:
            # One token past the identifier decides the statement kind
            if self.peek.type == TokenType.ASSIGN:
                stmt = self._parse_assignment()
            elif self.peek.type == TokenType.LPAREN:
                stmt = self._parse_call_statement()
            else:
                raise self._error(f"'=' or '(' after identifier '{token.value}'", self.peek)
        else:
            raise self._error("statement")

        self._match(TokenType.SEMICOLON)
        return stmt

    def _parse_return_statement(self) -> ReturnStatement:
        start = self._advance()  # consume 'return'
        value = self._parse_expression()
        return ReturnStatement(span=self._span_from(start), value=value)

    def _parse_var_decl(self) -> VarDecl:
        start = self._advance()  # consume 'let'
        name = self._consume(TokenType.IDENTIFIER, "variable name").value
        self._consume(TokenType.ASSIGN, "'='")
        initializer = self._parse_expression()
        return VarDecl(span=self._span_from(start), name=name, initializer=initializer)

    def _parse_assignment(self) -> AssignmentStatement:
        start = self._advance()  # consume name
        self._consume(TokenType.ASSIGN, "'='")
        value = self._parse_expression()
        return AssignmentStatement(span=self._span_from(start), name=start.value, value=value)

    def _parse_call_statement(self) -> CallStatement:
        start = self._advance()  # consume name
        arguments = self._parse_arguments()
        return CallStatement(span=self._span_from(start), name=start.value, arguments=arguments)

    def _parse_block(self) -> Block:
        """Parse '{' Statement* '}'."""
        start = self._consume(TokenType.LBRACE, "'{'")
        statements = []

        self.depth += 1
        try:
            while not self._check(TokenType.RBRACE):
                if self._is_at_end():
                    raise error_unexpected_eof("'}'", self.current.span)
                statements.append(self._parse_statement())
        finally:
            self.depth -= 1

        self._consume(TokenType.RBRACE, "'}'")
        return Block(span=self._span_from(start), statements=statements)

    def _parse_function_def(self) -> FunctionDef:
        """Parse 'fn' Ident '(' (Ident (',' Ident)*)? ')' Block."""
        start = self._advance()  # consume 'fn'
        name_token = self._consume(TokenType.IDENTIFIER, "function name")

        self._consume(TokenType.LPAREN, "'('")
        parameters = []
        if not self._check(TokenType.RPAREN):
            parameters.append(self._consume(TokenType.IDENTIFIER, "parameter name").value)
            while self._match(TokenType.COMMA):
                parameters.append(self._consume(TokenType.IDENTIFIER, "parameter name").value)
        self._consume(TokenType.RPAREN, "')' or ','")

        body = self._parse_block()
        function = Function(span=self._span_from(name_token), name=name_token.value, body=body)
        return FunctionDef(span=self._span_from(start), function=function, parameters=parameters)

    def parse_program(self) -> Program:
        """Parse a complete program."""
        start = self.current
        statements = []

        while not self._is_at_end():
            statements.append(self._parse_statement())

        if statements:
            span = self._span_from(start)
        else:
            span = SourceSpan(start.span.start, start.span.end)
        logger.debug("parsed program with %d top-level statement(s)", len(statements))
        return Program(span=span, statements=statements)


def parse(tokens: Iterable[Token], source: Optional[str] = None) -> Program:
    """
    Convenience function to parse tokens into a program.

    Args:
        tokens: A Lexer, a list of tokens, or any iterable of tokens
        source: Optional original source code for error messages

    Returns:
        Parsed Program AST

    Raises:
        SyntaxError: If parsing fails
        LexerError: If the token source is a Lexer that hits a bad character
    """
    parser = Parser(tokens, source)
    return parser.parse_program()


def parse_source(source: str, filename: Optional[str] = None) -> Program:
    """Tokenize and parse source text in one step."""
    return parse(Lexer(source, filename), source)
