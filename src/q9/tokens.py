"""
Token types and source positions for the q9 lexer.
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional


class TokenType(Enum):
    """All token types recognized by the lexer."""

    # --- Literals ---
    NUMBER = auto()             # 2, 3.14 (raw text, validated by the parser)

    # --- Identifiers ---
    IDENTIFIER = auto()         # user-defined names

    # --- Keywords ---
    LET = auto()                # let
    FN = auto()                 # fn
    RETURN = auto()             # return

    # --- Arithmetic operators ---
    PLUS = auto()               # +
    MINUS = auto()              # -
    STAR = auto()               # *
    SLASH = auto()              # /

    # --- Assignment ---
    ASSIGN = auto()             # =

    # --- Delimiters ---
    LPAREN = auto()             # (
    RPAREN = auto()             # )
    LBRACE = auto()             # {
    RBRACE = auto()             # }
    COMMA = auto()              # ,
    SEMICOLON = auto()          # ; (optional statement terminator)

    # --- Special ---
    EOF = auto()                # end of input
    NONE = auto()               # empty lookahead slot before the window is primed


@dataclass(frozen=True)
class SourceLocation:
    """Represents a position in source code."""
    line: int           # 1-indexed line number
    column: int         # 1-indexed column number
    offset: int         # 0-indexed character offset from start
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class SourceSpan:
    """Represents a range in source code."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"


NO_LOCATION = SourceLocation(0, 0, 0)
NO_SPAN = SourceSpan(NO_LOCATION, NO_LOCATION)


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""
    type: TokenType
    value: Any              # Raw text for NUMBER and IDENTIFIER
    lexeme: str             # The original source text
    span: SourceSpan        # Location in source

    def __str__(self) -> str:
        if self.type in (TokenType.NUMBER, TokenType.IDENTIFIER):
            return f"{self.type.name}({self.value!r})"
        return self.type.name

    def describe(self) -> str:
        """Human-readable description used in parser messages."""
        if self.type == TokenType.EOF:
            return "end of input"
        if self.type == TokenType.NONE:
            return "nothing"
        if self.type == TokenType.NUMBER:
            return f"number '{self.value}'"
        if self.type == TokenType.IDENTIFIER:
            return f"identifier '{self.value}'"
        if self.type in KEYWORD_TYPES:
            return f"keyword '{self.lexeme}'"
        return f"'{self.lexeme}'"


NONE_TOKEN = Token(TokenType.NONE, None, "", NO_SPAN)


# Keyword mapping - maps string to token type
KEYWORDS: dict[str, TokenType] = {
    "let": TokenType.LET,
    "fn": TokenType.FN,
    "return": TokenType.RETURN,
}

KEYWORD_TYPES: frozenset = frozenset(KEYWORDS.values())

# Single-character punctuation
PUNCTUATION: dict[str, TokenType] = {
    '(': TokenType.LPAREN,
    ')': TokenType.RPAREN,
    ',': TokenType.COMMA,
    '{': TokenType.LBRACE,
    '}': TokenType.RBRACE,
    '=': TokenType.ASSIGN,
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '/': TokenType.SLASH,
    '*': TokenType.STAR,
    ';': TokenType.SEMICOLON,
}


def is_operator_token(token_type: TokenType) -> bool:
    """Check if a token type is one of the arithmetic operators."""
    return token_type in (TokenType.PLUS, TokenType.MINUS, TokenType.STAR, TokenType.SLASH)
