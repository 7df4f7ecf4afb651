"""
Lexer for q9.

Converts source text into a stream of tokens for the parser.
Supports:
- Whitespace-insensitive layout (newlines are not significant)
- Single-line comments (#)
- Number literals (kept as raw text, validated by the parser)
- Identifiers and the keywords let, fn, return
- Punctuation ( ) , { } = + - / * ;

The lexer performs no semantic validation: '1.2.3' is a single NUMBER
token and only fails once the parser tries to read it.
"""

from typing import Iterable, Iterator, List, Optional
from .tokens import (
    Token, TokenType, SourceLocation, SourceSpan, KEYWORDS, PUNCTUATION, NO_SPAN,
)
from .errors import error_unexpected_character


class Lexer:
    """
    Tokenizer for q9.

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()

    Or pull-based, one token at a time:
        lexer = Lexer(source_code)
        token = lexer.next_token()

    next_token() keeps returning EOF once the input is exhausted.
    """

    def __init__(self, source: str, filename: Optional[str] = None):
        self.source = source
        self.filename = filename
        self.pos = 0            # Current position in source
        self.line = 1           # Current line (1-indexed)
        self.column = 1         # Current column (1-indexed)
        self._lines: Optional[List[str]] = None  # Cached line list

    @property
    def lines(self) -> List[str]:
        """Lazy-load line list for error reporting."""
        if self._lines is None:
            self._lines = self.source.splitlines()
        return self._lines

    def get_source_line(self, line_num: int) -> Optional[str]:
        """Get a specific line of source (1-indexed)."""
        if 1 <= line_num <= len(self.lines):
            return self.lines[line_num - 1]
        return None

    def _location(self) -> SourceLocation:
        return SourceLocation(self.line, self.column, self.pos, self.filename)

    def _span(self, start: SourceLocation) -> SourceSpan:
        return SourceSpan(start, self._location())

    def _peek(self, offset: int = 0) -> str:
        """Look at character at current position + offset without consuming."""
        idx = self.pos + offset
        if idx >= len(self.source):
            return '\0'
        return self.source[idx]

    def _advance(self) -> str:
        """Consume and return current character."""
        if self.pos >= len(self.source):
            return '\0'
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _is_at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _skip_comment(self) -> None:
        """Skip a single-line comment (# to end of line)."""
        while self._peek() != '\n' and not self._is_at_end():
            self._advance()

    def _skip_whitespace_and_comments(self) -> None:
        while not self._is_at_end():
            ch = self._peek()
            if ch in ' \t\r\n':
                self._advance()
            elif ch == '#':
                self._skip_comment()
            else:
                break

    def _make_token(self, token_type: TokenType, value, start: SourceLocation,
                    lexeme: Optional[str] = None) -> Token:
        """Create a token."""
        span = self._span(start)
        if lexeme is None:
            lexeme = self.source[start.offset:self.pos]
        return Token(token_type, value, lexeme, span)

    def _scan_number(self) -> Token:
        """Scan a numeric literal: a digit followed by digits and dots."""
        start = self._location()
        while self._peek().isdigit() or self._peek() == '.':
            self._advance()
        lexeme = self.source[start.offset:self.pos]
        return self._make_token(TokenType.NUMBER, lexeme, start, lexeme)

    def _scan_identifier_or_keyword(self) -> Token:
        """Scan an identifier or keyword."""
        start = self._location()

        while self._peek().isalnum() or self._peek() == '_':
            self._advance()

        lexeme = self.source[start.offset:self.pos]
        if lexeme in KEYWORDS:
            return self._make_token(KEYWORDS[lexeme], lexeme, start, lexeme)
        return self._make_token(TokenType.IDENTIFIER, lexeme, start, lexeme)

    def next_token(self) -> Token:
        """Scan the next token."""
        self._skip_whitespace_and_comments()

        if self._is_at_end():
            return self._make_token(TokenType.EOF, None, self._location(), "")

        start = self._location()
        ch = self._peek()

        if ch.isdigit():
            return self._scan_number()

        if ch.isalpha() or ch == '_':
            return self._scan_identifier_or_keyword()

        self._advance()
        if ch in PUNCTUATION:
            return self._make_token(PUNCTUATION[ch], ch, start)

        raise error_unexpected_character(
            ch, self._span(start), self.get_source_line(start.line)
        )

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source, returning a list of tokens."""
        tokens = []
        while True:
            token = self.next_token()
            tokens.append(token)
            if token.type == TokenType.EOF:
                break
        return tokens

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens, ending with a single EOF."""
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                break


class TokenStream:
    """
    Pull-based view over any token source.

    Wraps a Lexer, a list of tokens or any other iterable. Once the
    underlying source is exhausted, next() keeps returning an EOF token,
    so the parser never has to handle StopIteration.
    """

    def __init__(self, tokens: Iterable[Token]):
        if isinstance(tokens, Lexer):
            self._next = tokens.next_token
        else:
            iterator = iter(tokens)
            self._next = lambda: next(iterator)
        self._eof: Optional[Token] = None

    def next(self) -> Token:
        if self._eof is not None:
            return self._eof
        try:
            token = self._next()
        except StopIteration:
            token = Token(TokenType.EOF, None, "", NO_SPAN)
        if token.type == TokenType.EOF:
            self._eof = token
        return token

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next()
            yield token
            if token.type == TokenType.EOF:
                break


def tokenize(source: str, filename: Optional[str] = None) -> List[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: The source code to tokenize
        filename: Optional filename for error messages

    Returns:
        List of tokens, ending with EOF

    Raises:
        LexerError: If an unexpected character is found
    """
    lexer = Lexer(source, filename)
    return lexer.tokenize()
