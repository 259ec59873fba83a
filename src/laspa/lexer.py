"""
Lexer for Laspa

Tokenizes Laspa source code into a stream of tokens.

Features:
- Lazy, restartable scanning (every iteration starts from the top)
- Position tracking (line, column)
- `//` line comments
- Newlines and `;` are emitted as statement separators
"""

from __future__ import annotations

from typing import Iterator, List, Optional

from loguru import logger

from .token_types import Keyword, Op, Token, TokenKind

DIGITS = frozenset('0123456789')


class LexError(Exception):
    """Lexical analysis error"""

    def __init__(self, message: str, line: int = 0, column: int = 0):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(f"{message} at line {line}, col {column}")


class Lexer:
    """
    Laspa lexer.

    Iterating a Lexer scans its source from the beginning and yields tokens
    one at a time; scanning stops at the first character that does not
    belong to the language.
    """

    # Keyword mapping
    KEYWORDS = {
        'let': Keyword.LET,
        'set': Keyword.SET,
        'def': Keyword.DEF,
        'if': Keyword.IF,
        'else': Keyword.ELSE,
        'end': Keyword.END,
        'loop': Keyword.LOOP,
        'while': Keyword.LOOP,
        'return': Keyword.RETURN,
        'break': Keyword.BREAK,
        'continue': Keyword.CONTINUE,
    }

    # Operator mapping: longest matches first to handle prefixes correctly
    OPERATORS = [
        # Two-character operators
        ('>=', Op.GTE),
        ('<=', Op.LTE),
        ('==', Op.EQ),
        ('!=', Op.NEQ),

        # Single-character operators
        ('+', Op.ADD),
        ('-', Op.SUB),
        ('*', Op.MUL),
        ('/', Op.DIV),
        ('%', Op.MOD),
        ('>', Op.GT),
        ('<', Op.LT),
    ]

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1

    def __iter__(self) -> Iterator[Token]:
        return Lexer(self.source).scan()

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> List[Token]:
        """Tokenize entire source, return token list"""
        tokens = list(self)
        logger.trace("lexed {} tokens", len(tokens))
        return tokens

    def scan(self) -> Iterator[Token]:
        """Yield tokens from the current position to the end of input"""
        while self.pos < len(self.source):
            tok = self.scan_token()
            if tok is not None:
                yield tok

    def scan_token(self) -> Optional[Token]:
        """Scan next token, or skip whitespace/comments and return None"""
        # Skip whitespace (not newlines)
        if self.skip_whitespace():
            return None

        ch = self.peek()

        # Comments
        if ch == '/' and self.peek(1) == '/':
            self.skip_comment()
            return None

        # Separators
        if ch in ('\n', '\r'):
            return self.scan_newline()

        if ch == ';':
            tok = self.emit(TokenKind.PUNCTUATION, ';')
            self.advance()
            return tok

        # Numbers
        if self.starts_number():
            return self.scan_number()

        # Identifiers and keywords
        if ch.isalpha() or ch == '_':
            return self.scan_identifier()

        # Operators
        return self.scan_operator()

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_newline(self) -> Token:
        """Scan newline character"""
        tok = self.emit(TokenKind.PUNCTUATION, '\n')

        if self.peek() == '\r' and self.peek(1) == '\n':
            self.advance(2)  # consume CRLF
        else:
            self.advance()

        self.line += 1
        self.column = 1
        return tok

    def starts_number(self) -> bool:
        """Check for a numeric literal, including a glued leading minus"""
        offset = 0

        if self.peek() == '-':
            prev = self.source[self.pos - 1] if self.pos > 0 else ' '
            if prev.isalnum() or prev in ('_', '.'):
                return False
            offset = 1

        ch = self.peek(offset)
        if ch in DIGITS:
            return True

        return ch == '.' and self.peek(offset + 1) in DIGITS

    def scan_number(self) -> Token:
        """Scan number literal: digits with at most one decimal point"""
        line, column = self.line, self.column
        value = ''

        if self.peek() == '-':
            value += self.advance()

        seen_dot = False
        while self.peek() in DIGITS or self.peek() == '.':
            if self.peek() == '.':
                if seen_dot:
                    raise LexError("Malformed number literal", self.line, self.column)
                seen_dot = True
            value += self.advance()

        nxt = self.peek()
        if nxt.isalnum() or nxt == '_':
            raise LexError(f"Unexpected character {nxt!r} after number", self.line, self.column)

        return Token(TokenKind.NUMBER, value, float(value), line, column)

    def scan_identifier(self) -> Token:
        """Scan identifier or keyword"""
        line, column = self.line, self.column
        value = ''

        while self.peek().isalnum() or self.peek() == '_':
            value += self.advance()

        keyword = self.KEYWORDS.get(value)
        if keyword is not None:
            return Token(TokenKind.KEYWORD, value, keyword, line, column)

        return Token(TokenKind.SYMBOL, value, value, line, column)

    def scan_operator(self) -> Token:
        """Scan operators"""
        for op_str, op in self.OPERATORS:
            if self.source.startswith(op_str, self.pos):
                tok = Token(TokenKind.OPERATOR, op_str, op, self.line, self.column)
                self.advance(len(op_str))
                return tok

        ch = self.peek()
        raise LexError(f"Unexpected character {ch!r}", self.line, self.column)

    # ========================================================================
    # Utilities
    # ========================================================================

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def advance(self, n: int = 1) -> str:
        """Consume n characters and return them as a string"""
        result = self.source[self.pos:self.pos + n]
        self.pos += n
        self.column += n
        return result

    def skip_whitespace(self) -> bool:
        """Skip whitespace (not newlines), return True if any skipped"""
        skipped = False
        while self.peek() in (' ', '\t', '\f', '\v'):
            self.advance()
            skipped = True
        return skipped

    def skip_comment(self):
        """Skip comment until end of line"""
        while self.peek() not in ('\n', '\r', '\0'):
            self.advance()

    def emit(self, kind: TokenKind, lexeme: str) -> Token:
        """Build a token at the current position"""
        return Token(kind=kind, lexeme=lexeme, value=lexeme, line=self.line, column=self.column)


def tokenize(source: str) -> List[Token]:
    """Convenience function to tokenize source"""
    return Lexer(source).tokenize()
