"""
Token Types for Laspa

Shared between lexer and parser to avoid circular dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any


class TokenKind(Enum):
    """Lexical token classes"""

    NUMBER = auto()
    SYMBOL = auto()
    OPERATOR = auto()
    KEYWORD = auto()
    PUNCTUATION = auto()

    # Synthesized by the parser past the last token; never produced by the lexer
    EOF = auto()


class Op(str, Enum):
    """Binary operators. Members compare equal to their source spelling."""

    ADD = '+'
    SUB = '-'
    MUL = '*'
    DIV = '/'
    MOD = '%'

    # Comparison
    GT = '>'
    LT = '<'
    GTE = '>='
    LTE = '<='
    EQ = '=='
    NEQ = '!='

    @property
    def arity(self) -> int:
        return 2

    def __str__(self) -> str:
        return self.value


class Keyword(Enum):
    """Keyword-led constructs"""

    LET = auto()
    SET = auto()
    DEF = auto()
    IF = auto()
    ELSE = auto()
    END = auto()
    LOOP = auto()
    RETURN = auto()
    BREAK = auto()
    CONTINUE = auto()


@dataclass(frozen=True)
class Token:
    """Token with position info"""

    kind: TokenKind
    lexeme: str
    value: Any = None
    line: int = 0
    column: int = 0

    def is_separator(self) -> bool:
        return self.kind is TokenKind.PUNCTUATION

    def is_keyword(self, *keywords: Keyword) -> bool:
        return self.kind is TokenKind.KEYWORD and self.value in keywords

    def describe(self) -> str:
        if self.kind is TokenKind.EOF:
            return "end of input"
        if self.kind is TokenKind.PUNCTUATION:
            return "newline" if self.lexeme == '\n' else repr(self.lexeme)
        return f"{self.kind.name.lower()} {self.lexeme!r}"

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.lexeme!r}, {self.line}:{self.column})"
