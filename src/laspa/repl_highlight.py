"""prompt_toolkit lexer for live Laspa syntax highlighting in the REPL."""

from __future__ import annotations

from typing import Callable, Optional

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer import LexError, tokenize
from .runtime import stdlib_arities
from .token_types import Keyword, Token, TokenKind

# Map highlight groups → prompt_toolkit style strings.
GROUP_STYLE = {
    "keyword": "bold ansicyan",
    "number": "ansimagenta",
    "identifier": "",
    "function": "bold ansiyellow",
    "operator": "",
    "punctuation": "",
    "comment": "italic ansigray",
    "error": "bold ansired",
}

_KIND_GROUP = {
    TokenKind.KEYWORD: "keyword",
    TokenKind.NUMBER: "number",
    TokenKind.SYMBOL: "identifier",
    TokenKind.OPERATOR: "operator",
    TokenKind.PUNCTUATION: "punctuation",
}


def _comment_start(text: str) -> int:
    idx = text.find("//")
    return len(text) if idx < 0 else idx


def _group_for(tok: Token, prev: Optional[Token]) -> str:
    if tok.kind is TokenKind.SYMBOL:
        # Name right after `def`, or a builtin.
        if prev is not None and prev.is_keyword(Keyword.DEF):
            return "function"
        if tok.lexeme in stdlib_arities():
            return "function"
    return _KIND_GROUP.get(tok.kind, "")


def _highlight_line(text: str) -> StyleAndTextTuples:
    """Tokenize a single line and return styled fragments."""
    if not text:
        return [("", "")]

    code_end = _comment_start(text)
    code = text[:code_end]

    result: StyleAndTextTuples = []
    pos = 0

    try:
        tokens = tokenize(code)
    except LexError as exc:
        # Everything before the bad character still lexes; flag the rest.
        bad = max(exc.column - 1, 0)
        head = _highlight_line(code[:bad]) if bad else []
        return head + [(GROUP_STYLE["error"], text[bad:])]

    prev: Optional[Token] = None
    for tok in tokens:
        start = tok.column - 1
        if start < pos:
            continue

        # Unstyled gap before token.
        if start > pos:
            result.append(("", code[pos:start]))

        style = GROUP_STYLE.get(_group_for(tok, prev), "")
        result.append((style, tok.lexeme))
        pos = start + len(tok.lexeme)
        prev = tok

    if pos < len(code):
        result.append(("", code[pos:]))

    if code_end < len(text):
        result.append((GROUP_STYLE["comment"], text[code_end:]))

    return result if result else [("", text)]


class LaspaLexer(Lexer):
    """prompt_toolkit Lexer that highlights Laspa source using the Laspa lexer."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = document.lines

        # Pre-compute highlights for all lines.
        cache: dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno not in cache:
                if lineno < len(lines):
                    cache[lineno] = _highlight_line(lines[lineno])
                else:
                    cache[lineno] = [("", "")]

            return cache[lineno]

        return get_line
