"""
RPN Parser for Laspa

Structure:
- Lexer: Token stream from source
- Parser: keyword-led statements parsed by recursive descent; expressions
  parsed with an explicit operand stack, left to right
- AST: frozen dataclasses from laspa.tree

Because the language is postfix, operands precede the operator or function
that consumes them. Which symbols are function calls (and how many operands
they take) is decided at parse time from the `def`s seen so far, so the
parser keeps a scope table mirroring the runtime scope chain.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Set, Tuple

from loguru import logger

from .token_types import Keyword, Op, Token, TokenKind
from .tree import (
    Assign,
    Break,
    Call,
    Continue,
    Expr,
    FunctionDef,
    If,
    Loop,
    NumberLiteral,
    Program,
    Return,
    Stmt,
    SymbolRef,
    VariableDef,
)

# ============================================================================
# Errors
# ============================================================================

class ParseError(Exception):
    """Parse error with position info"""
    def __init__(self, message: str, token: Optional[Token] = None):
        self.message = message
        self.token = token
        self.line = token.line if token else None
        self.column = token.column if token else None
        super().__init__(
            f"{message} at line {token.line}, col {token.column}" if token else message
        )

class UnexpectedToken(ParseError):
    pass

class StackUnderflow(ParseError):
    pass

class MalformedExpression(ParseError):
    pass

# Parse-time binding: an int is a function's arity, None is a plain variable.
Binding = Optional[int]

_BLOCK_TERMINATORS = (Keyword.END, Keyword.ELSE)

# ============================================================================
# Parser
# ============================================================================

class Parser:
    """
    Parser for Laspa.

    Statements:
    - expression           3 4 +
    - let NAME expr        bind in the current scope
    - set NAME expr        update the nearest existing binding
    - def NAME PARAMS...   block ... end
    - if expr              block [else block] end
    - loop expr            block ... end      (`while` is an alias)
    - return [expr], break, continue
    """

    def __init__(self, tokens: Iterable[Token], builtins: Optional[Dict[str, int]] = None):
        self.tokens: List[Token] = list(tokens)
        self.pos = 0
        self.eof = self._make_eof()
        self.current = self.tokens[0] if self.tokens else self.eof

        if builtins is None:
            from .runtime import stdlib_arities
            builtins = stdlib_arities()

        self.scopes: List[Dict[str, Binding]] = [dict(builtins)]
        self.loop_depth = 0

    def _make_eof(self) -> Token:
        if not self.tokens:
            return Token(TokenKind.EOF, '', None, 1, 1)

        last = self.tokens[-1]
        if last.kind is TokenKind.PUNCTUATION and last.lexeme == '\n':
            return Token(TokenKind.EOF, '', None, last.line + 1, 1)

        return Token(TokenKind.EOF, '', None, last.line, last.column + len(last.lexeme))

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def peek(self, offset: int = 0) -> Token:
        """Look ahead at token"""
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return self.eof

    def advance(self) -> Token:
        """Consume current token and move to next"""
        prev = self.current
        self.pos += 1
        self.current = self.peek()
        return prev

    def check(self, *kinds: TokenKind) -> bool:
        """Check if current token matches any of the given kinds"""
        return self.current.kind in kinds

    def check_keyword(self, *keywords: Keyword) -> bool:
        return self.current.is_keyword(*keywords)

    def expect(self, kind: TokenKind, message: Optional[str] = None) -> Token:
        """Consume token of expected kind or raise error"""
        if not self.check(kind):
            msg = message or f"Expected {kind.name.lower()}, got {self.current.describe()}"
            raise UnexpectedToken(msg, self.current)
        return self.advance()

    def skip_separators(self) -> None:
        while self.current.is_separator():
            self.advance()

    def at_statement_end(self) -> bool:
        return (
            self.current.is_separator()
            or self.check(TokenKind.EOF)
            or self.check_keyword(*_BLOCK_TERMINATORS)
        )

    def end_statement(self) -> None:
        """Statements end at a separator, end of input, or a block terminator"""
        if self.current.is_separator():
            self.advance()
            return

        if self.at_statement_end():
            return

        raise UnexpectedToken(
            f"Expected end of statement, got {self.current.describe()}", self.current
        )

    # ========================================================================
    # Scopes
    # ========================================================================

    def declare(self, name: str, binding: Binding) -> None:
        self.scopes[-1][name] = binding

    def resolve(self, name: str) -> Binding:
        for scope in reversed(self.scopes):
            if name in scope:
                return scope[name]
        return None

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> Program:
        """Parse entire program"""
        stmts: List[Stmt] = []

        while True:
            self.skip_separators()
            if self.check(TokenKind.EOF):
                break

            if self.check_keyword(*_BLOCK_TERMINATORS):
                raise UnexpectedToken(
                    f"'{self.current.lexeme}' without an open block", self.current
                )

            stmts.append(self.parse_statement())

        logger.debug("parsed {} top-level statements", len(stmts))
        return Program(tuple(stmts))

    def parse_block(self, opener: Token, terminators: Tuple[Keyword, ...]) -> Tuple[Tuple[Stmt, ...], Token]:
        """Parse statements up to one of `terminators`, returning it consumed"""
        stmts: List[Stmt] = []

        while True:
            self.skip_separators()

            if self.check(TokenKind.EOF):
                raise MalformedExpression(
                    f"'{opener.lexeme}' block opened at line {opener.line} is missing 'end'",
                    self.current,
                )

            if self.check_keyword(*terminators):
                closer = self.advance()
                self.end_statement()
                return tuple(stmts), closer

            if self.check_keyword(*_BLOCK_TERMINATORS):
                raise UnexpectedToken(
                    f"Unexpected '{self.current.lexeme}' in '{opener.lexeme}' block", self.current
                )

            stmts.append(self.parse_statement())

    # ========================================================================
    # Statements
    # ========================================================================

    def parse_statement(self) -> Stmt:
        """
        Parse a single statement.

        Keyword-led constructs dispatch on the keyword; anything else is an
        expression statement.
        """
        tok = self.current

        if tok.kind is TokenKind.KEYWORD:
            match tok.value:
                case Keyword.LET:
                    return self.parse_let()
                case Keyword.SET:
                    return self.parse_set()
                case Keyword.DEF:
                    return self.parse_def()
                case Keyword.IF:
                    return self.parse_if()
                case Keyword.LOOP:
                    return self.parse_loop()
                case Keyword.RETURN:
                    return self.parse_return()
                case Keyword.BREAK | Keyword.CONTINUE:
                    return self.parse_loop_control()
                case Keyword.END | Keyword.ELSE:
                    raise UnexpectedToken(f"Unexpected '{tok.lexeme}'", tok)

        expr = self.parse_expr()
        self.end_statement()
        return expr

    def parse_let(self) -> VariableDef:
        """let NAME expr"""
        kw = self.advance()
        name = self.expect(TokenKind.SYMBOL, f"'let' requires a name, got {self.current.describe()}")
        value = self.parse_expr()
        self.end_statement()
        self.declare(name.lexeme, None)
        return VariableDef(name.lexeme, value, kw.line, kw.column)

    def parse_set(self) -> Assign:
        """set NAME expr"""
        kw = self.advance()
        name = self.expect(TokenKind.SYMBOL, f"'set' requires a name, got {self.current.describe()}")
        value = self.parse_expr()
        self.end_statement()
        return Assign(name.lexeme, value, kw.line, kw.column)

    def parse_def(self) -> FunctionDef:
        """def NAME PARAM... <sep> body end"""
        kw = self.advance()
        name = self.expect(TokenKind.SYMBOL, f"'def' requires a function name, got {self.current.describe()}")

        params: List[str] = []
        seen: Set[str] = set()
        while self.check(TokenKind.SYMBOL):
            param = self.advance()
            if param.lexeme in seen:
                raise MalformedExpression(f"Duplicate parameter '{param.lexeme}'", param)
            seen.add(param.lexeme)
            params.append(param.lexeme)

        self.end_header(kw)

        # Declared before the body so the function can call itself.
        self.declare(name.lexeme, len(params))
        self.scopes.append({p: None for p in params})
        saved_loop_depth = self.loop_depth
        self.loop_depth = 0

        try:
            body, _ = self.parse_block(kw, (Keyword.END,))
        finally:
            self.loop_depth = saved_loop_depth
            self.scopes.pop()

        return FunctionDef(name.lexeme, tuple(params), body, kw.line, kw.column)

    def parse_if(self) -> If:
        """if expr <sep> then-block [else else-block] end"""
        kw = self.advance()
        condition = self.parse_expr()
        self.end_header(kw)

        then_branch, closer = self.parse_block(kw, (Keyword.ELSE, Keyword.END))
        else_branch: Optional[Tuple[Stmt, ...]] = None

        if closer.is_keyword(Keyword.ELSE):
            else_branch, _ = self.parse_block(closer, (Keyword.END,))

        return If(condition, then_branch, else_branch, kw.line, kw.column)

    def parse_loop(self) -> Loop:
        """loop expr <sep> body end"""
        kw = self.advance()
        condition = self.parse_expr()
        self.end_header(kw)

        self.loop_depth += 1
        try:
            body, _ = self.parse_block(kw, (Keyword.END,))
        finally:
            self.loop_depth -= 1

        return Loop(condition, body, kw.line, kw.column)

    def parse_return(self) -> Return:
        kw = self.advance()

        if self.at_statement_end():
            self.end_statement()
            return Return(None, kw.line, kw.column)

        value = self.parse_expr()
        self.end_statement()
        return Return(value, kw.line, kw.column)

    def parse_loop_control(self) -> Stmt:
        kw = self.advance()

        if self.loop_depth == 0:
            raise ParseError(f"'{kw.lexeme}' outside of a loop", kw)

        self.end_statement()
        if kw.value is Keyword.BREAK:
            return Break(kw.line, kw.column)
        return Continue(kw.line, kw.column)

    def end_header(self, opener: Token) -> None:
        """A block header runs to the end of its line (or `;`)"""
        if self.current.is_separator():
            self.advance()
            return

        if self.check_keyword(Keyword.END) or self.check(TokenKind.EOF):
            return

        raise UnexpectedToken(
            f"Expected end of '{opener.lexeme}' header, got {self.current.describe()}",
            self.current,
        )

    # ========================================================================
    # Expressions
    # ========================================================================

    def parse_expr(self) -> Expr:
        """
        Parse one RPN expression with an explicit operand stack.

        Scanning stops at a separator, end of input or a keyword; exactly one
        operand must be left on the stack.
        """
        start = self.current
        stack: List[Expr] = []

        while self.check(TokenKind.NUMBER, TokenKind.SYMBOL, TokenKind.OPERATOR):
            tok = self.advance()

            match tok.kind:
                case TokenKind.NUMBER:
                    stack.append(NumberLiteral(tok.value, tok.line, tok.column))
                case TokenKind.OPERATOR:
                    op: Op = tok.value
                    args = self.pop_operands(stack, op.arity, tok)
                    stack.append(Call(op, args, tok.line, tok.column))
                case TokenKind.SYMBOL:
                    arity = self.resolve(tok.lexeme)
                    if arity is None:
                        stack.append(SymbolRef(tok.lexeme, tok.line, tok.column))
                    else:
                        args = self.pop_operands(stack, arity, tok)
                        stack.append(Call(tok.lexeme, args, tok.line, tok.column))

        if not stack:
            raise MalformedExpression(
                f"Expected an expression, got {self.current.describe()}", self.current
            )

        if len(stack) > 1:
            raise MalformedExpression(
                f"Expression leaves {len(stack)} values on the stack; expected exactly one",
                start,
            )

        return stack[0]

    def pop_operands(self, stack: List[Expr], count: int, tok: Token) -> Tuple[Expr, ...]:
        if len(stack) < count:
            raise StackUnderflow(
                f"'{tok.lexeme}' needs {count} operand(s), found {len(stack)}", tok
            )

        if count == 0:
            return ()

        args = tuple(stack[-count:])
        del stack[-count:]
        return args


def parse_tokens(tokens: Iterable[Token], builtins: Optional[Dict[str, int]] = None) -> Program:
    return Parser(tokens, builtins=builtins).parse()


def parse_source(source: str, builtins: Optional[Dict[str, int]] = None) -> Program:
    """
    Parse Laspa source code to AST.

    Args:
        source: Source code to parse
        builtins: Parse-time arities of builtin functions (defaults to stdlib)
    """
    from .lexer import Lexer

    return parse_tokens(Lexer(source), builtins=builtins)
