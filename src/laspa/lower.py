"""Backend handoff: resolve a parsed program into tables a code generator can use.

The lowered form keeps the finalized AST and adds a function table, the
global variable set and the top-level statements that make up `main`. Every
name is checked statically so a backend never has to re-parse or guess.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from loguru import logger

from .parser import ParseError
from .tree import (
    Assign,
    Call,
    Expr,
    FunctionDef,
    If,
    Loop,
    Node,
    Program,
    Return,
    Stmt,
    SymbolRef,
    VariableDef,
    node_position,
)


class ResolveError(ParseError):
    """A name or construct the backend cannot resolve statically."""

    def __init__(self, message: str, node: Optional[Node] = None):
        line, column = node_position(node) if node is not None else (None, None)
        self.message = message
        self.token = None
        self.line = line
        self.column = column
        Exception.__init__(
            self, f"{message} at line {line}, col {column}" if line is not None else message
        )


@dataclass(frozen=True)
class FunctionInfo:
    name: str
    params: Tuple[str, ...]
    body: Tuple[Stmt, ...]
    locals: Tuple[str, ...]

    @property
    def arity(self) -> int:
        return len(self.params)


@dataclass(frozen=True)
class LoweredProgram:
    program: Program
    functions: Dict[str, FunctionInfo]
    globals: Tuple[str, ...]
    main: Tuple[Stmt, ...]
    builtins: Dict[str, int] = field(default_factory=dict)

    def describe(self) -> str:
        lines = [f"globals: {', '.join(self.globals) or '-'}"]
        for info in self.functions.values():
            params = " ".join(info.params) or "-"
            locals_ = " ".join(info.locals) or "-"
            lines.append(f"fn {info.name}/{info.arity} params: {params} locals: {locals_}")
        lines.append(f"main: {len(self.main)} statement(s)")
        return "\n".join(lines)


def lower(program: Program, builtins: Optional[Dict[str, int]] = None) -> LoweredProgram:
    """Resolve `program` for a backend; raise ResolveError on unresolvable names."""
    if builtins is None:
        from .runtime import stdlib_arities
        builtins = stdlib_arities()

    functions: Dict[str, FunctionInfo] = {}
    main: List[Stmt] = []

    for stmt in program.statements:
        if isinstance(stmt, FunctionDef):
            if stmt.name in functions:
                raise ResolveError(f"Function '{stmt.name}' is defined more than once", stmt)
            _reject_nested_defs(stmt.body)
            functions[stmt.name] = FunctionInfo(
                name=stmt.name,
                params=stmt.params,
                body=stmt.body,
                locals=tuple(n for n in _bound_names(stmt.body) if n not in stmt.params),
            )
        else:
            _reject_nested_defs((stmt,))
            main.append(stmt)

    globals_ = tuple(_bound_names(main))
    callables = set(functions) | set(builtins)

    for stmt in main:
        _check_names((stmt,), set(globals_), callables, functions, builtins)

    for info in functions.values():
        scope = set(globals_) | set(info.params) | set(info.locals)
        _check_names(info.body, scope, callables, functions, builtins)

    logger.debug("lowered {} function(s), {} global(s)", len(functions), len(globals_))
    return LoweredProgram(
        program=program,
        functions=functions,
        globals=globals_,
        main=tuple(main),
        builtins=dict(builtins),
    )


def _children(stmt: Stmt) -> Iterable[Stmt]:
    match stmt:
        case If(then_branch=then, else_branch=orelse):
            yield from then
            if orelse is not None:
                yield from orelse
        case Loop(body=body):
            yield from body


def _bound_names(stmts: Iterable[Stmt]) -> List[str]:
    """Names bound by `let` in these statements, in first-binding order."""
    names: List[str] = []
    seen: Set[str] = set()

    def visit(block: Iterable[Stmt]) -> None:
        for stmt in block:
            if isinstance(stmt, VariableDef) and stmt.name not in seen:
                seen.add(stmt.name)
                names.append(stmt.name)
            visit(_children(stmt))

    visit(stmts)
    return names


def _reject_nested_defs(stmts: Iterable[Stmt]) -> None:
    for stmt in stmts:
        if isinstance(stmt, FunctionDef):
            raise ResolveError(
                f"Nested function '{stmt.name}' is not supported by the backend", stmt
            )
        _reject_nested_defs(_children(stmt))


def _check_names(
    stmts: Iterable[Stmt],
    scope: Set[str],
    callables: Set[str],
    functions: Dict[str, FunctionInfo],
    builtins: Dict[str, int],
) -> None:
    for stmt in stmts:
        match stmt:
            case VariableDef(value=value) | Return(value=value) if value is not None:
                _check_expr(value, scope, callables, functions, builtins)
            case Assign(name=name, value=value):
                if name not in scope:
                    raise ResolveError(f"'set' target '{name}' is never bound", stmt)
                _check_expr(value, scope, callables, functions, builtins)
            case If(condition=cond) | Loop(condition=cond):
                _check_expr(cond, scope, callables, functions, builtins)
            case SymbolRef() | Call():
                _check_expr(stmt, scope, callables, functions, builtins)
        _check_names(_children(stmt), scope, callables, functions, builtins)


def _check_expr(
    expr: Expr,
    scope: Set[str],
    callables: Set[str],
    functions: Dict[str, FunctionInfo],
    builtins: Dict[str, int],
) -> None:
    match expr:
        case SymbolRef(name=name):
            if name not in scope:
                raise ResolveError(f"Symbol '{name}' is never bound", expr)
        case Call(target=target, args=args):
            if not expr.is_operator:
                if target not in callables:
                    raise ResolveError(f"Function '{target}' is never defined", expr)
                arity = functions[target].arity if target in functions else builtins[target]
                if arity != len(args):
                    raise ResolveError(
                        f"'{target}' expects {arity} argument(s); got {len(args)}", expr
                    )
            for arg in args:
                _check_expr(arg, scope, callables, functions, builtins)
