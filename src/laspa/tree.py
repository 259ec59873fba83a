"""AST node classes for Laspa plus a source renderer.

Nodes are frozen dataclasses. Source positions ride along for error
reporting but do not take part in equality, so a re-parsed rendering
compares equal to the tree it came from.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Tuple, Union
from typing_extensions import TypeAlias

from .token_types import Op

_OP_SPELLINGS = frozenset(op.value for op in Op)


@dataclass(frozen=True)
class NumberLiteral:
    value: float
    line: int = field(default=0, compare=False, repr=False)
    column: int = field(default=0, compare=False, repr=False)


@dataclass(frozen=True)
class SymbolRef:
    name: str
    line: int = field(default=0, compare=False, repr=False)
    column: int = field(default=0, compare=False, repr=False)


@dataclass(frozen=True)
class Call:
    target: Union[Op, str]
    args: Tuple['Expr', ...]
    line: int = field(default=0, compare=False, repr=False)
    column: int = field(default=0, compare=False, repr=False)

    def __post_init__(self) -> None:
        # A plain-string operator spelling becomes its Op member.
        if not isinstance(self.target, Op) and self.target in _OP_SPELLINGS:
            object.__setattr__(self, 'target', Op(self.target))

    @property
    def is_operator(self) -> bool:
        return isinstance(self.target, Op)


@dataclass(frozen=True)
class If:
    condition: 'Expr'
    then_branch: Tuple['Stmt', ...]
    else_branch: Optional[Tuple['Stmt', ...]] = None
    line: int = field(default=0, compare=False, repr=False)
    column: int = field(default=0, compare=False, repr=False)


@dataclass(frozen=True)
class Loop:
    condition: 'Expr'
    body: Tuple['Stmt', ...]
    line: int = field(default=0, compare=False, repr=False)
    column: int = field(default=0, compare=False, repr=False)


@dataclass(frozen=True)
class FunctionDef:
    name: str
    params: Tuple[str, ...]
    body: Tuple['Stmt', ...]
    line: int = field(default=0, compare=False, repr=False)
    column: int = field(default=0, compare=False, repr=False)


@dataclass(frozen=True)
class VariableDef:
    name: str
    value: 'Expr'
    line: int = field(default=0, compare=False, repr=False)
    column: int = field(default=0, compare=False, repr=False)


@dataclass(frozen=True)
class Assign:
    """`set NAME expr`: update the nearest existing binding."""
    name: str
    value: 'Expr'
    line: int = field(default=0, compare=False, repr=False)
    column: int = field(default=0, compare=False, repr=False)


@dataclass(frozen=True)
class Return:
    value: Optional['Expr'] = None
    line: int = field(default=0, compare=False, repr=False)
    column: int = field(default=0, compare=False, repr=False)


@dataclass(frozen=True)
class Break:
    line: int = field(default=0, compare=False, repr=False)
    column: int = field(default=0, compare=False, repr=False)


@dataclass(frozen=True)
class Continue:
    line: int = field(default=0, compare=False, repr=False)
    column: int = field(default=0, compare=False, repr=False)


@dataclass(frozen=True)
class Program:
    statements: Tuple['Stmt', ...]

    def pretty(self, indent: str = '    ') -> str:
        return render(self, indent)


Expr: TypeAlias = NumberLiteral | SymbolRef | Call
Stmt: TypeAlias = Expr | If | Loop | FunctionDef | VariableDef | Assign | Return | Break | Continue
Node: TypeAlias = Stmt | Program


def node_position(node: Node) -> Tuple[Optional[int], Optional[int]]:
    line = getattr(node, "line", 0)
    if not line:
        return None, None
    return line, getattr(node, "column", None)


# ---------------- Rendering ----------------

def render_number(value: float) -> str:
    """Render a literal so the lexer reads back the identical double."""
    text = repr(float(value))
    if 'e' in text or 'E' in text:
        text = format(Decimal(text), 'f')
    if text.endswith('.0'):
        text = text[:-2]
    return text


def render_expr(node: Expr) -> str:
    match node:
        case NumberLiteral(value=value):
            return render_number(value)
        case SymbolRef(name=name):
            return name
        case Call(target=target, args=args):
            name = target.value if isinstance(target, Op) else target
            return " ".join([render_expr(arg) for arg in args] + [name])
    raise TypeError(f"Not an expression node: {type(node).__name__}")


def render(node: Node, indent: str = '    ') -> str:
    """Render a node (or whole program) back to Laspa source."""
    if isinstance(node, Program):
        return "\n".join(_render_block(node.statements, 0, indent))
    return "\n".join(_render_stmt(node, 0, indent))


def _render_block(stmts: Tuple[Stmt, ...], level: int, indent: str) -> List[str]:
    lines: List[str] = []
    for stmt in stmts:
        lines.extend(_render_stmt(stmt, level, indent))
    return lines


def _render_stmt(node: Stmt, level: int, indent: str) -> List[str]:
    pad = indent * level

    match node:
        case If(condition=cond, then_branch=then, else_branch=orelse):
            lines = [f"{pad}if {render_expr(cond)}"]
            lines.extend(_render_block(then, level + 1, indent))
            if orelse is not None:
                lines.append(f"{pad}else")
                lines.extend(_render_block(orelse, level + 1, indent))
            lines.append(f"{pad}end")
            return lines
        case Loop(condition=cond, body=body):
            lines = [f"{pad}loop {render_expr(cond)}"]
            lines.extend(_render_block(body, level + 1, indent))
            lines.append(f"{pad}end")
            return lines
        case FunctionDef(name=name, params=params, body=body):
            lines = [f"{pad}def " + " ".join((name,) + params)]
            lines.extend(_render_block(body, level + 1, indent))
            lines.append(f"{pad}end")
            return lines
        case VariableDef(name=name, value=value):
            return [f"{pad}let {name} {render_expr(value)}"]
        case Assign(name=name, value=value):
            return [f"{pad}set {name} {render_expr(value)}"]
        case Return(value=None):
            return [f"{pad}return"]
        case Return(value=value):
            return [f"{pad}return {render_expr(value)}"]
        case Break():
            return [f"{pad}break"]
        case Continue():
            return [f"{pad}continue"]
        case _:
            return [pad + render_expr(node)]
