from __future__ import annotations

import sys
from typing import Optional, TextIO

from .runtime import EvalError, Frame, Value, init_stdlib
from .token_types import Op
from .tree import (
    Assign,
    Break,
    Call,
    Continue,
    FunctionDef,
    If,
    Loop,
    Node,
    NumberLiteral,
    Program,
    Return,
    SymbolRef,
    VariableDef,
    node_position,
)
from .utils import max_call_depth

from .eval.bind import eval_let, eval_set
from .eval.blocks import eval_program
from .eval.control import eval_break_stmt, eval_continue_stmt, eval_return_stmt
from .eval.expr import apply_op
from .eval.fn import call_value, eval_fn_def
from .eval.loops import eval_if_stmt, eval_loop_stmt

# Python frames consumed per nested user-function call, with slack for
# deeply nested expressions inside each body.
_PY_FRAMES_PER_CALL = 40
_PY_RECURSION_CEILING = 20000


def _maybe_attach_location(exc: EvalError, node: Node) -> None:
    if exc.line is not None:
        return

    line, column = node_position(node)
    if line is None:
        return

    exc.line = line
    exc.column = column


def _ensure_recursion_headroom() -> None:
    needed = min(max_call_depth() * _PY_FRAMES_PER_CALL + 1000, _PY_RECURSION_CEILING)
    if sys.getrecursionlimit() < needed:
        sys.setrecursionlimit(needed)

# ---------------- Public API ----------------

def eval_expr(ast: Node, frame: Optional[Frame]=None, source: Optional[str]=None, out: Optional[TextIO]=None) -> Optional[Value]:
    """Evaluate a program (or a single statement) against `frame`.

    A missing frame means a fresh global scope. Returns the last statement's
    value, the value of a top-level `return`, or None for unit.
    """
    init_stdlib()
    _ensure_recursion_headroom()

    if frame is None:
        frame = Frame(source=source, out=out)
    else:
        if source is not None:
            frame.source = source
        if out is not None:
            frame.out = out

    stmts = ast.statements if isinstance(ast, Program) else (ast,)

    try:
        return eval_program(stmts, frame, eval_node)
    except RecursionError:
        raise EvalError("Evaluation nested too deeply") from None

# ---------------- Core evaluator ----------------

def eval_node(n: Node, frame: Frame) -> Optional[Value]:
    try:
        return _eval_node_inner(n, frame)
    except EvalError as e:
        _maybe_attach_location(e, n)
        raise


def _eval_node_inner(n: Node, frame: Frame) -> Optional[Value]:
    match n:
        case NumberLiteral(value=value):
            return value
        case SymbolRef(name=name):
            return frame.get(name)
        case Call():
            return _eval_call(n, frame)
        case If():
            return eval_if_stmt(n, frame, eval_node)
        case Loop():
            return eval_loop_stmt(n, frame, eval_node)
        case FunctionDef():
            return eval_fn_def(n, frame)
        case VariableDef():
            return eval_let(n, frame, eval_node)
        case Assign():
            return eval_set(n, frame, eval_node)
        case Return():
            return eval_return_stmt(n, frame, eval_node)
        case Break():
            return eval_break_stmt(frame)
        case Continue():
            return eval_continue_stmt(frame)
        case _:
            raise EvalError(f"Unknown node: {type(n).__name__}")


def _eval_call(n: Call, frame: Frame) -> Optional[Value]:
    # Arguments are always evaluated left to right before dispatch.
    args = [eval_node(arg, frame) for arg in n.args]

    if isinstance(n.target, Op):
        lhs, rhs = args
        return apply_op(n.target, lhs, rhs)

    cal = frame.get(n.target)
    return call_value(n.target, cal, args, frame, eval_node)
