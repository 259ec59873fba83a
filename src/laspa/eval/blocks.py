from __future__ import annotations

from typing import Callable, Iterable, Optional

from ..runtime import Frame, ReturnSignal, Value
from ..tree import Stmt

EvalFunc = Callable[[Stmt, Frame], Optional[Value]]

def eval_block(stmts: Iterable[Stmt], frame: Frame, eval_func: EvalFunc) -> Optional[Value]:
    """Run statements in order in `frame`, returning the last value."""
    result: Optional[Value] = None

    for stmt in stmts:
        result = eval_func(stmt, frame)

    return result

def eval_program(stmts: Iterable[Stmt], frame: Frame, eval_func: EvalFunc) -> Optional[Value]:
    """Top-level statement list; a bare `return` ends the program with its value."""
    try:
        return eval_block(stmts, frame, eval_func)
    except ReturnSignal as signal:
        return signal.value
