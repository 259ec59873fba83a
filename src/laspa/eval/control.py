from __future__ import annotations

from typing import Any, Callable

from ..runtime import BreakSignal, ContinueSignal, Frame, ReturnSignal
from ..tree import Return

EvalFunc = Callable[[Any, Frame], Any]

def eval_return_stmt(n: Return, frame: Frame, eval_func: EvalFunc) -> Any:
    value = eval_func(n.value, frame) if n.value is not None else None

    raise ReturnSignal(value)

def eval_break_stmt(frame: Frame) -> Any:
    raise BreakSignal()

def eval_continue_stmt(frame: Frame) -> Any:
    raise ContinueSignal()
