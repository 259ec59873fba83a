from __future__ import annotations

from typing import Callable, Optional

from ..runtime import BreakSignal, ContinueSignal, Frame, Value
from ..tree import If, Loop, Node
from .blocks import eval_block
from .helpers import is_truthy as _is_truthy

EvalFunc = Callable[[Node, Frame], Optional[Value]]

def eval_if_stmt(n: If, frame: Frame, eval_func: EvalFunc) -> Optional[Value]:
    if _is_truthy(eval_func(n.condition, frame)):
        return eval_block(n.then_branch, frame, eval_func)

    if n.else_branch is None:
        return None

    return eval_block(n.else_branch, frame, eval_func)

def eval_loop_stmt(n: Loop, frame: Frame, eval_func: EvalFunc) -> None:
    """Condition-first loop; the body shares the enclosing frame."""
    while _is_truthy(eval_func(n.condition, frame)):
        try:
            eval_block(n.body, frame, eval_func)
        except BreakSignal:
            break
        except ContinueSignal:
            continue

    return None
