from __future__ import annotations

from typing import Callable

from ..runtime import Frame, Value
from ..tree import Assign, Node, VariableDef

EvalFunc = Callable[[Node, Frame], Value]

def eval_let(n: VariableDef, frame: Frame, eval_func: EvalFunc) -> Value:
    """Bind (or rebind in place) in the current frame."""
    value = eval_func(n.value, frame)
    frame.define(n.name, value)
    return value

def eval_set(n: Assign, frame: Frame, eval_func: EvalFunc) -> Value:
    """Update the nearest enclosing binding; never creates one."""
    value = eval_func(n.value, frame)
    frame.set(n.name, value)
    return value
