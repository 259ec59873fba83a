from __future__ import annotations

from typing import Callable, List, Optional

from loguru import logger

from ..runtime import (
    ArityMismatch,
    Builtin,
    Frame,
    Function,
    NotCallable,
    RecursionLimit,
    ReturnSignal,
    Value,
)
from ..tree import FunctionDef, Node
from ..utils import max_call_depth
from .blocks import eval_block

EvalFunc = Callable[[Node, Frame], Optional[Value]]

def eval_fn_def(n: FunctionDef, frame: Frame) -> None:
    frame.define(n.name, Function(name=n.name, params=n.params, body=n.body, frame=frame))

    return None

def call_value(name: str, cal: Value, args: List[Value], frame: Frame, eval_func: EvalFunc) -> Optional[Value]:
    match cal:
        case Builtin(fn=fn, arity=arity):
            if len(args) != arity:
                raise ArityMismatch(name, arity, len(args))
            return fn(frame, args)
        case Function():
            return call_function(cal, args, frame, eval_func)
        case _:
            raise NotCallable(name, cal)

def call_function(fn: Function, positional: List[Value], caller_frame: Frame, eval_func: EvalFunc) -> Optional[Value]:
    """
    Call semantics:
    - arity must match len(fn.params)
    - params bind positionally in a fresh frame whose parent is the
      function's defining frame
    - the body's last statement value is the result unless `return` fires
    """
    if len(positional) != fn.arity:
        raise ArityMismatch(fn.name, fn.arity, len(positional))

    limit = max_call_depth()
    if caller_frame.depth >= limit:
        raise RecursionLimit(fn.name, limit)

    callee_frame = fn.frame.child(depth=caller_frame.depth + 1)

    for name, val in zip(fn.params, positional):
        callee_frame.define(name, val)

    logger.trace("call {} depth={} args={}", fn.name, callee_frame.depth, positional)

    try:
        return eval_block(fn.body, callee_frame, eval_func)
    except ReturnSignal as signal:
        return signal.value
