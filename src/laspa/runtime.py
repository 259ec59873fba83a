from __future__ import annotations

import importlib
from typing import Dict

from .types import (
    Function, Builtin, StdlibFn, Value, Frame, Builtins,
    EvalError, UndefinedSymbol, NotCallable, ArityMismatch, DivisionByZero,
    TypeMismatch, RecursionLimit,
    ReturnSignal, BreakSignal, ContinueSignal,
    format_number, format_value,
)

__all__ = [
    "Function", "Builtin", "StdlibFn", "Value", "Frame", "Builtins",
    "EvalError", "UndefinedSymbol", "NotCallable", "ArityMismatch", "DivisionByZero",
    "TypeMismatch", "RecursionLimit",
    "ReturnSignal", "BreakSignal", "ContinueSignal",
    "format_number", "format_value",
    "init_stdlib", "register_stdlib", "stdlib_arities",
]

_STDLIB_INITIALIZED = False

def init_stdlib() -> None:
    """Load stdlib modules (idempotent) so register_stdlib hooks run."""
    global _STDLIB_INITIALIZED

    if _STDLIB_INITIALIZED:
        return

    importlib.import_module("laspa.stdlib")
    _STDLIB_INITIALIZED = True

def register_stdlib(name: str, *, arity: int):
    def dec(fn: StdlibFn):
        Builtins.stdlib_functions[name] = Builtin(name=name, fn=fn, arity=arity)
        return fn

    return dec

def stdlib_arities() -> Dict[str, int]:
    """Arity of every builtin, for call resolution at parse time."""
    init_stdlib()
    return {name: std.arity for name, std in Builtins.stdlib_functions.items()}

def expect_number(name: str, value: Value) -> float:
    if isinstance(value, float):
        return value

    raise TypeMismatch(f"'{name}' expects a number; got {format_value(value)}", name)
