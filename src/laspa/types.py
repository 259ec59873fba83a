from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, TextIO, Tuple
from typing_extensions import TypeAlias

from .tree import Stmt

# ---------- Value Model ----------
#
# Numbers are plain floats; functions are the only other runtime value.

@dataclass
class Function:
    name: str
    params: Tuple[str, ...]
    body: Tuple[Stmt, ...]
    frame: 'Frame'                   # Defining frame (lexical closure)

    @property
    def arity(self) -> int:
        return len(self.params)

    def __repr__(self) -> str:
        param_desc = ", ".join(self.params) if self.params else "nullary"
        return f"<fn {self.name} params={param_desc}>"

StdlibFn = Callable[['Frame', List['Value']], 'Value']

@dataclass(frozen=True)
class Builtin:
    name: str
    fn: StdlibFn
    arity: int

    def __repr__(self) -> str:
        return f"<builtin {self.name}/{self.arity}>"

Value: TypeAlias = float | Function | Builtin

def format_number(value: float) -> str:
    return str(int(value)) if value.is_integer() else str(value)

def format_value(value: Optional[Value]) -> str:
    if value is None:
        return "()"
    if isinstance(value, float):
        return format_number(value)
    return repr(value)

class Frame:
    def __init__(self, parent: Optional['Frame']=None, source: Optional[str]=None, out: Optional[TextIO]=None):
        self.parent = parent
        self.vars: Dict[str, Value] = {}
        self.depth: int = parent.depth if parent is not None else 0
        self.source: Optional[str]
        self.out: Optional[TextIO]

        if source is not None:
            self.source = source
        elif parent is not None:
            self.source = parent.source
        else:
            self.source = None

        if out is not None:
            self.out = out
        elif parent is not None:
            self.out = parent.out
        else:
            self.out = None

    @property
    def stream(self) -> TextIO:
        return self.out if self.out is not None else sys.stdout

    def define(self, name: str, val: Value) -> None:
        self.vars[name] = val

    def get(self, name: str) -> Value:
        frame: Optional[Frame] = self

        while frame is not None:
            if name in frame.vars:
                return frame.vars[name]
            frame = frame.parent

        std = Builtins.stdlib_functions.get(name)
        if std is not None:
            return std

        raise UndefinedSymbol(name)

    def set(self, name: str, val: Value) -> None:
        frame: Optional[Frame] = self

        while frame is not None:
            if name in frame.vars:
                frame.vars[name] = val
                return
            frame = frame.parent

        raise UndefinedSymbol(name)

    def child(self, depth: Optional[int]=None) -> 'Frame':
        """Fresh scope whose parent is this frame.

        Call frames hang off the callee's defining frame but count depth from
        the caller, so the caller passes its own depth + 1.
        """
        frame = Frame(parent=self)
        frame.depth = self.depth + 1 if depth is None else depth
        return frame

    def root(self) -> 'Frame':
        frame = self
        while frame.parent is not None:
            frame = frame.parent
        return frame

# ---------- Exceptions ----------

class EvalError(Exception):
    """Runtime failure; fatal to the current evaluation run."""

    def __init__(self, message: str, name: Optional[str]=None):
        super().__init__(message)
        self.message = message
        self.name = name
        self.line: Optional[int] = None
        self.column: Optional[int] = None

    def __str__(self) -> str:
        msg = self.message

        if self.line is None:
            return msg

        if self.column is None:
            return f"{msg} (line {self.line})"

        return f"{msg} (line {self.line}, col {self.column})"

class UndefinedSymbol(EvalError):
    def __init__(self, name: str):
        super().__init__(f"Undefined symbol '{name}'", name)

class NotCallable(EvalError):
    def __init__(self, name: str, value: Value):
        super().__init__(f"'{name}' is not a function (got {format_value(value)})", name)
        self.value = value

class ArityMismatch(EvalError):
    def __init__(self, name: str, expected: int, got: int):
        super().__init__(f"'{name}' expects {expected} argument(s); got {got}", name)
        self.expected = expected
        self.got = got

class DivisionByZero(EvalError):
    def __init__(self, op: str):
        super().__init__(f"Division by zero in '{op}'", op)

class TypeMismatch(EvalError):
    pass

class RecursionLimit(EvalError):
    def __init__(self, name: str, limit: int):
        super().__init__(f"Maximum call depth {limit} exceeded calling '{name}'", name)
        self.limit = limit

class ReturnSignal(Exception):
    """Internal control-flow exception used to implement `return`."""
    def __init__(self, value: Optional[Value]):
        self.value = value

class BreakSignal(Exception):
    """Internal control flow for `break`."""

class ContinueSignal(Exception):
    """Internal control flow for `continue`."""

class Builtins:
    stdlib_functions: Dict[str, Builtin] = {}
