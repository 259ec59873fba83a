"""Built-in functions (print) registered via laspa.runtime."""

from __future__ import annotations

from typing import List

from .runtime import Frame, Value, expect_number, format_number, register_stdlib

@register_stdlib("print", arity=1)
def std_print(frame: Frame, args: List[Value]) -> Value:
    value = expect_number("print", args[0])
    stream = frame.stream
    stream.write(format_number(value) + "\n")
    stream.flush()
    return value
