from __future__ import annotations

from ..runtime import Value, TypeMismatch, format_value

def is_truthy(val: Value) -> bool:
    match val:
        case float():
            return val != 0
        case _:
            raise TypeMismatch(f"Condition must be a number; got {format_value(val)}")
