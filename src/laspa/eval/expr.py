from __future__ import annotations

import math

from ..runtime import DivisionByZero, Value, expect_number
from ..token_types import Op

def _flag(cond: bool) -> float:
    return 1.0 if cond else 0.0

def apply_op(op: Op, lhs_val: Value, rhs_val: Value) -> float:
    """Binary operators over IEEE-754 doubles; comparisons yield 1.0 or 0.0."""
    lhs = expect_number(op.value, lhs_val)
    rhs = expect_number(op.value, rhs_val)

    match op:
        case Op.ADD:
            return lhs + rhs
        case Op.SUB:
            return lhs - rhs
        case Op.MUL:
            return lhs * rhs
        case Op.DIV:
            if rhs == 0:
                raise DivisionByZero(op.value)
            return lhs / rhs
        case Op.MOD:
            if rhs == 0:
                raise DivisionByZero(op.value)
            if math.isinf(lhs):
                return math.nan  # math.fmod raises on an infinite dividend
            return math.fmod(lhs, rhs)
        case Op.GT:
            return _flag(lhs > rhs)
        case Op.LT:
            return _flag(lhs < rhs)
        case Op.GTE:
            return _flag(lhs >= rhs)
        case Op.LTE:
            return _flag(lhs <= rhs)
        case Op.EQ:
            return _flag(lhs == rhs)
        case Op.NEQ:
            return _flag(lhs != rhs)
