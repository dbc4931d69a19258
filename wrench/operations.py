"""Binary operators applied to runtime values."""

from __future__ import annotations

import math
import operator as op
from typing import Any, Callable

from wrench.ast import Operator
from wrench.errors import InterpretationError

_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1


def _kind(value: Any) -> str | None:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "double"
    if isinstance(value, str):
        return "string"
    return None


def _i32(result: int, verb: str) -> int:
    if not _I32_MIN <= result <= _I32_MAX:
        raise InterpretationError(f"Interpretation error: attempt to {verb} with overflow")
    return result


def _int_add(left: int, right: int) -> int:
    return _i32(left + right, "add")


def _int_sub(left: int, right: int) -> int:
    return _i32(left - right, "subtract")


def _int_mul(left: int, right: int) -> int:
    return _i32(left * right, "multiply")


def _int_div(left: int, right: int) -> int:
    if right == 0:
        raise InterpretationError("Interpretation error: attempt to divide by zero")
    quotient = abs(left) // abs(right)
    return _i32(-quotient if (left < 0) != (right < 0) else quotient, "divide")


def _int_rem(left: int, right: int) -> int:
    if right == 0:
        raise InterpretationError(
            "Interpretation error: attempt to calculate the remainder with a divisor of zero"
        )
    if left == _I32_MIN and right == -1:
        raise InterpretationError(
            "Interpretation error: attempt to calculate the remainder with overflow"
        )
    remainder = abs(left) % abs(right)
    return -remainder if left < 0 else remainder


def _int_pow(base: int, exponent: int) -> int:
    exponent &= 0xFFFFFFFF  # the exponent is taken as an unsigned 32-bit value
    if abs(base) >= 2 and exponent > 31:
        raise InterpretationError("Interpretation error: attempt to multiply with overflow")
    return _i32(base**exponent, "multiply")


def _is_odd_integer(value: float) -> bool:
    return math.isfinite(value) and value.is_integer() and value % 2 == 1


def _float_div(left: float, right: float) -> float:
    try:
        return left / right
    except ZeroDivisionError:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)


def _float_rem(left: float, right: float) -> float:
    try:
        return math.fmod(left, right)
    except ValueError:
        return math.nan


def _float_pow(base: float, exponent: float) -> float:
    try:
        return math.pow(base, exponent)
    except OverflowError:
        return -math.inf if base < 0 and _is_odd_integer(exponent) else math.inf
    except ValueError:
        if base == 0:
            if _is_odd_integer(exponent):
                return math.copysign(math.inf, base)
            return math.inf
        return math.nan


_OPERATIONS: dict[tuple[Operator, str], Callable[[Any, Any], Any]] = {
    (Operator.ADDITION, "int"): _int_add,
    (Operator.ADDITION, "string"): op.add,
    (Operator.ADDITION, "double"): op.add,
    (Operator.SUBTRACTION, "int"): _int_sub,
    (Operator.SUBTRACTION, "double"): op.sub,
    (Operator.OR, "bool"): lambda left, right: left or right,
    (Operator.LESS_THAN, "int"): op.lt,
    (Operator.LESS_THAN, "double"): op.lt,
    (Operator.LESS_THAN_OR_EQUAL, "int"): op.le,
    (Operator.LESS_THAN_OR_EQUAL, "double"): op.le,
    (Operator.MULTIPLICATION, "int"): _int_mul,
    (Operator.MULTIPLICATION, "double"): op.mul,
    (Operator.MODULO, "int"): _int_rem,
    (Operator.MODULO, "double"): _float_rem,
    (Operator.EQUALS, "bool"): op.eq,
    (Operator.EQUALS, "int"): op.eq,
    (Operator.EQUALS, "string"): op.eq,
    (Operator.EQUALS, "double"): op.eq,
    (Operator.DIVISION, "int"): _int_div,
    (Operator.DIVISION, "double"): _float_div,
    (Operator.EXPONENT, "int"): _int_pow,
    (Operator.EXPONENT, "double"): _float_pow,
}


def evaluate_operation(left: Any, operator: Operator, right: Any) -> Any:
    """Apply a binary operator to two values of the same kind."""
    kind = _kind(left)
    if kind is not None and kind == _kind(right):
        function = _OPERATIONS.get((operator, kind))
        if function is not None:
            return function(left, right)
    raise InterpretationError(
        f"Interpretation error: Unsupported operation for {left!r} {operator.name} {right!r}"
    )