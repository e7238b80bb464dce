"""
math module

Deterministic arithmetic. No function returns NaN or Infinity: every
non-finite intermediate traps with ArithmeticError.
"""

from __future__ import annotations

from typing import List
import math

from pepl.runtime.args import expect_number
from pepl.runtime.context import CallContext
from pepl.runtime.errors import arithmetic_error, invalid_argument
from pepl.runtime.registry import StdlibModule
from pepl.runtime.values import Number, Value

module = StdlibModule("math", doc="Deterministic numeric functions")

PI = 3.141592653589793
E = 2.718281828459045


def round_half_up(a: float) -> float:
    """Round to the nearest integer, ties toward +infinity."""
    floor = math.floor(a)
    return float(floor + 1 if a - floor >= 0.5 else floor)


def _finite(fn: str, result: float) -> Number:
    if math.isnan(result):
        raise arithmetic_error(fn, "operation would produce NaN")
    if math.isinf(result):
        raise arithmetic_error(fn, "operation would produce infinity")
    return Number(result)


@module.function("abs", 1)
def abs_(args: List[Value], ctx: CallContext) -> Value:
    """Absolute value."""
    return Number(abs(expect_number("math.abs", args, 0)))


@module.function("min", 2)
def min_(args: List[Value], ctx: CallContext) -> Value:
    """Smaller of two numbers."""
    return Number(min(expect_number("math.min", args, 0), expect_number("math.min", args, 1)))


@module.function("max", 2)
def max_(args: List[Value], ctx: CallContext) -> Value:
    """Larger of two numbers."""
    return Number(max(expect_number("math.max", args, 0), expect_number("math.max", args, 1)))


@module.function("floor", 1)
def floor(args: List[Value], ctx: CallContext) -> Value:
    return Number(float(math.floor(expect_number("math.floor", args, 0))))


@module.function("ceil", 1)
def ceil(args: List[Value], ctx: CallContext) -> Value:
    return Number(float(math.ceil(expect_number("math.ceil", args, 0))))


@module.function("round", 1)
def round_(args: List[Value], ctx: CallContext) -> Value:
    """Round to nearest integer; 0.5 rounds up, -0.5 rounds to 0."""
    return Number(round_half_up(expect_number("math.round", args, 0)))


@module.function("round_to", 2)
def round_to(args: List[Value], ctx: CallContext) -> Value:
    """Round to N decimal places with the same half-up rule."""
    a = expect_number("math.round_to", args, 0)
    decimals = expect_number("math.round_to", args, 1)
    if decimals < 0 or not decimals.is_integer():
        raise invalid_argument("math.round_to", "decimals must be a non-negative integer")
    try:
        factor = 10.0 ** int(decimals)
    except OverflowError:
        return Number(a)
    scaled = a * factor
    # past float precision rounding is the identity
    if not math.isfinite(scaled):
        return Number(a)
    return _finite("math.round_to", round_half_up(scaled) / factor)


@module.function("pow", 2)
def pow_(args: List[Value], ctx: CallContext) -> Value:
    """Exponentiation; traps when the result is undefined or overflows."""
    base = expect_number("math.pow", args, 0)
    exp = expect_number("math.pow", args, 1)
    try:
        result = math.pow(base, exp)
    except ValueError:
        raise arithmetic_error("math.pow", f"{base!r} ** {exp!r} is undefined")
    except OverflowError:
        raise arithmetic_error("math.pow", "operation would produce infinity")
    return _finite("math.pow", result)


@module.function("clamp", 3)
def clamp(args: List[Value], ctx: CallContext) -> Value:
    """Clamp value to [min, max]."""
    value = expect_number("math.clamp", args, 0)
    low = expect_number("math.clamp", args, 1)
    high = expect_number("math.clamp", args, 2)
    if low > high:
        raise invalid_argument("math.clamp", "min must be <= max")
    return Number(min(max(value, low), high))


@module.function("sqrt", 1)
def sqrt(args: List[Value], ctx: CallContext) -> Value:
    a = expect_number("math.sqrt", args, 0)
    if a < 0:
        raise arithmetic_error("math.sqrt", "cannot take square root of negative number")
    return Number(math.sqrt(a))


@module.function("PI", 0)
def pi(args: List[Value], ctx: CallContext) -> Value:
    return Number(PI)


@module.function("E", 0)
def e(args: List[Value], ctx: CallContext) -> Value:
    return Number(E)
