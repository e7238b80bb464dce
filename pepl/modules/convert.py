"""
convert module

Conversions that depend on outside data return Result values with a
ConvertError payload instead of trapping.
"""

from __future__ import annotations

from typing import List
import math
import re

from pepl.runtime.args import expect_string
from pepl.runtime.context import CallContext
from pepl.runtime.errors import ErrorKind
from pepl.runtime.registry import StdlibModule
from pepl.runtime.values import Bool, Number, String, Value, display, err_value, ok_value

module = StdlibModule("convert", doc="Value conversions")

_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_INT_RE = re.compile(r"[+-]?[0-9]+")

_I64_MIN = -(2 ** 63)
_I64_MAX = 2 ** 63 - 1
_I64_DIGITS = len(str(_I64_MAX))


def parse_decimal(text: str):
    """Finite float from decimal text, or None."""
    text = text.strip()
    if not _FLOAT_RE.fullmatch(text):
        return None
    value = float(text)
    return value if math.isfinite(value) else None


@module.function("to_string", 1)
def to_string(args: List[Value], ctx: CallContext) -> Value:
    text = display(args[0])
    ctx.charge_text(len(text), "convert.to_string")
    return String(text)


@module.function("to_number", 1)
def to_number(args: List[Value], ctx: CallContext) -> Value:
    """Number from a number, bool (0/1) or decimal string."""
    value = args[0]
    if isinstance(value, Number):
        return ok_value(value)
    if isinstance(value, Bool):
        return ok_value(Number(1 if value.value else 0))
    if isinstance(value, String):
        ctx.charge_text(len(value.value), "convert.to_number")
        parsed = parse_decimal(value.value)
        if parsed is None:
            return err_value(ErrorKind.CONVERT_ERROR, f"cannot convert '{value.value}' to number")
        return ok_value(Number(parsed))
    return err_value(ErrorKind.CONVERT_ERROR, f"cannot convert {value.type_name()} to number")


@module.function("parse_int", 1)
def parse_int(args: List[Value], ctx: CallContext) -> Value:
    """Integer from a string of digits; fractional text is rejected."""
    s = expect_string("convert.parse_int", args, 0)
    ctx.charge_text(len(s), "convert.parse_int")
    text = s.strip()
    if _INT_RE.fullmatch(text) and len(text.lstrip("+-").lstrip("0")) <= _I64_DIGITS:
        n = int(text)
        if _I64_MIN <= n <= _I64_MAX:
            return ok_value(Number(float(n)))
    return err_value(ErrorKind.CONVERT_ERROR, f"cannot parse '{s}' as integer")


@module.function("parse_float", 1)
def parse_float(args: List[Value], ctx: CallContext) -> Value:
    s = expect_string("convert.parse_float", args, 0)
    ctx.charge_text(len(s), "convert.parse_float")
    parsed = parse_decimal(s)
    if parsed is None:
        return err_value(ErrorKind.CONVERT_ERROR, f"cannot parse '{s}' as float")
    return ok_value(Number(parsed))


@module.function("to_bool", 1)
def to_bool(args: List[Value], ctx: CallContext) -> Value:
    """Truthiness: false, nil, 0 and "" are false."""
    return Bool(args[0].is_truthy())
