"""Argument coercion helpers shared by the built-in modules."""

from __future__ import annotations

from typing import List

from pepl.runtime.errors import invalid_argument, type_mismatch
from pepl.runtime.values import (
    Bool,
    FunctionValue,
    ListValue,
    Number,
    Record,
    String,
    Value,
)


def _arg(fn: str, args: List[Value], index: int, cls: type, expected: str) -> Value:
    value = args[index]
    if not isinstance(value, cls):
        raise type_mismatch(fn, index + 1, expected, value.type_name())
    return value


def expect_number(fn: str, args: List[Value], index: int) -> float:
    return _arg(fn, args, index, Number, "number").value


def expect_string(fn: str, args: List[Value], index: int) -> str:
    return _arg(fn, args, index, String, "string").value


def expect_bool(fn: str, args: List[Value], index: int) -> bool:
    return _arg(fn, args, index, Bool, "bool").value


def expect_list(fn: str, args: List[Value], index: int) -> ListValue:
    return _arg(fn, args, index, ListValue, "list")


def expect_record(fn: str, args: List[Value], index: int) -> Record:
    return _arg(fn, args, index, Record, "record")


def expect_function(fn: str, args: List[Value], index: int) -> FunctionValue:
    return _arg(fn, args, index, FunctionValue, "function")


def expect_int(fn: str, args: List[Value], index: int, what: str = "index") -> int:
    """A Number argument that must hold an integral value."""
    value = expect_number(fn, args, index)
    if not value.is_integer():
        raise invalid_argument(fn, f"{what} must be an integer, got {value!r}")
    return int(value)


def expect_count(fn: str, args: List[Value], index: int, what: str = "count") -> int:
    """A non-negative integral Number argument."""
    value = expect_int(fn, args, index, what)
    if value < 0:
        raise invalid_argument(fn, f"{what} must be non-negative, got {value}")
    return value
