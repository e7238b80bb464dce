"""
record module

Copy-on-write record access. Keys always enumerate in sorted order,
whatever order they were inserted in.
"""

from __future__ import annotations

from typing import List

from pepl.runtime.args import expect_record, expect_string
from pepl.runtime.context import CallContext
from pepl.runtime.registry import StdlibModule
from pepl.runtime.values import NIL, Bool, ListValue, Number, Record, String, Value

module = StdlibModule("record", doc="Ordered record functions")


@module.function("get", 2)
def get(args: List[Value], ctx: CallContext) -> Value:
    """Field value, or nil when the key is missing."""
    rec = expect_record("record.get", args, 0)
    key = expect_string("record.get", args, 1)
    return rec.get(key, NIL)


@module.function("set", 3)
def set_(args: List[Value], ctx: CallContext) -> Value:
    """New record with `key` set; the input is unchanged."""
    rec = expect_record("record.set", args, 0)
    key = expect_string("record.set", args, 1)
    ctx.charge_elements(len(rec), "record.set")
    return rec.set(key, args[2])


@module.function("has", 2)
def has(args: List[Value], ctx: CallContext) -> Value:
    rec = expect_record("record.has", args, 0)
    return Bool(rec.has(expect_string("record.has", args, 1)))


@module.function("keys", 1)
def keys(args: List[Value], ctx: CallContext) -> Value:
    rec = expect_record("record.keys", args, 0)
    ctx.charge_elements(len(rec), "record.keys")
    return ListValue(tuple(String(k) for k in rec.keys()))


@module.function("values", 1)
def values(args: List[Value], ctx: CallContext) -> Value:
    """Values in key order."""
    rec = expect_record("record.values", args, 0)
    ctx.charge_elements(len(rec), "record.values")
    return ListValue(rec.values())


@module.function("remove", 2)
def remove(args: List[Value], ctx: CallContext) -> Value:
    rec = expect_record("record.remove", args, 0)
    key = expect_string("record.remove", args, 1)
    ctx.charge_elements(len(rec), "record.remove")
    return rec.remove(key)


@module.function("merge", 2)
def merge(args: List[Value], ctx: CallContext) -> Value:
    """Fields of both records; the second record wins on shared keys."""
    a = expect_record("record.merge", args, 0)
    b = expect_record("record.merge", args, 1)
    ctx.charge_elements(len(a) + len(b), "record.merge")
    return a.merge(b)


@module.function("entries", 1)
def entries(args: List[Value], ctx: CallContext) -> Value:
    """List of `{key, value}` records in key order."""
    rec = expect_record("record.entries", args, 0)
    ctx.charge_elements(len(rec), "record.entries")
    return ListValue(tuple(Record.of(key=String(k), value=v) for k, v in rec.items()))


@module.function("size", 1)
def size(args: List[Value], ctx: CallContext) -> Value:
    return Number(len(expect_record("record.size", args, 0)))
