"""
list module

Persistent list operations. Every operation returns a new ListValue; the
receiver is never mutated. Lookup misses are values (nil / -1); structural
misuse traps.

Higher-order functions charge one element per item visited and one callback
per invocation, through CallContext.call_function.
"""

from __future__ import annotations

from functools import cmp_to_key
from typing import List

from pepl.runtime.args import expect_count, expect_function, expect_int, expect_list
from pepl.runtime.context import CallContext
from pepl.runtime.errors import ErrorKind, StdlibError, invalid_argument, type_mismatch
from pepl.runtime.registry import StdlibModule
from pepl.runtime.values import FALSE, NIL, TRUE, Bool, ListValue, Number, Record, String, Value

module = StdlibModule("list", doc="Persistent list functions")


def _items(fn: str, args: List[Value], ctx: CallContext, index: int = 0) -> List[Value]:
    items = list(expect_list(fn, args, index))
    ctx.charge_elements(len(items), fn)
    return items


def natural_compare(fn: str, a: Value, b: Value) -> int:
    """Order numbers numerically and strings by code point; anything else traps."""
    if isinstance(a, Number) and isinstance(b, Number):
        x, y = a.value, b.value
    elif isinstance(a, String) and isinstance(b, String):
        x, y = a.value, b.value
    else:
        raise StdlibError(
            ErrorKind.TYPE_ERROR,
            f"cannot order {a.type_name()} against {b.type_name()}",
            fn,
        )
    return (x > y) - (x < y)


# -----------------------------
# Construction
# -----------------------------

@module.function("empty", 0)
def empty(args: List[Value], ctx: CallContext) -> Value:
    return ListValue(())


@module.function("of", 0, None)
def of(args: List[Value], ctx: CallContext) -> Value:
    """List of all arguments."""
    ctx.charge_elements(len(args), "list.of")
    return ListValue(tuple(args))


@module.function("repeat", 2)
def repeat(args: List[Value], ctx: CallContext) -> Value:
    """`count` copies of a value."""
    count = expect_count("list.repeat", args, 1)
    ctx.charge_elements(count, "list.repeat")
    return ListValue((args[0],) * count)


@module.function("range", 2)
def range_(args: List[Value], ctx: CallContext) -> Value:
    """Numbers from start (inclusive) to end (exclusive)."""
    start = expect_int("list.range", args, 0, "start")
    end = expect_int("list.range", args, 1, "end")
    if end <= start:
        return ListValue(())
    size = end - start
    if size > ctx.config.max_range:
        raise invalid_argument(
            "list.range", f"range too large (max {ctx.config.max_range:,} elements)"
        )
    ctx.charge_elements(size, "list.range")
    return ListValue(tuple(Number(i) for i in range(start, end)))


# -----------------------------
# Access
# -----------------------------

@module.function("length", 1)
def length(args: List[Value], ctx: CallContext) -> Value:
    return Number(len(expect_list("list.length", args, 0)))


@module.function("get", 2)
def get(args: List[Value], ctx: CallContext) -> Value:
    """Element at index, or nil when out of range."""
    items = expect_list("list.get", args, 0)
    index = expect_int("list.get", args, 1)
    if index < 0 or index >= len(items):
        return NIL
    return items[index]


@module.function("first", 1)
def first(args: List[Value], ctx: CallContext) -> Value:
    items = expect_list("list.first", args, 0)
    return items[0] if len(items) else NIL


@module.function("last", 1)
def last(args: List[Value], ctx: CallContext) -> Value:
    items = expect_list("list.last", args, 0)
    return items[-1] if len(items) else NIL


@module.function("index_of", 2)
def index_of(args: List[Value], ctx: CallContext) -> Value:
    items = _items("list.index_of", args, ctx)
    for i, item in enumerate(items):
        if item == args[1]:
            return Number(i)
    return Number(-1)


# -----------------------------
# Modification
# -----------------------------

@module.function("append", 2)
def append(args: List[Value], ctx: CallContext) -> Value:
    items = _items("list.append", args, ctx)
    return ListValue(tuple(items) + (args[1],))


@module.function("prepend", 2)
def prepend(args: List[Value], ctx: CallContext) -> Value:
    items = _items("list.prepend", args, ctx)
    return ListValue((args[1],) + tuple(items))


def _out_of_bounds(fn: str, index: int, size: int) -> StdlibError:
    return invalid_argument(fn, f"index {index} out of bounds for list of length {size}")


@module.function("insert", 3)
def insert(args: List[Value], ctx: CallContext) -> Value:
    """Insert at index; index may equal the length."""
    items = _items("list.insert", args, ctx)
    index = expect_int("list.insert", args, 1)
    if index < 0 or index > len(items):
        raise _out_of_bounds("list.insert", index, len(items))
    items.insert(index, args[2])
    return ListValue(tuple(items))


@module.function("remove", 2)
def remove(args: List[Value], ctx: CallContext) -> Value:
    items = _items("list.remove", args, ctx)
    index = expect_int("list.remove", args, 1)
    if index < 0 or index >= len(items):
        raise _out_of_bounds("list.remove", index, len(items))
    del items[index]
    return ListValue(tuple(items))


@module.function("update", 3, aliases=("set",))
def update(args: List[Value], ctx: CallContext) -> Value:
    """Replace the element at index."""
    items = _items("list.update", args, ctx)
    index = expect_int("list.update", args, 1)
    if index < 0 or index >= len(items):
        raise _out_of_bounds("list.update", index, len(items))
    items[index] = args[2]
    return ListValue(tuple(items))


@module.function("slice", 3)
def slice_(args: List[Value], ctx: CallContext) -> Value:
    """Elements [start, end), clamped to the list bounds."""
    items = _items("list.slice", args, ctx)
    size = len(items)
    start = min(max(expect_int("list.slice", args, 1), 0), size)
    end = min(max(expect_int("list.slice", args, 2), 0), size)
    if start >= end:
        return ListValue(())
    return ListValue(tuple(items[start:end]))


@module.function("concat", 2)
def concat(args: List[Value], ctx: CallContext) -> Value:
    a = _items("list.concat", args, ctx, 0)
    b = _items("list.concat", args, ctx, 1)
    return ListValue(tuple(a + b))


@module.function("reverse", 1)
def reverse(args: List[Value], ctx: CallContext) -> Value:
    items = _items("list.reverse", args, ctx)
    return ListValue(tuple(reversed(items)))


@module.function("flatten", 1)
def flatten(args: List[Value], ctx: CallContext) -> Value:
    """Flatten one level of nesting; non-list elements are kept as they are."""
    out: List[Value] = []
    for item in _items("list.flatten", args, ctx):
        if isinstance(item, ListValue):
            ctx.charge_elements(len(item), "list.flatten")
            out.extend(item.items)
        else:
            out.append(item)
    return ListValue(tuple(out))


@module.function("unique", 1)
def unique(args: List[Value], ctx: CallContext) -> Value:
    """Remove duplicates, keeping the first occurrence."""
    out: List[Value] = []
    for item in _items("list.unique", args, ctx):
        if item not in out:
            ctx.charge_elements(len(out), "list.unique")
            out.append(item)
    return ListValue(tuple(out))


# -----------------------------
# Higher-order
# -----------------------------

@module.function("map", 2)
def map_(args: List[Value], ctx: CallContext) -> Value:
    items = _items("list.map", args, ctx)
    f = expect_function("list.map", args, 1)
    return ListValue(tuple(ctx.call_function(f, [item], "list.map") for item in items))


@module.function("filter", 2)
def filter_(args: List[Value], ctx: CallContext) -> Value:
    items = _items("list.filter", args, ctx)
    pred = expect_function("list.filter", args, 1)
    return ListValue(tuple(
        item for item in items if ctx.call_function(pred, [item], "list.filter").is_truthy()
    ))


@module.function("reduce", 3)
def reduce_(args: List[Value], ctx: CallContext) -> Value:
    """Fold left: f(accumulator, item)."""
    items = _items("list.reduce", args, ctx)
    f = expect_function("list.reduce", args, 2)
    acc = args[1]
    for item in items:
        acc = ctx.call_function(f, [acc, item], "list.reduce")
    return acc


@module.function("find", 2)
def find(args: List[Value], ctx: CallContext) -> Value:
    items = _items("list.find", args, ctx)
    pred = expect_function("list.find", args, 1)
    for item in items:
        if ctx.call_function(pred, [item], "list.find").is_truthy():
            return item
    return NIL


@module.function("find_index", 2)
def find_index(args: List[Value], ctx: CallContext) -> Value:
    items = _items("list.find_index", args, ctx)
    pred = expect_function("list.find_index", args, 1)
    for i, item in enumerate(items):
        if ctx.call_function(pred, [item], "list.find_index").is_truthy():
            return Number(i)
    return Number(-1)


@module.function("every", 2)
def every(args: List[Value], ctx: CallContext) -> Value:
    items = _items("list.every", args, ctx)
    pred = expect_function("list.every", args, 1)
    for item in items:
        if not ctx.call_function(pred, [item], "list.every").is_truthy():
            return FALSE
    return TRUE


@module.function("any", 2, aliases=("some",))
def any_(args: List[Value], ctx: CallContext) -> Value:
    items = _items("list.any", args, ctx)
    pred = expect_function("list.any", args, 1)
    for item in items:
        if ctx.call_function(pred, [item], "list.any").is_truthy():
            return TRUE
    return FALSE


@module.function("count", 2)
def count(args: List[Value], ctx: CallContext) -> Value:
    items = _items("list.count", args, ctx)
    pred = expect_function("list.count", args, 1)
    return Number(sum(1 for item in items if ctx.call_function(pred, [item], "list.count").is_truthy()))


@module.function("sort", 1, 2)
def sort(args: List[Value], ctx: CallContext) -> Value:
    """
    Stable sort. The comparator `fn(a, b) -> number` returns negative, zero
    or positive; without one, numbers or strings sort in natural order.
    A trapping comparator aborts the whole sort.
    """
    items = _items("list.sort", args, ctx)
    if len(args) == 1:
        return ListValue(tuple(sorted(items, key=cmp_to_key(lambda a, b: natural_compare("list.sort", a, b)))))

    cmp = expect_function("list.sort", args, 1)

    def compare(a: Value, b: Value) -> int:
        result = ctx.call_function(cmp, [a, b], "list.sort")
        if not isinstance(result, Number):
            raise type_mismatch("list.sort", 2, "comparator returning number", result.type_name())
        return (result.value > 0) - (result.value < 0)

    return ListValue(tuple(sorted(items, key=cmp_to_key(compare))))


@module.function("sort_by", 2)
def sort_by(args: List[Value], ctx: CallContext) -> Value:
    """Stable sort by the natural order of a key function's results."""
    items = _items("list.sort_by", args, ctx)
    key_fn = expect_function("list.sort_by", args, 1)
    keyed = [(ctx.call_function(key_fn, [item], "list.sort_by"), item) for item in items]
    keyed.sort(key=cmp_to_key(lambda a, b: natural_compare("list.sort_by", a[0], b[0])))
    return ListValue(tuple(item for _, item in keyed))


@module.function("flat_map", 2)
def flat_map(args: List[Value], ctx: CallContext) -> Value:
    """Map, then flatten one level."""
    items = _items("list.flat_map", args, ctx)
    f = expect_function("list.flat_map", args, 1)
    out: List[Value] = []
    for item in items:
        mapped = ctx.call_function(f, [item], "list.flat_map")
        if isinstance(mapped, ListValue):
            ctx.charge_elements(len(mapped), "list.flat_map")
            out.extend(mapped.items)
        else:
            out.append(mapped)
    return ListValue(tuple(out))


# -----------------------------
# Query
# -----------------------------

@module.function("contains", 2)
def contains(args: List[Value], ctx: CallContext) -> Value:
    items = _items("list.contains", args, ctx)
    return Bool(args[1] in items)


@module.function("zip", 2)
def zip_(args: List[Value], ctx: CallContext) -> Value:
    """Pair elements into `{first, second}` records, stopping at the shorter list."""
    a = expect_list("list.zip", args, 0)
    b = expect_list("list.zip", args, 1)
    ctx.charge_elements(min(len(a), len(b)), "list.zip")
    return ListValue(tuple(Record.of(first=x, second=y) for x, y in zip(a, b)))


@module.function("take", 2)
def take(args: List[Value], ctx: CallContext) -> Value:
    items = expect_list("list.take", args, 0)
    n = min(expect_count("list.take", args, 1), len(items))
    ctx.charge_elements(n, "list.take")
    return ListValue(items.items[:n])


@module.function("drop", 2)
def drop(args: List[Value], ctx: CallContext) -> Value:
    items = expect_list("list.drop", args, 0)
    n = min(expect_count("list.drop", args, 1), len(items))
    ctx.charge_elements(len(items) - n, "list.drop")
    return ListValue(items.items[n:])
