"""
PEPL Value Model

Closed set of runtime value kinds. Every value is immutable; operations that
"modify" a list or record return a new value.

Containers nest at most MAX_VALUE_DEPTH levels. Building a deeper one traps
with DepthExceeded, so every value that exists can be displayed, serialized
and digested.

Key classes:
- ValueKind: Tag for each variant of the union
- Number, String, Bool, Nil, ListValue, Record, SumVariant, FunctionValue,
  ResultValue: the variants
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple, Union
import math

from pepl.runtime.errors import ErrorKind, StdlibError


class ValueKind(Enum):
    NUMBER = "number"
    STRING = "string"
    BOOL = "bool"
    NIL = "nil"
    LIST = "list"
    RECORD = "record"
    VARIANT = "variant"
    FUNCTION = "function"
    RESULT = "result"


class Value:
    """Base class for all PEPL runtime values."""

    __slots__ = ()
    kind: ValueKind

    def type_name(self) -> str:
        return self.kind.value

    def is_truthy(self) -> bool:
        return True

    def display(self) -> str:
        return display(self)


MAX_VALUE_DEPTH = 128


def depth_of(value: Value) -> int:
    """Container nesting depth; scalars are 0."""
    return getattr(value, "_depth", 0)


def _set_depth(container: Value, children: Iterable[Value]) -> None:
    depth = 1 + max((depth_of(c) for c in children), default=0)
    if depth > MAX_VALUE_DEPTH:
        raise StdlibError(
            ErrorKind.DEPTH_EXCEEDED,
            f"values may nest at most {MAX_VALUE_DEPTH} deep",
        )
    object.__setattr__(container, "_depth", depth)



@dataclass(frozen=True)
class Number(Value):
    """
    Finite 64-bit float.

    NaN and +/-Infinity are never constructed: building one traps with
    ArithmeticError at the failure site.
    """
    value: float
    kind = ValueKind.NUMBER

    def __post_init__(self):
        raw = self.value
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise TypeError(f"Number requires int or float, got {type(raw).__name__}")
        try:
            v = float(raw)
        except OverflowError:
            raise StdlibError(ErrorKind.ARITHMETIC_ERROR, "number out of range")
        if not math.isfinite(v):
            raise StdlibError(
                ErrorKind.ARITHMETIC_ERROR,
                "operation would produce NaN" if math.isnan(v) else "operation would produce infinity",
            )
        # -0.0 and 0.0 are the same value
        if v == 0.0:
            v = 0.0
        object.__setattr__(self, "value", v)

    def is_truthy(self) -> bool:
        return self.value != 0.0

    def is_integral(self) -> bool:
        return self.value.is_integer()


@dataclass(frozen=True)
class String(Value):
    value: str
    kind = ValueKind.STRING

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise TypeError(f"String requires str, got {type(self.value).__name__}")

    def is_truthy(self) -> bool:
        return self.value != ""


@dataclass(frozen=True)
class Bool(Value):
    value: bool
    kind = ValueKind.BOOL

    def __post_init__(self):
        if not isinstance(self.value, bool):
            raise TypeError(f"Bool requires bool, got {type(self.value).__name__}")

    def is_truthy(self) -> bool:
        return self.value


@dataclass(frozen=True)
class Nil(Value):
    kind = ValueKind.NIL

    def is_truthy(self) -> bool:
        return False


NIL = Nil()
TRUE = Bool(True)
FALSE = Bool(False)


@dataclass(frozen=True)
class ListValue(Value):
    """Immutable ordered sequence of values."""
    items: Tuple[Value, ...] = ()
    kind = ValueKind.LIST

    def __post_init__(self):
        items = tuple(self.items)
        for item in items:
            if not isinstance(item, Value):
                raise TypeError(f"list element must be a Value, got {type(item).__name__}")
        _set_depth(self, items)
        object.__setattr__(self, "items", items)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Value]:
        return iter(self.items)

    def __getitem__(self, index: int) -> Value:
        return self.items[index]


@dataclass(frozen=True)
class Record(Value):
    """
    Immutable String -> Value mapping kept in canonical key-sorted order.

    Enumeration order depends only on the key set, never on insertion order.
    `declared_type` is metadata for named record types and does not take part
    in equality.
    """
    entries: Tuple[Tuple[str, Value], ...] = ()
    declared_type: Optional[str] = field(default=None, compare=False)
    kind = ValueKind.RECORD

    def __post_init__(self):
        source = self.entries
        pairs = source.items() if isinstance(source, Mapping) else source
        index: Dict[str, Value] = {}
        for key, value in pairs:
            if not isinstance(key, str):
                raise TypeError(f"record key must be str, got {type(key).__name__}")
            if not isinstance(value, Value):
                raise TypeError(f"record value must be a Value, got {type(value).__name__}")
            index[key] = value
        _set_depth(self, index.values())
        object.__setattr__(self, "entries", tuple(sorted(index.items(), key=lambda kv: kv[0])))
        object.__setattr__(self, "_index", index)

    @classmethod
    def of(cls, mapping: Union[Mapping[str, Value], Iterable[Tuple[str, Value]], None] = None,
           declared_type: Optional[str] = None, **fields: Value) -> "Record":
        pairs = list(mapping.items() if isinstance(mapping, Mapping) else (mapping or []))
        pairs.extend(fields.items())
        return cls(tuple(pairs), declared_type)

    def type_name(self) -> str:
        return self.declared_type or self.kind.value

    def get(self, key: str, default: Optional[Value] = None) -> Optional[Value]:
        return self._index.get(key, default)

    def has(self, key: str) -> bool:
        return key in self._index

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def __len__(self) -> int:
        return len(self.entries)

    def keys(self) -> Tuple[str, ...]:
        return tuple(k for k, _ in self.entries)

    def values(self) -> Tuple[Value, ...]:
        return tuple(v for _, v in self.entries)

    def items(self) -> Tuple[Tuple[str, Value], ...]:
        return self.entries

    def set(self, key: str, value: Value) -> "Record":
        updated = dict(self._index)
        updated[key] = value
        return Record(tuple(updated.items()), self.declared_type)

    def remove(self, key: str) -> "Record":
        if key not in self._index:
            return self
        return Record(tuple(kv for kv in self.entries if kv[0] != key), self.declared_type)

    def merge(self, other: "Record") -> "Record":
        updated = dict(self._index)
        updated.update(other._index)
        return Record(tuple(updated.items()), self.declared_type)


@dataclass(frozen=True)
class SumVariant(Value):
    """User-defined algebraic data: `Shape.Circle(5, 10)`."""
    sum_type: str
    variant: str
    fields: Tuple[Value, ...] = ()
    kind = ValueKind.VARIANT

    def __post_init__(self):
        fields = tuple(self.fields)
        for item in fields:
            if not isinstance(item, Value):
                raise TypeError(f"variant field must be a Value, got {type(item).__name__}")
        _set_depth(self, fields)
        object.__setattr__(self, "fields", fields)

    def type_name(self) -> str:
        return self.sum_type

    @property
    def arity(self) -> int:
        return len(self.fields)


@dataclass(frozen=True, eq=False)
class FunctionValue(Value):
    """
    Opaque callback handle.

    The library never looks inside `handle`; it is passed back to the
    evaluator-supplied invoker on the CallContext.
    """
    handle: Any
    name: str = "<fn>"
    kind = ValueKind.FUNCTION

    def __eq__(self, other: object) -> bool:
        return isinstance(other, FunctionValue) and self.handle is other.handle

    def __hash__(self) -> int:
        return id(self.handle)


@dataclass(frozen=True)
class ResultValue(Value):
    """Ok(value) or Err(error record)."""
    ok: bool
    payload: Value
    kind = ValueKind.RESULT

    def __post_init__(self):
        if not isinstance(self.payload, Value):
            raise TypeError(f"result payload must be a Value, got {type(self.payload).__name__}")
        _set_depth(self, (self.payload,))

    @property
    def is_ok(self) -> bool:
        return self.ok

    @property
    def is_err(self) -> bool:
        return not self.ok


def ok_value(value: Value) -> ResultValue:
    return ResultValue(True, value)


def err_value(kind: ErrorKind, message: str, **extra: Value) -> ResultValue:
    """Build an Err carrying a typed error record `{kind, message, ...}`."""
    if kind.is_trap:
        raise ValueError(f"{kind.value} is a trap kind, not a Result error")
    fields: Dict[str, Value] = {"kind": String(kind.value), "message": String(message)}
    fields.update(extra)
    return ResultValue(False, Record.of(fields))


# -----------------------------
# Display
# -----------------------------

def format_number(n: float) -> str:
    """Shortest text for a finite float; integral values print without a decimal point."""
    if n.is_integer() and abs(n) < 1e16:
        return str(int(n))
    return repr(n)


def display(value: Value, nested: bool = False) -> str:
    """
    Human-readable rendering used by convert.to_string, string.from and
    string.format. Strings are quoted only inside lists and records.
    """
    if isinstance(value, Number):
        return format_number(value.value)
    if isinstance(value, String):
        return f'"{value.value}"' if nested else value.value
    if isinstance(value, Bool):
        return "true" if value.value else "false"
    if isinstance(value, Nil):
        return "nil"
    if isinstance(value, ListValue):
        return "[" + ", ".join(display(v, True) for v in value.items) + "]"
    if isinstance(value, Record):
        body = ", ".join(f"{k}: {display(v, True)}" for k, v in value.entries)
        return f"{value.declared_type or ''}{{{body}}}"
    if isinstance(value, SumVariant):
        if not value.fields:
            return value.variant
        return value.variant + "(" + ", ".join(display(v, True) for v in value.fields) + ")"
    if isinstance(value, FunctionValue):
        return f"<function {value.name}>"
    if isinstance(value, ResultValue):
        return ("Ok(" if value.ok else "Err(") + display(value.payload, True) + ")"
    raise TypeError(f"not a PEPL value: {type(value).__name__}")


# -----------------------------
# Python interop (CLI / API edges)
# -----------------------------

def from_python(obj: Any, _depth: int = 0) -> Value:
    """Convert plain Python data (JSON-like) into a Value."""
    if isinstance(obj, Value):
        return obj
    if obj is None:
        return NIL
    if isinstance(obj, bool):
        return Bool(obj)
    if isinstance(obj, (int, float)):
        return Number(obj)
    if isinstance(obj, str):
        return String(obj)
    if isinstance(obj, (list, tuple, Mapping)) and _depth >= MAX_VALUE_DEPTH:
        raise StdlibError(ErrorKind.DEPTH_EXCEEDED, f"values may nest at most {MAX_VALUE_DEPTH} deep")
    if isinstance(obj, (list, tuple)):
        return ListValue(tuple(from_python(o, _depth + 1) for o in obj))
    if isinstance(obj, Mapping):
        return Record.of({str(k): from_python(v, _depth + 1) for k, v in obj.items()})
    if callable(obj):
        return FunctionValue(obj, getattr(obj, "__name__", "<fn>"))
    raise TypeError(f"cannot convert {type(obj).__name__} to a PEPL value")


def to_python(value: Value) -> Any:
    """Convert a Value into plain Python data."""
    if isinstance(value, (Number, String, Bool)):
        if isinstance(value, Number) and value.is_integral() and abs(value.value) < 1e16:
            return int(value.value)
        return value.value
    if isinstance(value, Nil):
        return None
    if isinstance(value, ListValue):
        return [to_python(v) for v in value.items]
    if isinstance(value, Record):
        return {k: to_python(v) for k, v in value.entries}
    if isinstance(value, SumVariant):
        out: Dict[str, Any] = {"_type": value.sum_type, "_variant": value.variant}
        if value.fields:
            out["_fields"] = [to_python(v) for v in value.fields]
        return out
    if isinstance(value, ResultValue):
        return {"ok" if value.ok else "err": to_python(value.payload)}
    if isinstance(value, FunctionValue):
        return "<function>"
    raise TypeError(f"not a PEPL value: {type(value).__name__}")
