"""
PEPL JSON Codec

Depth-bounded recursive-descent JSON reader and canonical writer.

String tokens are scanned with the standard library's own JSON scanner;
numbers, structure, depth and position tracking live here.

Key functions:
- parse_json: text -> Value (traps ParseError / DepthExceeded)
- stringify: Value -> canonical minimal JSON text
- canonical_json: Plain Python data -> canonical JSON text
"""

from __future__ import annotations

from json.decoder import JSONDecodeError, scanstring
from typing import Any, Dict, List, Tuple
import json
import math
import re

from pepl.runtime.errors import ErrorKind, StdlibError
from pepl.runtime.values import (
    FALSE,
    MAX_VALUE_DEPTH,
    NIL,
    TRUE,
    ListValue,
    Number,
    Record,
    ResultValue,
    String,
    SumVariant,
    Value,
    to_python,
)

MAX_DEPTH = 32

# RFC 8259 number grammar; digits are ASCII only
NUMBER_RE = re.compile(r"-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][-+]?[0-9]+)?")

_WHITESPACE = " \t\n\r"


def canonical_json(obj: Any) -> str:
    """Canonical JSON: sorted keys, no insignificant whitespace."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def position_of(text: str, offset: int) -> Tuple[int, int]:
    """1-based (line, column) for a character offset."""
    line = text.count("\n", 0, offset) + 1
    column = offset - text.rfind("\n", 0, offset)
    return line, column


class JsonParseError(StdlibError):
    """ParseError trap carrying the location of the first syntax violation."""

    def __init__(self, message: str, text: str, offset: int, function: str = "json.parse"):
        line, column = position_of(text, offset)
        super().__init__(
            ErrorKind.PARSE_ERROR,
            f"{message}: line {line} column {column} (char {offset})",
            function,
        )
        self.line = line
        self.column = column
        self.offset = offset

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        out.update({"line": self.line, "column": self.column, "offset": self.offset})
        return out


class _Parser:
    def __init__(self, text: str, max_depth: int, function: str):
        self.text = text
        self.pos = 0
        self.max_depth = max_depth
        self.function = function

    def fail(self, message: str, offset: int = None):
        raise JsonParseError(message, self.text, self.pos if offset is None else offset, self.function)

    def skip_ws(self) -> None:
        text, pos = self.text, self.pos
        while pos < len(text) and text[pos] in _WHITESPACE:
            pos += 1
        self.pos = pos

    def parse(self) -> Value:
        self.skip_ws()
        value = self.value(0)
        self.skip_ws()
        if self.pos != len(self.text):
            self.fail("Extra data")
        return value

    def value(self, depth: int) -> Value:
        text = self.text
        if self.pos >= len(text):
            self.fail("Expecting value")
        ch = text[self.pos]
        if ch == "{":
            return self.object(depth + 1)
        if ch == "[":
            return self.array(depth + 1)
        if ch == '"':
            return String(self.string())
        if text.startswith("null", self.pos):
            self.pos += 4
            return NIL
        if text.startswith("true", self.pos):
            self.pos += 4
            return TRUE
        if text.startswith("false", self.pos):
            self.pos += 5
            return FALSE
        match = NUMBER_RE.match(text, self.pos)
        if match is None:
            self.fail("Expecting value")
        number = float(match.group(0))
        if not math.isfinite(number):
            self.fail("Number out of range")
        self.pos = match.end()
        return Number(number)

    def enter(self, depth: int) -> None:
        if depth > self.max_depth:
            raise StdlibError(
                ErrorKind.DEPTH_EXCEEDED,
                f"nesting exceeds maximum depth of {self.max_depth}",
                self.function,
            )

    def string(self) -> str:
        start = self.pos
        try:
            value, end = scanstring(self.text, start + 1, True)
        except JSONDecodeError as e:
            self.fail(e.msg, e.pos)
        for ch in value:
            if 0xD800 <= ord(ch) <= 0xDFFF:
                self.fail("Unpaired surrogate in string", start)
        self.pos = end
        return value

    def array(self, depth: int) -> ListValue:
        self.enter(depth)
        self.pos += 1
        items: List[Value] = []
        self.skip_ws()
        if self.text.startswith("]", self.pos):
            self.pos += 1
            return ListValue(())
        while True:
            self.skip_ws()
            items.append(self.value(depth))
            self.skip_ws()
            if self.text.startswith(",", self.pos):
                self.pos += 1
                continue
            if self.text.startswith("]", self.pos):
                self.pos += 1
                return ListValue(tuple(items))
            self.fail("Expecting ',' delimiter")

    def object(self, depth: int) -> Record:
        self.enter(depth)
        self.pos += 1
        fields: Dict[str, Value] = {}
        self.skip_ws()
        if self.text.startswith("}", self.pos):
            self.pos += 1
            return Record.of(fields)
        while True:
            self.skip_ws()
            if not self.text.startswith('"', self.pos):
                self.fail("Expecting property name enclosed in double quotes")
            key = self.string()
            self.skip_ws()
            if not self.text.startswith(":", self.pos):
                self.fail("Expecting ':' delimiter")
            self.pos += 1
            self.skip_ws()
            # duplicate keys: last one wins
            fields[key] = self.value(depth)
            self.skip_ws()
            if self.text.startswith(",", self.pos):
                self.pos += 1
                continue
            if self.text.startswith("}", self.pos):
                self.pos += 1
                return Record.of(fields)
            self.fail("Expecting ',' delimiter")


def parse_json(text: str, max_depth: int = MAX_DEPTH, function: str = "json.parse") -> Value:
    """
    Parse JSON text into a Value. Nesting deeper than `max_depth` containers
    traps; `max_depth` never exceeds the value nesting bound.
    """
    return _Parser(text, min(max_depth, MAX_VALUE_DEPTH), function).parse()


def stringify(value: Value) -> str:
    """Canonical minimal JSON for any Value."""
    return canonical_json(to_python(value))


def node_count(value: Value) -> int:
    """Number of values in a tree, used to price serialization."""
    if isinstance(value, ListValue):
        return 1 + sum(node_count(v) for v in value.items)
    if isinstance(value, Record):
        return 1 + sum(node_count(v) for v in value.values())
    if isinstance(value, SumVariant):
        return 1 + sum(node_count(v) for v in value.fields)
    if isinstance(value, ResultValue):
        return 1 + node_count(value.payload)
    return 1
