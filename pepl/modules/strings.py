"""
string module

Lengths and offsets count grapheme clusters (user-perceived characters), so
"e" + U+0301 is one character and an emoji ZWJ sequence is one character.
Searches, splits and replacements match whole graphemes and compare their
NFC forms, so "e" never matches inside "e" + U+0301.
"""

from __future__ import annotations

from typing import List
import unicodedata

import regex

from pepl.runtime.args import expect_count, expect_list, expect_number, expect_record, expect_string
from pepl.runtime.context import CallContext
from pepl.runtime.errors import type_mismatch
from pepl.runtime.registry import StdlibModule
from pepl.runtime.values import FALSE, TRUE, Bool, ListValue, Number, String, Value, display

module = StdlibModule("string", doc="Grapheme-aware string functions")

_GRAPHEME = regex.compile(r"\X")


def graphemes(s: str) -> List[str]:
    return _GRAPHEME.findall(s)


def normalized_graphemes(s: str) -> List[str]:
    """Graphemes of `s`, each NFC-normalized; offsets match `graphemes(s)`."""
    return [unicodedata.normalize("NFC", g) for g in graphemes(s)]


def find_graphemes(haystack: List[str], needle: List[str], start: int = 0) -> int:
    """Index of the first occurrence of `needle` in `haystack` at or after `start`, or -1."""
    if not needle:
        return start
    width = len(needle)
    first = needle[0]
    for i in range(start, len(haystack) - width + 1):
        if haystack[i] == first and haystack[i:i + width] == needle:
            return i
    return -1


def split_graphemes(s: str, delimiter: str, limit: int = -1) -> List[str]:
    """
    Split `s` on whole-grapheme matches of `delimiter`, comparing NFC forms.

    Unmatched text is returned as written. At most `limit` splits are made
    when `limit` is non-negative.
    """
    parts = graphemes(s)
    keys = [unicodedata.normalize("NFC", g) for g in parts]
    needle = normalized_graphemes(delimiter)
    pieces: List[str] = []
    pos = 0
    while limit < 0 or len(pieces) < limit:
        found = find_graphemes(keys, needle, pos)
        if found < 0:
            break
        pieces.append("".join(parts[pos:found]))
        pos = found + len(needle)
    pieces.append("".join(parts[pos:]))
    return pieces


def _text_args(fn: str, args: List[Value], ctx: CallContext, count: int) -> List[str]:
    texts = [expect_string(fn, args, i) for i in range(count)]
    ctx.charge_text(sum(len(t) for t in texts), fn)
    return texts


@module.function("length", 1)
def length(args: List[Value], ctx: CallContext) -> Value:
    """Number of grapheme clusters."""
    (s,) = _text_args("string.length", args, ctx, 1)
    return Number(len(graphemes(s)))


@module.function("concat", 2)
def concat(args: List[Value], ctx: CallContext) -> Value:
    a, b = _text_args("string.concat", args, ctx, 2)
    return String(a + b)


@module.function("contains", 2)
def contains(args: List[Value], ctx: CallContext) -> Value:
    haystack, needle = _text_args("string.contains", args, ctx, 2)
    found = find_graphemes(normalized_graphemes(haystack), normalized_graphemes(needle))
    return TRUE if found >= 0 else FALSE


@module.function("slice", 3)
def slice_(args: List[Value], ctx: CallContext) -> Value:
    """Substring by grapheme offsets [start, end); out-of-range offsets clamp, inverted ranges give ""."""
    s = expect_string("string.slice", args, 0)
    start = expect_number("string.slice", args, 1)
    end = expect_number("string.slice", args, 2)
    ctx.charge_text(len(s), "string.slice")
    parts = graphemes(s)
    size = len(parts)
    start = min(max(int(start), 0), size)
    end = min(max(int(end), 0), size)
    if start >= end:
        return String("")
    return String("".join(parts[start:end]))


@module.function("trim", 1)
def trim(args: List[Value], ctx: CallContext) -> Value:
    (s,) = _text_args("string.trim", args, ctx, 1)
    return String(s.strip())


@module.function("split", 2)
def split(args: List[Value], ctx: CallContext) -> Value:
    """Split on a delimiter; an empty delimiter splits into graphemes."""
    s, delimiter = _text_args("string.split", args, ctx, 2)
    parts = graphemes(s) if delimiter == "" else split_graphemes(s, delimiter)
    ctx.charge_elements(len(parts), "string.split")
    return ListValue(tuple(String(p) for p in parts))


@module.function("to_upper", 1)
def to_upper(args: List[Value], ctx: CallContext) -> Value:
    (s,) = _text_args("string.to_upper", args, ctx, 1)
    return String(s.upper())


@module.function("to_lower", 1)
def to_lower(args: List[Value], ctx: CallContext) -> Value:
    (s,) = _text_args("string.to_lower", args, ctx, 1)
    return String(s.lower())


@module.function("starts_with", 2)
def starts_with(args: List[Value], ctx: CallContext) -> Value:
    s, prefix = _text_args("string.starts_with", args, ctx, 2)
    head, want = normalized_graphemes(s), normalized_graphemes(prefix)
    return Bool(head[:len(want)] == want)


@module.function("ends_with", 2)
def ends_with(args: List[Value], ctx: CallContext) -> Value:
    s, suffix = _text_args("string.ends_with", args, ctx, 2)
    tail, want = normalized_graphemes(s), normalized_graphemes(suffix)
    if not want:
        return TRUE
    return Bool(tail[-len(want):] == want)


@module.function("replace", 3)
def replace(args: List[Value], ctx: CallContext) -> Value:
    """Replace the first occurrence only."""
    s, old, new = _text_args("string.replace", args, ctx, 3)
    if old == "":
        return String(s)
    return String(new.join(split_graphemes(s, old, 1)))


@module.function("replace_all", 3)
def replace_all(args: List[Value], ctx: CallContext) -> Value:
    s, old, new = _text_args("string.replace_all", args, ctx, 3)
    if old == "":
        return String(s)
    pieces = split_graphemes(s, old)
    if len(new) > len(old):
        ctx.charge_text((len(pieces) - 1) * (len(new) - len(old)), "string.replace_all")
    return String(new.join(pieces))


def _pad(fn: str, args: List[Value], ctx: CallContext, at_start: bool) -> Value:
    s = expect_string(fn, args, 0)
    target = expect_number(fn, args, 1)
    pad = expect_string(fn, args, 2)
    ctx.charge_text(len(s) + len(pad), fn)
    current = len(graphemes(s))
    pad_parts = graphemes(pad)
    if not pad_parts or target <= current:
        return String(s)
    needed = int(target) - current
    if needed <= 0:
        return String(s)
    ctx.charge_text(needed, fn)
    padding = "".join(pad_parts[i % len(pad_parts)] for i in range(needed))
    return String(padding + s if at_start else s + padding)


@module.function("pad_start", 3)
def pad_start(args: List[Value], ctx: CallContext) -> Value:
    """Pad on the left to `length` graphemes, cycling the pad string."""
    return _pad("string.pad_start", args, ctx, True)


@module.function("pad_end", 3)
def pad_end(args: List[Value], ctx: CallContext) -> Value:
    """Pad on the right to `length` graphemes, cycling the pad string."""
    return _pad("string.pad_end", args, ctx, False)


@module.function("repeat", 2)
def repeat(args: List[Value], ctx: CallContext) -> Value:
    s = expect_string("string.repeat", args, 0)
    count = expect_count("string.repeat", args, 1)
    ctx.charge_text(len(s) * count, "string.repeat")
    return String(s * count)


@module.function("join", 2)
def join(args: List[Value], ctx: CallContext) -> Value:
    items = expect_list("string.join", args, 0)
    separator = expect_string("string.join", args, 1)
    ctx.charge_elements(len(items), "string.join")
    parts = []
    for i, item in enumerate(items):
        if not isinstance(item, String):
            raise type_mismatch("string.join", i + 1, "string", item.type_name())
        parts.append(item.value)
    ctx.charge_text(sum(len(p) for p in parts) + len(separator) * max(len(parts) - 1, 0), "string.join")
    return String(separator.join(parts))


@module.function("format", 2)
def format_(args: List[Value], ctx: CallContext) -> Value:
    """
    Replace `{key}` placeholders with displayed record values.

    One left-to-right pass over the template. Unknown keys, `{}` and an
    unclosed `{` stay as literal text; substituted text is never rescanned.
    """
    template = expect_string("string.format", args, 0)
    values = expect_record("string.format", args, 1)
    ctx.charge_text(len(template), "string.format")
    out: List[str] = []
    i = 0
    size = len(template)
    while i < size:
        ch = template[i]
        if ch == "{":
            close = template.find("}", i + 1)
            if close == -1:
                out.append(template[i:])
                break
            key = template[i + 1:close]
            if key and "{" not in key and values.has(key):
                text = display(values.get(key))
                ctx.charge_text(len(text), "string.format")
                out.append(text)
                i = close + 1
                continue
        out.append(ch)
        i += 1
    return String("".join(out))


@module.function("from", 1)
def from_(args: List[Value], ctx: CallContext) -> Value:
    """Display text of any value."""
    text = display(args[0])
    ctx.charge_text(len(text), "string.from")
    return String(text)


@module.function("is_empty", 1)
def is_empty(args: List[Value], ctx: CallContext) -> Value:
    return Bool(expect_string("string.is_empty", args, 0) == "")


@module.function("index_of", 2)
def index_of(args: List[Value], ctx: CallContext) -> Value:
    """Grapheme index of the first occurrence of `sub`, or -1."""
    s, sub = _text_args("string.index_of", args, ctx, 2)
    return Number(find_graphemes(normalized_graphemes(s), normalized_graphemes(sub)))
