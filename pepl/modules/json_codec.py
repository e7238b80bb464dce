"""json module: parse and stringify."""

from __future__ import annotations

from typing import List

from pepl.runtime.args import expect_string
from pepl.runtime.codec import node_count, parse_json, stringify
from pepl.runtime.context import CallContext
from pepl.runtime.registry import StdlibModule
from pepl.runtime.values import String, Value

module = StdlibModule("json", doc="Depth-bounded JSON codec")


@module.function("parse", 1)
def parse(args: List[Value], ctx: CallContext) -> Value:
    """
    Parse JSON text.

    Syntax errors trap ParseError with line, column and offset; nesting past
    the configured depth traps DepthExceeded.
    """
    text = expect_string("json.parse", args, 0)
    ctx.charge_text(len(text), "json.parse")
    return parse_json(text, ctx.config.max_json_depth)


@module.function("stringify", 1)
def stringify_(args: List[Value], ctx: CallContext) -> Value:
    """Canonical JSON text for any value."""
    ctx.charge_elements(node_count(args[0]), "json.stringify")
    return String(stringify(args[0]))
