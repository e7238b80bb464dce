"""core module: log, assert, type_of, capability."""

from __future__ import annotations

from typing import List
import logging

from pepl.runtime.args import expect_bool, expect_string
from pepl.runtime.context import CallContext
from pepl.runtime.errors import ErrorKind, StdlibError
from pepl.runtime.host import CapabilityId
from pepl.runtime.registry import StdlibModule
from pepl.runtime.values import FALSE, NIL, Bool, String, Value, display

module = StdlibModule("core", doc="Core helpers")

script_logger = logging.getLogger("pepl.script")


@module.function("log", 1)
def log(args: List[Value], ctx: CallContext) -> Value:
    """Write the displayed value to the `pepl.script` logger."""
    text = display(args[0])
    ctx.charge_text(len(text), "core.log")
    script_logger.info(text)
    return NIL


@module.function("assert", 1, 2)
def assert_(args: List[Value], ctx: CallContext) -> Value:
    """Trap with AssertionFailed when the condition is false."""
    condition = expect_bool("core.assert", args, 0)
    message = expect_string("core.assert", args, 1) if len(args) > 1 else "assertion failed"
    if not condition:
        raise StdlibError(ErrorKind.ASSERTION_FAILED, message, "core.assert")
    return NIL


@module.function("type_of", 1)
def type_of(args: List[Value], ctx: CallContext) -> Value:
    return String(args[0].type_name())


@module.function("capability", 1)
def capability(args: List[Value], ctx: CallContext) -> Value:
    """Whether the named capability (`http`, `storage`, ...) is granted."""
    name = expect_string("core.capability", args, 0)
    try:
        cap_id = CapabilityId.parse(name)
    except ValueError:
        return FALSE
    return Bool(ctx.is_granted(cap_id))
