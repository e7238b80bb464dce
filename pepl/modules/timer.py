"""
timer module

Timers are scheduling intents handed to the host. The library keeps no timer
state: the id a script passes in is the handle it gets back, and stopping an
unknown handle is a no-op.
"""

from __future__ import annotations

from typing import List
import logging

from pepl.runtime.args import expect_number, expect_string
from pepl.runtime.context import CallContext
from pepl.runtime.errors import invalid_argument
from pepl.runtime.host import TimerIntent
from pepl.runtime.registry import StdlibModule
from pepl.runtime.values import NIL, String, Value

logger = logging.getLogger(__name__)

module = StdlibModule("timer", doc="Host-scheduled timers")


def _schedule(ctx: CallContext, intent: TimerIntent) -> None:
    logger.debug(f"Timer intent: {intent.to_dict()}")
    if ctx.host is not None:
        ctx.host.schedule(intent)


def _start(fn: str, args: List[Value], ctx: CallContext, repeat: bool) -> Value:
    timer_id = expect_string(fn, args, 0)
    interval = expect_number(fn, args, 1)
    if interval < 0:
        raise invalid_argument(fn, "interval must be non-negative")
    _schedule(ctx, TimerIntent("start", timer_id, interval, repeat))
    return String(timer_id)


@module.function("start", 2)
def start(args: List[Value], ctx: CallContext) -> Value:
    """Repeating timer every `interval_ms`; returns the timer id."""
    return _start("timer.start", args, ctx, True)


@module.function("start_once", 2)
def start_once(args: List[Value], ctx: CallContext) -> Value:
    """One-shot timer after `delay_ms`; returns the timer id."""
    return _start("timer.start_once", args, ctx, False)


@module.function("stop", 1)
def stop(args: List[Value], ctx: CallContext) -> Value:
    _schedule(ctx, TimerIntent("stop", expect_string("timer.stop", args, 0)))
    return NIL


@module.function("stop_all", 0)
def stop_all(args: List[Value], ctx: CallContext) -> Value:
    _schedule(ctx, TimerIntent("stop_all"))
    return NIL
