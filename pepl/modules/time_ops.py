"""
time module

Timestamps are UTC milliseconds since the Unix epoch. The library keeps no
clock: `time.now` returns the timestamp the host injected into the
CallContext, so replays see the same time.
"""

from __future__ import annotations

from typing import List, Tuple
import math
import re

from pepl.runtime.args import expect_number, expect_string
from pepl.runtime.context import CallContext
from pepl.runtime.errors import invalid_argument
from pepl.runtime.registry import StdlibModule
from pepl.runtime.values import Number, String, Value

module = StdlibModule("time", doc="Deterministic date and time helpers")

MS_PER_SECOND = 1000
MS_PER_DAY = 86_400_000

_FORMAT_TOKEN = re.compile(r"YYYY|MM|DD|HH|mm|ss")


def days_to_civil(days: int) -> Tuple[int, int, int]:
    """(year, month, day) for a count of days since 1970-01-01."""
    z = days + 719468
    era = (z if z >= 0 else z - 146096) // 146097
    doe = z - era * 146097
    yoe = (doe - doe // 1460 + doe // 36524 - doe // 146096) // 365
    y = yoe + era * 400
    doy = doe - (365 * yoe + yoe // 4 - yoe // 100)
    mp = (5 * doy + 2) // 153
    d = doy - (153 * mp + 2) // 5 + 1
    m = mp + 3 if mp < 10 else mp - 9
    return (y + 1 if m <= 2 else y), m, d


def timestamp_parts(ts: float) -> Tuple[int, int, int, int, int, int]:
    total_sec = math.trunc(ts) // MS_PER_SECOND
    total_min, sec = divmod(total_sec, 60)
    total_hour, minute = divmod(total_min, 60)
    days, hour = divmod(total_hour, 24)
    year, month, day = days_to_civil(days)
    return year, month, day, hour, minute, sec


@module.function("now", 0)
def now(args: List[Value], ctx: CallContext) -> Value:
    """The host-supplied timestamp for this execution."""
    if ctx.now is None:
        raise invalid_argument("time.now", "no timestamp was supplied by the host")
    return Number(ctx.now)


@module.function("format", 2)
def format_(args: List[Value], ctx: CallContext) -> Value:
    """Replace YYYY, MM, DD, HH, mm and ss in the pattern with UTC date parts."""
    ts = expect_number("time.format", args, 0)
    pattern = expect_string("time.format", args, 1)
    ctx.charge_text(len(pattern), "time.format")
    year, month, day, hour, minute, sec = timestamp_parts(ts)
    parts = {
        "YYYY": f"{year:04d}",
        "MM": f"{month:02d}",
        "DD": f"{day:02d}",
        "HH": f"{hour:02d}",
        "mm": f"{minute:02d}",
        "ss": f"{sec:02d}",
    }
    return String(_FORMAT_TOKEN.sub(lambda m: parts[m.group(0)], pattern))


@module.function("diff", 2)
def diff(args: List[Value], ctx: CallContext) -> Value:
    """a - b in milliseconds."""
    return Number(expect_number("time.diff", args, 0) - expect_number("time.diff", args, 1))


@module.function("day_of_week", 1)
def day_of_week(args: List[Value], ctx: CallContext) -> Value:
    """0 (Sunday) through 6 (Saturday); 1970-01-01 was a Thursday."""
    days = math.floor(expect_number("time.day_of_week", args, 0) / MS_PER_DAY)
    return Number((days + 4) % 7)


@module.function("start_of_day", 1)
def start_of_day(args: List[Value], ctx: CallContext) -> Value:
    """Midnight UTC of the timestamp's day."""
    ts = expect_number("time.start_of_day", args, 0)
    return Number(math.floor(ts / MS_PER_DAY) * MS_PER_DAY)
