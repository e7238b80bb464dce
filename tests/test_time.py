"""Test the time and timer modules."""
import pytest

from pepl.runtime.errors import ErrorKind, StdlibError
from pepl.runtime.host import TimerIntent
from pepl.runtime.values import NIL, Number, String

# 2023-11-14T22:13:20Z, a Tuesday
TS = 1_700_000_000_000


class TestTime:
    """Tests for deterministic time helpers."""

    def test_now_is_injected(self, dispatcher):
        ctx = dispatcher.new_context(now=TS)
        assert dispatcher.call_by_name("time", "now", [], ctx) == Number(TS)

    def test_now_without_timestamp_traps(self, call):
        with pytest.raises(StdlibError) as exc:
            call("time", "now")
        assert exc.value.kind == ErrorKind.INVALID_ARGUMENT

    @pytest.mark.parametrize("ts,expected", [
        (0, "1970-01-01 00:00:00"),
        (TS, "2023-11-14 22:13:20"),
        (-1, "1969-12-31 23:59:59"),
        (951_782_400_000, "2000-02-29 00:00:00"),
    ])
    def test_format(self, call, ts, expected):
        assert call("time", "format", ts, "YYYY-MM-DD HH:mm:ss") == String(expected)

    def test_format_leaves_other_text(self, call):
        assert call("time", "format", 0, "DD/MM at HHh") == String("01/01 at 00h")

    def test_diff(self, call):
        assert call("time", "diff", 5000, 2000) == Number(3000)
        assert call("time", "diff", 2000, 5000) == Number(-3000)

    def test_day_of_week(self, call):
        assert call("time", "day_of_week", 0) == Number(4)
        assert call("time", "day_of_week", TS) == Number(2)
        assert call("time", "day_of_week", -1) == Number(3)

    def test_start_of_day(self, call):
        assert call("time", "start_of_day", TS) == Number(1_699_920_000_000)
        assert call("time", "start_of_day", -1) == Number(-86_400_000)


class TestTimer:
    """Timers only forward intents to the host."""

    def test_start_returns_id(self, dispatcher, host):
        ctx = dispatcher.new_context(host=host)
        result = dispatcher.call_by_name("timer", "start", [String("tick"), Number(1000)], ctx)
        assert result == String("tick")
        assert host.intents == [TimerIntent("start", "tick", 1000.0, True)]

    def test_start_once(self, dispatcher, host):
        ctx = dispatcher.new_context(host=host)
        dispatcher.call_by_name("timer", "start_once", [String("later"), Number(50)], ctx)
        assert host.intents[0].repeat is False
        assert host.intents[0].interval_ms == 50

    def test_stop_and_stop_all(self, dispatcher, host):
        ctx = dispatcher.new_context(host=host)
        assert dispatcher.call_by_name("timer", "stop", [String("unknown")], ctx) == NIL
        assert dispatcher.call_by_name("timer", "stop_all", [], ctx) == NIL
        assert [i.action for i in host.intents] == ["stop", "stop_all"]

    def test_negative_interval(self, call):
        with pytest.raises(StdlibError) as exc:
            call("timer", "start", "t", -1)
        assert exc.value.kind == ErrorKind.INVALID_ARGUMENT

    def test_without_host(self, call):
        """Timers need no grant and work without a host attached."""
        assert call("timer", "start", "t", 10) == String("t")
