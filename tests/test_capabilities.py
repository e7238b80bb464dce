"""Test the capability bridge (http, storage, location, notifications)."""
import pytest

from pepl.host import ScriptedHost, http_response
from pepl.runtime.errors import ErrorKind, StdlibError
from pepl.runtime.host import CapabilityId, HostResponse
from pepl.runtime.values import NIL, ListValue, Number, Record, String, from_python, ok_value, to_python

ALL = ["http", "storage", "location", "notifications"]


@pytest.fixture
def granted(dispatcher, host):
    """Call helper with every capability granted and the scripted host attached."""
    ctx = dispatcher.new_context(gas=10_000, grants=ALL, host=host)

    def _call(module, function, *args):
        return dispatcher.call_by_name(module, function, [from_python(a) for a in args], ctx)

    return _call


class TestGating:
    """Calls without a grant never reach the host."""

    @pytest.mark.parametrize("module,function,args", [
        ("http", "get", ["https://example.com"]),
        ("storage", "get", ["k"]),
        ("storage", "keys", []),
        ("location", "current", []),
        ("notifications", "send", ["t", "b"]),
    ])
    def test_denied_without_grant(self, dispatcher, host, module, function, args):
        ctx = dispatcher.new_context(host=host)
        with pytest.raises(StdlibError) as exc:
            dispatcher.call_by_name(module, function, [from_python(a) for a in args], ctx)
        assert exc.value.kind == ErrorKind.CAPABILITY_DENIED
        assert host.requests == []

    def test_shape_checked_before_grant(self, dispatcher, host):
        ctx = dispatcher.new_context(host=host)
        with pytest.raises(StdlibError) as exc:
            dispatcher.call_by_name("storage", "get", [Number(1)], ctx)
        assert exc.value.kind == ErrorKind.TYPE_ERROR
        assert host.requests == []

    def test_other_grant_does_not_help(self, dispatcher, host):
        ctx = dispatcher.new_context(host=host, grants=["storage"])
        with pytest.raises(StdlibError) as exc:
            dispatcher.call_by_name("http", "get", [String("https://example.com")], ctx)
        assert exc.value.kind == ErrorKind.CAPABILITY_DENIED

    def test_no_host_attached(self, dispatcher):
        ctx = dispatcher.new_context(grants=["storage"])
        with pytest.raises(StdlibError) as exc:
            dispatcher.call_by_name("storage", "get", [String("k")], ctx)
        assert exc.value.kind == ErrorKind.CAPABILITY_DENIED

    def test_host_call_gas(self, dispatcher, host):
        ctx = dispatcher.new_context(gas=100, grants=["storage"], host=host)
        dispatcher.call_by_name("storage", "keys", [], ctx)
        # one call + one host call
        assert ctx.gas_used == 11

    def test_gas_checked_before_host(self, dispatcher, host):
        ctx = dispatcher.new_context(gas=5, grants=["storage"], host=host)
        with pytest.raises(StdlibError) as exc:
            dispatcher.call_by_name("storage", "keys", [], ctx)
        assert exc.value.kind == ErrorKind.GAS_EXHAUSTED
        assert host.requests == []


class TestStorage:
    """Tests for the storage capability."""

    def test_set_then_get(self, granted):
        assert granted("storage", "set", "k", "v") == ok_value(NIL)
        assert granted("storage", "get", "k") == ok_value(String("v"))

    def test_missing_key_is_err(self, granted):
        result = granted("storage", "get", "missing")
        assert result.is_err
        payload = to_python(result)["err"]
        assert payload["kind"] == "StorageError"
        assert payload["code"] == "not_found"

    def test_keys_and_delete(self, granted):
        granted("storage", "set", "b", "2")
        granted("storage", "set", "a", "1")
        assert granted("storage", "keys") == ok_value(from_python(["a", "b"]))
        granted("storage", "delete", "a")
        assert granted("storage", "keys") == ok_value(from_python(["b"]))

    def test_request_shape(self, granted, host):
        granted("storage", "set", "k", "v")
        request = host.requests[0]
        assert request.cap_id == CapabilityId.STORAGE
        assert request.to_dict() == {"cap_id": 2, "method": "set", "payload": {"key": "k", "value": "v"}}


class TestHttp:
    """Tests for the http capability."""

    def test_routed_get(self, granted, host):
        host.route("get", "https://example.com", http_response(200, "hello"))
        result = granted("http", "get", "https://example.com")
        assert result.is_ok
        assert to_python(result)["ok"] == {"status": 200, "body": "hello", "headers": {}}

    def test_options_forwarded(self, granted, host):
        host.route("post", "https://api", http_response(201))
        granted("http", "post", "https://api", "{}", {"headers": {"x": "1"}})
        payload = host.requests[0].payload
        assert payload.keys() == ("body", "options", "url")
        assert payload.get("options") == from_python({"headers": {"x": "1"}})

    def test_callable_route(self, granted, host):
        host.route("put", "https://api", lambda request: HostResponse.success(request.payload.get("body")))
        assert granted("http", "put", "https://api", "data") == ok_value(String("data"))

    def test_failure_relayed_once(self, granted, host):
        result = granted("http", "delete", "https://nowhere")
        assert to_python(result)["err"]["kind"] == "HttpError"
        assert len(host.requests) == 1

    def test_body_required(self, granted):
        with pytest.raises(StdlibError) as exc:
            granted("http", "post", "https://api")
        assert exc.value.kind == ErrorKind.TYPE_ERROR

    def test_options_must_be_record(self, granted):
        with pytest.raises(StdlibError) as exc:
            granted("http", "get", "https://api", "not a record")
        assert exc.value.kind == ErrorKind.TYPE_ERROR
        assert exc.value.message == "argument 2 expected record, got string"


class TestLocationAndNotifications:
    """Tests for location and notifications."""

    def test_location(self, dispatcher):
        host = ScriptedHost(location=(51.5, -0.125))
        ctx = dispatcher.new_context(grants=["location"], host=host)
        result = dispatcher.call_by_name("location", "current", [], ctx)
        assert result == ok_value(Record.of(latitude=Number(51.5), longitude=Number(-0.125)))

    def test_location_unavailable(self, granted):
        result = granted("location", "current")
        assert to_python(result)["err"]["kind"] == "LocationError"

    def test_notification(self, granted, host):
        assert granted("notifications", "send", "Title", "Body") == ok_value(NIL)
        assert host.notifications == [{"title": "Title", "body": "Body"}]


class TestRegistryShape:
    """Capability modules carry their capability ids."""

    def test_capability_ids(self, dispatcher):
        assert dispatcher.require("http", "get").capability == CapabilityId.HTTP
        assert dispatcher.require("storage", "keys").capability == CapabilityId.STORAGE
        assert dispatcher.require("location", "current").capability == CapabilityId.LOCATION
        assert dispatcher.require("notifications", "send").capability == CapabilityId.NOTIFICATIONS
        assert dispatcher.require("math", "abs").capability is None

    def test_keys_returns_list(self, granted):
        assert isinstance(granted("storage", "keys").payload, ListValue)

    @pytest.mark.parametrize("raw,expected", [
        ("storage", CapabilityId.STORAGE),
        ("3", CapabilityId.LOCATION),
        (4, CapabilityId.NOTIFICATIONS),
    ])
    def test_parse_capability(self, raw, expected):
        assert CapabilityId.parse(raw) == expected

    @pytest.mark.parametrize("raw", ["camera", "\u0663", "9", 0])
    def test_parse_unknown_capability(self, raw):
        with pytest.raises(ValueError):
            CapabilityId.parse(raw)
