"""Test the call context (gas, grants, callbacks) and configuration."""
import pytest

from pepl.runtime.context import CallContext, GasSchedule, StdlibConfig
from pepl.runtime.errors import ErrorKind, StdlibError
from pepl.runtime.host import CapabilityId
from pepl.runtime.values import FunctionValue, Number


class TestGas:
    """Tests for gas charging."""

    def test_charge_deducts(self):
        ctx = CallContext(gas=10)
        ctx.charge(3, "test")
        assert ctx.remaining == 7
        assert ctx.gas_used == 3

    def test_exhaustion_traps_before_deducting(self):
        """A charge larger than the budget traps and leaves the budget alone."""
        ctx = CallContext(gas=5)
        ctx.charge(3)
        with pytest.raises(StdlibError) as exc:
            ctx.charge(3, "list.map")
        assert exc.value.kind == ErrorKind.GAS_EXHAUSTED
        assert exc.value.function == "list.map"
        assert ctx.remaining == 2
        assert ctx.gas_used == 3

    def test_exact_budget_allowed(self):
        ctx = CallContext(gas=4)
        ctx.charge(4)
        assert ctx.remaining == 0

    def test_negative_budget_rejected(self):
        with pytest.raises(ValueError):
            CallContext(gas=-1)

    def test_text_cost_per_chunk(self):
        """Text is charged one unit per 64 characters, rounded up."""
        schedule = GasSchedule()
        assert schedule.text_cost(0) == 0
        assert schedule.text_cost(1) == 1
        assert schedule.text_cost(64) == 1
        assert schedule.text_cost(65) == 2

    def test_custom_schedule(self):
        config = StdlibConfig(gas=GasSchedule(host_call=3))
        ctx = CallContext.create(config=config, gas=10)
        ctx.charge_host_call()
        assert ctx.remaining == 7


class TestGrants:
    """Tests for capability grants."""

    def test_grants_parsed(self):
        """Grants accept module names and numeric ids."""
        ctx = CallContext(gas=1, grants=["http", 2])
        assert ctx.grants == frozenset({CapabilityId.HTTP, CapabilityId.STORAGE})
        assert ctx.is_granted(CapabilityId.HTTP)
        assert not ctx.is_granted(CapabilityId.LOCATION)

    def test_unknown_grant_rejected(self):
        with pytest.raises(ValueError):
            CallContext(gas=1, grants=["camera"])
        with pytest.raises(ValueError):
            CallContext(gas=1, grants=[9])

    def test_capability_module_names(self):
        assert CapabilityId.parse("notifications") == CapabilityId.NOTIFICATIONS
        assert CapabilityId.parse("3") == CapabilityId.LOCATION
        assert CapabilityId.STORAGE.module == "storage"


class TestCallbacks:
    """Tests for callback invocation."""

    def test_native_invoker(self):
        """Without an invoker, Python callables run directly and cost one callback."""
        ctx = CallContext(gas=10)
        fn = FunctionValue(lambda v: v.value * 2, "double")
        assert ctx.call_function(fn, [Number(4)]) == Number(8)
        assert ctx.gas_used == 1

    def test_custom_invoker(self):
        """An installed invoker receives the handle untouched."""
        seen = []

        def invoker(fn, args, ctx):
            seen.append(fn.handle)
            return Number(len(args))

        ctx = CallContext(gas=10, invoker=invoker)
        result = ctx.call_function(FunctionValue("closure#7"), [Number(1), Number(2)])
        assert result == Number(2)
        assert seen == ["closure#7"]

    def test_invoker_must_return_value(self):
        ctx = CallContext(gas=10, invoker=lambda fn, args, ctx: 42)
        with pytest.raises(StdlibError) as exc:
            ctx.call_function(FunctionValue("f"), [])
        assert exc.value.kind == ErrorKind.TYPE_ERROR

    def test_opaque_handle_without_invoker(self):
        ctx = CallContext(gas=10)
        with pytest.raises(StdlibError) as exc:
            ctx.call_function(FunctionValue("closure#1"), [])
        assert exc.value.kind == ErrorKind.TYPE_ERROR


class TestConfig:
    """Tests for StdlibConfig."""

    def test_defaults(self):
        config = StdlibConfig()
        assert config.max_json_depth == 32
        assert config.max_range == 10_000_000
        assert config.emit_receipts is True

    def test_from_mapping(self):
        """Unknown keys are ignored; the gas schedule is a nested mapping."""
        config = StdlibConfig.from_mapping({
            "max_json_depth": 8,
            "default_gas": 500,
            "gas": {"host_call": 3, "bogus": 1},
            "bogus": True,
        })
        assert config.max_json_depth == 8
        assert config.default_gas == 500
        assert config.gas.host_call == 3
        assert config.gas.call == 1

    def test_from_empty_mapping(self):
        assert StdlibConfig.from_mapping(None) == StdlibConfig()

    def test_default_gas_applied(self):
        ctx = CallContext.create(config=StdlibConfig(default_gas=50))
        assert ctx.remaining == 50
