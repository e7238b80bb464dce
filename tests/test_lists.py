"""Test the list module (persistent lists and higher-order functions)."""
import pytest

from pepl.runtime.errors import ErrorKind, StdlibError
from pepl.runtime.values import FALSE, NIL, TRUE, ListValue, Number, Record, String, from_python


def numbers(*values):
    return from_python(list(values))


class TestConstruction:
    """Tests for list constructors."""

    def test_empty_and_of(self, call):
        assert call("list", "empty") == ListValue(())
        assert call("list", "of", 1, "a", True) == from_python([1, "a", True])
        assert call("list", "of") == ListValue(())

    def test_repeat(self, call):
        assert call("list", "repeat", "x", 3) == from_python(["x", "x", "x"])

    def test_range(self, call):
        assert call("list", "range", 0, 5) == numbers(0, 1, 2, 3, 4)
        assert call("list", "range", 5, 0) == ListValue(())

    def test_range_too_large(self, call):
        """Oversized ranges trap before any gas is spent on elements."""
        with pytest.raises(StdlibError) as exc:
            call("list", "range", 0, 10_000_001)
        assert exc.value.kind == ErrorKind.INVALID_ARGUMENT
        assert "10,000,000" in exc.value.message

    def test_range_non_integral(self, call):
        with pytest.raises(StdlibError) as exc:
            call("list", "range", 0, 1.5)
        assert exc.value.kind == ErrorKind.INVALID_ARGUMENT


class TestAccess:
    """Lookup misses are values, not traps."""

    def test_get(self, call):
        assert call("list", "get", [10, 20], 1) == Number(20)
        assert call("list", "get", [10, 20], 2) == NIL
        assert call("list", "get", [10, 20], -1) == NIL

    def test_first_last(self, call):
        assert call("list", "first", [1, 2]) == Number(1)
        assert call("list", "last", [1, 2]) == Number(2)
        assert call("list", "first", []) == NIL
        assert call("list", "last", []) == NIL

    def test_index_of_and_contains(self, call):
        assert call("list", "index_of", ["a", "b"], "b") == Number(1)
        assert call("list", "index_of", ["a", "b"], "z") == Number(-1)
        assert call("list", "contains", [1, 2], 2) == TRUE
        assert call("list", "contains", [1, 2], True) == FALSE

    def test_length(self, call):
        assert call("list", "length", [1, 2, 3]) == Number(3)


class TestModification:
    """Every modification returns a new list."""

    def test_append_leaves_input_unchanged(self, dispatcher, ctx):
        original = numbers(1, 2)
        appended = dispatcher.call_by_name("list", "append", [original, Number(3)], ctx)
        assert appended == numbers(1, 2, 3)
        assert original == numbers(1, 2)
        assert len(original) == 2

    def test_prepend(self, call):
        assert call("list", "prepend", [2], 1) == numbers(1, 2)

    def test_insert(self, call):
        assert call("list", "insert", [1, 3], 1, 2) == numbers(1, 2, 3)
        assert call("list", "insert", [1, 2], 2, 3) == numbers(1, 2, 3)

    @pytest.mark.parametrize("function,args", [
        ("insert", ([1], 2, 0)),
        ("insert", ([1], -1, 0)),
        ("remove", ([1], 1)),
        ("update", ([1], 5, 0)),
        ("set", ([], 0, 0)),
    ])
    def test_out_of_bounds_traps(self, call, function, args):
        with pytest.raises(StdlibError) as exc:
            call("list", function, *args)
        assert exc.value.kind == ErrorKind.INVALID_ARGUMENT
        assert "out of bounds" in exc.value.message

    def test_non_integral_index(self, call):
        with pytest.raises(StdlibError) as exc:
            call("list", "remove", [1, 2], 0.5)
        assert exc.value.kind == ErrorKind.INVALID_ARGUMENT

    def test_remove_update(self, call):
        assert call("list", "remove", [1, 2, 3], 1) == numbers(1, 3)
        assert call("list", "update", [1, 2, 3], 0, 9) == numbers(9, 2, 3)
        assert call("list", "set", [1, 2, 3], 2, 9) == numbers(1, 2, 9)

    def test_slice(self, call):
        assert call("list", "slice", [1, 2, 3, 4], 1, 3) == numbers(2, 3)
        assert call("list", "slice", [1, 2, 3], -5, 10) == numbers(1, 2, 3)
        assert call("list", "slice", [1, 2, 3], 2, 1) == ListValue(())

    def test_concat_reverse(self, call):
        assert call("list", "concat", [1], [2, 3]) == numbers(1, 2, 3)
        assert call("list", "reverse", [1, 2, 3]) == numbers(3, 2, 1)

    def test_flatten_one_level(self, call):
        assert call("list", "flatten", [[1, 2], 3, [[4]]]) == from_python([1, 2, 3, [4]])

    def test_unique_keeps_first(self, call):
        assert call("list", "unique", [1, 2, 1, 3, 2]) == numbers(1, 2, 3)

    def test_take_drop(self, call):
        assert call("list", "take", [1, 2, 3], 2) == numbers(1, 2)
        assert call("list", "take", [1, 2, 3], 10) == numbers(1, 2, 3)
        assert call("list", "drop", [1, 2, 3], 2) == numbers(3)
        assert call("list", "drop", [1, 2, 3], 10) == ListValue(())

    def test_take_negative(self, call):
        with pytest.raises(StdlibError) as exc:
            call("list", "take", [1], -1)
        assert exc.value.kind == ErrorKind.INVALID_ARGUMENT

    def test_zip_stops_at_shorter(self, call):
        result = call("list", "zip", [1, 2, 3], ["a", "b"])
        assert result == ListValue((
            Record.of(first=Number(1), second=String("a")),
            Record.of(first=Number(2), second=String("b")),
        ))


class TestHigherOrder:
    """Tests for callback-driven functions."""

    def test_map_filter_reduce(self, call):
        assert call("list", "map", [1, 2, 3], lambda v: v.value * 2) == numbers(2, 4, 6)
        assert call("list", "filter", [1, 2, 3, 4], lambda v: v.value % 2 == 0) == numbers(2, 4)
        assert call("list", "reduce", [1, 2, 3], 0, lambda acc, v: acc.value + v.value) == Number(6)

    def test_reduce_empty_returns_initial(self, call):
        assert call("list", "reduce", [], "init", lambda acc, v: acc) == String("init")

    def test_find(self, call):
        assert call("list", "find", [1, 5, 8], lambda v: v.value > 3) == Number(5)
        assert call("list", "find", [1, 2], lambda v: v.value > 3) == NIL
        assert call("list", "find_index", [1, 5, 8], lambda v: v.value > 3) == Number(1)
        assert call("list", "find_index", [1, 2], lambda v: v.value > 3) == Number(-1)

    def test_every_any_count(self, call):
        assert call("list", "every", [2, 4], lambda v: v.value % 2 == 0) == TRUE
        assert call("list", "every", [], lambda v: False) == TRUE
        assert call("list", "any", [1, 3], lambda v: v.value % 2 == 0) == FALSE
        assert call("list", "some", [1, 2], lambda v: v.value % 2 == 0) == TRUE
        assert call("list", "count", [1, 2, 3, 4], lambda v: v.value > 1) == Number(3)

    def test_predicate_truthiness(self, call):
        """Predicates use truthiness, not strict booleans."""
        assert call("list", "filter", ["", "a", "b"], lambda v: v) == from_python(["a", "b"])

    def test_flat_map(self, call):
        result = call("list", "flat_map", [1, 2], lambda v: [v.value, v.value * 10])
        assert result == numbers(1, 10, 2, 20)

    def test_callback_trap_propagates(self, call):
        def boom(v):
            raise StdlibError(ErrorKind.ARITHMETIC_ERROR, "boom")

        with pytest.raises(StdlibError) as exc:
            call("list", "map", [1], boom)
        assert exc.value.kind == ErrorKind.ARITHMETIC_ERROR

    def test_callbacks_charge_gas(self, dispatcher):
        """One call, one gas per element visited, one per callback."""
        ctx = dispatcher.new_context(gas=100)
        args = [numbers(1, 2, 3), from_python(lambda v: v)]
        dispatcher.call_by_name("list", "map", args, ctx)
        assert ctx.gas_used == 7


class TestSort:
    """Tests for sort and sort_by."""

    def test_natural_order(self, call):
        assert call("list", "sort", [3, 1, 2]) == numbers(1, 2, 3)
        assert call("list", "sort", ["b", "a", "C"]) == from_python(["C", "a", "b"])

    def test_mixed_kinds_trap(self, call):
        with pytest.raises(StdlibError) as exc:
            call("list", "sort", [1, "a"])
        assert exc.value.kind == ErrorKind.TYPE_ERROR

    def test_comparator(self, call):
        result = call("list", "sort", [1, 3, 2], lambda a, b: b.value - a.value)
        assert result == numbers(3, 2, 1)

    def test_comparator_must_return_number(self, call):
        with pytest.raises(StdlibError) as exc:
            call("list", "sort", [1, 2], lambda a, b: "less")
        assert exc.value.kind == ErrorKind.TYPE_ERROR

    def test_stable(self, call):
        """Equal elements keep their original relative order."""
        items = [{"k": 1, "n": "a"}, {"k": 0, "n": "b"}, {"k": 1, "n": "c"}, {"k": 0, "n": "d"}]
        by_key = call("list", "sort", items, lambda a, b: a.get("k").value - b.get("k").value)
        assert [r.get("n").value for r in by_key] == ["b", "d", "a", "c"]
        by_fn = call("list", "sort_by", items, lambda r: r.get("k"))
        assert [r.get("n").value for r in by_fn] == ["b", "d", "a", "c"]

    def test_sort_leaves_input_unchanged(self, dispatcher, ctx):
        original = numbers(3, 1, 2)
        dispatcher.call_by_name("list", "sort", [original], ctx)
        assert original == numbers(3, 1, 2)


class TestGasAtomicity:
    """Gas exhaustion never exposes a partial value."""

    def test_reduce_exhaustion_traps(self, dispatcher):
        ctx = dispatcher.new_context(gas=500)
        items = from_python(list(range(1000)))
        add = from_python(lambda acc, v: acc.value + v.value)
        with pytest.raises(StdlibError) as exc:
            dispatcher.call_by_name("list", "reduce", [items, Number(0), add], ctx)
        assert exc.value.kind == ErrorKind.GAS_EXHAUSTED

    def test_map_exhaustion_mid_way(self, dispatcher):
        ctx = dispatcher.new_context(gas=5)
        args = [numbers(1, 2, 3), from_python(lambda v: v)]
        with pytest.raises(StdlibError) as exc:
            dispatcher.call_by_name("list", "map", args, ctx)
        assert exc.value.kind == ErrorKind.GAS_EXHAUSTED
        assert ctx.remaining == 0

    def test_invoke_reports_trap_not_value(self, dispatcher):
        ctx = dispatcher.new_context(gas=500)
        spec = dispatcher.require("list", "reduce")
        items = from_python(list(range(1000)))
        outcome = dispatcher.invoke(spec, [items, Number(0), from_python(lambda acc, v: acc)], ctx)
        assert not outcome.success
        assert outcome.value is None
        assert outcome.error.kind == ErrorKind.GAS_EXHAUSTED
