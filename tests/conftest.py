"""Test fixtures for the PEPL stdlib test suite."""
import pytest
import sys
from pathlib import Path
from typing import Any, Callable

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from pepl.host import ScriptedHost
from pepl.runtime.context import CallContext
from pepl.runtime.dispatch import Dispatcher
from pepl.runtime.values import Value, from_python


@pytest.fixture
def dispatcher() -> Dispatcher:
    """Dispatcher over the default registry."""
    return Dispatcher()


@pytest.fixture
def host() -> ScriptedHost:
    """Empty in-memory host."""
    return ScriptedHost()


@pytest.fixture
def ctx(dispatcher: Dispatcher) -> CallContext:
    """Fresh context with a generous budget and no grants."""
    return dispatcher.new_context(gas=100_000)


@pytest.fixture
def call(dispatcher: Dispatcher, ctx: CallContext) -> Callable[..., Value]:
    """
    Call a stdlib function with plain Python arguments.

        call("math", "abs", -3)
        call("list", "map", [1, 2], lambda v: v.value * 2, ctx=other_ctx)
    """
    def _call(module: str, function: str, *args: Any, ctx: CallContext = ctx) -> Value:
        values = [from_python(a) for a in args]
        return dispatcher.call_by_name(module, function, values, ctx)

    return _call
