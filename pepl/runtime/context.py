"""
PEPL Call Context

Per-invocation execution budget (gas), capability grants, host sink and
callback invoker. One context per invocation chain; never shared or pooled.

Key classes:
- GasSchedule: Cost of each chargeable unit of work
- StdlibConfig: Configuration for dispatch and the built-in modules
- CallContext: The state threaded through every stdlib call
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional
import logging

from pepl.runtime.errors import ErrorKind, StdlibError
from pepl.runtime.host import CapabilityId, Host
from pepl.runtime.values import FunctionValue, Value, from_python

logger = logging.getLogger(__name__)

Invoker = Callable[[FunctionValue, List[Value], "CallContext"], Value]


@dataclass(frozen=True)
class GasSchedule:
    """Gas cost per unit of work."""
    call: int = 1
    element: int = 1
    callback: int = 1
    text_chunk: int = 64
    text_unit: int = 1
    host_call: int = 10

    def text_cost(self, length: int) -> int:
        if length <= 0:
            return 0
        return ((length + self.text_chunk - 1) // self.text_chunk) * self.text_unit


@dataclass(frozen=True)
class StdlibConfig:
    """Configuration for stdlib dispatch."""
    default_gas: int = 1_000_000
    max_json_depth: int = 32
    max_range: int = 10_000_000
    emit_receipts: bool = True
    gas: GasSchedule = field(default_factory=GasSchedule)

    @classmethod
    def from_mapping(cls, options: Optional[Mapping[str, Any]] = None) -> "StdlibConfig":
        """Build a config from a plain dict, ignoring unknown keys."""
        options = dict(options or {})
        gas_options = options.pop("gas", None) or {}
        known = {f.name for f in fields(cls)} - {"gas"}
        kwargs = {k: v for k, v in options.items() if k in known}
        gas_known = {f.name for f in fields(GasSchedule)}
        gas = GasSchedule(**{k: int(v) for k, v in gas_options.items() if k in gas_known})
        return cls(gas=gas, **kwargs)


def native_invoker(fn: FunctionValue, args: List[Value], ctx: "CallContext") -> Value:
    """
    Invoke a FunctionValue whose handle is a Python callable.

    Used when no evaluator invoker is installed (tests, CLI). The callable
    receives Values and may return a Value or plain Python data.
    """
    handle = fn.handle
    if not callable(handle):
        raise StdlibError(ErrorKind.TYPE_ERROR, f"function handle {fn.name} is not invocable")
    return from_python(handle(*args))


@dataclass
class CallContext:
    """
    Execution budget and grants for one invocation chain.

    Grants are fixed at construction. `now` is the host-injected timestamp
    (milliseconds since the Unix epoch) read by time.now.
    `receipts` is the hash-chained ledger of calls dispatched with this context.
    """
    gas: int
    grants: FrozenSet[CapabilityId] = frozenset()
    host: Optional[Host] = None
    invoker: Optional[Invoker] = None
    now: Optional[int] = None
    config: StdlibConfig = field(default_factory=StdlibConfig)
    gas_used: int = 0
    receipts: List[CallReceipt] = field(default_factory=list)

    def __post_init__(self):
        if self.gas < 0:
            raise ValueError("gas budget must be non-negative")
        self.grants = frozenset(CapabilityId.parse(g) for g in self.grants)

    @classmethod
    def create(cls,
               config: StdlibConfig = None,
               gas: Optional[int] = None,
               grants: Iterable[Any] = (),
               host: Optional[Host] = None,
               invoker: Optional[Invoker] = None,
               now: Optional[int] = None) -> "CallContext":
        config = config or StdlibConfig()
        return cls(
            gas=config.default_gas if gas is None else gas,
            grants=frozenset(grants),
            host=host,
            invoker=invoker,
            now=now,
            config=config,
        )

    @property
    def remaining(self) -> int:
        return self.gas

    @property
    def schedule(self) -> GasSchedule:
        return self.config.gas

    @property
    def receipt_chain(self) -> List[str]:
        return [r.digest for r in self.receipts]

    def charge(self, amount: int, reason: str = "") -> None:
        """Deduct gas, trapping GasExhausted before anything is deducted."""
        if amount <= 0:
            return
        if amount > self.gas:
            logger.debug(f"Gas exhausted: {reason} needs {amount}, {self.gas} remaining")
            raise StdlibError(
                ErrorKind.GAS_EXHAUSTED,
                f"needs {amount} gas, {self.gas} remaining",
                reason or None,
            )
        self.gas -= amount
        self.gas_used += amount

    def charge_call(self, reason: str = "") -> None:
        self.charge(self.schedule.call, reason)

    def charge_elements(self, count: int, reason: str = "") -> None:
        self.charge(count * self.schedule.element, reason)

    def charge_text(self, length: int, reason: str = "") -> None:
        self.charge(self.schedule.text_cost(length), reason)

    def charge_host_call(self, reason: str = "") -> None:
        self.charge(self.schedule.host_call, reason)

    def is_granted(self, cap_id: CapabilityId) -> bool:
        return cap_id in self.grants

    def call_function(self, fn: FunctionValue, args: List[Value], reason: str = "") -> Value:
        """Charge for and run one callback invocation."""
        self.charge(self.schedule.callback, reason)
        invoker = self.invoker or native_invoker
        result = invoker(fn, list(args), self)
        if not isinstance(result, Value):
            raise StdlibError(
                ErrorKind.TYPE_ERROR,
                f"callback {fn.name} returned {type(result).__name__}, not a value",
                reason or None,
            )
        return result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gas_remaining": self.gas,
            "gas_used": self.gas_used,
            "grants": sorted(int(g) for g in self.grants),
            "now": self.now,
        }


from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from pepl.runtime.dispatch import CallReceipt
