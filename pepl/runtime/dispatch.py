"""
PEPL Stdlib Dispatcher

Resolves (module, function) to a FunctionSpec and runs it against a
CallContext. `invoke` is the only place where traps are turned into a failed
outcome; everything below it lets StdlibError propagate.

Key classes:
- CallReceipt: Hash-chained record of one dispatched call
- CallOutcome: Success value or trap, plus gas used
- Dispatcher: Main dispatch engine
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence
import hashlib
import logging

from pepl.runtime.codec import canonical_json
from pepl.runtime.context import CallContext, StdlibConfig
from pepl.runtime.errors import ErrorKind, StdlibError, wrong_arg_count
from pepl.runtime.registry import FunctionSpec, Registry
from pepl.runtime.values import Value, to_python

logger = logging.getLogger(__name__)


def sha256_digest(payload: Any) -> str:
    return "sha256:" + hashlib.sha256(canonical_json(payload).encode("utf-8")).hexdigest()


@dataclass
class CallReceipt:
    """
    Receipt for one dispatched call.

    `digest` chains to the previous receipt's digest so a replay can detect
    the first diverging call.
    """
    event_id: str
    function: str
    gas_used: int
    digest_in: str
    digest_out: str
    success: bool
    digest: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "call_receipt",
            "event_id": self.event_id,
            "function": self.function,
            "gas_used": self.gas_used,
            "digest_in": self.digest_in,
            "digest_out": self.digest_out,
            "success": self.success,
            "digest": self.digest,
        }

    def compute_digest(self, prev_hash: str = None) -> str:
        """Compute receipt digest per hash chaining rule."""
        payload = {k: v for k, v in self.to_dict().items() if k != "digest"}
        canon = canonical_json(payload)

        if prev_hash:
            combined = canon.encode("utf-8") + prev_hash.encode("utf-8")
            self.digest = "sha256:" + hashlib.sha256(combined).hexdigest()
        else:
            self.digest = "sha256:" + hashlib.sha256(canon.encode("utf-8")).hexdigest()

        return self.digest


@dataclass
class CallOutcome:
    """Result of Dispatcher.invoke."""
    success: bool
    function: str
    value: Optional[Value] = None
    error: Optional[StdlibError] = None
    gas_used: int = 0
    receipt: Optional[CallReceipt] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "function": self.function,
            "value": to_python(self.value) if self.value is not None else None,
            "error": self.error.to_dict() if self.error else None,
            "gas_used": self.gas_used,
            "receipt": self.receipt.to_dict() if self.receipt else None,
        }


class Dispatcher:
    """
    Main stdlib dispatch engine.

    - Resolve functions by (module, function)
    - Check arity, then charge the fixed per-call gas
    - Run the implementation against the caller's CallContext
    - Emit a CallReceipt for every invoked call onto the CallContext

    Holds no per-call state, so one Dispatcher can serve many contexts.
    """

    def __init__(self, registry: Registry = None, config: StdlibConfig = None):
        if registry is None:
            from pepl.modules import default_registry
            registry = default_registry()
        self.registry = registry
        self.config = config or StdlibConfig()

    def new_context(self, **kwargs) -> CallContext:
        return CallContext.create(config=self.config, **kwargs)

    def resolve(self, module: str, function: str) -> Optional[FunctionSpec]:
        return self.registry.resolve(module, function)

    def require(self, module: str, function: str) -> FunctionSpec:
        spec = self.resolve(module, function)
        if spec is None:
            raise StdlibError(ErrorKind.UNKNOWN_FUNCTION, f"no function {module}.{function}")
        return spec

    def call(self, spec: FunctionSpec, args: Sequence[Value], ctx: CallContext) -> Value:
        """Run one function. Traps propagate as StdlibError."""
        args = list(args)
        name = spec.qualified_name
        if not spec.accepts(len(args)):
            raise wrong_arg_count(name, spec.arity_text(), len(args))
        for position, arg in enumerate(args, 1):
            if not isinstance(arg, Value):
                raise TypeError(f"{name}: argument {position} is {type(arg).__name__}, not a Value")
        ctx.charge_call(name)
        result = spec.impl(args, ctx)
        if not isinstance(result, Value):
            raise TypeError(f"{name} returned {type(result).__name__}, not a Value")
        return result

    def call_by_name(self, module: str, function: str, args: Sequence[Value], ctx: CallContext) -> Value:
        return self.call(self.require(module, function), args, ctx)

    def invoke(self, spec: FunctionSpec, args: Sequence[Value], ctx: CallContext) -> CallOutcome:
        """Run one function and capture a trap as a failed outcome."""
        name = spec.qualified_name
        before = ctx.gas_used
        outcome = CallOutcome(success=False, function=name)
        try:
            outcome.value = self.call(spec, args, ctx)
            outcome.success = True
        except StdlibError as e:
            logger.debug(f"Trap in {name}: {e.kind.value}: {e}")
            outcome.error = e
        outcome.gas_used = ctx.gas_used - before

        if self.config.emit_receipts:
            outcome.receipt = self._emit_receipt(spec, args, outcome, ctx)

        logger.debug(f"Invoked {name}: success={outcome.success} gas={outcome.gas_used}")
        return outcome

    def invoke_by_name(self, module: str, function: str, args: Sequence[Value], ctx: CallContext) -> CallOutcome:
        spec = self.resolve(module, function)
        if spec is None:
            error = StdlibError(ErrorKind.UNKNOWN_FUNCTION, f"no function {module}.{function}")
            return CallOutcome(success=False, function=f"{module}.{function}", error=error)
        return self.invoke(spec, args, ctx)

    def _emit_receipt(self, spec: FunctionSpec, args: Sequence[Value], outcome: CallOutcome,
                      ctx: CallContext) -> CallReceipt:
        """Emit CallReceipt for an invoked call onto the context's ledger."""
        digest_in = sha256_digest({
            "function": spec.qualified_name,
            "args": [to_python(a) for a in args],
        })
        if outcome.success:
            digest_out = sha256_digest({"value": to_python(outcome.value)})
        else:
            digest_out = sha256_digest({"error": outcome.error.to_dict()})

        receipt = CallReceipt(
            event_id=f"evt_{len(ctx.receipts) + 1}",
            function=spec.qualified_name,
            gas_used=outcome.gas_used,
            digest_in=digest_in,
            digest_out=digest_out,
            success=outcome.success,
        )
        prev_hash = ctx.receipts[-1].digest if ctx.receipts else None
        receipt.compute_digest(prev_hash)
        ctx.receipts.append(receipt)
        return receipt
