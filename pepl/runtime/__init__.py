"""
PEPL Stdlib Runtime

Core runtime for calling built-in functions:
- Values: Immutable value model (Number, String, List, Record, ...)
- CallContext: Gas budget, capability grants, host sink and callback invoker
- Registry: Static (module, function) table
- Dispatcher: Arity checks, gas charging, trap capture and call receipts
- Codec: Depth-bounded JSON reader and canonical writer
"""

from pepl.runtime.errors import ErrorKind, StdlibError
from pepl.runtime.values import (
    FALSE,
    NIL,
    TRUE,
    Bool,
    FunctionValue,
    ListValue,
    Nil,
    Number,
    Record,
    ResultValue,
    String,
    SumVariant,
    Value,
    ValueKind,
    display,
    err_value,
    from_python,
    ok_value,
    to_python,
)
from pepl.runtime.host import CapabilityId, Host, HostRequest, HostResponse, TimerIntent
from pepl.runtime.context import CallContext, GasSchedule, StdlibConfig
from pepl.runtime.registry import FunctionSpec, Registry, StdlibModule
from pepl.runtime.dispatch import CallOutcome, CallReceipt, Dispatcher

__all__ = [
    "ErrorKind",
    "StdlibError",
    "Value",
    "ValueKind",
    "Number",
    "String",
    "Bool",
    "Nil",
    "NIL",
    "TRUE",
    "FALSE",
    "ListValue",
    "Record",
    "SumVariant",
    "FunctionValue",
    "ResultValue",
    "display",
    "ok_value",
    "err_value",
    "from_python",
    "to_python",
    "CapabilityId",
    "Host",
    "HostRequest",
    "HostResponse",
    "TimerIntent",
    "CallContext",
    "GasSchedule",
    "StdlibConfig",
    "FunctionSpec",
    "Registry",
    "StdlibModule",
    "CallOutcome",
    "CallReceipt",
    "Dispatcher",
]
