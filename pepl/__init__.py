"""
PEPL Stdlib - built-in function library for the PEPL scripting language

Pure, replay-deterministic functions plus a grant-gated bridge to host
capabilities (http, storage, location, notifications, timers).

Exports:
- Dispatcher: Resolve and invoke functions by (module, function)
- CallContext / StdlibConfig: Per-invocation gas, grants and host
- Value types: Number, String, Bool, NIL, ListValue, Record, SumVariant, ...
"""

__version__ = "0.1.0"

from pepl.runtime import (
    NIL,
    Bool,
    CallContext,
    CallOutcome,
    CallReceipt,
    CapabilityId,
    Dispatcher,
    ErrorKind,
    FunctionValue,
    GasSchedule,
    HostRequest,
    HostResponse,
    ListValue,
    Number,
    Record,
    ResultValue,
    StdlibConfig,
    StdlibError,
    String,
    SumVariant,
    TimerIntent,
    Value,
    from_python,
    to_python,
)

__all__ = [
    "__version__",
    "Dispatcher",
    "CallContext",
    "CallOutcome",
    "CallReceipt",
    "StdlibConfig",
    "GasSchedule",
    "CapabilityId",
    "HostRequest",
    "HostResponse",
    "TimerIntent",
    "ErrorKind",
    "StdlibError",
    "Value",
    "Number",
    "String",
    "Bool",
    "NIL",
    "ListValue",
    "Record",
    "SumVariant",
    "FunctionValue",
    "ResultValue",
    "from_python",
    "to_python",
]
