"""
PEPL Stdlib Errors

Two tiers:
- Traps: raised as StdlibError and unwind the whole call. Only the dispatch
  boundary turns them into a failed CallOutcome.
- Result errors: expected, data-dependent failures returned to the script as
  Err(...) values (see values.err_value).

Key classes:
- ErrorKind: Tagged error kinds shared by traps and Result errors
- StdlibError: Trap exception raised at the failure site
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    # Traps
    TYPE_ERROR = "TypeError"
    ARITHMETIC_ERROR = "ArithmeticError"
    INVALID_ARGUMENT = "InvalidArgument"
    DEPTH_EXCEEDED = "DepthExceeded"
    PARSE_ERROR = "ParseError"
    GAS_EXHAUSTED = "GasExhausted"
    CAPABILITY_DENIED = "CapabilityDenied"
    UNKNOWN_FUNCTION = "UnknownFunction"
    ASSERTION_FAILED = "AssertionFailed"

    # Result-carried
    CONVERT_ERROR = "ConvertError"
    HTTP_ERROR = "HttpError"
    STORAGE_ERROR = "StorageError"
    LOCATION_ERROR = "LocationError"
    NOTIFICATION_ERROR = "NotificationError"

    @property
    def is_trap(self) -> bool:
        return self not in _RESULT_KINDS


_RESULT_KINDS = frozenset({
    ErrorKind.CONVERT_ERROR,
    ErrorKind.HTTP_ERROR,
    ErrorKind.STORAGE_ERROR,
    ErrorKind.LOCATION_ERROR,
    ErrorKind.NOTIFICATION_ERROR,
})


class StdlibError(Exception):
    """
    A trap raised by a stdlib function.

    The library never catches or retries these; they propagate to the
    evaluator unchanged.
    """

    def __init__(self, kind: ErrorKind, message: str, function: Optional[str] = None):
        if not kind.is_trap:
            raise ValueError(f"{kind.value} is carried in a Result, not raised")
        if function:
            super().__init__(f"{function}: {message}")
        else:
            super().__init__(message)
        self.kind = kind
        self.message = message
        self.function = function

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "function": self.function,
        }

    def __repr__(self) -> str:
        return f"StdlibError({self.kind.value}, {str(self)!r})"


def type_mismatch(function: str, position: int, expected: str, got: str) -> StdlibError:
    return StdlibError(
        ErrorKind.TYPE_ERROR,
        f"argument {position} expected {expected}, got {got}",
        function,
    )


def wrong_arg_count(function: str, expected: str, got: int) -> StdlibError:
    return StdlibError(
        ErrorKind.TYPE_ERROR,
        f"expected {expected} argument(s), got {got}",
        function,
    )


def invalid_argument(function: str, message: str) -> StdlibError:
    return StdlibError(ErrorKind.INVALID_ARGUMENT, message, function)


def arithmetic_error(function: str, message: str) -> StdlibError:
    return StdlibError(ErrorKind.ARITHMETIC_ERROR, message, function)
