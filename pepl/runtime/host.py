"""
PEPL Host Protocol

Request/response shapes exchanged with the embedding host. The library only
builds requests and consumes responses; the host decides how the I/O actually
happens.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Optional, Protocol

from pepl.runtime.values import NIL, Record, Value, to_python


class CapabilityId(IntEnum):
    HTTP = 1
    STORAGE = 2
    LOCATION = 3
    NOTIFICATIONS = 4

    @classmethod
    def parse(cls, name_or_id: Any) -> "CapabilityId":
        """Accept 1..4 or a module name (`http`, `storage`, ...)."""
        if isinstance(name_or_id, str) and not (name_or_id.isascii() and name_or_id.isdigit()):
            try:
                return cls[name_or_id.strip().upper()]
            except KeyError:
                raise ValueError(f"unknown capability: {name_or_id}")
        return cls(int(name_or_id))

    @property
    def module(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class HostRequest:
    """One capability call: `{cap_id, method, payload}`."""
    cap_id: CapabilityId
    method: str
    payload: Record

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cap_id": int(self.cap_id),
            "method": self.method,
            "payload": to_python(self.payload),
        }


@dataclass(frozen=True)
class HostResponse:
    """Either `{ok: Value}` or `{error: {kind, message}}`."""
    value: Value = NIL
    error_kind: Optional[str] = None
    error_message: str = ""

    @classmethod
    def success(cls, value: Value = NIL) -> "HostResponse":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: str, message: str) -> "HostResponse":
        return cls(error_kind=kind, error_message=message)

    @property
    def ok(self) -> bool:
        return self.error_kind is None

    def to_dict(self) -> Dict[str, Any]:
        if self.ok:
            return {"ok": to_python(self.value)}
        return {"error": {"kind": self.error_kind, "message": self.error_message}}


@dataclass(frozen=True)
class TimerIntent:
    """Scheduling intent forwarded to the host's event loop."""
    action: str
    timer_id: Optional[str] = None
    interval_ms: Optional[float] = None
    repeat: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "timer_id": self.timer_id,
            "interval_ms": self.interval_ms,
            "repeat": self.repeat,
        }


class Host(Protocol):
    """Embedding host contract."""

    def handle(self, request: HostRequest) -> HostResponse:
        ...

    def schedule(self, intent: TimerIntent) -> None:
        ...


def response_from_dict(data: Dict[str, Any]) -> HostResponse:
    """Inverse of HostResponse.to_dict, used when loading transcripts."""
    from pepl.runtime.values import from_python

    if "error" in data:
        error = data["error"] or {}
        return HostResponse.failure(str(error.get("kind", "error")), str(error.get("message", "")))
    return HostResponse.success(from_python(data.get("ok")))

