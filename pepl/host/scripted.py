"""
In-memory host for tests, the CLI and local runs.

Storage is a dict, HTTP answers come from a route table, location is a fixed
coordinate and notifications are collected in a list. Timer intents are kept
in order so callers can inspect what a script scheduled.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Tuple, Union
import logging

from pepl.runtime.host import CapabilityId, HostRequest, HostResponse, TimerIntent
from pepl.runtime.values import ListValue, Number, Record, String, from_python, to_python

logger = logging.getLogger(__name__)

Route = Union[HostResponse, Callable[[HostRequest], HostResponse]]


class ScriptedHost:
    """Deterministic in-memory host."""

    def __init__(self,
                 routes: Optional[Dict[Tuple[str, str], Route]] = None,
                 storage: Optional[Dict[str, str]] = None,
                 location: Optional[Tuple[float, float]] = None):
        self.routes: Dict[Tuple[str, str], Route] = dict(routes or {})
        self.storage: Dict[str, str] = dict(storage or {})
        self.location = location
        self.notifications: List[Dict[str, str]] = []
        self.intents: List[TimerIntent] = []
        self.requests: List[HostRequest] = []

    def route(self, method: str, url: str, response: Route) -> None:
        self.routes[(method, url)] = response

    def handle(self, request: HostRequest) -> HostResponse:
        self.requests.append(request)
        logger.debug(f"ScriptedHost handling {request.cap_id.module}.{request.method}")
        handler = {
            CapabilityId.HTTP: self._http,
            CapabilityId.STORAGE: self._storage,
            CapabilityId.LOCATION: self._location,
            CapabilityId.NOTIFICATIONS: self._notify,
        }[request.cap_id]
        return handler(request)

    def schedule(self, intent: TimerIntent) -> None:
        self.intents.append(intent)

    def _http(self, request: HostRequest) -> HostResponse:
        url = request.payload.get("url").value
        route = self.routes.get((request.method, url))
        if route is None:
            return HostResponse.failure("not_found", f"no route for {request.method.upper()} {url}")
        if callable(route):
            return route(request)
        return route

    def _storage(self, request: HostRequest) -> HostResponse:
        payload = request.payload
        if request.method == "keys":
            return HostResponse.success(ListValue(tuple(String(k) for k in sorted(self.storage))))
        key = payload.get("key").value
        if request.method == "get":
            if key not in self.storage:
                return HostResponse.failure("not_found", f"no value stored under '{key}'")
            return HostResponse.success(String(self.storage[key]))
        if request.method == "set":
            self.storage[key] = payload.get("value").value
            return HostResponse.success()
        self.storage.pop(key, None)
        return HostResponse.success()

    def _location(self, request: HostRequest) -> HostResponse:
        if self.location is None:
            return HostResponse.failure("unavailable", "location is unavailable")
        lat, lon = self.location
        return HostResponse.success(Record.of(latitude=Number(lat), longitude=Number(lon)))

    def _notify(self, request: HostRequest) -> HostResponse:
        self.notifications.append({k: to_python(v) for k, v in request.payload.items()})
        return HostResponse.success()


def http_response(status: int = 200, body: Any = "", headers: Optional[Dict[str, str]] = None) -> HostResponse:
    """Successful HTTP answer in the `{status, body, headers}` shape."""
    return HostResponse.success(Record.of(
        status=Number(status),
        body=from_python(body),
        headers=from_python(headers or {}),
    ))
