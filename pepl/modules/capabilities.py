"""
Capability modules: http, storage, location, notifications.

Every call goes through CapabilityBridge in a fixed order:
1. Validate argument shapes (TypeError; the host is never contacted)
2. Check the context's grant (CapabilityDenied; the host is never contacted)
3. Charge host-call gas
4. Send one HostRequest and map the HostResponse into Ok / Err

No retry and no caching: a host failure is relayed exactly once.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
import logging

from pepl.runtime.context import CallContext
from pepl.runtime.errors import ErrorKind, StdlibError, type_mismatch
from pepl.runtime.host import CapabilityId, HostRequest
from pepl.runtime.registry import StdlibModule
from pepl.runtime.values import Record, String, Value, err_value, ok_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Param:
    field: str
    kind: type
    expected: str


@dataclass(frozen=True)
class Method:
    name: str
    params: Tuple[Param, ...] = ()
    required: Optional[int] = None

    @property
    def min_args(self) -> int:
        return len(self.params) if self.required is None else self.required

    @property
    def max_args(self) -> int:
        return len(self.params)


_URL = Param("url", String, "string")
_BODY = Param("body", String, "string")
_OPTIONS = Param("options", Record, "record")
_KEY = Param("key", String, "string")


class CapabilityBridge:
    """Validates, gates, charges and forwards one capability module's calls."""

    def __init__(self, cap_id: CapabilityId, error_kind: ErrorKind, methods: List[Method]):
        self.cap_id = cap_id
        self.error_kind = error_kind
        self.methods: Dict[str, Method] = {m.name: m for m in methods}

    @property
    def module_name(self) -> str:
        return self.cap_id.module

    def call(self, method: Method, args: List[Value], ctx: CallContext) -> Value:
        fn = f"{self.module_name}.{method.name}"

        for position, (param, arg) in enumerate(zip(method.params, args), 1):
            if not isinstance(arg, param.kind):
                raise type_mismatch(fn, position, param.expected, arg.type_name())

        if not ctx.is_granted(self.cap_id):
            logger.debug(f"Capability denied: {fn}")
            raise StdlibError(
                ErrorKind.CAPABILITY_DENIED,
                f"capability '{self.module_name}' is not granted",
                fn,
            )
        if ctx.host is None:
            raise StdlibError(ErrorKind.CAPABILITY_DENIED, "no host is attached to this context", fn)

        ctx.charge_host_call(fn)
        payload = Record.of({p.field: a for p, a in zip(method.params, args)})
        request = HostRequest(self.cap_id, method.name, payload)
        logger.debug(f"Host request: {request.to_dict()}")

        response = ctx.host.handle(request)
        if response.ok:
            return ok_value(response.value)
        logger.debug(f"Host error for {fn}: {response.error_kind}: {response.error_message}")
        return err_value(self.error_kind, response.error_message, code=String(response.error_kind))

    def build_module(self) -> StdlibModule:
        module = StdlibModule(self.module_name, capability=self.cap_id,
                              doc=f"Host-delegated {self.module_name} capability")
        for method in self.methods.values():
            module.function(method.name, method.min_args, method.max_args)(self._impl(method))
        return module

    def _impl(self, method: Method):
        def impl(args: List[Value], ctx: CallContext) -> Value:
            return self.call(method, args, ctx)

        impl.__doc__ = f"{self.module_name}.{method.name} via the host"
        return impl


http = CapabilityBridge(CapabilityId.HTTP, ErrorKind.HTTP_ERROR, [
    Method("get", (_URL, _OPTIONS), required=1),
    Method("post", (_URL, _BODY, _OPTIONS), required=2),
    Method("put", (_URL, _BODY, _OPTIONS), required=2),
    Method("patch", (_URL, _BODY, _OPTIONS), required=2),
    Method("delete", (_URL, _OPTIONS), required=1),
])

storage = CapabilityBridge(CapabilityId.STORAGE, ErrorKind.STORAGE_ERROR, [
    Method("get", (_KEY,)),
    Method("set", (_KEY, Param("value", String, "string"))),
    Method("delete", (_KEY,)),
    Method("keys"),
])

location = CapabilityBridge(CapabilityId.LOCATION, ErrorKind.LOCATION_ERROR, [
    Method("current"),
])

notifications = CapabilityBridge(CapabilityId.NOTIFICATIONS, ErrorKind.NOTIFICATION_ERROR, [
    Method("send", (Param("title", String, "string"), _BODY)),
])

BRIDGES = (http, storage, location, notifications)
