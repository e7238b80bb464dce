"""
PEPL Built-in Modules

Pure modules: core, math, string, list, record, json, convert, time, timer.
Capability modules (host-delegated, grant-gated): http, storage, location,
notifications.
"""

from pepl.runtime.registry import Registry

from pepl.modules import convert, core, json_codec, lists, maths, records, strings, time_ops, timer
from pepl.modules.capabilities import BRIDGES, CapabilityBridge

PURE_MODULES = (
    core.module,
    maths.module,
    strings.module,
    lists.module,
    records.module,
    json_codec.module,
    convert.module,
    time_ops.module,
    timer.module,
)


def default_registry() -> Registry:
    """Registry with every built-in module."""
    from pepl import __version__

    registry = Registry(version=__version__)
    for module in PURE_MODULES:
        registry.register(module)
    for bridge in BRIDGES:
        registry.register(bridge.build_module())
    return registry


__all__ = ["default_registry", "CapabilityBridge", "PURE_MODULES"]
