"""
PEPL Function Registry

Static table of built-in functions keyed by (module, function).

Key classes:
- FunctionSpec: One registered function with its arity and capability
- StdlibModule: A named group of functions, filled in with a decorator
- Registry: Lookup by (module, function)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from pepl.runtime.host import CapabilityId

Impl = Callable[[List["Value"], "CallContext"], "Value"]


@dataclass(frozen=True)
class FunctionSpec:
    module: str
    name: str
    impl: Impl
    min_args: int
    max_args: Optional[int]
    capability: Optional[CapabilityId] = None
    doc: str = ""

    @property
    def qualified_name(self) -> str:
        return f"{self.module}.{self.name}"

    def accepts(self, count: int) -> bool:
        if count < self.min_args:
            return False
        return self.max_args is None or count <= self.max_args

    def arity_text(self) -> str:
        if self.max_args is None:
            return f"at least {self.min_args}"
        if self.min_args == self.max_args:
            return str(self.min_args)
        return f"{self.min_args}-{self.max_args}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "module": self.module,
            "name": self.name,
            "arity": self.arity_text(),
            "capability": int(self.capability) if self.capability else None,
            "doc": self.doc,
        }


class StdlibModule:
    """
    A stdlib module. Functions register themselves with the `function`
    decorator:

        @maths.function("abs", 1)
        def abs_(args, ctx): ...
    """

    def __init__(self, name: str, capability: Optional[CapabilityId] = None, doc: str = ""):
        self.name = name
        self.capability = capability
        self.doc = doc
        self.functions: Dict[str, FunctionSpec] = {}

    def function(self, name: str, min_args: int, max_args: Optional[int] = -1,
                 aliases: Iterable[str] = ()) -> Callable[[Impl], Impl]:
        """Register `impl` under `name`; max_args=-1 means exactly min_args, None is variadic."""
        upper = min_args if max_args == -1 else max_args

        def decorator(impl: Impl) -> Impl:
            doc = (impl.__doc__ or "").strip().splitlines()
            for fname in (name, *aliases):
                if fname in self.functions:
                    raise ValueError(f"duplicate function {self.name}.{fname}")
                self.functions[fname] = FunctionSpec(
                    module=self.name,
                    name=fname,
                    impl=impl,
                    min_args=min_args,
                    max_args=upper,
                    capability=self.capability,
                    doc=doc[0] if doc else "",
                )
            return impl

        return decorator

    def __contains__(self, name: str) -> bool:
        return name in self.functions

    def names(self) -> List[str]:
        return sorted(self.functions)


@dataclass
class Registry:
    registry_id: str = "pepl.stdlib"
    version: str = "0.1.0"
    modules: Dict[str, StdlibModule] = field(default_factory=dict)

    def register(self, module: StdlibModule) -> None:
        if module.name in self.modules:
            raise ValueError(f"module {module.name} already registered")
        self.modules[module.name] = module

    def resolve(self, module: str, name: str) -> Optional[FunctionSpec]:
        mod = self.modules.get(module)
        if mod is None:
            return None
        return mod.functions.get(name)

    def require(self, module: str, name: str) -> FunctionSpec:
        spec = self.resolve(module, name)
        if spec is None:
            raise KeyError(f"Missing function {module}.{name} in registry")
        return spec

    def module_names(self) -> List[str]:
        return sorted(self.modules)

    def specs(self, module: Optional[str] = None) -> List[FunctionSpec]:
        names = [module] if module else self.module_names()
        out: List[FunctionSpec] = []
        for mod_name in names:
            mod = self.modules.get(mod_name)
            if mod is None:
                continue
            out.extend(mod.functions[n] for n in mod.names())
        return out


# Forward reference for type hint
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from pepl.runtime.context import CallContext
    from pepl.runtime.values import Value
