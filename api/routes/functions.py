"""Function registry endpoints."""

from fastapi import APIRouter, HTTPException
from typing import Optional

from pepl.modules import default_registry

router = APIRouter()


@router.get("/functions")
async def list_functions(module: Optional[str] = None):
    """List registered functions, optionally for one module."""
    registry = default_registry()
    if module and module not in registry.modules:
        raise HTTPException(status_code=404, detail=f"Unknown module: {module}")

    specs = registry.specs(module)
    return {
        "registry_id": registry.registry_id,
        "version": registry.version,
        "modules": [module] if module else registry.module_names(),
        "function_count": len(specs),
        "functions": [s.to_dict() for s in specs],
    }


@router.get("/functions/{module}/{name}")
async def get_function(module: str, name: str):
    """Describe one function."""
    spec = default_registry().resolve(module, name)
    if spec is None:
        raise HTTPException(status_code=404, detail=f"Unknown function {module}.{name}")
    return spec.to_dict()
