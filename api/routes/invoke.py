"""Invoke endpoint for stdlib function calls."""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional, Union
import time

from pepl.host import ScriptedHost
from pepl.runtime.context import StdlibConfig
from pepl.runtime.dispatch import Dispatcher
from pepl.runtime.errors import StdlibError
from pepl.runtime.host import CapabilityId
from pepl.runtime.values import from_python

router = APIRouter()


class InvokeRequest(BaseModel):
    """Request body for a stdlib call."""
    module: str
    function: str
    args: List[Any] = Field(default_factory=list)
    gas: Optional[int] = None
    grants: List[Union[int, str]] = Field(default_factory=list)
    now: Optional[int] = None
    storage: Dict[str, str] = Field(default_factory=dict)
    options: Optional[Dict[str, Any]] = None


class InvokeResponse(BaseModel):
    """Response body for a stdlib call."""
    success: bool
    function: str
    value: Any = None
    error: Optional[Dict[str, Any]] = None
    gas_used: int = 0
    gas_remaining: int = 0
    receipt: Optional[Dict[str, Any]] = None
    host_requests: int = 0
    execution_time_ms: float


@router.post("/invoke", response_model=InvokeResponse)
async def invoke_function(request: InvokeRequest):
    """Invoke one stdlib function against a scripted in-memory host."""
    start_time = time.time()

    try:
        grants = [CapabilityId.parse(g) for g in request.grants]
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        args = [from_python(a) for a in request.args]
    except (StdlibError, TypeError) as e:
        raise HTTPException(status_code=422, detail=f"Invalid argument: {e}")

    try:
        config = StdlibConfig.from_mapping(request.options)
        dispatcher = Dispatcher(config=config)
        spec = dispatcher.resolve(request.module, request.function)
        if spec is None:
            raise HTTPException(
                status_code=404,
                detail=f"Unknown function {request.module}.{request.function}",
            )

        host = ScriptedHost(storage=request.storage)
        ctx = dispatcher.new_context(gas=request.gas, grants=grants, host=host, now=request.now)
        outcome = dispatcher.invoke(spec, args, ctx)
        data = outcome.to_dict()

        return InvokeResponse(
            success=outcome.success,
            function=outcome.function,
            value=data["value"],
            error=data["error"],
            gas_used=outcome.gas_used,
            gas_remaining=ctx.remaining,
            receipt=data["receipt"],
            host_requests=len(host.requests),
            execution_time_ms=(time.time() - start_time) * 1000,
        )

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
