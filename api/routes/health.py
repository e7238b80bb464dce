"""Health check endpoint."""

from fastapi import APIRouter

from pepl import __version__

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__,
        "service": "pepl-stdlib-api"
    }


@router.get("/health/ready")
async def readiness_check():
    """Readiness check endpoint."""
    from pepl.modules import default_registry

    registry = default_registry()
    return {
        "ready": True,
        "checks": {
            "registry": bool(registry.modules),
            "modules": len(registry.modules),
        }
    }
