"""Health and readiness endpoints."""

from typing import Any

from fastapi import APIRouter

from backend.core.kv import check_store

router = APIRouter()


def get_version() -> str:
    """Get application version from pyproject.toml."""
    try:
        import tomllib

        with open("pyproject.toml", "rb") as f:
            data = tomllib.load(f)
            return data.get("project", {}).get("version", "unknown")
    except (OSError, ValueError):
        return "dev"


@router.get("/health/ready")
def readiness_check() -> dict[str, Any]:
    """Readiness endpoint for load balancers."""
    store_status = check_store()

    return {
        "status": "OK" if store_status == "OK" else "DEGRADED",
        "version": get_version(),
        "store": store_status,
    }


@router.get("/health/live")
def liveness_check() -> dict[str, str]:
    """Liveness endpoint - always OK if service is running."""
    return {"status": "OK"}
