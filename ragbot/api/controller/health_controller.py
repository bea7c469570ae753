"""HTTP controller for liveness, readiness and configuration status."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ragbot.services.health_monitor import format_uptime

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request) -> dict:
    """Liveness check with process uptime."""
    monitor = request.app.state.container.health_monitor
    return {"status": "ok", "uptime": format_uptime(monitor.uptime_seconds())}


@router.get("/health/ready")
async def readiness(request: Request):
    snapshot = request.app.state.container.health_monitor.snapshot()
    if not snapshot["ready"]:
        return JSONResponse(status_code=503, content=snapshot)
    return snapshot


@router.get("/test-azure")
async def test_azure(request: Request) -> dict:
    """Report whether the Azure services are configured (no upstream calls)."""
    config = request.app.state.container.config
    openai_ok = bool(config.azure_openai.api_key and config.azure_openai.endpoint)
    search_ok = bool(config.azure_ai_search.api_key and config.azure_ai_search.endpoint)
    return {
        "azureOpenAI": "configured" if openai_ok else "missing",
        "azureSearch": "configured" if search_ok else "missing",
        "status": "ready" if openai_ok and search_ok else "incomplete",
    }
