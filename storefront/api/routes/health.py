from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from storefront.core.config import Settings, get_settings

router = APIRouter(tags=["health"])


@router.get("/")
async def root() -> dict[str, str]:
    return {"status": "ok", "service": "storefront"}


@router.get("/health")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
async def readiness(settings: Settings = Depends(get_settings)) -> JSONResponse:
    missing = settings.missing_gateway_settings
    if missing:
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "reason": f"gateway_config_missing: {','.join(missing)}",
            },
        )
    return JSONResponse(status_code=200, content={"status": "ready"})
