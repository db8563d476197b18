"""
Health router
=============
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.api.schemas import HealthResponse
from app.core.errors import UpstreamError
from app.services.es import es

router = APIRouter(tags=["health"])
log = logging.getLogger("uvicorn.error")

HEALTHY = (" green ", " yellow ")

# ------------------------------ Endpoints ------------------------------------


# curl -s -XGET http://localhost:8000/health | jq
@router.get(
    "/health",
    summary="Service health check",
    response_model=HealthResponse,
    response_model_exclude_none=True,
    responses={500: {"model": HealthResponse, "description": "Cluster red or unreachable"}},
    response_description="Status of the backing Elasticsearch cluster",
)
def health() -> JSONResponse:
    """
    GET /health
    """
    try:
        line = es.get_status()
    except UpstreamError as exc:
        log.error("health probe failed: %s", exc.cause)
        return _unhealthy(str(exc.cause or exc))

    if any(marker in line for marker in HEALTHY):
        return JSONResponse(HealthResponse(status="OK").model_dump(exclude_none=True))
    log.warning("cluster unhealthy: %s", line.strip())
    return _unhealthy(line)


def _unhealthy(error: str) -> JSONResponse:
    return JSONResponse(HealthResponse(status="error", error=error).model_dump(), status_code=500)
