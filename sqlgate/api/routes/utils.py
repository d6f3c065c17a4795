from fastapi import APIRouter
from fastapi.responses import JSONResponse

from sqlgate.api.deps import ExecutorDep
from sqlgate.core.health import liveness_check, readiness_check

router = APIRouter(prefix="/utils", tags=["utils"])


@router.get("/liveness/", response_model=None)
async def liveness() -> bool | JSONResponse:
    """
    Liveness probe: is the process alive and responsive?

    Lightweight: no store I/O.
    """
    ok, failures = liveness_check()
    if not ok:
        return JSONResponse(
            status_code=503,
            content={"success": False, "message": "Process unhealthy", "data": failures},
        )
    return True


@router.get("/health-check/", response_model=None)
def health_check(executor: ExecutorDep) -> bool | JSONResponse:
    """
    Readiness probe: can the service handle traffic?

    Runs SELECT 1 on the store. Returns 200 with true if it answers; 503 otherwise.
    """
    ok, failures = readiness_check(executor)
    if not ok:
        return JSONResponse(
            status_code=503,
            content={
                "success": False,
                "message": "Service Unavailable",
                "data": failures,
            },
        )
    return True
