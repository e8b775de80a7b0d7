from datetime import datetime, timezone
from time import perf_counter

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from src.shared.database import get_session_factory

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health():
    return {
        "status": "OK",
        "service": "appointments",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/_health/db", status_code=status.HTTP_200_OK)
async def health_db():
    Session = get_session_factory()
    t0 = perf_counter()
    try:
        async with Session() as s:
            await s.execute(text("SELECT 1"))
        dt_ms = int((perf_counter() - t0) * 1000)
        return {"ok": True, "checks": {"db_select_1_ms": dt_ms}}
    except Exception as e:
        # Return 503 with the error string so the real cause is visible
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "ok": False,
                "checks": {"db": "SELECT 1 failed"},
                "error": type(e).__name__,
                "detail": str(e),
            },
        )
