import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from services.exceptions import StorageFailure

logger = logging.getLogger(__name__)

def _now_iso():
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

def _error_body(code: str, message: str, **extra):
    return {
        "error": {"code": code, "message": message, **extra},
        "generated_at": _now_iso(),
        "latency_ms": 0,
    }

def add_error_handlers(app: FastAPI):
    # ✅ 저장소 장애: 요청 단위로 한 번만, 재시도 가능 표시
    @app.exception_handler(StorageFailure)
    async def storage_failure_handler(request: Request, exc: StorageFailure):
        logger.error(f"저장소 장애: {request.method} {request.url.path} - {exc}")
        return JSONResponse(
            status_code=503,
            content=_error_body("STORAGE_UNAVAILABLE", str(exc), retryable=exc.retryable),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"처리되지 않은 오류: {request.method} {request.url.path} - {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body("INTERNAL_ERROR", str(exc)),
        )
