import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from schemas.common import ErrorBody, ErrorResponse
from utils.exceptions import AppError

logger = logging.getLogger(__name__)

# HTTPException 상태코드 → 에러 코드
_HTTP_CODES = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}


def _error(status_code: int, code: str, message: str, field=None) -> JSONResponse:
    body = ErrorResponse(error=ErrorBody(code=code, message=message, field=field))
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", exclude_none=True))


def _loc_to_field(loc) -> str:
    # ("body", "scores", 2, "score") → "scores[2].score"
    field = ""
    for part in loc:
        if part in ("body", "query", "path", "header"):
            continue
        if isinstance(part, int):
            field += f"[{part}]"
        else:
            field += f".{part}" if field else str(part)
    return field


def add_error_handlers(app: FastAPI):
    # ✅ 도메인 예외 (400/401/403/404/409)
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} → {exc.code}: {exc.message}")
        else:
            logger.warning(f"{request.method} {request.url.path} → {exc.status_code} {exc.code}: {exc.message}")
        return _error(exc.status_code, exc.code, exc.message, exc.field)

    # ✅ 요청 본문/쿼리 검증 실패 → 400 (필드 단위 메시지)
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = _loc_to_field(first.get("loc", ())) or None
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg", "Invalid request"))
        logger.warning(f"{request.method} {request.url.path} → 400 요청 검증 실패: {message}")
        return _error(400, "VALIDATION_ERROR", message, field)

    # ✅ 라우팅/프레임워크 HTTP 예외 (404 경로 없음, 405 등)
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        code = _HTTP_CODES.get(exc.status_code, "HTTP_ERROR")
        return _error(exc.status_code, code, str(exc.detail))

    # ✅ 저장소 유니크 제약 위반 → 409 (사전 조회를 통과한 경합 상황)
    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning(f"{request.method} {request.url.path} → 409 무결성 제약 위반: {exc.orig}")
        return _error(409, "CONFLICT", "Resource conflicts with existing data")

    # ✅ 그 외 모든 예외 → 500 (내부 정보 노출 없음)
    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"{request.method} {request.url.path} → 500 처리되지 않은 예외")
        return _error(500, "INTERNAL_ERROR", "An unexpected error occurred")
