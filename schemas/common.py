"""
schemas/common.py

라우터 공용 응답 조각
- ErrorBody / ErrorResponse : 전역 에러 핸들러가 내려주는 실패 응답
- PageMeta / make_meta()    : 페이지 단위 목록(출결 목록 등)의 meta

성공 응답은 라우터에서 {"success": True, "data": ..., "message"?, "meta"?} dict 로 직접 구성
"""

from datetime import datetime, timezone
from math import ceil
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# =========================================================
# 실패 응답
# =========================================================

class ErrorBody(BaseModel):
    code: str = Field(..., description="VALIDATION_ERROR / UNAUTHORIZED / FORBIDDEN / NOT_FOUND / CONFLICT / INTERNAL_ERROR")
    message: str
    field: Optional[str] = Field(default=None, description="문제가 된 입력 필드 (검증 오류일 때)")


class ErrorResponse(BaseModel):
    """middlewares/error_handler.py 에서 exclude_none 으로 직렬화"""
    success: bool = False
    error: ErrorBody
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# =========================================================
# 목록 meta
# =========================================================

class PageMeta(BaseModel):
    total: int = Field(..., ge=0)            # 조건에 맞는 전체 행 수
    page: int = Field(..., ge=1)             # 1부터 시작
    limit: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)      # total 이 0이면 0

    model_config = ConfigDict(extra="ignore")


def make_meta(total: int, page: int, limit: int) -> PageMeta:
    return PageMeta(total=total, page=page, limit=limit, total_pages=ceil(total / max(1, limit)))
