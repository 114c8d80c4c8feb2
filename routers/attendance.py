from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from config.settings import settings
from database.db import get_db
from dependencies.security import require_capability
from models.users import User
from schemas.attendance import (
    Attendance as AttendanceSchema,
    AttendanceBatchIn,
    AttendanceClearIn,
    AttendanceIn,
    AttendanceStats,
    RangeStats,
    StudentStatus,
)
from schemas.common import make_meta
from services import attendance_service, course_service
from services.permissions import ATTENDANCE_READ, ATTENDANCE_WRITE

router = APIRouter(prefix="/courses/{slug}/attendance", tags=["attendance"])


# ==========================================================
# [1단계] 출결 기록 (upsert)
# ==========================================================

# ✅ [CREATE] 단건 기록 (같은 학생/날짜면 상태 덮어쓰기)
@router.post("/")
def record_attendance(
    slug: str,
    body: AttendanceIn,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(ATTENDANCE_WRITE)),
):
    course = course_service.get_course_by_slug(db, slug)
    record = attendance_service.record_attendance(db, course, body.student_id, body.date, body.status)
    return {
        "success": True,
        "data": AttendanceSchema.model_validate(record),
        "message": "Attendance recorded successfully",
    }


# ✅ [CREATE] 한 수업일 일괄 기록 (전체 검증 후 한 트랜잭션)
@router.post("/batch")
def record_attendance_batch(
    slug: str,
    body: AttendanceBatchIn,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(ATTENDANCE_WRITE)),
):
    course = course_service.get_course_by_slug(db, slug)
    records = attendance_service.record_attendance_batch(
        db, course, body.date, [entry.model_dump() for entry in body.attendance]
    )
    return {
        "success": True,
        "data": [AttendanceSchema.model_validate(r) for r in records],
        "message": f"{len(records)} attendance records saved",
    }


# ✅ [DELETE] id 목록으로 일괄 삭제 (강좌 범위로 제한)
@router.post("/clear")
def clear_attendance(
    slug: str,
    body: AttendanceClearIn,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(ATTENDANCE_WRITE)),
):
    course = course_service.get_course_by_slug(db, slug)
    deleted = attendance_service.clear_attendance(db, course, body.record_ids, body.date)
    return {"success": True, "data": {"deleted": deleted}, "message": "Attendance records cleared"}


# ==========================================================
# [2단계] 조회
# ==========================================================

# ✅ [READ] 특정 날짜 출결 목록 (페이지네이션)
@router.get("/")
def list_attendance(
    slug: str,
    day: str = Query(..., alias="date", description="조회할 날짜 (예: 2025-03-01)"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(ATTENDANCE_READ)),
):
    course = course_service.get_course_by_slug(db, slug)
    total, records = attendance_service.list_attendance(db, course, day, page, limit)
    return {
        "success": True,
        "data": [AttendanceSchema.model_validate(r) for r in records],
        "meta": make_meta(total, page, limit),
    }


# ✅ [READ] 출결이 있는 날짜 목록 (오름차순)
@router.get("/dates")
def attendance_dates(
    slug: str,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(ATTENDANCE_READ)),
):
    course = course_service.get_course_by_slug(db, slug)
    return {"success": True, "data": attendance_service.attendance_dates(db, course)}


# ✅ [STATS] 날짜별 통계 (date 생략 시 가장 최근 출결일, 기록 없는 학생은 결석)
@router.get("/stats")
def attendance_stats(
    slug: str,
    day: Optional[str] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(ATTENDANCE_READ)),
):
    course = course_service.get_course_by_slug(db, slug)
    stats = attendance_service.compute_stats(db, course, day)
    return {"success": True, "data": AttendanceStats(**stats)}


# ✅ [ROSTER] 출석부 화면용 학생별 상태 (기록 없으면 NOT_SET)
@router.get("/roster")
def attendance_roster(
    slug: str,
    day: str = Query(..., alias="date"),
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(ATTENDANCE_READ)),
):
    course = course_service.get_course_by_slug(db, slug)
    rows = attendance_service.student_statuses(db, course, day)
    return {"success": True, "data": [StudentStatus(**row) for row in rows]}


# ✅ [RANGE] 기간별 학생 출결 집계
@router.get("/range")
def attendance_range(
    slug: str,
    start_date: str = Query(..., description="시작일 (예: 2025-03-01)"),
    end_date: str = Query(..., description="종료일 (예: 2025-03-31)"),
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(ATTENDANCE_READ)),
):
    course = course_service.get_course_by_slug(db, slug)
    stats = attendance_service.range_stats(db, course, start_date, end_date)
    return {"success": True, "data": RangeStats(**stats)}
