from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import require_capability
from models.users import User
from schemas.criteria import (
    Criteria as CriteriaSchema,
    CriteriaGrade as CriteriaGradeSchema,
    CriteriaGradesIn,
    CriteriaIn,
)
from services import course_service, criteria_service
from services.permissions import CONFIG_WRITE, GRADES_READ, GRADES_WRITE

router = APIRouter(prefix="/courses/{slug}/criteria", tags=["criteria"])


# ==========================================================
# [1단계] 채점 기준표
# ==========================================================

# ✅ [CREATE] 기준표 생성 (작성자 = 로그인 사용자)
@router.post("/", status_code=201)
def create_criteria(
    slug: str,
    body: CriteriaIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(CONFIG_WRITE)),
):
    course = course_service.get_course_by_slug(db, slug)
    criteria = criteria_service.create_criteria(db, course, user, body.model_dump())
    return {"success": True, "data": CriteriaSchema.model_validate(criteria), "message": "Criteria created successfully"}


# ✅ [READ] 기준표 목록 (최신순, ?recitation=true 로 레시테이션 기준만)
@router.get("/")
def list_criteria(
    slug: str,
    recitation: Optional[bool] = Query(None),
    group: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_READ)),
):
    course = course_service.get_course_by_slug(db, slug)
    rows = criteria_service.list_criteria(db, course, recitation=recitation, group=group)
    return {"success": True, "data": [CriteriaSchema.model_validate(c) for c in rows]}


# ✅ [READ] 기준표 단건
@router.get("/{criteria_id}")
def get_criteria(
    slug: str,
    criteria_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_READ)),
):
    course = course_service.get_course_by_slug(db, slug)
    return {"success": True, "data": CriteriaSchema.model_validate(criteria_service.get_criteria(db, course, criteria_id))}


# ✅ [UPDATE] 기준표 수정 (작성자 또는 ADMIN)
@router.put("/{criteria_id}")
def update_criteria(
    slug: str,
    criteria_id: int,
    body: CriteriaIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(CONFIG_WRITE)),
):
    course = course_service.get_course_by_slug(db, slug)
    criteria = criteria_service.update_criteria(db, course, criteria_id, user, body.model_dump())
    return {"success": True, "data": CriteriaSchema.model_validate(criteria), "message": "Criteria updated successfully"}


# ==========================================================
# [2단계] 기준표별 채점 (날짜 단위 통째 교체)
# ==========================================================

# ✅ [READ] 날짜별 채점 결과
@router.get("/{criteria_id}/grades")
def list_criteria_grades(
    slug: str,
    criteria_id: int,
    date: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_READ)),
):
    course = course_service.get_course_by_slug(db, slug)
    rows = criteria_service.list_grades(db, course, criteria_id, date)
    return {"success": True, "data": [CriteriaGradeSchema.model_validate(r) for r in rows]}


# ✅ [CREATE] 날짜별 채점 저장 (같은 날짜의 기존 결과는 교체)
@router.post("/{criteria_id}/grades")
def save_criteria_grades(
    slug: str,
    criteria_id: int,
    body: CriteriaGradesIn,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_WRITE)),
):
    course = course_service.get_course_by_slug(db, slug)
    entries = [g.model_dump() for g in body.grades] if body.grades is not None else None
    rows = criteria_service.save_grades(db, course, criteria_id, body.date, entries)
    return {
        "success": True,
        "data": [CriteriaGradeSchema.model_validate(r) for r in rows],
        "message": f"{len(rows)} grades saved",
    }
