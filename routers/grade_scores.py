from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import require_capability
from models.users import User
from schemas.grade_scores import (
    ComponentScoreIn,
    ComponentScoreOut,
    ComponentScoresIn,
    GradeScore as GradeScoreSchema,
    StudentGrade,
)
from services import course_service, grade_score_service, grading_service
from services.grade_engine import WEIGHTED
from services.permissions import GRADES_READ, GRADES_WRITE
from utils.dates import parse_iso_date
from utils.exceptions import ValidationError

router = APIRouter(prefix="/courses/{slug}/students/{student_id}", tags=["grade-scores"])


def _optional_date(value: Optional[str], field: str):
    return parse_iso_date(value, field=field) if value else None


def _component_column(component: str) -> str:
    if component not in grade_score_service.COMPONENT_FIELDS:
        raise ValidationError(
            f"component must be one of {', '.join(grade_score_service.COMPONENT_FIELDS)}",
            field="component",
        )
    return grade_score_service.COMPONENT_FIELDS[component]


# ==========================================================
# [1단계] 최신 점수 조회 (없으면 0점 자리표시)
# ==========================================================

# ✅ [READ] 구성요소 3종 최신 점수
@router.get("/scores")
def latest_scores(
    slug: str,
    student_id: int,
    config_id: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_READ)),
):
    course = course_service.get_course_by_slug(db, slug)
    course_service.get_student(db, student_id)
    score = grade_score_service.latest_score(
        db, course, student_id, config_id,
        _optional_date(date_from, "date_from"), _optional_date(date_to, "date_to"),
    )
    return {"success": True, "data": GradeScoreSchema.model_validate(score)}


# ✅ [READ] 구성요소 1종 최신 점수 (예: /reporting-scores?date_from=...&date_to=...)
@router.get("/{component}-scores")
def latest_component_score(
    slug: str,
    student_id: int,
    component: str,
    config_id: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_READ)),
):
    column = _component_column(component)
    course = course_service.get_course_by_slug(db, slug)
    course_service.get_student(db, student_id)
    score = grade_score_service.latest_score(
        db, course, student_id, config_id,
        _optional_date(date_from, "date_from"), _optional_date(date_to, "date_to"),
    )
    return {
        "success": True,
        "data": ComponentScoreOut(score=getattr(score, column), created_at=score.created_at),
    }


# ==========================================================
# [2단계] 점수 저장
# ==========================================================

# ✅ [UPDATE] 구성요소 1종 저장 (현재 구성이 바뀌었으면 새 이력 행)
@router.put("/{component}-scores")
def upsert_component_score(
    slug: str,
    student_id: int,
    component: str,
    body: ComponentScoreIn,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_WRITE)),
):
    _component_column(component)
    course = course_service.get_course_by_slug(db, slug)
    row = grade_score_service.upsert_component(db, course, student_id, body.config_id, component, body.value)
    return {"success": True, "data": GradeScoreSchema.model_validate(row), "message": "Score saved successfully"}


# ✅ [UPDATE] 여러 구성요소를 한 번에 저장
@router.post("/scores")
def set_component_scores(
    slug: str,
    student_id: int,
    body: ComponentScoresIn,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_WRITE)),
):
    course = course_service.get_course_by_slug(db, slug)
    row = grade_score_service.set_components(db, course, student_id, body.model_dump(exclude_unset=True))
    return {"success": True, "data": GradeScoreSchema.model_validate(row), "message": "Scores saved successfully"}


# ==========================================================
# [3단계] 최종 성적 (요청마다 재계산)
# ==========================================================

# ✅ [READ] 학생 1명 성적 산출
@router.get("/grade")
def student_grade(
    slug: str,
    student_id: int,
    strategy: str = Query(WEIGHTED, description="weighted / content_clarity"),
    config_id: Optional[str] = Query(None, description="과거 구성 기준으로 산출"),
    on: Optional[str] = Query(None, description="기준일 (구성 적용 구간)"),
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_READ)),
):
    course = course_service.get_course_by_slug(db, slug)
    result = grading_service.compute_student_grade(
        db, course, student_id, strategy, config_id,
        _optional_date(date_from, "date_from"), _optional_date(date_to, "date_to"),
        _optional_date(on, "on"),
    )
    return {"success": True, "data": StudentGrade(**result)}
