from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import require_capability
from models.grades import CONTENT, CLARITY
from models.users import User
from schemas.grade_scores import StudentGrade
from schemas.grades import GradeItem as GradeItemSchema, GradeItemIn, RubricGrades, RubricGradesIn
from services import course_service, grading_service, rubric_service
from services.grade_engine import WEIGHTED
from services.permissions import CONFIG_WRITE, GRADES_READ, GRADES_WRITE
from utils.dates import parse_iso_date

router = APIRouter(prefix="/courses/{slug}", tags=["grades"])


# ==========================================================
# [성적표] 수강생 전체 산출
# ==========================================================

# ✅ [READ] 강좌 성적표 (strategy 선택)
@router.get("/gradebook")
def gradebook(
    slug: str,
    strategy: str = Query(WEIGHTED, description="weighted / content_clarity"),
    config_id: Optional[str] = Query(None),
    on: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_READ)),
):
    course = course_service.get_course_by_slug(db, slug)
    rows = grading_service.gradebook(
        db, course, strategy, config_id,
        parse_iso_date(date_from, field="date_from") if date_from else None,
        parse_iso_date(date_to, field="date_to") if date_to else None,
        parse_iso_date(on, field="on") if on else None,
    )
    passed = sum(1 for r in rows if r["remarks"] == "PASSED")
    return {
        "success": True,
        "data": [StudentGrade(**r) for r in rows],
        "message": f"{passed}/{len(rows)} students passed",
    }


# ==========================================================
# [루브릭] content / clarity 항목
# ==========================================================

# ✅ [READ] 루브릭 항목 목록
@router.get("/grade-items")
def list_grade_items(
    slug: str,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_READ)),
):
    course = course_service.get_course_by_slug(db, slug)
    return {"success": True, "data": [GradeItemSchema.model_validate(i) for i in rubric_service.list_items(db, course)]}


# ✅ [CREATE] 루브릭 항목 생성 (종류별 1개, 중복 → 409)
@router.post("/grade-items", status_code=201)
def create_grade_item(
    slug: str,
    body: GradeItemIn,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(CONFIG_WRITE)),
):
    course = course_service.get_course_by_slug(db, slug)
    item = rubric_service.create_item(db, course, body.type, body.weight)
    return {"success": True, "data": GradeItemSchema.model_validate(item), "message": "Grade item created successfully"}


# ✅ [READ] 학생 루브릭 점수
@router.get("/students/{student_id}/rubric")
def get_rubric_grades(
    slug: str,
    student_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_READ)),
):
    course = course_service.get_course_by_slug(db, slug)
    course_service.get_student(db, student_id)
    values = rubric_service.get_values(db, course, student_id)
    return {"success": True, "data": RubricGrades(content=values[CONTENT], clarity=values[CLARITY])}


# ✅ [UPDATE] 학생 루브릭 점수 저장 (0 ~ 10)
@router.put("/students/{student_id}/rubric")
def set_rubric_grades(
    slug: str,
    student_id: int,
    body: RubricGradesIn,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_WRITE)),
):
    course = course_service.get_course_by_slug(db, slug)
    values = rubric_service.set_values(db, course, student_id, {CONTENT: body.content, CLARITY: body.clarity})
    return {
        "success": True,
        "data": RubricGrades(content=values[CONTENT], clarity=values[CLARITY]),
        "message": "Grades saved successfully",
    }
