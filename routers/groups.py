from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import require_capability
from models.users import User
from schemas.courses import ExistsOut, GroupCreate, GroupOut
from services import course_service
from services.permissions import COURSES_READ, GRADES_WRITE

router = APIRouter(prefix="/courses/{slug}/groups", tags=["groups"])


# ==========================================================
# [중복 확인] 화면 입력 중 사전 확인용
# ==========================================================

# ✅ [CHECK] 그룹 이름 중복
@router.get("/check-name")
def check_group_name(
    slug: str,
    name: str = Query(...),
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(COURSES_READ)),
):
    course = course_service.get_course_by_slug(db, slug)
    return {"success": True, "data": ExistsOut(exists=course_service.group_name_exists(db, course, name))}


# ✅ [CHECK] 그룹 번호 중복
@router.get("/check-number")
def check_group_number(
    slug: str,
    number: str = Query(...),
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(COURSES_READ)),
):
    course = course_service.get_course_by_slug(db, slug)
    return {"success": True, "data": ExistsOut(exists=course_service.group_number_exists(db, course, number))}


# ==========================================================
# [CRUD]
# ==========================================================

# ✅ [CREATE] 그룹 생성 (이름/번호 중복 → 409)
@router.post("/", status_code=201)
def create_group(
    slug: str,
    body: GroupCreate,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_WRITE)),
):
    course = course_service.get_course_by_slug(db, slug)
    group = course_service.create_group(
        db, course, body.number, body.name, body.student_ids, leader_id=body.leader_id
    )
    return {"success": True, "data": GroupOut.model_validate(group), "message": "Group created successfully"}


# ✅ [READ] 그룹 목록
@router.get("/")
def list_groups(
    slug: str,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(COURSES_READ)),
):
    course = course_service.get_course_by_slug(db, slug)
    return {"success": True, "data": [GroupOut.model_validate(g) for g in course_service.list_groups(db, course)]}


# ✅ [READ] 그룹 단건
@router.get("/{group_id}")
def get_group(
    slug: str,
    group_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(COURSES_READ)),
):
    course = course_service.get_course_by_slug(db, slug)
    return {"success": True, "data": GroupOut.model_validate(course_service.get_group(db, course, group_id))}


# ✅ [DELETE] 그룹 삭제
@router.delete("/{group_id}")
def delete_group(
    slug: str,
    group_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_WRITE)),
):
    course = course_service.get_course_by_slug(db, slug)
    course_service.delete_group(db, course, group_id)
    return {"success": True, "data": None, "message": "Group deleted successfully"}
