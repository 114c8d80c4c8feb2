from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import require_capability
from models.users import User
from schemas.courses import CourseCreate, CourseOut, CourseUpdate, EnrollRequest, StudentOut
from services import course_service
from services.permissions import COURSES_READ, COURSES_WRITE

router = APIRouter(prefix="/courses", tags=["courses"])


# ==========================================================
# [1단계] 강좌 CRUD
# ==========================================================

# ✅ [CREATE] 강좌 생성 (시간표 포함, slug 자동 생성)
@router.post("/", status_code=201)
def create_course(
    body: CourseCreate,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(COURSES_WRITE)),
):
    data = body.model_dump(exclude={"schedules"})
    schedules = [s.model_dump() for s in body.schedules]
    course = course_service.create_course(db, data, schedules)
    return {"success": True, "data": CourseOut.model_validate(course), "message": "Course created successfully"}


# ✅ [READ] 강좌 목록
@router.get("/")
def list_courses(
    status: Optional[str] = Query(None, description="ACTIVE / INACTIVE"),
    faculty_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(COURSES_READ)),
):
    courses = course_service.list_courses(db, status=status, faculty_id=faculty_id)
    return {"success": True, "data": [CourseOut.model_validate(c) for c in courses]}


# ✅ [READ] 강좌 단건 (slug)
@router.get("/{slug}")
def get_course(
    slug: str,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(COURSES_READ)),
):
    course = course_service.get_course_by_slug(db, slug)
    return {"success": True, "data": CourseOut.model_validate(course)}


# ✅ [UPDATE] 강좌 수정 (전달한 필드만)
@router.patch("/{slug}")
def update_course(
    slug: str,
    body: CourseUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(COURSES_WRITE)),
):
    course = course_service.get_course_by_slug(db, slug)
    course = course_service.update_course(db, course, body.model_dump(exclude_unset=True))
    return {"success": True, "data": CourseOut.model_validate(course), "message": "Course updated successfully"}


# ==========================================================
# [2단계] 수강생 관리
# ==========================================================

# ✅ [READ] 수강생 목록
@router.get("/{slug}/students")
def list_enrolled_students(
    slug: str,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(COURSES_READ)),
):
    course = course_service.get_course_by_slug(db, slug)
    return {"success": True, "data": [StudentOut.model_validate(s) for s in course.students]}


# ✅ [READ] 미수강 학생 목록 (등록 후보)
@router.get("/{slug}/unenrolled-students")
def list_unenrolled_students(
    slug: str,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(COURSES_READ)),
):
    course = course_service.get_course_by_slug(db, slug)
    students = course_service.unenrolled_students(db, course)
    return {"success": True, "data": [StudentOut.model_validate(s) for s in students]}


# ✅ [CREATE] 수강 등록 (이미 등록 → 409)
@router.post("/{slug}/students", status_code=201)
def enroll_student(
    slug: str,
    body: EnrollRequest,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(COURSES_WRITE)),
):
    course = course_service.get_course_by_slug(db, slug)
    student = course_service.enroll(db, course, body.student_id)
    return {"success": True, "data": StudentOut.model_validate(student), "message": "Student enrolled successfully"}


# ✅ [DELETE] 수강 취소 (미등록 → 404)
@router.delete("/{slug}/students/{student_id}")
def unenroll_student(
    slug: str,
    student_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(COURSES_WRITE)),
):
    course = course_service.get_course_by_slug(db, slug)
    course_service.unenroll(db, course, student_id)
    return {"success": True, "data": None, "message": "Student unenrolled successfully"}
