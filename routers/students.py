from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import require_capability
from models.users import User
from schemas.courses import StudentCreate, StudentImageUpdate, StudentOut, StudentUpdate
from services import course_service
from services.permissions import COURSES_READ, COURSES_WRITE

router = APIRouter(prefix="/students", tags=["students"])


# ✅ [CREATE] 학생 등록
@router.post("/", status_code=201)
def create_student(
    body: StudentCreate,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(COURSES_WRITE)),
):
    student = course_service.create_student(db, body.model_dump())
    return {"success": True, "data": StudentOut.model_validate(student), "message": "Student created successfully"}


# ✅ [READ] 학생 단건 조회
@router.get("/{student_id}")
def get_student(
    student_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(COURSES_READ)),
):
    student = course_service.get_student(db, student_id)
    return {"success": True, "data": StudentOut.model_validate(student)}


# ✅ [UPDATE] 학생 정보 수정
@router.patch("/{student_id}")
def update_student(
    student_id: int,
    body: StudentUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(COURSES_WRITE)),
):
    student = course_service.get_student(db, student_id)
    student = course_service.update_student(db, student, body.model_dump(exclude_unset=True))
    return {"success": True, "data": StudentOut.model_validate(student), "message": "Student updated successfully"}


# ✅ [UPDATE] 프로필 이미지 URL 변경 (업로드 저장소는 외부)
@router.put("/{student_id}/image")
def update_student_image(
    student_id: int,
    body: StudentImageUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(COURSES_WRITE)),
):
    student = course_service.get_student(db, student_id)
    student = course_service.update_student(db, student, {"image": body.image})
    return {"success": True, "data": StudentOut.model_validate(student), "message": "Image updated successfully"}
