from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import require_capability
from models.users import User
from schemas.quizzes import Quiz as QuizSchema, QuizAttendance, QuizIn, QuizScore as QuizScoreSchema, QuizScoresIn
from services import course_service, quiz_service
from services.permissions import GRADES_READ, GRADES_WRITE

router = APIRouter(tags=["quizzes"])


# ==========================================================
# [1단계] 퀴즈 정의
# ==========================================================

# ✅ [CREATE] 퀴즈 생성 (모든 필드 필수)
@router.post("/courses/{slug}/quizzes", status_code=201)
def create_quiz(
    slug: str,
    body: QuizIn,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_WRITE)),
):
    course = course_service.get_course_by_slug(db, slug)
    quiz = quiz_service.create_quiz(db, course, body.model_dump())
    return {"success": True, "data": QuizSchema.model_validate(quiz), "message": "Quiz created successfully"}


# ✅ [READ] 강좌 퀴즈 목록 (최신순)
@router.get("/courses/{slug}/quizzes")
def list_quizzes(
    slug: str,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_READ)),
):
    course = course_service.get_course_by_slug(db, slug)
    return {"success": True, "data": [QuizSchema.model_validate(q) for q in quiz_service.list_quizzes(db, course)]}


# ✅ [READ] 퀴즈 단건
@router.get("/quizzes/{quiz_id}")
def get_quiz(
    quiz_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_READ)),
):
    return {"success": True, "data": QuizSchema.model_validate(quiz_service.get_quiz(db, quiz_id))}


# ✅ [UPDATE] 퀴즈 수정 (생성과 같은 검증)
@router.put("/quizzes/{quiz_id}")
def update_quiz(
    quiz_id: int,
    body: QuizIn,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_WRITE)),
):
    quiz = quiz_service.update_quiz(db, quiz_id, body.model_dump())
    return {"success": True, "data": QuizSchema.model_validate(quiz), "message": "Quiz updated successfully"}


# ==========================================================
# [2단계] 점수
# ==========================================================

# ✅ [READ] 퀴즈 점수 목록
@router.get("/quizzes/{quiz_id}/scores")
def list_quiz_scores(
    quiz_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_READ)),
):
    quiz = quiz_service.get_quiz(db, quiz_id)
    return {"success": True, "data": [QuizScoreSchema.model_validate(s) for s in quiz_service.list_scores(db, quiz)]}


# ✅ [SAVE ALL] 점수 일괄 저장 (하나라도 누락 → 전체 거부)
@router.post("/quizzes/{quiz_id}/scores")
def save_quiz_scores(
    quiz_id: int,
    body: QuizScoresIn,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_WRITE)),
):
    quiz = quiz_service.get_quiz(db, quiz_id)
    entries = [entry.model_dump() for entry in body.scores or []]
    saved = quiz_service.save_all(db, quiz, entries)
    return {
        "success": True,
        "data": [QuizScoreSchema.model_validate(s) for s in saved],
        "message": "Scores saved successfully",
    }


# ==========================================================
# [3단계] 출결 연계 (가산점 자격)
# ==========================================================

# ✅ [READ] 퀴즈 출결 인정 구간의 학생별 출결 + 가산점 자격
@router.get("/quizzes/{quiz_id}/attendance")
def quiz_attendance(
    quiz_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_READ)),
):
    quiz = quiz_service.get_quiz(db, quiz_id)
    return {"success": True, "data": QuizAttendance(**quiz_service.attendance_summary(db, quiz))}


# ✅ [READ] 학생 1명 가산점 자격
@router.get("/quizzes/{quiz_id}/students/{student_id}/bonus-eligibility")
def bonus_eligibility(
    quiz_id: int,
    student_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_READ)),
):
    quiz = quiz_service.get_quiz(db, quiz_id)
    course_service.get_student(db, student_id)
    return {
        "success": True,
        "data": {"student_id": student_id, "bonus_eligible": quiz_service.is_bonus_eligible(db, quiz, student_id)},
    }
