"""
services/quiz_service.py

퀴즈 채점
- (퀴즈, 학생)당 점수 1건, 마지막 저장이 이긴다 (upsert)
- plus_points / total_grade 는 호출측이 계산해 보낸 값을 그대로 저장
- save_all: 전체 항목 사전 검증 → 한 트랜잭션으로 저장 (일부만 저장되는 일 없음)
- 가산점 자격: 퀴즈의 출결 인정 구간 안에 PRESENT/LATE 기록이 1건 이상
"""

import logging
from typing import Iterable, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database.db import upsert
from models.attendance import Attendance, PRESENT, LATE
from models.courses import Course
from models.quizzes import Quiz, QuizScore, QUIZ_ATTENDANCE_VALUES
from services.attendance_service import range_stats
from services.course_service import enrolled_ids, get_course
from services.grade_engine import suggested_quiz_total
from utils.dates import parse_iso_date, utcnow
from utils.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

QUIZ_FIELDS = ("name", "quiz_date", "attendance_range_start", "attendance_range_end", "max_score", "passing_rate")
SCORE_FIELDS = ("student_id", "score", "attendance", "plus_points", "total_grade")


# ==========================================================
# [퀴즈 정의]
# ==========================================================
def _validate_quiz(values: dict) -> dict:
    missing = [f for f in QUIZ_FIELDS if values.get(f) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", field=missing[0])

    cleaned = dict(values)
    for field in ("quiz_date", "attendance_range_start", "attendance_range_end"):
        cleaned[field] = parse_iso_date(values[field], field=field)
    if cleaned["attendance_range_start"] > cleaned["attendance_range_end"]:
        raise ValidationError("attendance_range_start must not be after attendance_range_end",
                              field="attendance_range_start")
    if float(values["max_score"]) <= 0:
        raise ValidationError("max_score must be greater than 0", field="max_score")
    if not 0 <= float(values["passing_rate"]) <= 100:
        raise ValidationError("passing_rate must be between 0 and 100", field="passing_rate")
    return cleaned


def create_quiz(db: Session, course: Course, values: dict) -> Quiz:
    cleaned = _validate_quiz(values)
    quiz = Quiz(course_id=course.id, **{f: cleaned[f] for f in QUIZ_FIELDS})
    db.add(quiz)
    db.commit()
    db.refresh(quiz)
    logger.info(f"퀴즈 생성: course={course.slug} quiz={quiz.id} ({quiz.name})")
    return quiz


def get_quiz(db: Session, quiz_id: int) -> Quiz:
    quiz = db.get(Quiz, quiz_id)
    if quiz is None:
        raise NotFoundError("Quiz not found")
    return quiz


def update_quiz(db: Session, quiz_id: int, values: dict) -> Quiz:
    cleaned = _validate_quiz(values)
    quiz = get_quiz(db, quiz_id)
    for field in QUIZ_FIELDS:
        setattr(quiz, field, cleaned[field])
    db.commit()
    db.refresh(quiz)
    logger.info(f"퀴즈 수정: quiz={quiz.id}")
    return quiz


def list_quizzes(db: Session, course: Course) -> List[Quiz]:
    return (
        db.query(Quiz)
        .filter(Quiz.course_id == course.id)
        .order_by(Quiz.created_at.desc(), Quiz.id.desc())
        .all()
    )


# ==========================================================
# [점수]
# ==========================================================
def list_scores(db: Session, quiz: Quiz) -> List[QuizScore]:
    return db.query(QuizScore).filter(QuizScore.quiz_id == quiz.id).order_by(QuizScore.student_id).all()


def _validate_scores(entries: List[dict], enrolled: set) -> List[dict]:
    if not entries:
        raise ValidationError("Scores array is required", field="scores")

    cleaned = []
    for idx, entry in enumerate(entries):
        if any(entry.get(f) in (None, "") for f in SCORE_FIELDS):
            raise ValidationError("Missing required fields in one or more scores", field=f"scores[{idx}]")
        attendance = str(entry["attendance"]).upper()
        if attendance not in QUIZ_ATTENDANCE_VALUES:
            raise ValidationError(
                f"attendance must be one of {', '.join(QUIZ_ATTENDANCE_VALUES)}",
                field=f"scores[{idx}].attendance",
            )
        if entry["student_id"] not in enrolled:
            raise ValidationError(
                f"Student {entry['student_id']} is not enrolled in this course",
                field=f"scores[{idx}].student_id",
            )
        try:
            numbers = {f: float(entry[f]) for f in ("score", "plus_points", "total_grade")}
        except (TypeError, ValueError):
            raise ValidationError("score, plus_points and total_grade must be numbers", field=f"scores[{idx}]")
        cleaned.append({"student_id": entry["student_id"], "attendance": attendance, **numbers})
    return cleaned


def save_all(db: Session, quiz: Quiz, entries: Iterable[dict]) -> List[QuizScore]:
    """한 퀴즈의 점수 묶음을 전부 저장하거나 전혀 저장하지 않는다"""
    course = get_course(db, quiz.course_id)
    cleaned = _validate_scores(list(entries), enrolled_ids(course))

    try:
        saved = []
        for entry in cleaned:
            row = upsert(
                db, QuizScore,
                keys={"quiz_id": quiz.id, "student_id": entry["student_id"]},
                values={
                    "score": entry["score"],
                    "attendance": entry["attendance"],
                    "plus_points": entry["plus_points"],
                    "total_grade": entry["total_grade"],
                    "updated_at": utcnow(),
                },
            )
            saved.append(row)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"퀴즈 점수 저장 실패(롤백): quiz={quiz.id}")
        raise

    for row in saved:
        db.refresh(row)
    logger.info(f"퀴즈 점수 저장: quiz={quiz.id} count={len(saved)}")
    return saved


# ==========================================================
# [가산점 자격 / 출결 연계]
# ==========================================================
def is_bonus_eligible(db: Session, quiz: Quiz, student_id: int) -> bool:
    hit = (
        db.query(Attendance.id)
        .filter(
            Attendance.course_id == quiz.course_id,
            Attendance.student_id == student_id,
            Attendance.date.between(quiz.attendance_range_start, quiz.attendance_range_end),
            Attendance.status.in_((PRESENT, LATE)),
        )
        .first()
    )
    return hit is not None


def attendance_summary(db: Session, quiz: Quiz) -> dict:
    """퀴즈 출결 인정 구간의 학생별 출결 집계 + 가산점 자격 + 저장된 점수 기준 미리보기 총점"""
    course = get_course(db, quiz.course_id)
    stats = range_stats(db, course, quiz.attendance_range_start, quiz.attendance_range_end)
    scores = {s.student_id: s for s in list_scores(db, quiz)}

    for row in stats["student_stats"]:
        row["bonus_eligible"] = (row["present"] + row["late"]) > 0
        saved = scores.get(row["student_id"])
        row["suggested_total_grade"] = (
            suggested_quiz_total(saved.score, saved.plus_points, quiz.max_score) if saved else None
        )
    return stats
