import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from config.settings import settings
from models.courses import Course
from models.grades import CONTENT, CLARITY
from services import grade_config_service, grade_score_service, rubric_service
from services.grade_engine import (
    WEIGHTED, CONTENT_CLARITY, ComponentScores, GradeResult, Weights,
    content_clarity_grade, weighted_grade,
)
from services.course_service import get_student
from utils.exceptions import ValidationError

logger = logging.getLogger(__name__)

STRATEGIES = (WEIGHTED, CONTENT_CLARITY)


def _weighted(db: Session, course: Course, student_id: int, config_id: Optional[str],
              date_from: Optional[date], date_to: Optional[date], on: Optional[date]) -> dict:
    # config_id 지정 시: 그 구성의 가중치 + 그 구성에 귀속된 점수 (과거 기간 조회)
    if config_id:
        config = grade_config_service.get_configuration(db, course, config_id)
    else:
        config = grade_config_service.current_configuration(db, course, on=on)
    weights = Weights.from_configuration(config, settings.DEFAULT_PASSING_THRESHOLD)
    score = grade_score_service.latest_score(db, course, student_id, config_id, date_from, date_to)
    result = weighted_grade(
        ComponentScores.of(score.reporting_score, score.recitation_score, score.quiz_score),
        weights,
    )
    return {
        **result.to_dict(),
        "config_id": config.id if config else None,
        "weights": {
            "reporting": weights.reporting,
            "recitation": weights.recitation,
            "quiz": weights.quiz,
        },
        "scored_at": score.created_at,
    }


def _content_clarity(db: Session, course: Course, student_id: int) -> dict:
    values = rubric_service.get_values(db, course, student_id)
    result: GradeResult = content_clarity_grade(
        values[CONTENT],
        values[CLARITY],
        item_max=settings.RUBRIC_ITEM_MAX,
        threshold=settings.RUBRIC_PASSING_THRESHOLD,
    )
    return result.to_dict()


def compute_student_grade(db: Session, course: Course, student_id: int, strategy: str = WEIGHTED,
                          config_id: Optional[str] = None, date_from: Optional[date] = None,
                          date_to: Optional[date] = None, on: Optional[date] = None) -> dict:
    """요청마다 재계산 (최종 성적 행을 저장하지 않음)"""
    if strategy not in STRATEGIES:
        raise ValidationError(f"strategy must be one of {', '.join(STRATEGIES)}", field="strategy")
    student = get_student(db, student_id)

    if strategy == WEIGHTED:
        result = _weighted(db, course, student_id, config_id, date_from, date_to, on)
    else:
        result = _content_clarity(db, course, student_id)
    return {"student_id": student.id, "name": student.full_name, **result}


def gradebook(db: Session, course: Course, strategy: str = WEIGHTED, config_id: Optional[str] = None,
              date_from: Optional[date] = None, date_to: Optional[date] = None,
              on: Optional[date] = None) -> List[dict]:
    rows = [
        compute_student_grade(db, course, student.id, strategy, config_id, date_from, date_to, on)
        for student in course.students
    ]
    logger.debug(f"성적표 산출: course={course.slug} strategy={strategy} students={len(rows)}")
    return rows
