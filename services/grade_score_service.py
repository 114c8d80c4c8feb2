"""
services/grade_score_service.py

구성요소 점수 저장소 (reporting / recitation / quiz %)
- 현재 점수 = 조건에 맞는 GradeScore 중 created_at 최신 행 (조회 시점 축약)
- 없으면 0점 자리표시 행을 돌려준다 (오류 아님: "아직 성적 없음")
- 현재 구성이 바뀌면 기존 행을 고치지 않고 새 이력 행을 추가한다
"""

import logging
from datetime import date
from typing import Optional, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.courses import Course
from models.grade_configurations import GradeConfiguration
from models.grade_scores import GradeScore
from services.course_service import enrolled_ids, get_student
from services.grade_config_service import current_configuration
from utils.dates import optional_range
from utils.exceptions import ValidationError

logger = logging.getLogger(__name__)

# API 필드명 → 컬럼명
COMPONENT_FIELDS = {
    "reporting": "reporting_score",
    "recitation": "recitation_score",
    "quiz": "quiz_score",
}


def _placeholder(course: Course, student_id: int, config_id: Optional[str]) -> GradeScore:
    return GradeScore(
        student_id=student_id,
        course_id=course.id,
        config_id=config_id,
        reporting_score=0.0,
        recitation_score=0.0,
        quiz_score=0.0,
        created_at=None,
    )


def latest_score(db: Session, course: Course, student_id: int, config_id: Optional[str] = None,
                 date_from: Optional[date] = None, date_to: Optional[date] = None) -> GradeScore:
    query = db.query(GradeScore).filter(
        GradeScore.student_id == student_id,
        GradeScore.course_id == course.id,
    )
    if config_id is not None:
        # 스냅샷 id 로 조회해도 수정 전 구성에 저장된 점수까지 포함
        config = db.get(GradeConfiguration, config_id)
        ids = _lineage(db, config) if config is not None and config.course_id == course.id else {config_id}
        query = query.filter(GradeScore.config_id.in_(ids))
    start, end = optional_range(date_from, date_to)
    if start is not None:
        query = query.filter(GradeScore.created_at >= start)
    if end is not None:
        query = query.filter(GradeScore.created_at <= end)

    row = query.order_by(GradeScore.created_at.desc(), GradeScore.id.desc()).first()
    return row if row is not None else _placeholder(course, student_id, config_id)


def _lineage(db: Session, config: Optional[GradeConfiguration]) -> Set[str]:
    """config 와 그 이전 스냅샷들의 id (수정 전/후는 같은 채점 기간으로 본다)"""
    ids = set()
    while config is not None and config.id not in ids:
        ids.add(config.id)
        config = db.get(GradeConfiguration, config.supersedes_id) if config.supersedes_id else None
    return ids


def _check_value(field: str, value) -> float:
    if field not in COMPONENT_FIELDS:
        raise ValidationError(f"field must be one of {', '.join(COMPONENT_FIELDS)}", field="field")
    if value is None:
        raise ValidationError(f"{field} score is required", field=field)
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} score must be a number", field=field)
    if not 0 <= value <= 100:
        raise ValidationError(f"{field} score must be between 0 and 100", field=field)
    return value


def _apply(db: Session, course: Course, student_id: int, config: Optional[GradeConfiguration],
           values: dict) -> GradeScore:
    config_id = config.id if config is not None else None
    row = (
        db.query(GradeScore)
        .filter(GradeScore.student_id == student_id, GradeScore.course_id == course.id)
        .order_by(GradeScore.created_at.desc(), GradeScore.id.desc())
        .first()
    )
    if row is not None and row.config_id == config_id:
        # 같은 구성 → 제자리 부분 수정
        for field, value in values.items():
            setattr(row, COMPONENT_FIELDS[field], value)
        return row

    carried = {}
    if row is not None and row.config_id in _lineage(db, config):
        # 수정 스냅샷으로 넘어온 경우 나머지 구성요소 점수 유지
        carried = {
            "reporting_score": row.reporting_score,
            "recitation_score": row.recitation_score,
            "quiz_score": row.quiz_score,
        }
    new_row = GradeScore(
        student_id=student_id,
        course_id=course.id,
        config_id=config_id,
        reporting_score=carried.get("reporting_score", 0.0),
        recitation_score=carried.get("recitation_score", 0.0),
        quiz_score=carried.get("quiz_score", 0.0),
    )
    for field, value in values.items():
        setattr(new_row, COMPONENT_FIELDS[field], value)
    db.add(new_row)
    return new_row


def _require_enrolled(db: Session, course: Course, student_id: int) -> None:
    get_student(db, student_id)
    if student_id not in enrolled_ids(course):
        raise ValidationError("Student is not enrolled in this course", field="student_id")


def upsert_component(db: Session, course: Course, student_id: int, config_id: Optional[str],
                     field: str, value) -> GradeScore:
    """구성요소 1개 저장. config_id 가 None 이면 현재 구성을 사용"""
    value = _check_value(field, value)
    _require_enrolled(db, course, student_id)
    config = db.get(GradeConfiguration, config_id) if config_id else current_configuration(db, course)
    if config_id and (config is None or config.course_id != course.id):
        raise ValidationError("Unknown grade configuration for this course", field="config_id")

    row = _apply(db, course, student_id, config, {field: value})
    db.commit()
    db.refresh(row)
    logger.info(f"구성요소 점수 저장: course={course.slug} student={student_id} {field}={value:g} config={row.config_id}")
    return row


def set_components(db: Session, course: Course, student_id: int, values: dict) -> GradeScore:
    """여러 구성요소를 한 트랜잭션으로 저장 (전달된 필드만)"""
    values = {k: _check_value(k, v) for k, v in values.items() if v is not None}
    if not values:
        raise ValidationError("At least one of reporting, recitation, quiz is required", field="scores")
    _require_enrolled(db, course, student_id)
    config = current_configuration(db, course)

    try:
        row = _apply(db, course, student_id, config, values)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(row)
    logger.info(f"구성요소 점수 일괄 저장: course={course.slug} student={student_id} fields={sorted(values)}")
    return row
