"""
services/criteria_service.py

리포팅/레시테이션 채점 기준표 (Criteria + Rubric) 와 기준표별 채점 결과
- 기준표 수정: 항목은 순서(position) 기준으로 갱신, 남는 항목 삭제, 모자라면 추가
- 작성자 본인 또는 ADMIN 만 수정 가능
- 채점 저장: (강좌, 기준표, 날짜) 의 기존 행을 지우고 새로 만든다 (통째 교체)
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config.settings import settings
from models.courses import Course
from models.criteria import Criteria, CriteriaGrade, Rubric
from models.users import User, ROLE_ADMIN
from services.course_service import enrolled_ids
from utils.dates import parse_iso_date
from utils.exceptions import NotFoundError, PermissionDeniedError, ValidationError

logger = logging.getLogger(__name__)


# ==========================================================
# [검증]
# ==========================================================
def _validate_rubrics(rubrics: Optional[List[dict]]) -> List[dict]:
    if not rubrics:
        raise ValidationError("At least one rubric is required", field="rubrics")
    cleaned = []
    for idx, rubric in enumerate(rubrics):
        # 화면에서는 weight, 저장 시에는 percentage
        percentage = rubric.get("percentage")
        if percentage is None:
            percentage = rubric.get("weight")
        if not rubric.get("name") or percentage is None:
            raise ValidationError(f"Rubric {idx} requires name and percentage", field="rubrics")
        if not 0 <= percentage <= 100:
            raise ValidationError("Rubric percentage must be between 0 and 100", field="rubrics")
        cleaned.append({"name": rubric["name"], "percentage": float(percentage)})

    if settings.ENFORCE_WEIGHT_SUM:
        total = sum(r["percentage"] for r in cleaned)
        if abs(total - 100) > settings.WEIGHT_SUM_TOLERANCE:
            raise ValidationError(f"Rubric percentages must sum to 100 (got {total:g})", field="rubrics")
    return cleaned


def _validate_criteria(values: dict) -> dict:
    missing = [f for f in ("name", "rubrics", "scoring_range", "passing_score") if values.get(f) in (None, "", [])]
    if missing:
        raise ValidationError("Missing required fields", field=missing[0])
    if values["scoring_range"] < 1:
        raise ValidationError("scoring_range must be at least 1", field="scoring_range")
    if not 0 <= values["passing_score"] <= 100:
        raise ValidationError("passing_score must be between 0 and 100", field="passing_score")

    values["rubrics"] = _validate_rubrics(values["rubrics"])
    values["date"] = parse_iso_date(values["date"]) if values.get("date") else None
    if values.get("is_recitation_criteria") and values["date"] is None:
        raise ValidationError("date is required for recitation criteria", field="date")
    return values


# ==========================================================
# [기준표]
# ==========================================================
def create_criteria(db: Session, course: Course, user: User, values: dict) -> Criteria:
    values = _validate_criteria(dict(values))
    criteria = Criteria(
        course_id=course.id,
        user_id=user.id,
        name=values["name"],
        scoring_range=values["scoring_range"],
        passing_score=values["passing_score"],
        date=values["date"],
        is_group_criteria=bool(values.get("is_group_criteria")),
        is_recitation_criteria=bool(values.get("is_recitation_criteria")),
        rubrics=[Rubric(position=i, **r) for i, r in enumerate(values["rubrics"])],
    )
    db.add(criteria)
    db.commit()
    db.refresh(criteria)
    logger.info(f"기준표 생성: course={course.slug} criteria={criteria.id} rubrics={len(criteria.rubrics)}")
    return criteria


def list_criteria(db: Session, course: Course, recitation: Optional[bool] = None,
                  group: Optional[bool] = None) -> List[Criteria]:
    """최신순. recitation/group 을 주면 해당 종류만"""
    query = db.query(Criteria).filter(Criteria.course_id == course.id)
    if recitation is not None:
        query = query.filter(Criteria.is_recitation_criteria == recitation)
    if group is not None:
        query = query.filter(Criteria.is_group_criteria == group)
    return query.order_by(Criteria.created_at.desc(), Criteria.id.desc()).all()


def get_criteria(db: Session, course: Course, criteria_id: int) -> Criteria:
    criteria = db.query(Criteria).filter(Criteria.id == criteria_id, Criteria.course_id == course.id).first()
    if not criteria:
        raise NotFoundError("Criteria not found")
    return criteria


def update_criteria(db: Session, course: Course, criteria_id: int, user: User, values: dict) -> Criteria:
    criteria = get_criteria(db, course, criteria_id)
    if criteria.user_id != user.id and user.role != ROLE_ADMIN:
        raise PermissionDeniedError("You do not have permission to edit this criteria")
    values = _validate_criteria(dict(values))

    criteria.name = values["name"]
    criteria.scoring_range = values["scoring_range"]
    criteria.passing_score = values["passing_score"]
    criteria.date = values["date"]

    existing = list(criteria.rubrics)
    for position, rubric in enumerate(values["rubrics"]):
        if position < len(existing):
            existing[position].name = rubric["name"]
            existing[position].percentage = rubric["percentage"]
        else:
            criteria.rubrics.append(Rubric(position=position, **rubric))
    # 줄어든 항목은 delete-orphan 으로 삭제
    for extra in existing[len(values["rubrics"]):]:
        criteria.rubrics.remove(extra)

    db.commit()
    db.refresh(criteria)
    logger.info(f"기준표 수정: course={course.slug} criteria={criteria.id} rubrics={len(criteria.rubrics)}")
    return criteria


# ==========================================================
# [채점 결과]
# ==========================================================
def weighted_total(criteria: Criteria, scores: List[float]) -> float:
    """항목 점수 / 최고 점수 × 비중(%) 합계"""
    total = sum(
        score / criteria.scoring_range * rubric.percentage
        for score, rubric in zip(scores, criteria.rubrics)
    )
    return round(total, 2)


def _validate_grades(criteria: Criteria, entries: List[dict], enrolled: set) -> List[dict]:
    cleaned = []
    rubric_count = len(criteria.rubrics)
    for idx, entry in enumerate(entries):
        student_id, scores = entry.get("student_id"), entry.get("scores")
        if student_id is None or scores is None:
            raise ValidationError(f"studentId and scores are required (entry {idx})", field="grades")
        if student_id not in enrolled:
            raise ValidationError(f"Student {student_id} is not enrolled in this course", field="student_id")
        if len(scores) != rubric_count:
            raise ValidationError(f"Expected {rubric_count} scores (entry {idx})", field="scores")
        if any(not 0 <= s <= criteria.scoring_range for s in scores):
            raise ValidationError(
                f"Scores must be between 0 and {criteria.scoring_range} (entry {idx})", field="scores"
            )
        total = entry.get("total")
        if total is None:
            total = weighted_total(criteria, scores)
        elif not 0 <= total <= 100:
            raise ValidationError(f"total must be between 0 and 100 (entry {idx})", field="total")
        cleaned.append({"student_id": student_id, "scores": [float(s) for s in scores], "total": float(total)})
    return cleaned


def save_grades(db: Session, course: Course, criteria_id: int, day, entries: Optional[Iterable[dict]]) -> List[CriteriaGrade]:
    """해당 날짜의 채점 결과를 통째로 교체. 검증 실패 시 기존 행은 그대로"""
    if not day:
        raise ValidationError("date is required", field="date")
    day = parse_iso_date(day)
    if entries is None:
        raise ValidationError("grades is required", field="grades")
    criteria = get_criteria(db, course, criteria_id)
    cleaned = _validate_grades(criteria, list(entries), enrolled_ids(course))

    try:
        deleted = (
            db.query(CriteriaGrade)
            .filter(
                CriteriaGrade.course_id == course.id,
                CriteriaGrade.criteria_id == criteria.id,
                CriteriaGrade.date == day,
            )
            .delete(synchronize_session="fetch")
        )
        rows = [
            CriteriaGrade(course_id=course.id, criteria_id=criteria.id, date=day, **entry)
            for entry in cleaned
        ]
        db.add_all(rows)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"기준표 채점 저장 실패(롤백): criteria={criteria.id} date={day}")
        raise

    logger.info(f"기준표 채점 저장: criteria={criteria.id} date={day} replaced={deleted} count={len(rows)}")
    return list_grades(db, course, criteria.id, day)


def list_grades(db: Session, course: Course, criteria_id: int, day) -> List[CriteriaGrade]:
    if not day:
        raise ValidationError("date is required", field="date")
    day = parse_iso_date(day)
    criteria = get_criteria(db, course, criteria_id)
    return (
        db.query(CriteriaGrade)
        .filter(
            CriteriaGrade.course_id == course.id,
            CriteriaGrade.criteria_id == criteria.id,
            CriteriaGrade.date == day,
        )
        .order_by(CriteriaGrade.student_id)
        .all()
    )
