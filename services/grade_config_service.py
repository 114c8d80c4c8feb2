"""
services/grade_config_service.py

성적 구성(GradeConfiguration) 버전 관리
- 생성: id = "{course_id}_{epoch ms}", 같은 강좌 안에서 단조 증가
- 수정: 기존 행은 그대로 두고 새 스냅샷 행을 생성 (supersedes_id = 이전 id)
  → 이미 이전 구성에 귀속된 점수의 산출 결과가 소급 변경되지 않음
- 현재 구성: 대체되지 않은 구성 중 created_at 최신 (기준일이 주어지면 적용 구간 포함 조건 추가)
"""

import logging
import time
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from config.settings import settings
from models.courses import Course
from models.grade_configurations import GradeConfiguration
from utils.exceptions import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

WEIGHT_FIELDS = ("reporting_weight", "recitation_weight", "quiz_weight")


# ==========================================================
# [검증]
# ==========================================================
def _check_percentage(value, field: str) -> float:
    if value is None:
        raise ValidationError(f"{field} is required", field=field)
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number", field=field)
    if not 0 <= value <= 100:
        raise ValidationError(f"{field} must be between 0 and 100", field=field)
    return value


def validate_configuration(values: dict) -> dict:
    if not values.get("name"):
        raise ValidationError("name is required", field="name")
    for field in WEIGHT_FIELDS + ("passing_threshold",):
        values[field] = _check_percentage(values.get(field), field)

    if settings.ENFORCE_WEIGHT_SUM:
        total = sum(values[f] for f in WEIGHT_FIELDS)
        if abs(total - 100) > settings.WEIGHT_SUM_TOLERANCE:
            raise ValidationError(f"Weights must sum to 100 (got {total:g})", field="weights")

    start, end = values.get("start_date"), values.get("end_date")
    if start and end and start > end:
        raise ValidationError("start_date must not be after end_date", field="start_date")
    return values


# ==========================================================
# [식별자]
# ==========================================================
def _latest_row(db: Session, course_id: int) -> Optional[GradeConfiguration]:
    return (
        db.query(GradeConfiguration)
        .filter(GradeConfiguration.course_id == course_id)
        .order_by(GradeConfiguration.created_at.desc(), GradeConfiguration.id.desc())
        .first()
    )


def _next_stamp(db: Session, course_id: int) -> int:
    """현재 epoch ms, 단 같은 강좌의 마지막 구성보다 항상 큼"""
    now_ms = time.time_ns() // 1_000_000
    last = _latest_row(db, course_id)
    if last is not None:
        last_ms = int(last.id.rsplit("_", 1)[1])
        now_ms = max(now_ms, last_ms + 1)
    return now_ms


def _stamp_to_datetime(stamp_ms: int) -> datetime:
    return datetime.fromtimestamp(stamp_ms / 1000, tz=timezone.utc).replace(tzinfo=None)


def _new_row(db: Session, course_id: int, values: dict, supersedes_id: Optional[str] = None) -> GradeConfiguration:
    stamp = _next_stamp(db, course_id)
    return GradeConfiguration(
        id=f"{course_id}_{stamp}",
        course_id=course_id,
        name=values["name"],
        reporting_weight=values["reporting_weight"],
        recitation_weight=values["recitation_weight"],
        quiz_weight=values["quiz_weight"],
        passing_threshold=values["passing_threshold"],
        start_date=values.get("start_date"),
        end_date=values.get("end_date"),
        supersedes_id=supersedes_id,
        created_at=_stamp_to_datetime(stamp),
    )


# ==========================================================
# [연산]
# ==========================================================
def create_configuration(db: Session, course: Course, values: dict) -> GradeConfiguration:
    values = validate_configuration(dict(values))
    config = _new_row(db, course.id, values)
    db.add(config)
    db.commit()
    db.refresh(config)
    logger.info(
        f"성적 구성 생성: {config.id} ({config.reporting_weight:g}/"
        f"{config.recitation_weight:g}/{config.quiz_weight:g}, pass={config.passing_threshold:g})"
    )
    return config


def list_configurations(db: Session, course: Course) -> List[GradeConfiguration]:
    return (
        db.query(GradeConfiguration)
        .filter(GradeConfiguration.course_id == course.id)
        .order_by(GradeConfiguration.created_at.desc(), GradeConfiguration.id.desc())
        .all()
    )


def get_configuration(db: Session, course: Course, config_id: str) -> GradeConfiguration:
    config = (
        db.query(GradeConfiguration)
        .filter(GradeConfiguration.id == config_id, GradeConfiguration.course_id == course.id)
        .first()
    )
    if config is None:
        raise NotFoundError("Grade configuration not found")
    return config


def _superseded_ids():
    return select(GradeConfiguration.supersedes_id).where(GradeConfiguration.supersedes_id.isnot(None))


def current_configuration(db: Session, course: Course, on: Optional[date] = None) -> Optional[GradeConfiguration]:
    """
    현재 적용 구성. 없으면 None (산출 엔진은 0 가중치 구성으로 대체).
    on 이 주어지면 [start_date, end_date] 가 on 을 포함하는 구성만 (비어 있는 경계는 열린 구간).
    """
    query = db.query(GradeConfiguration).filter(
        GradeConfiguration.course_id == course.id,
        GradeConfiguration.id.notin_(_superseded_ids()),
    )
    if on is not None:
        query = query.filter(
            or_(GradeConfiguration.start_date.is_(None), GradeConfiguration.start_date <= on),
            or_(GradeConfiguration.end_date.is_(None), GradeConfiguration.end_date >= on),
        )
    return query.order_by(GradeConfiguration.created_at.desc(), GradeConfiguration.id.desc()).first()


def update_configuration(db: Session, course: Course, config_id: str, changes: dict) -> GradeConfiguration:
    """
    부분 수정 → 새 스냅샷 행 생성.
    이미 대체된 구성을 다시 수정하면 이력이 갈라지므로 409.
    """
    previous = get_configuration(db, course, config_id)
    successor = (
        db.query(GradeConfiguration.id)
        .filter(GradeConfiguration.supersedes_id == previous.id)
        .first()
    )
    if successor is not None:
        raise ConflictError(f"Grade configuration was already superseded by {successor[0]}")

    values = {
        "name": previous.name,
        "reporting_weight": previous.reporting_weight,
        "recitation_weight": previous.recitation_weight,
        "quiz_weight": previous.quiz_weight,
        "passing_threshold": previous.passing_threshold,
        "start_date": previous.start_date,
        "end_date": previous.end_date,
    }
    values.update({k: v for k, v in changes.items() if k in values})
    values = validate_configuration(values)

    snapshot = _new_row(db, course.id, values, supersedes_id=previous.id)
    db.add(snapshot)
    db.commit()
    db.refresh(snapshot)
    logger.info(f"성적 구성 수정(스냅샷): {previous.id} → {snapshot.id}")
    return snapshot
