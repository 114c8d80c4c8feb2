"""
services/rubric_service.py

content/clarity 2항목 루브릭 (GradeItem / Grade)
- 강좌당 종류별 항목 1개
- (학생, 항목)당 점수 1개 (upsert)
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from config.settings import settings
from database.db import upsert
from models.courses import Course
from models.grades import GradeItem, Grade, CONTENT, CLARITY, GRADE_ITEM_TYPES
from services.course_service import enrolled_ids, get_student
from utils.dates import utcnow
from utils.exceptions import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def list_items(db: Session, course: Course) -> List[GradeItem]:
    return db.query(GradeItem).filter(GradeItem.course_id == course.id).order_by(GradeItem.type).all()


def create_item(db: Session, course: Course, item_type: str, weight: float = 50.0) -> GradeItem:
    """weight 는 기록만 한다 (content_clarity 산출은 항목당 50% 고정)"""
    item_type = (item_type or "").upper()
    if item_type not in GRADE_ITEM_TYPES:
        raise ValidationError(f"type must be one of {', '.join(GRADE_ITEM_TYPES)}", field="type")
    exists = db.query(GradeItem).filter(GradeItem.course_id == course.id, GradeItem.type == item_type).first()
    if exists:
        raise ConflictError(f"{item_type} grade item already exists for this course")

    item = GradeItem(course_id=course.id, type=item_type, weight=weight)
    db.add(item)
    db.commit()
    db.refresh(item)
    logger.info(f"루브릭 항목 생성: course={course.slug} type={item_type}")
    return item


def _item(db: Session, course: Course, item_type: str) -> Optional[GradeItem]:
    return db.query(GradeItem).filter(GradeItem.course_id == course.id, GradeItem.type == item_type).first()


def set_values(db: Session, course: Course, student_id: int, values: Dict[str, Optional[float]]) -> Dict[str, float]:
    """values = {"CONTENT": 8, "CLARITY": 6} (None 은 건너뜀)"""
    get_student(db, student_id)
    if student_id not in enrolled_ids(course):
        raise ValidationError("Student is not enrolled in this course", field="student_id")

    items = {}
    for item_type, value in values.items():
        if value is None:
            continue
        if not 0 <= value <= settings.RUBRIC_ITEM_MAX:
            raise ValidationError(
                f"{item_type.lower()} must be between 0 and {settings.RUBRIC_ITEM_MAX:g}",
                field=item_type.lower(),
            )
        item = _item(db, course, item_type)
        if item is None:
            raise NotFoundError(f"{item_type} grade item is not configured for this course")
        items[item.id] = value

    for item_id, value in items.items():
        upsert(
            db, Grade,
            keys={"student_id": student_id, "grade_item_id": item_id},
            values={"value": value, "updated_at": utcnow()},
        )
    db.commit()
    return get_values(db, course, student_id)


def get_values(db: Session, course: Course, student_id: int) -> Dict[str, float]:
    """항목/점수가 없으면 0"""
    rows = (
        db.query(GradeItem.type, Grade.value)
        .join(Grade, Grade.grade_item_id == GradeItem.id)
        .filter(GradeItem.course_id == course.id, Grade.student_id == student_id)
        .all()
    )
    values = {CONTENT: 0.0, CLARITY: 0.0}
    values.update({item_type: value for item_type, value in rows})
    return values
