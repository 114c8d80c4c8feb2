"""
services/attendance_service.py

출결 원장 (Attendance Ledger)
- (학생, 강좌, 날짜) 당 1건: 있으면 상태 덮어쓰기, 없으면 생성 (upsert)
- 통계는 요청마다 원장에서 다시 계산 (캐시 없음)

기록이 없는 학생의 해석:
- 대시보드 통계(compute_stats, range_stats): ABSENT 로 합산
- 학생별 상태 표시(student_statuses): NOT_SET 으로 그대로 노출
"""

import logging
from collections import Counter
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database.db import upsert
from models.attendance import (
    Attendance, PRESENT, LATE, ABSENT, EXCUSED, NOT_SET, RECORDED_STATUSES,
)
from models.courses import Course
from services.course_service import enrolled_ids, get_student
from utils.dates import parse_iso_date, utcnow
from utils.exceptions import ValidationError

logger = logging.getLogger(__name__)


def _validate_status(status: Optional[str]) -> str:
    if not status:
        raise ValidationError("status is required", field="status")
    status = status.upper()
    if status not in RECORDED_STATUSES:
        raise ValidationError(f"status must be one of {', '.join(RECORDED_STATUSES)}", field="status")
    return status


def _upsert(db: Session, course: Course, student_id: int, day: date, status: str) -> Attendance:
    return upsert(
        db, Attendance,
        keys={"student_id": student_id, "course_id": course.id, "date": day},
        values={"status": status, "updated_at": utcnow()},
    )


# ==========================================================
# [쓰기]
# ==========================================================
def record_attendance(db: Session, course: Course, student_id: Optional[int], day, status: Optional[str]) -> Attendance:
    """단건 upsert. 같은 값으로 두 번 호출해도 행은 1개"""
    if student_id is None:
        raise ValidationError("studentId is required", field="student_id")
    day = parse_iso_date(day)
    status = _validate_status(status)
    get_student(db, student_id)
    if student_id not in enrolled_ids(course):
        raise ValidationError("Student is not enrolled in this course", field="student_id")

    record = _upsert(db, course, student_id, day, status)
    db.commit()
    db.refresh(record)
    logger.info(f"출결 기록: course={course.slug} student={student_id} date={day} status={status}")
    return record


def record_attendance_batch(db: Session, course: Course, day, entries: Iterable[dict]) -> List[Attendance]:
    """
    한 수업일의 출결을 한 트랜잭션으로 저장.
    모든 항목을 먼저 검증한 뒤에만 쓰기를 시작한다.
    """
    day = parse_iso_date(day)
    entries = list(entries)
    enrolled = enrolled_ids(course)

    prepared: Dict[int, str] = {}
    for idx, entry in enumerate(entries):
        student_id = entry.get("student_id")
        if student_id is None:
            raise ValidationError(f"studentId is required (entry {idx})", field="student_id")
        if student_id not in enrolled:
            raise ValidationError(f"Student {student_id} is not enrolled in this course", field="student_id")
        # 같은 학생이 두 번 오면 마지막 값 사용
        prepared[student_id] = _validate_status(entry.get("status"))

    try:
        records = [_upsert(db, course, sid, day, status) for sid, status in prepared.items()]
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    for record in records:
        db.refresh(record)
    logger.info(f"출결 일괄 기록: course={course.slug} date={day} count={len(records)}")
    return records


def clear_attendance(db: Session, course: Course, record_ids: Optional[List[int]], day=None) -> int:
    """
    id 목록으로 일괄 삭제. 항상 course_id 로 한 번 더 범위를 제한한다.
    """
    if day is None or day == "":
        raise ValidationError("date is required", field="date")
    parse_iso_date(day)
    if record_ids is None:
        raise ValidationError("recordsToDelete is required", field="record_ids")
    if not record_ids:
        return 0

    deleted = (
        db.query(Attendance)
        .filter(Attendance.id.in_(record_ids), Attendance.course_id == course.id)
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info(f"출결 삭제: course={course.slug} requested={len(record_ids)} deleted={deleted}")
    return deleted


# ==========================================================
# [조회]
# ==========================================================
def most_recent_date(db: Session, course: Course) -> Optional[date]:
    row = (
        db.query(Attendance.date)
        .filter(Attendance.course_id == course.id)
        .order_by(Attendance.date.desc())
        .first()
    )
    return row[0] if row else None


def status_on_date(db: Session, course: Course, day) -> Dict[int, str]:
    """해당 날짜(정확히 일치)의 student_id → status"""
    day = parse_iso_date(day)
    rows = (
        db.query(Attendance.student_id, Attendance.status)
        .filter(Attendance.course_id == course.id, Attendance.date == day)
        .all()
    )
    return {student_id: status for student_id, status in rows}


def list_attendance(db: Session, course: Course, day, page: int, limit: int) -> Tuple[int, List[Attendance]]:
    day = parse_iso_date(day)
    query = db.query(Attendance).filter(Attendance.course_id == course.id, Attendance.date == day)
    total = query.count()
    records = (
        query.order_by(Attendance.date.desc(), Attendance.created_at.desc(), Attendance.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return total, records


def attendance_dates(db: Session, course: Course) -> List[date]:
    rows = (
        db.query(Attendance.date)
        .filter(Attendance.course_id == course.id)
        .distinct()
        .order_by(Attendance.date.asc())
        .all()
    )
    return [r[0] for r in rows]


def attendance_rate(attended: int, total: int) -> float:
    return (attended / total) * 100 if total > 0 else 0.0


def compute_stats(db: Session, course: Course, day=None) -> dict:
    """
    강좌 출결 통계.
    - day 미지정이면 가장 최근 출결 날짜 기준
    - 수강생 중 기록이 없는 학생은 결석으로 합산
    """
    target = parse_iso_date(day) if day else most_recent_date(db, course)
    total_students = len(course.students)
    counts = Counter()

    if target is not None:
        statuses = status_on_date(db, course, target)
        for student in course.students:
            status = statuses.get(student.id, NOT_SET)
            counts[ABSENT if status == NOT_SET else status] += 1

    return {
        "total_students": total_students,
        "total_present": counts[PRESENT],
        "total_late": counts[LATE],
        "total_absents": counts[ABSENT],
        "total_excused": counts[EXCUSED],
        "attendance_rate": attendance_rate(counts[PRESENT] + counts[LATE], total_students),
        "last_attendance_date": target,
    }


def student_statuses(db: Session, course: Course, day) -> List[dict]:
    """출석부 화면용: 기록 없는 학생은 NOT_SET"""
    statuses = status_on_date(db, course, day)
    return [
        {
            "student_id": student.id,
            "name": student.full_name,
            "status": statuses.get(student.id, NOT_SET),
        }
        for student in course.students
    ]


def range_stats(db: Session, course: Course, start, end) -> dict:
    """
    기간 내 학생별 출결 집계.
    - total_classes = 기간 내 출결이 있었던 서로 다른 날짜 수
    - 기록이 없는 수업일은 결석으로 합산
    - rate = (present + late) / total_classes * 100
    """
    start = parse_iso_date(start, field="start_date")
    end = parse_iso_date(end, field="end_date")
    if start > end:
        raise ValidationError("start_date must not be after end_date", field="start_date")

    rows = (
        db.query(Attendance.student_id, Attendance.date, Attendance.status)
        .filter(Attendance.course_id == course.id, Attendance.date.between(start, end))
        .all()
    )
    unique_dates = sorted({d for _, d, _ in rows})
    total_classes = len(unique_dates)

    per_student: Dict[int, Counter] = {}
    for student_id, _, status in rows:
        per_student.setdefault(student_id, Counter())[status] += 1

    student_stats = []
    for student in course.students:
        counts = per_student.get(student.id, Counter())
        recorded = sum(counts.values())
        student_stats.append({
            "student_id": student.id,
            "first_name": student.first_name,
            "last_name": student.last_name,
            "middle_initial": student.middle_initial,
            "present": counts[PRESENT],
            "late": counts[LATE],
            "excused": counts[EXCUSED],
            "absent": counts[ABSENT] + max(0, total_classes - recorded),
            "attendance_rate": attendance_rate(counts[PRESENT] + counts[LATE], total_classes),
        })

    return {
        "total_classes": total_classes,
        "student_stats": student_stats,
        "unique_dates": unique_dates,
    }
