from datetime import date

import pytest

from database.db import SessionLocal
from models.attendance import Attendance, ABSENT, LATE, NOT_SET, PRESENT
from services import attendance_service
from utils.exceptions import NotFoundError, ValidationError


def _rows(db, course):
    return db.query(Attendance).filter(Attendance.course_id == course.id).all()


def test_record_is_idempotent(db, course, students, day):
    attendance_service.record_attendance(db, course, students[0].id, day, PRESENT)
    attendance_service.record_attendance(db, course, students[0].id, day, PRESENT)
    rows = _rows(db, course)
    assert len(rows) == 1
    assert rows[0].status == PRESENT


def test_record_overwrites_status(db, course, students, day):
    attendance_service.record_attendance(db, course, students[0].id, day, ABSENT)
    attendance_service.record_attendance(db, course, students[0].id, "2025-03-03T00:00:00.000Z", PRESENT)
    rows = _rows(db, course)
    assert len(rows) == 1
    assert rows[0].status == PRESENT


def test_overlapping_writers_on_same_key_last_write_wins(db, course, students, day):
    other = SessionLocal()
    try:
        attendance_service._upsert(db, course, students[0].id, day, ABSENT)
        attendance_service._upsert(other, course, students[0].id, day, PRESENT)
        db.commit()
        other.commit()
    finally:
        other.close()

    rows = _rows(db, course)
    assert len(rows) == 1
    assert rows[0].status == PRESENT


def test_record_rejects_missing_fields(db, course, students, day):
    with pytest.raises(ValidationError):
        attendance_service.record_attendance(db, course, None, day, PRESENT)
    with pytest.raises(ValidationError):
        attendance_service.record_attendance(db, course, students[0].id, None, PRESENT)
    with pytest.raises(ValidationError):
        attendance_service.record_attendance(db, course, students[0].id, day, "HERE")
    with pytest.raises(NotFoundError):
        attendance_service.record_attendance(db, course, 9999, day, PRESENT)


def test_stats_fold_missing_records_into_absent(db, course, students, day):
    entries = [{"student_id": s.id, "status": PRESENT} for s in students[:6]]
    entries.append({"student_id": students[6].id, "status": LATE})
    attendance_service.record_attendance_batch(db, course, day, entries)

    stats = attendance_service.compute_stats(db, course)
    assert stats["last_attendance_date"] == day
    assert stats["total_students"] == 10
    assert stats["total_present"] == 6
    assert stats["total_late"] == 1
    assert stats["total_absents"] == 3
    assert stats["attendance_rate"] == pytest.approx(70.0)


def test_stats_without_any_attendance(db, course, students):
    stats = attendance_service.compute_stats(db, course)
    assert stats["last_attendance_date"] is None
    assert stats["attendance_rate"] == 0


def test_roster_reports_not_set(db, course, students, day):
    attendance_service.record_attendance(db, course, students[0].id, day, LATE)
    statuses = {row["student_id"]: row["status"] for row in attendance_service.student_statuses(db, course, day)}
    assert statuses[students[0].id] == LATE
    assert statuses[students[1].id] == NOT_SET


def test_batch_rejects_everything_on_bad_entry(db, course, students, day):
    entries = [
        {"student_id": students[0].id, "status": PRESENT},
        {"student_id": students[1].id, "status": None},
    ]
    with pytest.raises(ValidationError):
        attendance_service.record_attendance_batch(db, course, day, entries)
    assert _rows(db, course) == []


def test_clear_is_scoped_to_course(db, course, other_course, students, day, make_students):
    other_students = make_students(other_course, 1)
    mine = attendance_service.record_attendance(db, course, students[0].id, day, PRESENT)
    theirs = attendance_service.record_attendance(db, other_course, other_students[0].id, day, PRESENT)

    deleted = attendance_service.clear_attendance(db, course, [mine.id, theirs.id], day)
    assert deleted == 1
    assert _rows(db, course) == []
    assert len(_rows(db, other_course)) == 1


def test_clear_requires_date(db, course, students):
    with pytest.raises(ValidationError):
        attendance_service.clear_attendance(db, course, [1], None)
    assert attendance_service.clear_attendance(db, course, [], "2025-03-03") == 0


def test_range_stats_counts_missing_days_as_absent(db, course, students):
    first, second = students[0], students[1]
    attendance_service.record_attendance(db, course, first.id, date(2025, 3, 3), PRESENT)
    attendance_service.record_attendance(db, course, first.id, date(2025, 3, 5), LATE)
    attendance_service.record_attendance(db, course, second.id, date(2025, 3, 5), PRESENT)

    stats = attendance_service.range_stats(db, course, "2025-03-01", "2025-03-31")
    assert stats["total_classes"] == 2
    assert stats["unique_dates"] == [date(2025, 3, 3), date(2025, 3, 5)]

    by_id = {row["student_id"]: row for row in stats["student_stats"]}
    assert by_id[first.id]["attendance_rate"] == pytest.approx(100.0)
    assert by_id[second.id]["absent"] == 1
    assert by_id[second.id]["attendance_rate"] == pytest.approx(50.0)
    assert by_id[students[2].id]["absent"] == 2


def test_dates_are_distinct_and_ascending(db, course, students):
    for d in (date(2025, 3, 5), date(2025, 3, 3), date(2025, 3, 5)):
        attendance_service.record_attendance(db, course, students[0].id, d, PRESENT)
    attendance_service.record_attendance(db, course, students[1].id, date(2025, 3, 3), ABSENT)
    assert attendance_service.attendance_dates(db, course) == [date(2025, 3, 3), date(2025, 3, 5)]
    assert attendance_service.most_recent_date(db, course) == date(2025, 3, 5)
