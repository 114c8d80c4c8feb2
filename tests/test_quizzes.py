from datetime import date

import pytest

from models.attendance import ABSENT, PRESENT
from models.quizzes import QuizScore
from services import attendance_service, quiz_service
from utils.exceptions import ValidationError

QUIZ = {
    "name": "Quiz 1",
    "quiz_date": "2025-03-10",
    "attendance_range_start": "2025-03-03",
    "attendance_range_end": "2025-03-07",
    "max_score": 20,
    "passing_rate": 75,
}


def _entry(student, score=15):
    return {"student_id": student.id, "score": score, "attendance": "PRESENT", "plus_points": 1, "total_grade": 80}


@pytest.fixture
def quiz(db, course):
    return quiz_service.create_quiz(db, course, QUIZ)


def test_create_quiz_requires_every_field(db, course):
    with pytest.raises(ValidationError):
        quiz_service.create_quiz(db, course, {**QUIZ, "max_score": None})
    with pytest.raises(ValidationError):
        quiz_service.create_quiz(db, course, {**QUIZ, "max_score": 0})
    with pytest.raises(ValidationError):
        quiz_service.create_quiz(db, course, {**QUIZ, "passing_rate": 101})
    with pytest.raises(ValidationError):
        quiz_service.create_quiz(db, course, {**QUIZ, "attendance_range_start": "2025-03-09"})


def test_quiz_dates_are_normalized(quiz):
    assert quiz.quiz_date == date(2025, 3, 10)
    assert quiz.attendance_range_end == date(2025, 3, 7)


def test_save_all_is_all_or_nothing(db, quiz, students):
    entries = [_entry(s) for s in students[:5]]
    entries[2]["score"] = None

    with pytest.raises(ValidationError) as err:
        quiz_service.save_all(db, quiz, entries)
    assert "Missing required fields" in err.value.message
    assert db.query(QuizScore).filter(QuizScore.quiz_id == quiz.id).count() == 0


def test_save_all_upserts_last_write_wins(db, quiz, students):
    quiz_service.save_all(db, quiz, [_entry(students[0], 10), _entry(students[1], 12)])
    quiz_service.save_all(db, quiz, [_entry(students[0], 18)])

    scores = {s.student_id: s.score for s in quiz_service.list_scores(db, quiz)}
    assert scores == {students[0].id: 18, students[1].id: 12}


def test_save_all_keeps_caller_values(db, quiz, students):
    entry = {**_entry(students[0], 10), "plus_points": 2, "total_grade": 42}
    saved = quiz_service.save_all(db, quiz, [entry])
    assert (saved[0].plus_points, saved[0].total_grade) == (2, 42)


def test_save_all_rejects_unknown_attendance_value(db, quiz, students):
    with pytest.raises(ValidationError):
        quiz_service.save_all(db, quiz, [{**_entry(students[0]), "attendance": "EXCUSED"}])


def test_bonus_eligibility_follows_attendance_window(db, course, quiz, students):
    attendance_service.record_attendance(db, course, students[0].id, date(2025, 3, 4), PRESENT)
    attendance_service.record_attendance(db, course, students[1].id, date(2025, 3, 4), ABSENT)
    attendance_service.record_attendance(db, course, students[2].id, date(2025, 3, 8), PRESENT)

    assert quiz_service.is_bonus_eligible(db, quiz, students[0].id)
    assert not quiz_service.is_bonus_eligible(db, quiz, students[1].id)
    assert not quiz_service.is_bonus_eligible(db, quiz, students[2].id)


def test_attendance_summary_includes_preview_total(db, course, quiz, students):
    attendance_service.record_attendance(db, course, students[0].id, date(2025, 3, 4), PRESENT)
    quiz_service.save_all(db, quiz, [_entry(students[0], 18)])

    summary = quiz_service.attendance_summary(db, quiz)
    rows = {row["student_id"]: row for row in summary["student_stats"]}
    assert summary["total_classes"] == 1
    assert rows[students[0].id]["bonus_eligible"] is True
    assert rows[students[0].id]["suggested_total_grade"] == pytest.approx(95.0)
    assert rows[students[1].id]["bonus_eligible"] is False
    assert rows[students[1].id]["suggested_total_grade"] is None


def test_quizzes_are_listed_newest_first(db, course, quiz):
    later = quiz_service.create_quiz(db, course, {**QUIZ, "name": "Quiz 2"})
    assert [q.id for q in quiz_service.list_quizzes(db, course)] == [later.id, quiz.id]
