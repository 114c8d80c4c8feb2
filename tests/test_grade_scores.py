import pytest

from models.grade_scores import GradeScore
from models.grades import CONTENT, CLARITY
from services import grade_config_service, grade_score_service, grading_service, rubric_service
from services.grade_engine import CONTENT_CLARITY, FAILED, PASSED
from utils.exceptions import ConflictError, ValidationError

WEIGHTS = {
    "name": "Midterm",
    "reporting_weight": 30,
    "recitation_weight": 30,
    "quiz_weight": 40,
    "passing_threshold": 75,
}


def _history(db, course, student):
    return (
        db.query(GradeScore)
        .filter(GradeScore.course_id == course.id, GradeScore.student_id == student.id)
        .all()
    )


def test_latest_score_defaults_to_zero_placeholder(db, course, students):
    score = grade_score_service.latest_score(db, course, students[0].id)
    assert score.id is None
    assert (score.reporting_score, score.recitation_score, score.quiz_score) == (0, 0, 0)
    assert score.created_at is None


def test_upsert_updates_in_place_for_same_configuration(db, course, students):
    grade_config_service.create_configuration(db, course, WEIGHTS)
    student = students[0]
    grade_score_service.upsert_component(db, course, student.id, None, "reporting", 80)
    grade_score_service.upsert_component(db, course, student.id, None, "quiz", 90)

    rows = _history(db, course, student)
    assert len(rows) == 1
    assert (rows[0].reporting_score, rows[0].quiz_score) == (80, 90)


def test_new_configuration_appends_history_row(db, course, students):
    student = students[0]
    midterm = grade_config_service.create_configuration(db, course, WEIGHTS)
    grade_score_service.upsert_component(db, course, student.id, None, "reporting", 80)

    finals = grade_config_service.create_configuration(db, course, {**WEIGHTS, "name": "Finals"})
    grade_score_service.upsert_component(db, course, student.id, None, "recitation", 60)

    rows = _history(db, course, student)
    assert len(rows) == 2
    latest = grade_score_service.latest_score(db, course, student.id)
    assert latest.config_id == finals.id
    assert (latest.reporting_score, latest.recitation_score) == (0, 60)
    assert grade_score_service.latest_score(db, course, student.id, midterm.id).reporting_score == 80


def test_snapshot_edit_carries_scores_forward(db, course, students):
    student = students[0]
    midterm = grade_config_service.create_configuration(db, course, WEIGHTS)
    grade_score_service.set_components(db, course, student.id, {"reporting": 80, "recitation": 70})
    grade_config_service.update_configuration(db, course, midterm.id, {"passing_threshold": 70})

    grade_score_service.upsert_component(db, course, student.id, None, "quiz", 90)
    latest = grade_score_service.latest_score(db, course, student.id)
    assert (latest.reporting_score, latest.recitation_score, latest.quiz_score) == (80, 70, 90)


def test_component_validation(db, course, students):
    with pytest.raises(ValidationError):
        grade_score_service.upsert_component(db, course, students[0].id, None, "reporting", 101)
    with pytest.raises(ValidationError):
        grade_score_service.upsert_component(db, course, students[0].id, None, "attendance", 50)
    with pytest.raises(ValidationError):
        grade_score_service.set_components(db, course, students[0].id, {})


def test_weighted_grade_uses_current_configuration(db, course, students):
    student = students[0]
    grade_config_service.create_configuration(db, course, WEIGHTS)
    grade_score_service.set_components(db, course, student.id, {"reporting": 80, "recitation": 70, "quiz": 90})

    result = grading_service.compute_student_grade(db, course, student.id)
    assert result["total"] == pytest.approx(81.0)
    assert result["remarks"] == PASSED
    assert result["weights"] == {"reporting": 30, "recitation": 30, "quiz": 40}


def test_grade_without_configuration_falls_back_to_zero(db, course, students):
    grade_score_service.set_components(db, course, students[0].id, {"reporting": 100})
    result = grading_service.compute_student_grade(db, course, students[0].id)
    assert result["config_id"] is None
    assert result["total"] == 0
    assert result["remarks"] == FAILED


def test_historical_grade_is_not_rewritten_by_edit(db, course, students):
    student = students[0]
    midterm = grade_config_service.create_configuration(db, course, WEIGHTS)
    grade_score_service.set_components(db, course, student.id, {"reporting": 80, "recitation": 70, "quiz": 90})
    grade_config_service.update_configuration(
        db, course, midterm.id, {"reporting_weight": 10, "recitation_weight": 10, "quiz_weight": 80}
    )

    historical = grading_service.compute_student_grade(db, course, student.id, config_id=midterm.id)
    assert historical["total"] == pytest.approx(81.0)


def test_grade_by_snapshot_id_includes_scores_saved_before_edit(db, course, students):
    student = students[0]
    midterm = grade_config_service.create_configuration(db, course, WEIGHTS)
    grade_score_service.set_components(db, course, student.id, {"reporting": 80, "recitation": 70, "quiz": 90})
    snapshot = grade_config_service.update_configuration(db, course, midterm.id, {"passing_threshold": 70})

    implicit = grading_service.compute_student_grade(db, course, student.id)
    explicit = grading_service.compute_student_grade(db, course, student.id, config_id=snapshot.id)
    assert explicit["config_id"] == snapshot.id
    assert implicit["total"] == pytest.approx(81.0)
    assert explicit["total"] == pytest.approx(81.0)
    assert explicit["remarks"] == PASSED

    score = grade_score_service.latest_score(db, course, student.id, snapshot.id)
    assert (score.reporting_score, score.recitation_score, score.quiz_score) == (80, 70, 90)


def test_component_score_route_reads_across_snapshot(client, db, course, students, faculty_headers):
    student = students[0]
    midterm = grade_config_service.create_configuration(db, course, WEIGHTS)
    grade_score_service.upsert_component(db, course, student.id, None, "reporting", 85)
    snapshot = grade_config_service.update_configuration(db, course, midterm.id, {"passing_threshold": 70})

    res = client.get(
        f"/v1/courses/{course.slug}/students/{student.id}/reporting-scores",
        params={"config_id": snapshot.id},
        headers=faculty_headers,
    )
    assert res.status_code == 200
    assert res.json()["data"]["score"] == 85


def test_gradebook_covers_every_enrolled_student(db, course, students):
    grade_config_service.create_configuration(db, course, WEIGHTS)
    rows = grading_service.gradebook(db, course)
    assert len(rows) == len(students)
    assert all(r["remarks"] == FAILED for r in rows)


def test_unknown_strategy_is_rejected(db, course, students):
    with pytest.raises(ValidationError):
        grading_service.compute_student_grade(db, course, students[0].id, strategy="average")


def test_content_clarity_strategy(db, course, students):
    rubric_service.create_item(db, course, CONTENT)
    rubric_service.create_item(db, course, CLARITY)
    rubric_service.set_values(db, course, students[0].id, {CONTENT: 8, CLARITY: 6})

    result = grading_service.compute_student_grade(db, course, students[0].id, strategy=CONTENT_CLARITY)
    assert result["total"] == pytest.approx(70.0)
    assert result["remarks"] == FAILED


def test_rubric_item_type_is_unique_per_course(db, course):
    rubric_service.create_item(db, course, "content")
    with pytest.raises(ConflictError):
        rubric_service.create_item(db, course, CONTENT)


def test_rubric_values_overwrite_per_student_item(db, course, students):
    rubric_service.create_item(db, course, CONTENT)
    rubric_service.create_item(db, course, CLARITY)
    rubric_service.set_values(db, course, students[0].id, {CONTENT: 8, CLARITY: 6})
    values = rubric_service.set_values(db, course, students[0].id, {CONTENT: 9, CLARITY: None})

    assert values == {CONTENT: 9, CLARITY: 6}
