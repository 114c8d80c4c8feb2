import pytest

from models.criteria import CriteriaGrade, Rubric
from models.users import ROLE_FACULTY
from services import auth_service, criteria_service
from utils.exceptions import PermissionDeniedError, ValidationError

from conftest import PASSWORD

REPORTING = {
    "name": "Reporting Rubric",
    "rubrics": [{"name": "Content", "percentage": 60}, {"name": "Delivery", "percentage": 40}],
    "scoring_range": 5,
    "passing_score": 75,
}


@pytest.fixture
def author(db):
    return auth_service.create_user(db, "author@school.edu", "author", PASSWORD, ROLE_FACULTY)


@pytest.fixture
def criteria(db, course, author):
    return criteria_service.create_criteria(db, course, author, REPORTING)


def test_create_requires_fields_and_full_weight(db, course, author):
    with pytest.raises(ValidationError):
        criteria_service.create_criteria(db, course, author, {"name": "Empty"})
    with pytest.raises(ValidationError):
        criteria_service.create_criteria(db, course, author, {
            **REPORTING, "rubrics": [{"name": "Content", "percentage": 50}],
        })
    with pytest.raises(ValidationError):
        criteria_service.create_criteria(db, course, author, {**REPORTING, "is_recitation_criteria": True})


def test_rubric_weight_alias_and_order(db, course, author):
    created = criteria_service.create_criteria(db, course, author, {
        **REPORTING,
        "rubrics": [{"name": "Content", "weight": 70}, {"name": "Delivery", "weight": 30}],
    })
    assert [(r.name, r.percentage) for r in created.rubrics] == [("Content", 70), ("Delivery", 30)]


def test_list_filters_recitation(db, course, author, criteria):
    recitation = criteria_service.create_criteria(db, course, author, {
        **REPORTING, "name": "Recitation", "is_recitation_criteria": True, "date": "2025-03-03",
    })
    assert [c.id for c in criteria_service.list_criteria(db, course, recitation=True)] == [recitation.id]
    assert len(criteria_service.list_criteria(db, course)) == 2


def test_update_rewrites_rubrics_by_position(db, course, author, criteria):
    updated = criteria_service.update_criteria(db, course, criteria.id, author, {
        **REPORTING,
        "rubrics": [
            {"name": "Content", "percentage": 50},
            {"name": "Delivery", "percentage": 30},
            {"name": "Visuals", "percentage": 20},
        ],
    })
    assert [r.name for r in updated.rubrics] == ["Content", "Delivery", "Visuals"]

    shrunk = criteria_service.update_criteria(db, course, criteria.id, author, {
        **REPORTING, "rubrics": [{"name": "Overall", "percentage": 100}],
    })
    assert [(r.name, r.percentage) for r in shrunk.rubrics] == [("Overall", 100)]
    assert db.query(Rubric).filter(Rubric.criteria_id == criteria.id).count() == 1


def test_only_author_or_admin_can_update(db, course, criteria):
    stranger = auth_service.create_user(db, "other@school.edu", "other", PASSWORD, ROLE_FACULTY)
    with pytest.raises(PermissionDeniedError):
        criteria_service.update_criteria(db, course, criteria.id, stranger, REPORTING)


def test_save_grades_computes_total(db, course, students, criteria):
    rows = criteria_service.save_grades(db, course, criteria.id, "2025-03-03", [
        {"student_id": students[0].id, "scores": [5, 2.5]},
        {"student_id": students[1].id, "scores": [2, 2], "total": 55},
    ])
    by_student = {r.student_id: r for r in rows}
    assert by_student[students[0].id].total == pytest.approx(80.0)
    assert by_student[students[0].id].passed is True
    assert by_student[students[1].id].total == 55
    assert by_student[students[1].id].passed is False


def test_save_grades_replaces_only_that_date(db, course, students, criteria):
    criteria_service.save_grades(db, course, criteria.id, "2025-03-03", [
        {"student_id": s.id, "scores": [3, 3]} for s in students[:3]
    ])
    criteria_service.save_grades(db, course, criteria.id, "2025-03-10", [
        {"student_id": students[0].id, "scores": [4, 4]},
    ])
    criteria_service.save_grades(db, course, criteria.id, "2025-03-03T00:00:00.000Z", [
        {"student_id": students[0].id, "scores": [5, 5]},
    ])

    first_day = criteria_service.list_grades(db, course, criteria.id, "2025-03-03")
    assert [(r.student_id, r.total) for r in first_day] == [(students[0].id, 100.0)]
    assert len(criteria_service.list_grades(db, course, criteria.id, "2025-03-10")) == 1


def test_invalid_grades_keep_existing_rows(db, course, students, criteria):
    criteria_service.save_grades(db, course, criteria.id, "2025-03-03", [
        {"student_id": students[0].id, "scores": [3, 3]},
    ])
    with pytest.raises(ValidationError):
        criteria_service.save_grades(db, course, criteria.id, "2025-03-03", [
            {"student_id": students[0].id, "scores": [6, 3]},
        ])
    with pytest.raises(ValidationError):
        criteria_service.save_grades(db, course, criteria.id, "2025-03-03", [
            {"student_id": students[0].id, "scores": [3]},
        ])
    assert db.query(CriteriaGrade).count() == 1


# ==========================================================
# API
# ==========================================================

def test_criteria_routes(client, faculty_headers, admin_headers, head_headers, course, students):
    url = f"/v1/courses/{course.slug}/criteria/"
    res = client.post(url, json=REPORTING, headers=faculty_headers)
    assert res.status_code == 201
    created = res.json()["data"]
    assert [r["percentage"] for r in created["rubrics"]] == [60, 40]

    item = f"{url}{created['id']}"
    changed = {**REPORTING, "name": "Reporting v2"}
    assert client.put(item, json=changed, headers=head_headers).status_code == 403
    assert client.put(item, json=changed, headers=admin_headers).json()["data"]["name"] == "Reporting v2"

    grades = {"date": "2025-03-03", "grades": [{"student_id": students[0].id, "scores": [4, 5]}]}
    saved = client.post(f"{item}/grades", json=grades, headers=faculty_headers)
    assert saved.status_code == 200
    assert saved.json()["data"][0]["total"] == pytest.approx(88.0)

    listed = client.get(f"{item}/grades", params={"date": "2025-03-03"}, headers=faculty_headers)
    assert [g["student_id"] for g in listed.json()["data"]] == [students[0].id]
    assert client.get(f"{item}/grades", headers=faculty_headers).status_code == 400
    assert client.get(f"{url}999", headers=faculty_headers).status_code == 404
