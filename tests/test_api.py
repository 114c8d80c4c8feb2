import pytest

from models.attendance import Attendance
from models.quizzes import QuizScore
from services import quiz_service

from conftest import PASSWORD


# ==========================================================
# 인증 / 권한
# ==========================================================

def test_health(client):
    assert client.get("/health").json()["status"] == "ok"


def test_requests_without_session_are_rejected(client, course):
    res = client.get(f"/v1/courses/{course.slug}")
    assert res.status_code == 401
    body = res.json()
    assert body["success"] is False
    assert body["error"]["code"] == "UNAUTHORIZED"


def test_unknown_token_is_rejected(client, course):
    res = client.get(f"/v1/courses/{course.slug}", headers={"Authorization": "Bearer nope"})
    assert res.status_code == 401


def test_login_me_and_logout(client, admin_headers):
    res = client.post("/v1/auth/login", json={"email": "ADMIN@school.edu", "password": PASSWORD})
    assert res.status_code == 200
    token = res.json()["data"]["token"]
    headers = {"Authorization": f"Bearer {token}"}

    me = client.get("/v1/auth/me", headers=headers).json()["data"]
    assert me["role"] == "ADMIN"
    assert me["home_path"] == "/dashboard/admin"
    assert "users:manage" in me["capabilities"]

    assert client.post("/v1/auth/logout", headers=headers).status_code == 200
    assert client.get("/v1/auth/me", headers=headers).status_code == 401


def test_bad_password(client, admin_headers):
    res = client.post("/v1/auth/login", json={"email": "admin@school.edu", "password": "wrong"})
    assert res.status_code == 401


def test_access_redirects_by_role(client, faculty_headers):
    res = client.get("/v1/auth/access", params={"path": "/dashboard/admin"}, headers=faculty_headers)
    assert res.json()["data"] == {"path": "/dashboard/admin", "allowed": False, "redirect": "/dashboard/faculty"}


def test_faculty_cannot_create_course(client, faculty_headers):
    res = client.post("/v1/courses/", json={"code": "IT200", "title": "Databases", "section": "A"},
                      headers=faculty_headers)
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "FORBIDDEN"


def test_only_admin_creates_users(client, admin_headers, faculty_headers):
    payload = {"email": "new@school.edu", "name": "New", "password": "pw123456", "role": "FACULTY"}
    assert client.post("/v1/users", json=payload, headers=faculty_headers).status_code == 403
    assert client.post("/v1/users", json=payload, headers=admin_headers).status_code == 201
    assert client.post("/v1/users", json=payload, headers=admin_headers).status_code == 409


# ==========================================================
# 강좌 / 수강 / 그룹
# ==========================================================

def test_create_course_builds_slug_and_rejects_duplicate(client, head_headers):
    payload = {
        "code": "IT 200", "title": "Databases", "section": "B",
        "schedules": [{"day": "Tuesday", "from_time": "13:00", "to_time": "15:00"}],
    }
    res = client.post("/v1/courses/", json=payload, headers=head_headers)
    assert res.status_code == 201
    data = res.json()["data"]
    assert data["slug"] == "it-200-b"
    assert data["schedules"][0]["day"] == "Tuesday"

    assert client.post("/v1/courses/", json=payload, headers=head_headers).status_code == 409


def test_duplicate_enrollment_conflicts(client, admin_headers, course, students):
    res = client.post(f"/v1/courses/{course.slug}/students", json={"student_id": students[0].id},
                      headers=admin_headers)
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "CONFLICT"


def test_unenroll_then_listed_as_unenrolled(client, admin_headers, course, students):
    url = f"/v1/courses/{course.slug}/students/{students[0].id}"
    assert client.delete(url, headers=admin_headers).status_code == 200
    assert client.delete(url, headers=admin_headers).status_code == 404

    res = client.get(f"/v1/courses/{course.slug}/unenrolled-students", headers=admin_headers)
    assert [s["id"] for s in res.json()["data"]] == [students[0].id]


def test_group_name_conflict(client, faculty_headers, course, students):
    url = f"/v1/courses/{course.slug}/groups/"
    first = {"number": "1", "name": "Alpha", "student_ids": [students[0].id], "leader_id": students[0].id}
    assert client.post(url, json=first, headers=faculty_headers).status_code == 201

    res = client.post(url, json={"number": "2", "name": "Alpha"}, headers=faculty_headers)
    assert res.status_code == 409

    check = client.get(f"{url}check-name", params={"name": "Alpha"}, headers=faculty_headers)
    assert check.json()["data"] == {"exists": True}


def test_group_number_conflict_and_checks(client, faculty_headers, course, other_course, students):
    url = f"/v1/courses/{course.slug}/groups/"
    assert client.post(url, json={"number": "1", "name": "Alpha"}, headers=faculty_headers).status_code == 201

    res = client.post(url, json={"number": "1", "name": "Beta"}, headers=faculty_headers)
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "CONFLICT"

    taken = client.get(f"{url}check-number", params={"number": "1"}, headers=faculty_headers)
    free = client.get(f"{url}check-number", params={"number": "2"}, headers=faculty_headers)
    assert taken.json()["data"] == {"exists": True}
    assert free.json()["data"] == {"exists": False}

    unused = client.get(f"{url}check-name", params={"name": "Beta"}, headers=faculty_headers)
    assert unused.json()["data"] == {"exists": False}

    # 번호 중복은 강좌 단위
    other_url = f"/v1/courses/{other_course.slug}/groups/"
    assert client.post(other_url, json={"number": "1", "name": "Alpha"}, headers=faculty_headers).status_code == 201


def test_group_members_must_be_enrolled(client, faculty_headers, course, students, other_course, make_students):
    outsider = make_students(other_course, 1)[0]
    res = client.post(
        f"/v1/courses/{course.slug}/groups/",
        json={"number": "1", "student_ids": [outsider.id]},
        headers=faculty_headers,
    )
    assert res.status_code == 400


# ==========================================================
# 출결
# ==========================================================

def test_attendance_batch_and_stats(client, faculty_headers, course, students, db):
    entries = [{"student_id": s.id, "status": "PRESENT"} for s in students[:6]]
    entries.append({"student_id": students[6].id, "status": "LATE"})
    url = f"/v1/courses/{course.slug}/attendance"

    res = client.post(f"{url}/batch", json={"date": "2025-03-03", "attendance": entries}, headers=faculty_headers)
    assert res.status_code == 200
    # 같은 요청을 다시 보내도 행은 늘지 않음
    client.post(f"{url}/batch", json={"date": "2025-03-03", "attendance": entries}, headers=faculty_headers)
    assert db.query(Attendance).count() == 7

    stats = client.get(f"{url}/stats", headers=faculty_headers).json()["data"]
    assert stats["total_absents"] == 3
    assert stats["attendance_rate"] == 70.0
    assert stats["last_attendance_date"] == "2025-03-03"

    listing = client.get(f"{url}/", params={"date": "2025-03-03", "limit": 5}, headers=faculty_headers).json()
    assert len(listing["data"]) == 5
    assert listing["meta"]["total"] == 7
    assert listing["meta"]["total_pages"] == 2


def test_attendance_clear_requires_date(client, faculty_headers, course, students):
    res = client.post(f"/v1/courses/{course.slug}/attendance/clear", json={"record_ids": [1]},
                      headers=faculty_headers)
    assert res.status_code == 400
    assert res.json()["error"]["field"] == "date"


def test_academic_head_cannot_take_attendance(client, head_headers, course, students):
    res = client.post(
        f"/v1/courses/{course.slug}/attendance/",
        json={"student_id": students[0].id, "date": "2025-03-03", "status": "PRESENT"},
        headers=head_headers,
    )
    assert res.status_code == 403


# ==========================================================
# 성적 구성 / 점수 / 산출
# ==========================================================

def test_grade_flow(client, faculty_headers, course, students):
    base = f"/v1/courses/{course.slug}"
    res = client.post(f"{base}/grade-configurations/", json={
        "name": "Midterm", "reporting_weight": 30, "recitation_weight": 30,
        "quiz_weight": 40, "passing_threshold": 75,
    }, headers=faculty_headers)
    assert res.status_code == 201
    config_id = res.json()["data"]["id"]

    student_url = f"{base}/students/{students[0].id}"
    empty = client.get(f"{student_url}/reporting-scores", headers=faculty_headers).json()["data"]
    assert empty == {"score": 0.0, "created_at": None}

    client.put(f"{student_url}/reporting-scores", json={"value": 80}, headers=faculty_headers)
    client.post(f"{student_url}/scores", json={"recitation": 70, "quiz": 90}, headers=faculty_headers)

    grade = client.get(f"{student_url}/grade", headers=faculty_headers).json()["data"]
    assert grade["total"] == 81.0
    assert grade["remarks"] == "PASSED"
    assert grade["config_id"] == config_id

    book = client.get(f"{base}/gradebook", headers=faculty_headers).json()
    assert len(book["data"]) == len(students)


def test_weight_sum_violation_is_400(client, faculty_headers, course):
    res = client.post(f"/v1/courses/{course.slug}/grade-configurations/", json={
        "name": "Bad", "reporting_weight": 50, "recitation_weight": 50,
        "quiz_weight": 50, "passing_threshold": 75,
    }, headers=faculty_headers)
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


def test_current_configuration_empty(client, faculty_headers, course):
    res = client.get(f"/v1/courses/{course.slug}/grade-configurations/current", headers=faculty_headers)
    assert res.status_code == 200
    assert res.json()["data"] is None


def test_unknown_component_is_400(client, faculty_headers, course, students):
    res = client.get(f"/v1/courses/{course.slug}/students/{students[0].id}/bonus-scores", headers=faculty_headers)
    assert res.status_code == 400


# ==========================================================
# 퀴즈
# ==========================================================

def test_quiz_batch_with_missing_score_writes_nothing(client, faculty_headers, course, students, db):
    quiz = quiz_service.create_quiz(db, course, {
        "name": "Quiz 1", "quiz_date": "2025-03-10",
        "attendance_range_start": "2025-03-03", "attendance_range_end": "2025-03-07",
        "max_score": 20, "passing_rate": 75,
    })
    scores = [
        {"student_id": s.id, "score": 15, "attendance": "PRESENT", "plus_points": 0, "total_grade": 75}
        for s in students[:5]
    ]
    del scores[2]["score"]

    res = client.post(f"/v1/quizzes/{quiz.id}/scores", json={"scores": scores}, headers=faculty_headers)
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "Missing required fields in one or more scores"
    assert db.query(QuizScore).count() == 0


def test_quiz_create_missing_field_is_400(client, faculty_headers, course):
    res = client.post(f"/v1/courses/{course.slug}/quizzes", json={"name": "Quiz 1"}, headers=faculty_headers)
    assert res.status_code == 400


def test_unknown_quiz_is_404(client, faculty_headers):
    res = client.get("/v1/quizzes/999", headers=faculty_headers)
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "NOT_FOUND"


# ==========================================================
# 루브릭
# ==========================================================

def test_rubric_items_and_grades(client, faculty_headers, course, students):
    url = f"/v1/courses/{course.slug}"
    res = client.post(f"{url}/grade-items", json={"type": "content", "weight": 80}, headers=faculty_headers)
    assert res.status_code == 201
    assert res.json()["data"]["type"] == "CONTENT"
    assert res.json()["data"]["weight"] == 80
    client.post(f"{url}/grade-items", json={"type": "clarity"}, headers=faculty_headers)

    rubric = f"{url}/students/{students[0].id}/rubric"
    assert client.put(rubric, json={"content": 8, "clarity": 6}, headers=faculty_headers).status_code == 200
    assert client.get(rubric, headers=faculty_headers).json()["data"] == {"content": 8.0, "clarity": 6.0}

    # weight 와 무관하게 50/50: (8 + 6) / 20 * 100
    grade = client.get(f"{url}/students/{students[0].id}/grade", params={"strategy": "content_clarity"},
                       headers=faculty_headers).json()["data"]
    assert grade["total"] == pytest.approx(70.0)
