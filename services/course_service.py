"""
services/course_service.py

- 강좌/학생/수강/그룹 관리 (성적·출결 계산이 참조하는 기반 엔티티)
- 중복 검사는 변경 전에 명시적 조회로 수행하고, 저장소의 유니크 제약 오류는
  에러 핸들러에서 409로 한 번 더 매핑된다.
"""

import logging
import re
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from models.courses import Course, Schedule, COURSE_ACTIVE, COURSE_INACTIVE
from models.groups import Group
from models.students import Student
from utils.exceptions import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def make_slug(code: str, section: str) -> str:
    raw = f"{code}-{section}".lower()
    return re.sub(r"[^a-z0-9]+", "-", raw).strip("-")


# ==========================================================
# [강좌]
# ==========================================================
def get_course(db: Session, course_id: int) -> Course:
    course = db.get(Course, course_id)
    if course is None:
        raise NotFoundError("Course not found")
    return course


def get_course_by_slug(db: Session, slug: str) -> Course:
    course = db.query(Course).filter(Course.slug == slug).first()
    if course is None:
        raise NotFoundError("Course not found")
    return course


def list_courses(db: Session, status: Optional[str] = None, faculty_id: Optional[int] = None) -> List[Course]:
    query = db.query(Course)
    if status:
        query = query.filter(Course.status == status)
    if faculty_id:
        query = query.filter(Course.faculty_id == faculty_id)
    return query.order_by(Course.code, Course.section).all()


def create_course(db: Session, data: dict, schedules: Iterable[dict] = ()) -> Course:
    slug = make_slug(data["code"], data["section"])
    if db.query(Course).filter(Course.slug == slug).first():
        raise ConflictError(f"Course '{slug}' already exists")
    status = data.get("status") or COURSE_ACTIVE
    if status not in (COURSE_ACTIVE, COURSE_INACTIVE):
        raise ValidationError("status must be ACTIVE or INACTIVE", field="status")

    course = Course(**{**data, "status": status}, slug=slug)
    for item in schedules:
        course.schedules.append(Schedule(**item))
    db.add(course)
    db.commit()
    db.refresh(course)
    logger.info(f"강좌 생성: {course.slug}")
    return course


def update_course(db: Session, course: Course, changes: dict) -> Course:
    if "status" in changes and changes["status"] not in (COURSE_ACTIVE, COURSE_INACTIVE):
        raise ValidationError("status must be ACTIVE or INACTIVE", field="status")
    for field, value in changes.items():
        setattr(course, field, value)
    db.commit()
    db.refresh(course)
    return course


# ==========================================================
# [학생 / 수강]
# ==========================================================
def get_student(db: Session, student_id: int) -> Student:
    student = db.get(Student, student_id)
    if student is None:
        raise NotFoundError("Student not found")
    return student


def create_student(db: Session, data: dict) -> Student:
    number = data.get("student_number")
    if number and db.query(Student).filter(Student.student_number == number).first():
        raise ConflictError("A student with this student number already exists")
    student = Student(**data)
    db.add(student)
    db.commit()
    db.refresh(student)
    return student


def update_student(db: Session, student: Student, changes: dict) -> Student:
    for field, value in changes.items():
        setattr(student, field, value)
    db.commit()
    db.refresh(student)
    return student


def is_enrolled(course: Course, student_id: int) -> bool:
    return any(s.id == student_id for s in course.students)


def enrolled_ids(course: Course) -> set:
    return {s.id for s in course.students}


def enroll(db: Session, course: Course, student_id: int) -> Student:
    student = get_student(db, student_id)
    if is_enrolled(course, student_id):
        raise ConflictError("Student is already enrolled in this course")
    course.students.append(student)
    db.commit()
    logger.info(f"수강 등록: student={student_id} course={course.slug}")
    return student


def unenroll(db: Session, course: Course, student_id: int) -> None:
    student = get_student(db, student_id)
    if not is_enrolled(course, student_id):
        raise NotFoundError("Student is not enrolled in this course")
    course.students.remove(student)
    db.commit()
    logger.info(f"수강 취소: student={student_id} course={course.slug}")


def unenrolled_students(db: Session, course: Course) -> List[Student]:
    ids = enrolled_ids(course)
    query = db.query(Student)
    if ids:
        query = query.filter(Student.id.notin_(ids))
    return query.order_by(Student.last_name, Student.first_name).all()


# ==========================================================
# [그룹]
# ==========================================================
def group_name_exists(db: Session, course: Course, name: str) -> bool:
    return db.query(Group).filter(Group.course_id == course.id, Group.name == name).first() is not None


def group_number_exists(db: Session, course: Course, number: str) -> bool:
    return db.query(Group).filter(Group.course_id == course.id, Group.number == number).first() is not None


def create_group(db: Session, course: Course, number: str, name: Optional[str],
                 student_ids: Iterable[int], leader_id: Optional[int] = None) -> Group:
    if not number:
        raise ValidationError("groupNumber is required", field="number")
    # 명시적 사전 조회로 중복 감지
    if group_number_exists(db, course, number):
        raise ConflictError("A group with this number already exists")
    if name and group_name_exists(db, course, name):
        raise ConflictError("A group with this name already exists")

    enrolled = enrolled_ids(course)
    student_ids = list(dict.fromkeys(student_ids))
    not_enrolled = [sid for sid in student_ids if sid not in enrolled]
    if not_enrolled:
        raise ValidationError(f"Students not enrolled in course: {not_enrolled}", field="student_ids")
    if leader_id is not None and leader_id not in student_ids:
        raise ValidationError("Leader must be a member of the group", field="leader_id")

    students = db.query(Student).filter(Student.id.in_(student_ids)).all() if student_ids else []
    group = Group(course_id=course.id, number=number, name=name, leader_id=leader_id, students=students)
    db.add(group)
    db.commit()
    db.refresh(group)
    logger.info(f"그룹 생성: course={course.slug} number={number} name={name}")
    return group


def get_group(db: Session, course: Course, group_id: int) -> Group:
    group = db.query(Group).filter(Group.id == group_id, Group.course_id == course.id).first()
    if group is None:
        raise NotFoundError("Group not found")
    return group


def list_groups(db: Session, course: Course) -> List[Group]:
    return db.query(Group).filter(Group.course_id == course.id).order_by(Group.number).all()


def delete_group(db: Session, course: Course, group_id: int) -> None:
    group = get_group(db, course, group_id)
    db.delete(group)
    db.commit()
    logger.info(f"그룹 삭제: course={course.slug} group={group_id}")
