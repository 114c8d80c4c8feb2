from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Table
from sqlalchemy.orm import relationship
from database.db import Base
from utils.dates import utcnow

COURSE_ACTIVE = "ACTIVE"
COURSE_INACTIVE = "INACTIVE"

# ✅ 수강 관계 (학생 N : 강좌 N)
course_students = Table(
    "course_students",
    Base.metadata,
    Column("course_id", Integer, ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True),
    Column("student_id", Integer, ForeignKey("students.id", ondelete="RESTRICT"), primary_key=True),
)


class Course(Base):
    __tablename__ = "courses"  # 강좌(분반) 테이블

    id = Column(Integer, primary_key=True, index=True)                    # 강좌 고유 ID
    code = Column(String(30), nullable=False)                             # 과목 코드 (예: IT101)
    title = Column(String(150), nullable=False)                           # 과목명
    section = Column(String(20), nullable=False)                          # 분반 (예: A)
    slug = Column(String(80), unique=True, nullable=False, index=True)    # URL용 대체 키 (예: it101-a)
    semester = Column(String(20))                                         # 학기 (예: 1st Semester)
    academic_year = Column(String(20))                                    # 학년도 (예: 2024-2025)
    room = Column(String(50))
    status = Column(String(20), nullable=False, default=COURSE_ACTIVE)    # ACTIVE / INACTIVE
    faculty_id = Column(Integer, ForeignKey("users.id"))                  # 담당 교수
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # ==========================================================
    # [관계 설정]
    # ==========================================================
    faculty = relationship("User")
    students = relationship(
        "Student",
        secondary=course_students,
        back_populates="courses",
        order_by="Student.last_name",
    )
    schedules = relationship("Schedule", back_populates="course", cascade="all, delete-orphan")
    groups = relationship("Group", back_populates="course", cascade="all, delete-orphan")
    grade_configurations = relationship(
        "GradeConfiguration",
        back_populates="course",
        order_by="GradeConfiguration.created_at.desc()",
    )


class Schedule(Base):
    __tablename__ = "schedules"  # 강좌 시간표

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    day = Column(String(10), nullable=False)          # 요일 (예: Monday)
    from_time = Column(String(5), nullable=False)     # 시작 "HH:MM"
    to_time = Column(String(5), nullable=False)       # 종료 "HH:MM"

    course = relationship("Course", back_populates="schedules")
