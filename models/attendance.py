from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database.db import Base
from utils.dates import utcnow

# ✅ 출결 상태 (기록이 없으면 조회 기능에 따라 ABSENT 또는 NOT_SET 으로 해석)
PRESENT = "PRESENT"
LATE = "LATE"
ABSENT = "ABSENT"
EXCUSED = "EXCUSED"
NOT_SET = "NOT_SET"
RECORDED_STATUSES = (PRESENT, LATE, ABSENT, EXCUSED)


class Attendance(Base):
    __tablename__ = "attendance"  # 출결 기록 테이블
    __table_args__ = (
        # (학생, 강좌, 날짜) 당 최대 1건 → upsert 키
        UniqueConstraint("student_id", "course_id", "date", name="uq_attendance_student_course_date"),
    )

    id = Column(Integer, primary_key=True, index=True)                                  # 출결 고유 ID
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False)             # 학생 ID
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)   # 강좌 ID
    date = Column(Date, nullable=False, index=True)                                     # 수업 날짜 (일 단위)
    status = Column(String(20), nullable=False)                                         # PRESENT / LATE / ABSENT / EXCUSED
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    student = relationship("Student")
