from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database.db import Base
from utils.dates import utcnow

# ✅ 루브릭 항목 종류 (content/clarity 2항목 산출 방식)
CONTENT = "CONTENT"
CLARITY = "CLARITY"
GRADE_ITEM_TYPES = (CONTENT, CLARITY)


class GradeItem(Base):
    __tablename__ = "grade_items"  # 강좌별 루브릭 항목
    __table_args__ = (
        UniqueConstraint("course_id", "type", name="uq_grade_items_course_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(20), nullable=False)         # CONTENT / CLARITY
    weight = Column(Float, nullable=False, default=50.0)   # 기록용 (산출은 50/50 고정)


class Grade(Base):
    __tablename__ = "grades"  # 학생별 루브릭 점수
    __table_args__ = (
        UniqueConstraint("student_id", "grade_item_id", name="uq_grades_student_item"),
    )

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False)
    grade_item_id = Column(Integer, ForeignKey("grade_items.id", ondelete="CASCADE"), nullable=False)
    value = Column(Float, nullable=False)             # 0 ~ RUBRIC_ITEM_MAX
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    grade_item = relationship("GradeItem")
