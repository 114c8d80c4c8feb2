from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Boolean, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
from database.db import Base
from utils.dates import utcnow


class Criteria(Base):
    """
    리포팅/레시테이션 채점 기준표.
    - rubrics: 평가 항목과 비중(%)
    - scoring_range: 항목당 최고 점수 (예: 5점 척도)
    - passing_score: 통과 기준 총점 (%)
    """
    __tablename__ = "criteria"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)     # 작성자
    name = Column(String(100), nullable=False)
    scoring_range = Column(Integer, nullable=False)
    passing_score = Column(Float, nullable=False)
    date = Column(Date)                                                   # 레시테이션 기준은 수업일 지정
    is_group_criteria = Column(Boolean, nullable=False, default=False)
    is_recitation_criteria = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    rubrics = relationship(
        "Rubric", back_populates="criteria", cascade="all, delete-orphan", order_by="Rubric.position"
    )


class Rubric(Base):
    __tablename__ = "rubrics"  # 기준표 평가 항목

    id = Column(Integer, primary_key=True, index=True)
    criteria_id = Column(Integer, ForeignKey("criteria.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False)         # 항목 순서 (scores[] 인덱스와 대응)
    name = Column(String(100), nullable=False)
    percentage = Column(Float, nullable=False)         # 비중 %

    criteria = relationship("Criteria", back_populates="rubrics")


class CriteriaGrade(Base):
    """(강좌, 기준표, 날짜) 단위로 통째로 교체되는 학생별 채점 결과"""
    __tablename__ = "criteria_grades"
    __table_args__ = (
        Index("ix_criteria_grades_course_criteria_date", "course_id", "criteria_id", "date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    criteria_id = Column(Integer, ForeignKey("criteria.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False)
    date = Column(Date, nullable=False)
    scores = Column(JSON, nullable=False)              # 항목별 점수 (rubrics 순서)
    total = Column(Float, nullable=False)              # % (0~100)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    student = relationship("Student")
    criteria = relationship("Criteria")

    @property
    def passed(self) -> bool:
        return self.total >= self.criteria.passing_score
