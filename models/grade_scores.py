from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from database.db import Base
from utils.dates import utcnow


class GradeScore(Base):
    """
    학생별 구성요소 점수 이력.
    (학생, 강좌)당 여러 행이 쌓일 수 있으며 '현재 점수'는 created_at 최신 행으로 결정.
    """
    __tablename__ = "grade_scores"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    config_id = Column(String(40), ForeignKey("grade_configurations.id"))
    reporting_score = Column(Float, nullable=False, default=0.0)     # 0~100 %
    recitation_score = Column(Float, nullable=False, default=0.0)    # 0~100 %
    quiz_score = Column(Float, nullable=False, default=0.0)          # 0~100 %
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    configuration = relationship("GradeConfiguration")
