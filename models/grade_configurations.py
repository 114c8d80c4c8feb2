from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from database.db import Base


class GradeConfiguration(Base):
    """
    강좌별 성적 가중치 구성.
    - id = "{course_id}_{생성 epoch ms}" (정렬 가능 + 유일)
    - 수정은 기존 행을 바꾸지 않고 새 스냅샷 행을 만든다 (supersedes_id 로 이전 행 참조)
    """
    __tablename__ = "grade_configurations"

    id = Column(String(40), primary_key=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)                 # 예: Midterm
    reporting_weight = Column(Float, nullable=False)           # % (0~100)
    recitation_weight = Column(Float, nullable=False)          # %
    quiz_weight = Column(Float, nullable=False)                # %
    passing_threshold = Column(Float, nullable=False)          # 통과 기준 총점
    start_date = Column(Date)                                  # 적용 시작 (없으면 열린 구간)
    end_date = Column(Date)                                    # 적용 종료
    supersedes_id = Column(String(40), ForeignKey("grade_configurations.id"))
    created_at = Column(DateTime, nullable=False, index=True)

    course = relationship("Course", back_populates="grade_configurations")
    supersedes = relationship("GradeConfiguration", remote_side=[id])
