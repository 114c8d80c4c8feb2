from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database.db import Base
from utils.dates import utcnow

# 퀴즈 점수 행의 출결 값 (EXCUSED 없음)
QUIZ_ATTENDANCE_VALUES = ("PRESENT", "LATE", "ABSENT")


class Quiz(Base):
    __tablename__ = "quizzes"  # 퀴즈 정보 테이블

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)               # 퀴즈명
    quiz_date = Column(Date, nullable=False)                 # 시행일
    attendance_range_start = Column(Date, nullable=False)    # 가산점 출결 인정 구간 시작
    attendance_range_end = Column(Date, nullable=False)      # 가산점 출결 인정 구간 종료
    max_score = Column(Float, nullable=False)                # 만점
    passing_rate = Column(Float, nullable=False)             # 통과 기준 (%)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    scores = relationship("QuizScore", back_populates="quiz", cascade="all, delete-orphan")


class QuizScore(Base):
    __tablename__ = "quiz_scores"  # 퀴즈 학생별 점수
    __table_args__ = (
        UniqueConstraint("quiz_id", "student_id", name="uq_quiz_scores_quiz_student"),
    )

    id = Column(Integer, primary_key=True, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False)
    score = Column(Float, nullable=False)               # 원점수
    attendance = Column(String(10), nullable=False)     # PRESENT / LATE / ABSENT
    plus_points = Column(Float, nullable=False, default=0.0)
    total_grade = Column(Float, nullable=False)         # 호출측이 계산한 최종 % 값
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    quiz = relationship("Quiz", back_populates="scores")
