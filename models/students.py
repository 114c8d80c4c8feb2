from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from database.db import Base
from models.courses import course_students
from utils.dates import utcnow


class Student(Base):
    __tablename__ = "students"  # 학생 기본 정보 테이블

    id = Column(Integer, primary_key=True, index=True)                 # 고유 학생 ID (Primary Key)
    student_number = Column(String(30), unique=True)                   # 학번
    first_name = Column(String(100), nullable=False)                   # 이름
    last_name = Column(String(100), nullable=False)                    # 성
    middle_initial = Column(String(5))                                 # 중간 이니셜
    image = Column(String(255))                                        # 프로필 이미지 URL
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # ✅ 수강 중인 강좌들 (N:N)
    courses = relationship("Course", secondary=course_students, back_populates="students")

    @property
    def full_name(self):
        if self.middle_initial:
            return f"{self.last_name}, {self.first_name} {self.middle_initial}."
        return f"{self.last_name}, {self.first_name}"
