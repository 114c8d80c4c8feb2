from sqlalchemy import Column, Integer, String, ForeignKey, Table
from sqlalchemy.orm import relationship
from database.db import Base

# ✅ 그룹 구성원 (학생 N : 그룹 N)
group_students = Table(
    "group_students",
    Base.metadata,
    Column("group_id", Integer, ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True),
    Column("student_id", Integer, ForeignKey("students.id", ondelete="CASCADE"), primary_key=True),
)


class Group(Base):
    __tablename__ = "groups"  # 강좌 내 발표(리포팅) 그룹

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    number = Column(String(10), nullable=False)       # 그룹 번호 (강좌 내 유일)
    name = Column(String(100))                        # 그룹 이름 (강좌 내 유일, 선택)
    leader_id = Column(Integer, ForeignKey("students.id"))

    course = relationship("Course", back_populates="groups")
    leader = relationship("Student")
    students = relationship("Student", secondary=group_students)
