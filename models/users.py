from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from database.db import Base
from utils.dates import utcnow

# ✅ 역할 (권한 표는 services/permissions.py)
ROLE_ADMIN = "ADMIN"
ROLE_FACULTY = "FACULTY"
ROLE_ACADEMIC_HEAD = "ACADEMIC_HEAD"
ROLES = (ROLE_ADMIN, ROLE_FACULTY, ROLE_ACADEMIC_HEAD)

USER_ACTIVE = "ACTIVE"
USER_INACTIVE = "INACTIVE"


class User(Base):
    __tablename__ = "users"  # 교직원 계정 테이블

    id = Column(Integer, primary_key=True, index=True)                 # 사용자 고유 ID
    email = Column(String(120), unique=True, nullable=False)           # 로그인 이메일
    name = Column(String(100), nullable=False)                         # 이름
    role = Column(String(20), nullable=False, default=ROLE_FACULTY)    # ADMIN / FACULTY / ACADEMIC_HEAD
    department = Column(String(100))                                   # 소속 학과
    password_hash = Column(String(255), nullable=False)                # bcrypt 해시
    status = Column(String(20), nullable=False, default=USER_ACTIVE)   # ACTIVE / INACTIVE
    created_at = Column(DateTime, nullable=False, default=utcnow)

    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan")


class UserSession(Base):
    __tablename__ = "user_sessions"  # 로그인 세션 (Bearer 토큰)

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(128), unique=True, nullable=False, index=True)  # 불투명 세션 토큰
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    expires_at = Column(DateTime, nullable=False)                         # 만료 시각 (UTC)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    user = relationship("User", back_populates="sessions")
