import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from config.settings import settings
from models.users import User, UserSession, ROLES, USER_ACTIVE
from utils.dates import utcnow
from utils.exceptions import AuthenticationError, ConflictError, ValidationError
from utils.security import hash_password, verify_password, new_session_token

logger = logging.getLogger(__name__)


def create_user(db: Session, email: str, name: str, password: str, role: str,
                department: Optional[str] = None) -> User:
    if role not in ROLES:
        raise ValidationError(f"role must be one of {', '.join(ROLES)}", field="role")
    if not password:
        raise ValidationError("password is required", field="password")
    email = email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("A user with this email already exists")

    user = User(
        email=email,
        name=name,
        role=role,
        department=department,
        password_hash=hash_password(password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"사용자 생성: {email} ({role})")
    return user


def login(db: Session, email: str, password: str) -> UserSession:
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if not user or not verify_password(password, user.password_hash):
        logger.warning(f"로그인 실패: {email}")
        raise AuthenticationError("Invalid email or password")
    if user.status != USER_ACTIVE:
        raise AuthenticationError("Account is inactive")

    session = UserSession(
        token=new_session_token(),
        user_id=user.id,
        expires_at=utcnow() + timedelta(hours=settings.SESSION_TTL_HOURS),
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    logger.info(f"로그인: {user.email}")
    return session


def resolve_session(db: Session, token: Optional[str]) -> User:
    """세션 토큰 → 사용자. 없거나 만료면 AuthenticationError"""
    if not token:
        raise AuthenticationError("Unauthorized")
    session = db.query(UserSession).filter(UserSession.token == token).first()
    if session is None:
        raise AuthenticationError("Unauthorized")
    if session.expires_at <= utcnow():
        db.delete(session)
        db.commit()
        raise AuthenticationError("Session expired")
    user = session.user
    if user.status != USER_ACTIVE:
        raise AuthenticationError("Account is inactive")
    return user


def logout(db: Session, token: str) -> None:
    deleted = db.query(UserSession).filter(UserSession.token == token).delete()
    db.commit()
    if deleted:
        logger.info("로그아웃: 세션 삭제")
