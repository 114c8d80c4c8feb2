from typing import Optional, Annotated
from fastapi import Depends, Header
from sqlalchemy.orm import Session

from database.db import get_db
from models.users import User
from services import auth_service
from services.permissions import has_capability
from utils.exceptions import AuthenticationError, PermissionDeniedError

AuthHeader = Annotated[Optional[str], Header(alias="Authorization")]


def _bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise AuthenticationError("Missing Authorization header")

    # "Bearer <token>" 파싱
    try:
        scheme, token = authorization.split(" ", 1)
    except ValueError:
        raise AuthenticationError("Invalid Authorization header format")

    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Invalid auth scheme")
    return token.strip()


def get_session_token(authorization: AuthHeader = None) -> str:
    return _bearer_token(authorization)


def get_current_user(
    token: str = Depends(get_session_token),
    db: Session = Depends(get_db),
) -> User:
    # 세션이 없으면 다른 어떤 처리보다 먼저 401
    return auth_service.resolve_session(db, token)


def require_capability(capability: str):
    """
    역할 권한표(services/permissions.py) 기반 접근 제어 의존성.
    사용 예: user: User = Depends(require_capability(GRADES_WRITE))
    """
    def checker(user: User = Depends(get_current_user)) -> User:
        if not has_capability(user.role, capability):
            raise PermissionDeniedError(f"Permission denied: {capability} required")
        return user
    return checker
