from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import get_current_user, get_session_token, require_capability
from models.users import User
from schemas.auth import AccessOut, LoginRequest, LoginResponse, MeOut, UserCreate, UserOut
from services import auth_service
from services.permissions import USERS_MANAGE, policy_for, resolve_access

router = APIRouter(tags=["auth"])


# ==========================================================
# [인증] 로그인 / 로그아웃
# ==========================================================

# ✅ [LOGIN] 세션 토큰 발급
@router.post("/auth/login")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    session = auth_service.login(db, body.email, body.password)
    return {
        "success": True,
        "data": LoginResponse(
            token=session.token,
            expires_at=session.expires_at,
            user=UserOut.model_validate(session.user),
        ),
        "message": "Login successful",
    }


# ✅ [LOGOUT] 세션 삭제
@router.post("/auth/logout")
def logout(token: str = Depends(get_session_token), db: Session = Depends(get_db)):
    auth_service.logout(db, token)
    return {"success": True, "data": None, "message": "Logged out"}


# ✅ [ME] 현재 사용자 + 권한
@router.get("/auth/me")
def me(user: User = Depends(get_current_user)):
    policy = policy_for(user.role)
    return {
        "success": True,
        "data": MeOut(
            **UserOut.model_validate(user).model_dump(),
            capabilities=sorted(policy.capabilities) if policy else [],
            home_path=policy.home_path if policy else "/",
        ),
    }


# ✅ [ACCESS] 화면 경로 접근 판정 (역할별 리다이렉트)
@router.get("/auth/access")
def access(
    path: str = Query(..., description="확인할 화면 경로 (예: /dashboard/admin)"),
    user: User = Depends(get_current_user),
):
    allowed, redirect = resolve_access(user.role, path)
    return {"success": True, "data": AccessOut(path=path, allowed=allowed, redirect=redirect)}


# ==========================================================
# [사용자 관리]
# ==========================================================

# ✅ [CREATE] 계정 생성 (users:manage)
@router.post("/users", status_code=201)
def create_user(
    body: UserCreate,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(USERS_MANAGE)),
):
    user = auth_service.create_user(
        db, body.email, body.name, body.password, body.role, department=body.department
    )
    return {"success": True, "data": UserOut.model_validate(user), "message": "User created successfully"}
