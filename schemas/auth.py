from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


# ✅ 요청 형식 정의
class LoginRequest(BaseModel):
    email: str
    password: str


class UserCreate(BaseModel):
    email: str
    name: str
    password: str
    role: str                                # ADMIN / FACULTY / ACADEMIC_HEAD
    department: Optional[str] = None


# ✅ 응답 형식 정의
class UserOut(BaseModel):
    id: int
    email: str
    name: str
    role: str
    department: Optional[str] = None
    status: str

    model_config = ConfigDict(from_attributes=True)


class LoginResponse(BaseModel):
    token: str
    expires_at: datetime
    user: UserOut


class MeOut(UserOut):
    capabilities: List[str]
    home_path: str


class AccessOut(BaseModel):
    path: str
    allowed: bool
    redirect: Optional[str] = None
