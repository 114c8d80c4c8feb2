"""
services/permissions.py

- 역할(role) → 권한(capability) 집합 + 접근 가능한 화면 경로 prefix 표
- 라우트마다 역할을 하드코딩하지 않고 require_capability("...") 로 이 표를 조회
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Tuple

from models.users import ROLE_ADMIN, ROLE_FACULTY, ROLE_ACADEMIC_HEAD

# ==========================================================
# 권한 목록
# ==========================================================
COURSES_READ = "courses:read"
COURSES_WRITE = "courses:write"
ATTENDANCE_READ = "attendance:read"
ATTENDANCE_WRITE = "attendance:write"
GRADES_READ = "grades:read"
GRADES_WRITE = "grades:write"
CONFIG_WRITE = "grade-config:write"
USERS_MANAGE = "users:manage"

# 역할별 검사가 필요한 화면 경로
GUARDED_PREFIXES = ("/dashboard", "/grading")

ALL_CAPABILITIES = frozenset({
    COURSES_READ, COURSES_WRITE,
    ATTENDANCE_READ, ATTENDANCE_WRITE,
    GRADES_READ, GRADES_WRITE,
    CONFIG_WRITE, USERS_MANAGE,
})


@dataclass(frozen=True)
class RolePolicy:
    role: str
    capabilities: FrozenSet[str]
    path_prefixes: Tuple[str, ...]

    @property
    def home_path(self) -> str:
        return self.path_prefixes[0] if self.path_prefixes else "/"


ROLE_POLICIES: Dict[str, RolePolicy] = {
    ROLE_ADMIN: RolePolicy(
        role=ROLE_ADMIN,
        capabilities=ALL_CAPABILITIES,
        path_prefixes=("/dashboard/admin", "/grading"),
    ),
    ROLE_FACULTY: RolePolicy(
        role=ROLE_FACULTY,
        capabilities=frozenset({
            COURSES_READ, ATTENDANCE_READ, ATTENDANCE_WRITE,
            GRADES_READ, GRADES_WRITE, CONFIG_WRITE,
        }),
        path_prefixes=("/dashboard/faculty", "/grading"),
    ),
    ROLE_ACADEMIC_HEAD: RolePolicy(
        role=ROLE_ACADEMIC_HEAD,
        capabilities=frozenset({
            COURSES_READ, COURSES_WRITE, ATTENDANCE_READ,
            GRADES_READ, GRADES_WRITE, CONFIG_WRITE,
        }),
        path_prefixes=("/dashboard/academic-head", "/grading"),
    ),
}


def policy_for(role: str) -> Optional[RolePolicy]:
    return ROLE_POLICIES.get(role)


def has_capability(role: str, capability: str) -> bool:
    policy = policy_for(role)
    return policy is not None and capability in policy.capabilities


def resolve_access(role: str, path: str) -> Tuple[bool, Optional[str]]:
    """
    화면 경로 접근 판정.
    - 보호 경로(/dashboard, /grading) 밖이면 누구나 허용
    - 허용이면 (True, None)
    - 아니면 (False, 역할의 첫 번째 경로 또는 "/")
    """
    if not any(path.startswith(prefix) for prefix in GUARDED_PREFIXES):
        return True, None
    policy = policy_for(role)
    if policy is None:
        return False, "/"
    if any(path.startswith(prefix) for prefix in policy.path_prefixes):
        return True, None
    return False, policy.home_path
