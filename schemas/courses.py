from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ==========================================================
# 시간표
# ==========================================================
class ScheduleIn(BaseModel):
    day: str                                             # 요일 (예: Monday)
    from_time: str = Field(..., pattern=r"^\d{2}:\d{2}$")  # "HH:MM"
    to_time: str = Field(..., pattern=r"^\d{2}:\d{2}$")


class ScheduleOut(ScheduleIn):
    id: int

    model_config = ConfigDict(from_attributes=True)


# ==========================================================
# 강좌
# ==========================================================
class CourseCreate(BaseModel):
    code: str                                   # 과목 코드
    title: str                                  # 과목명
    section: str                                # 분반
    semester: Optional[str] = None
    academic_year: Optional[str] = None
    room: Optional[str] = None
    status: Optional[str] = "ACTIVE"
    faculty_id: Optional[int] = None
    schedules: List[ScheduleIn] = []


class CourseUpdate(BaseModel):
    title: Optional[str] = None
    semester: Optional[str] = None
    academic_year: Optional[str] = None
    room: Optional[str] = None
    status: Optional[str] = None
    faculty_id: Optional[int] = None


class CourseOut(BaseModel):
    id: int
    code: str
    title: str
    section: str
    slug: str
    semester: Optional[str] = None
    academic_year: Optional[str] = None
    room: Optional[str] = None
    status: str
    faculty_id: Optional[int] = None
    schedules: List[ScheduleOut] = []

    model_config = ConfigDict(from_attributes=True)


# ==========================================================
# 학생 / 수강
# ==========================================================
class StudentCreate(BaseModel):
    student_number: Optional[str] = None
    first_name: str
    last_name: str
    middle_initial: Optional[str] = None
    image: Optional[str] = None


class StudentUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    middle_initial: Optional[str] = None


class StudentImageUpdate(BaseModel):
    image: Optional[str] = None                 # 업로드된 이미지 URL (None 이면 삭제)


class StudentOut(BaseModel):
    id: int
    student_number: Optional[str] = None
    first_name: str
    last_name: str
    middle_initial: Optional[str] = None
    image: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class EnrollRequest(BaseModel):
    student_id: int


# ==========================================================
# 그룹
# ==========================================================
class GroupCreate(BaseModel):
    number: str                                 # 그룹 번호 (강좌 내 유일)
    name: Optional[str] = None                  # 그룹 이름 (강좌 내 유일)
    student_ids: List[int] = []
    leader_id: Optional[int] = None


class GroupMemberOut(BaseModel):
    id: int
    first_name: str
    last_name: str
    middle_initial: Optional[str] = None
    image: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class GroupOut(BaseModel):
    id: int
    course_id: int
    number: str
    name: Optional[str] = None
    leader: Optional[GroupMemberOut] = None
    students: List[GroupMemberOut] = []

    model_config = ConfigDict(from_attributes=True)


class ExistsOut(BaseModel):
    exists: bool
