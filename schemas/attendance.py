from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import date, datetime


class AttendanceIn(BaseModel):
    student_id: Optional[int] = None            # 학생 ID
    date: Optional[str] = None                  # ISO 날짜 (시각이 붙어도 날짜로 정규화)
    status: Optional[str] = None                # PRESENT / LATE / ABSENT / EXCUSED


class AttendanceEntry(BaseModel):
    student_id: Optional[int] = None
    status: Optional[str] = None


class AttendanceBatchIn(BaseModel):
    date: Optional[str] = None
    attendance: List[AttendanceEntry]


class AttendanceClearIn(BaseModel):
    date: Optional[str] = None
    record_ids: Optional[List[int]] = None      # 삭제할 출결 id 목록 (강좌 범위로 제한됨)


class Attendance(BaseModel):
    id: int                                     # 출결 고유 ID
    student_id: int                             # 학생 ID
    course_id: int                              # 강좌 ID
    date: date                                  # 날짜
    status: str                                 # 출결 상태
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AttendanceStats(BaseModel):
    total_students: int
    total_present: int
    total_late: int
    total_absents: int                          # 기록 없는 학생 포함
    total_excused: int
    attendance_rate: float                      # (present + late) / total_students * 100
    last_attendance_date: Optional[date] = None


class StudentStatus(BaseModel):
    student_id: int
    name: str
    status: str                                 # 기록 없으면 NOT_SET


class StudentRangeStats(BaseModel):
    student_id: int
    first_name: str
    last_name: str
    middle_initial: Optional[str] = None
    present: int
    late: int
    excused: int
    absent: int
    attendance_rate: float


class RangeStats(BaseModel):
    total_classes: int
    student_stats: List[StudentRangeStats]
    unique_dates: List[date]
