from datetime import date, datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict


class QuizIn(BaseModel):
    # 누락 검사는 서비스에서 일괄 수행 (400 "Missing required fields")
    name: Optional[str] = None
    quiz_date: Optional[str] = None
    attendance_range_start: Optional[str] = None
    attendance_range_end: Optional[str] = None
    max_score: Optional[float] = None
    passing_rate: Optional[float] = None


class Quiz(BaseModel):
    id: int
    course_id: int
    name: str
    quiz_date: date
    attendance_range_start: date
    attendance_range_end: date
    max_score: float
    passing_rate: float
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class QuizScoreIn(BaseModel):
    student_id: Optional[int] = None
    score: Optional[Union[float, str]] = None
    attendance: Optional[str] = None             # PRESENT / LATE / ABSENT
    plus_points: Optional[Union[float, str]] = None
    total_grade: Optional[Union[float, str]] = None


class QuizScoresIn(BaseModel):
    scores: Optional[List[QuizScoreIn]] = None


class QuizScore(BaseModel):
    id: int
    quiz_id: int
    student_id: int
    score: float
    attendance: str
    plus_points: float
    total_grade: float
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class QuizAttendanceRow(BaseModel):
    student_id: int
    first_name: str
    last_name: str
    middle_initial: Optional[str] = None
    present: int
    late: int
    excused: int
    absent: int
    attendance_rate: float
    bonus_eligible: bool
    suggested_total_grade: Optional[float] = None


class QuizAttendance(BaseModel):
    total_classes: int
    student_stats: List[QuizAttendanceRow]
    unique_dates: List[date]
