from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class RubricIn(BaseModel):
    name: Optional[str] = None
    percentage: Optional[float] = None           # 비중 %
    weight: Optional[float] = None               # percentage 의 별칭 (화면에서 weight 로 보냄)


class CriteriaIn(BaseModel):
    # 누락 검사는 서비스에서 수행 (400)
    name: Optional[str] = None
    rubrics: Optional[List[RubricIn]] = None
    scoring_range: Optional[int] = None          # 항목당 최고 점수
    passing_score: Optional[float] = None        # 통과 기준 %
    date: Optional[str] = None                   # ISO 날짜 (레시테이션 기준)
    is_group_criteria: bool = False
    is_recitation_criteria: bool = False


class Rubric(BaseModel):
    id: int
    name: str
    percentage: float

    model_config = ConfigDict(from_attributes=True)


class Criteria(BaseModel):
    id: int
    course_id: int
    user_id: int
    name: str
    scoring_range: int
    passing_score: float
    date: Optional[date]
    is_group_criteria: bool
    is_recitation_criteria: bool
    rubrics: List[Rubric]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CriteriaGradeIn(BaseModel):
    student_id: Optional[int] = None
    scores: Optional[List[float]] = None
    total: Optional[float] = None                # 없으면 항목 점수와 비중으로 계산


class CriteriaGradesIn(BaseModel):
    date: Optional[str] = None
    grades: Optional[List[CriteriaGradeIn]] = None


class CriteriaGrade(BaseModel):
    id: int
    criteria_id: int
    student_id: int
    date: date
    scores: List[float]
    total: float
    passed: bool

    model_config = ConfigDict(from_attributes=True)
