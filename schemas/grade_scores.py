from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict


class ComponentScoreIn(BaseModel):
    value: Optional[float] = None                # 0 ~ 100 %
    config_id: Optional[str] = None              # 생략하면 현재 구성


class ComponentScoresIn(BaseModel):
    reporting: Optional[float] = None
    recitation: Optional[float] = None
    quiz: Optional[float] = None


class GradeScore(BaseModel):
    id: Optional[int] = None                     # 기록이 없으면 None (0점 자리표시)
    student_id: int
    course_id: int
    config_id: Optional[str] = None
    reporting_score: float
    recitation_score: float
    quiz_score: float
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ComponentScoreOut(BaseModel):
    score: float
    created_at: Optional[datetime] = None


class StudentGrade(BaseModel):
    student_id: int
    name: str
    strategy: str                                # weighted / content_clarity
    total: float
    remarks: str                                 # PASSED / FAILED
    passing_threshold: float
    components: Dict[str, float]
    config_id: Optional[str] = None
    weights: Optional[Dict[str, float]] = None
    scored_at: Optional[datetime] = None
