from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class GradeConfigurationCreate(BaseModel):
    name: Optional[str] = None
    reporting_weight: Optional[float] = None     # %
    recitation_weight: Optional[float] = None    # %
    quiz_weight: Optional[float] = None          # %
    passing_threshold: Optional[float] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class GradeConfigurationUpdate(GradeConfigurationCreate):
    """전달한 필드만 반영 (나머지는 이전 스냅샷 값 유지)"""


class GradeConfiguration(BaseModel):
    id: str
    course_id: int
    name: str
    reporting_weight: float
    recitation_weight: float
    quiz_weight: float
    passing_threshold: float
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    supersedes_id: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
