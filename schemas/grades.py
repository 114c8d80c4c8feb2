from pydantic import BaseModel, ConfigDict
from typing import Optional


class GradeItemIn(BaseModel):
    type: str                                    # CONTENT / CLARITY
    weight: float = 50.0                         # 표시용, 성적 산출에는 쓰지 않음


class GradeItem(BaseModel):
    id: int                                      # 항목 고유 ID
    course_id: int                               # 강좌 ID
    type: str                                    # CONTENT / CLARITY
    weight: float

    model_config = ConfigDict(from_attributes=True)


class RubricGradesIn(BaseModel):
    content: Optional[float] = None              # 0 ~ 10
    clarity: Optional[float] = None              # 0 ~ 10


class RubricGrades(BaseModel):
    content: float
    clarity: float
