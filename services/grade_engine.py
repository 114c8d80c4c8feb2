"""
services/grade_engine.py

성적 산출 규칙 (저장 없음, 요청마다 재계산)

1) weighted (가중 평균)
   total = reporting*Wr/100 + recitation*Wc/100 + quiz*Wq/100
   remarks = PASSED if total >= passing_threshold else FAILED

2) content_clarity (루브릭 2항목, 각 10점 만점 · 50/50)
   total = (content + clarity) / 20 * 100
   remarks 기준 75 고정

두 방식은 서로 대체되지 않으며 strategy 이름으로 선택한다.
누락된 구성요소 점수는 0으로 본다.
"""

from dataclasses import dataclass, asdict
from typing import Dict, Optional

PASSED = "PASSED"
FAILED = "FAILED"

WEIGHTED = "weighted"
CONTENT_CLARITY = "content_clarity"


@dataclass(frozen=True)
class Weights:
    reporting: float
    recitation: float
    quiz: float
    passing_threshold: float

    @classmethod
    def from_configuration(cls, config, fallback_threshold: float) -> "Weights":
        """구성이 없으면 0 가중치 (총점 0)"""
        if config is None:
            return cls(0.0, 0.0, 0.0, fallback_threshold)
        return cls(
            reporting=config.reporting_weight or 0.0,
            recitation=config.recitation_weight or 0.0,
            quiz=config.quiz_weight or 0.0,
            passing_threshold=config.passing_threshold,
        )


@dataclass(frozen=True)
class ComponentScores:
    reporting: float = 0.0
    recitation: float = 0.0
    quiz: float = 0.0

    @classmethod
    def of(cls, reporting=None, recitation=None, quiz=None) -> "ComponentScores":
        return cls(reporting or 0.0, recitation or 0.0, quiz or 0.0)


@dataclass(frozen=True)
class GradeResult:
    strategy: str
    total: float
    remarks: str
    passing_threshold: float
    components: Dict[str, float]

    def to_dict(self) -> dict:
        return asdict(self)


def remarks_for(total: float, threshold: float) -> str:
    return PASSED if total >= threshold else FAILED


def weighted_total(scores: ComponentScores, weights: Weights) -> float:
    return (
        scores.reporting * weights.reporting / 100
        + scores.recitation * weights.recitation / 100
        + scores.quiz * weights.quiz / 100
    )


def weighted_grade(scores: ComponentScores, weights: Weights) -> GradeResult:
    total = weighted_total(scores, weights)
    return GradeResult(
        strategy=WEIGHTED,
        total=total,
        remarks=remarks_for(total, weights.passing_threshold),
        passing_threshold=weights.passing_threshold,
        components={
            "reporting": scores.reporting,
            "recitation": scores.recitation,
            "quiz": scores.quiz,
        },
    )


def content_clarity_total(content: Optional[float], clarity: Optional[float], item_max: float = 10.0) -> float:
    return ((content or 0.0) + (clarity or 0.0)) / (2 * item_max) * 100


def content_clarity_grade(content: Optional[float], clarity: Optional[float],
                          item_max: float = 10.0, threshold: float = 75.0) -> GradeResult:
    total = content_clarity_total(content, clarity, item_max)
    return GradeResult(
        strategy=CONTENT_CLARITY,
        total=total,
        remarks=remarks_for(total, threshold),
        passing_threshold=threshold,
        components={"content": content or 0.0, "clarity": clarity or 0.0},
    )


def suggested_quiz_total(score: float, plus_points: float, max_score: float) -> float:
    """퀴즈 화면 미리보기용: min(100, (점수 + 가산점) / 만점 * 100)"""
    if not max_score or max_score <= 0:
        return 0.0
    return min(100.0, (score + plus_points) / max_score * 100)

