from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import require_capability
from models.users import User
from schemas.grade_configurations import (
    GradeConfiguration as GradeConfigurationSchema,
    GradeConfigurationCreate,
    GradeConfigurationUpdate,
)
from services import course_service, grade_config_service
from services.permissions import CONFIG_WRITE, GRADES_READ
from utils.dates import parse_iso_date

router = APIRouter(prefix="/courses/{slug}/grade-configurations", tags=["grade-configurations"])


# ✅ [CREATE] 성적 구성 생성 (가중치 합 100 검증)
@router.post("/", status_code=201)
def create_configuration(
    slug: str,
    body: GradeConfigurationCreate,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(CONFIG_WRITE)),
):
    course = course_service.get_course_by_slug(db, slug)
    config = grade_config_service.create_configuration(db, course, body.model_dump())
    return {
        "success": True,
        "data": GradeConfigurationSchema.model_validate(config),
        "message": "Grade configuration created successfully",
    }


# ✅ [READ] 구성 이력 (최신순, 대체된 스냅샷 포함)
@router.get("/")
def list_configurations(
    slug: str,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_READ)),
):
    course = course_service.get_course_by_slug(db, slug)
    configs = grade_config_service.list_configurations(db, course)
    return {"success": True, "data": [GradeConfigurationSchema.model_validate(c) for c in configs]}


# ✅ [READ] 현재 적용 구성 (없으면 data=None → 0 가중치 대체)
@router.get("/current")
def current_configuration(
    slug: str,
    on: Optional[str] = Query(None, description="기준일 (적용 구간 필터)"),
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_READ)),
):
    course = course_service.get_course_by_slug(db, slug)
    on_date = parse_iso_date(on, field="on") if on else None
    config = grade_config_service.current_configuration(db, course, on=on_date)
    return {
        "success": True,
        "data": GradeConfigurationSchema.model_validate(config) if config else None,
        "message": None if config else "No grade configuration configured",
    }


# ✅ [READ] 구성 단건
@router.get("/{config_id}")
def get_configuration(
    slug: str,
    config_id: str,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(GRADES_READ)),
):
    course = course_service.get_course_by_slug(db, slug)
    config = grade_config_service.get_configuration(db, course, config_id)
    return {"success": True, "data": GradeConfigurationSchema.model_validate(config)}


# ✅ [UPDATE] 부분 수정 → 새 스냅샷 생성 (기존 행 불변)
@router.put("/{config_id}")
def update_configuration(
    slug: str,
    config_id: str,
    body: GradeConfigurationUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(CONFIG_WRITE)),
):
    course = course_service.get_course_by_slug(db, slug)
    snapshot = grade_config_service.update_configuration(
        db, course, config_id, body.model_dump(exclude_unset=True)
    )
    return {
        "success": True,
        "data": GradeConfigurationSchema.model_validate(snapshot),
        "message": "Grade configuration updated successfully",
    }
