import logging

from sqlalchemy import create_engine               # SQLAlchemy 엔진 생성 도구
from sqlalchemy.orm import declarative_base        # 모델의 Base 클래스
from sqlalchemy.orm import sessionmaker            # 세션 팩토리 함수
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.pool import StaticPool

from config.settings import settings               # ✅ 환경변수 설정 파일 불러오기

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    # SQLite 메모리 DB는 모든 세션이 같은 커넥션을 공유해야 테이블이 보임
    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return options
    return {
        "pool_pre_ping": True,   # 끊긴 커넥션 사용 전 확인
        "pool_recycle": 3600,    # 1시간마다 커넥션 재생성
    }


# ✅ 프로세스 전역 엔진 (startup 시 init_db, shutdown 시 dispose_db)
engine = create_engine(settings.DB_URL, echo=settings.SQL_ECHO, **_engine_options(settings.DB_URL))

# ✅ 세션 팩토리: DB 연결에 사용할 세션 생성기 정의
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# ✅ 모델 정의 시 상속할 Base 클래스 (Declarative 방식 사용)
Base = declarative_base()


# ==========================================================
# [공통] DB 세션 관리 (FastAPI 의존성)
# ==========================================================
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """모든 모델을 등록한 뒤 테이블 생성 (존재하면 건너뜀)"""
    # 모델 메타데이터 등록
    from models import (  # noqa: F401
        attendance, courses, criteria, grade_configurations, grade_scores,
        grades, groups, quizzes, students, users,
    )

    Base.metadata.create_all(bind=engine)
    logger.info(f"DB 초기화 완료: {engine.url.render_as_string(hide_password=True)}")


def dispose_db():
    """커넥션 풀 반납 (애플리케이션 종료 시)"""
    engine.dispose()
    logger.info("DB 커넥션 풀 해제 완료")


# ==========================================================
# [공통] 유니크 키 기준 원자적 upsert
# ==========================================================
_UPSERT_DIALECTS = {"mysql": mysql, "mariadb": mysql, "postgresql": postgresql, "sqlite": sqlite}


def upsert(db, model, keys: dict, values: dict):
    """
    keys(유니크 제약 컬럼)로 INSERT, 충돌 시 values 로 UPDATE 하는 단일 문장 실행.
    동시에 같은 키로 써도 오류 없이 마지막 커밋이 남는다.
    반환: 키에 해당하는 ORM 객체 (세션 캐시 무시하고 다시 읽음)
    """
    dialect = db.get_bind().dialect.name
    module = _UPSERT_DIALECTS.get(dialect)
    if module is None:
        raise NotImplementedError(f"upsert is not supported for dialect '{dialect}'")

    stmt = module.insert(model).values(**keys, **values)
    if module is mysql:
        stmt = stmt.on_duplicate_key_update(**values)
    else:
        stmt = stmt.on_conflict_do_update(index_elements=list(keys), set_=values)
    db.execute(stmt)
    return db.query(model).filter_by(**keys).populate_existing().one()
