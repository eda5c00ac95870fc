# database.py
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from config import get_settings


def build_engine(db_url: str):
    """
    DB URL에 맞는 엔진 생성
    - MySQL: 커넥션 풀 + utf8mb4 고정
    - SQLite: 로컬/테스트용 (메모리 DB는 커넥션 하나를 공유)
    """
    if db_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}, "future": True}
        if db_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(db_url, **kwargs)

        # SQLite는 기본적으로 FK 검사를 안 하므로 켜줌
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_conn, conn_rec):
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON")
            cur.close()

        return engine

    engine = create_engine(
        db_url,
        pool_pre_ping=True,
        pool_recycle=3600,
        future=True,
    )

    if engine.dialect.name == "mysql":
        # 모든 새 커넥션에서 문자셋 확실히 고정
        @event.listens_for(engine, "connect")
        def _set_names_utf8mb4(dbapi_conn, conn_rec):
            with dbapi_conn.cursor() as cur:
                cur.execute("SET NAMES utf8mb4 COLLATE utf8mb4_unicode_ci;")

    return engine


engine = build_engine(get_settings().database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
