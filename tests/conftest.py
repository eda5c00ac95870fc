import os

# 테스트는 MySQL 대신 메모리 SQLite 사용 (database 모듈 import 전에 설정해야 함)
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("OPENAI_API_KEY", None)

import pytest

from config import Settings
from database import Base, SessionLocal, engine
from models import models  # noqa: F401  (테이블 등록용)


@pytest.fixture
def db_session():
    """테스트마다 테이블을 새로 만들고 끝나면 삭제"""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def placeholder_settings() -> Settings:
    return Settings(database_url="sqlite://", force_placeholder_scoring=True)
