# services/database_status_service.py
import logging
from typing import Dict, List

from fastapi import Depends
from sqlalchemy import inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import Base, get_db
from models import models

logger = logging.getLogger("ecoimpact.db")

TABLES = (models.Product, models.Analysis, models.SearchHistory)


class DatabaseStatusService:
    """테이블 존재/조회 가능 여부 확인 및 생성"""
    def __init__(self, db: Session = Depends(get_db)):
        self.db = db

    def check_tables(self) -> Dict[str, bool]:
        result = {}
        for model in TABLES:
            try:
                self.db.execute(select(model.id).limit(1))
                result[model.__tablename__] = True
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.warning("Table %s is not reachable: %s", model.__tablename__, e)
                result[model.__tablename__] = False
        return result

    def create_tables(self) -> List[str]:
        """없는 테이블만 생성 (이미 있으면 그대로)"""
        bind = self.db.get_bind()
        Base.metadata.create_all(bind=bind)
        return sorted(inspect(bind).get_table_names())
