#routers/database_router.py
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from models.dtos import InitDbResultDTO, TableStatusDTO
from services.database_status_service import DatabaseStatusService

logger = logging.getLogger("ecoimpact.db")

router = APIRouter(
    prefix="/api",
    tags=["Database"]
)


@router.get("/setup-db", response_model=TableStatusDTO, summary="DB 테이블 연결 확인")
def check_database(service: DatabaseStatusService = Depends(DatabaseStatusService)):
    """각 테이블을 한 번씩 조회해보고 성공 여부만 반환"""
    return TableStatusDTO(
        success=True,
        message="Database connectivity check completed",
        table_status=service.check_tables(),
    )


@router.post("/init-db", response_model=InitDbResultDTO, summary="DB 테이블 생성")
def init_database(service: DatabaseStatusService = Depends(DatabaseStatusService)):
    try:
        tables = service.create_tables()
    except SQLAlchemyError as e:
        logger.error("Database setup error: %s", e)
        raise HTTPException(status_code=500, detail=f"DB error: {e}")
    return InitDbResultDTO(message="Database initialization completed", tables=tables)
