#main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

import database
from config import get_settings
from models import models
from routers import analysis_router, database_router

settings = get_settings()

# --- logging config 는 앱 생성 전에 ---
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
app_logger = logging.getLogger("ecoimpact.request")

# 테이블 생성 (DB 연결 실패해도 서버는 뜨고, 분석 요청은 fallback 모드로 응답)
@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        models.Base.metadata.create_all(bind=database.engine)
    except SQLAlchemyError as e:
        app_logger.warning("Could not create tables at startup: %s", e)
    yield

app = FastAPI(title="EcoImpact API", lifespan=lifespan, openapi_version="3.0.2")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),  # 허용할 사이트 목록
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    app_logger.info("Incoming %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
    except Exception:
        app_logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        raise
    app_logger.info("Completed %s %s -> %s", request.method, request.url.path, response.status_code)
    return response

# 라우터 등록
app.include_router(analysis_router.router)
app.include_router(database_router.router)

@app.get("/")
def index():
    return {"message": "EcoImpact API Service"}

@app.get("/healthz")
def healthz():
    return {"ok": True}
