#routers/analysis_router.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query, status
from fastapi.responses import JSONResponse

from exceptions import AnalysisError, ValidationError
from models.dtos import AnalysisDTO, AnalyzeRequest, AnalyzeResponse, ProductDTO
from services.history_service import HistoryService, RECENT_LIMIT
from services.product_analysis_service import ProductAnalysisService

router = APIRouter(
    prefix="/api",
    tags=["Environmental Analysis"]
)

# -------------------------------------------------------------------
# 제품 환경 영향 분석 (점수 산출 + DB 저장 시도)
# -------------------------------------------------------------------
@router.post("/analyze", response_model=AnalyzeResponse, summary="제품 환경 영향 분석")
def analyze_product(
    request: AnalyzeRequest,
    skip_database: bool = Query(False, description="DB 저장 없이 점수만 받기"),
    x_skip_database: Optional[str] = Header(None),
    service: ProductAnalysisService = Depends(ProductAnalysisService)
):
    """
    이름/설명으로 5개 세부 점수와 종합 점수를 계산
    응답의 mode: full(모두 저장) / partial(제품만 저장) / fallback(저장 안 됨)
    """
    skip = skip_database or (x_skip_database or "").strip().lower() == "true"

    # 실패 응답 본문: {"error": ..., "details"?: ...}
    try:
        return service.analyze(request, skip_database=skip)
    except ValidationError as e:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(e)})
    except AnalysisError as e:
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=e.to_detail())

# ===================================================================
# [READ] 최근 분석 기록
# ===================================================================
@router.get("/analyses", response_model=List[AnalysisDTO], summary="최근 분석 기록 조회")
def get_recent_analyses(
    limit: int = RECENT_LIMIT,
    service: HistoryService = Depends(HistoryService)
):
    return service.get_recent_analyses(limit=limit)


@router.get("/analyses/{analysis_id}", response_model=AnalysisDTO, summary="분석 기록 상세 조회")
def get_analysis_detail(
    analysis_id: str,
    service: HistoryService = Depends(HistoryService)
):
    return service.get_analysis_by_id(analysis_id)


@router.get("/products/{product_id}", response_model=ProductDTO, summary="제품 조회")
def get_product_detail(
    product_id: str,
    service: HistoryService = Depends(HistoryService)
):
    return service.get_product_by_id(product_id)
