# services/product_analysis_service.py
import logging
import traceback
from typing import Any, Dict, Optional

from fastapi import Depends

from config import Settings, get_settings
from exceptions import AnalysisError, PersistenceError, ValidationError
from models.dtos import (
    AnalysisDTO, AnalyzeRequest, AnalyzeResponse, EnvironmentalScores,
    ProductCreateDTO, ProductDTO
)
from services.environmental_score_service import EnvironmentalScoreService
from services.persistence_gateway_service import PersistenceGateway

logger = logging.getLogger("ecoimpact.analyze")

SKIPPED_MESSAGE = "Analysis performed without database persistence"
FALLBACK_ERROR = "Database operations failed, using fallback mode"
PARTIAL_WARNING = "Analysis could not be saved to database"


class ProductAnalysisService:
    """
    분석 요청 1건의 전체 흐름을 담당
    1. (검증)   이름/설명 공백 검사
    2. (점수)   EnvironmentalScoreService 호출
    3. (저장)   제품 저장 -> 분석 저장
    4. (응답)   저장 결과에 따라 full / partial / fallback 모드 결정

    저장 실패는 요청 실패가 아님. 어떤 경우에도 점수는 돌려준다.
    """
    def __init__(
        self,
        scorer: EnvironmentalScoreService = Depends(EnvironmentalScoreService),
        gateway: PersistenceGateway = Depends(PersistenceGateway),
        settings: Settings = Depends(get_settings),
    ):
        self.scorer = scorer
        self.gateway = gateway
        self.settings = settings

    def analyze(self, request: AnalyzeRequest, skip_database: bool = False) -> AnalyzeResponse:
        # ---------------------------------------------------------
        # [검증] 공백 제거 후 필수값 확인 (점수/저장 호출 전에 거절)
        # ---------------------------------------------------------
        fields = self._validate(request)

        # ---------------------------------------------------------
        # [점수] AI 분석 (실패해도 scorer 내부에서 시뮬레이션 점수로 대체됨)
        # ---------------------------------------------------------
        scores = self._score(fields)

        # ---------------------------------------------------------
        # [저장 생략] 클라이언트가 DB 저장을 원하지 않음
        # ---------------------------------------------------------
        if skip_database:
            logger.info("Running in fallback mode (skipping database operations)")
            return self._fallback(fields, scores, message=SKIPPED_MESSAGE)

        # ---------------------------------------------------------
        # [저장 1] 제품
        # ---------------------------------------------------------
        product = self.gateway.write_product(fields)
        if isinstance(product, PersistenceError):
            logger.warning("Falling back to non-database mode: %s", product)
            return self._fallback(
                fields,
                scores,
                error=str(product) if self.settings.debug else FALLBACK_ERROR,
                debug=self._debug_payload(product, include_env=True),
            )

        # ---------------------------------------------------------
        # [저장 2] 분석 결과 (제품 id 연결)
        # ---------------------------------------------------------
        analysis = self.gateway.write_analysis(product.id, scores)
        if isinstance(analysis, PersistenceError):
            logger.warning("Analysis could not be saved, returning partial result: %s", analysis)
            return AnalyzeResponse(
                product=product,
                analysis=AnalysisDTO.transient(product.id, scores),
                mode="partial",
                warning=PARTIAL_WARNING,
                debug=self._debug_payload(analysis),
            )

        return AnalyzeResponse(product=product, analysis=analysis, mode="full")

    def _validate(self, request: AnalyzeRequest) -> ProductCreateDTO:
        if not (request.name or "").strip() or not (request.description or "").strip():
            raise ValidationError("Product name and description are required")
        return ProductCreateDTO.from_request(request)

    def _score(self, fields: ProductCreateDTO) -> EnvironmentalScores:
        logger.info("Starting AI analysis for product: %s", fields.name)
        try:
            scores = self.scorer.score(
                fields.name,
                fields.description,
                manufacturer=fields.manufacturer,
                category=fields.category,
            )
        except ValidationError:
            raise
        except Exception as e:
            logger.exception("AI analysis failed")
            raise AnalysisError(
                "Failed to analyze product environmental impact",
                details=repr(e) if self.settings.debug else None,
            ) from e

        logger.info("AI analysis completed successfully")
        return scores

    def _fallback(
        self,
        fields: ProductCreateDTO,
        scores: EnvironmentalScores,
        message: Optional[str] = None,
        error: Optional[str] = None,
        debug: Optional[Dict[str, Any]] = None,
    ) -> AnalyzeResponse:
        product = ProductDTO.transient(fields)
        return AnalyzeResponse(
            product=product,
            analysis=AnalysisDTO.transient(product.id, scores),
            mode="fallback",
            message=message,
            error=error,
            debug=debug,
        )

    def _debug_payload(self, err: PersistenceError, include_env: bool = False) -> Optional[Dict[str, Any]]:
        """디버그 모드일 때만 상세 정보(원본 에러, 스택, 환경변수 설정 여부) 첨부"""
        if not self.settings.debug:
            return None

        payload: Dict[str, Any] = {"error": err.to_debug()}
        if err.cause is not None:
            payload["error"]["stack"] = "".join(
                traceback.format_exception(type(err.cause), err.cause, err.cause.__traceback__)
            )
        if include_env:
            payload["env"] = self.settings.env_status()
        return payload
