# /services/history_service.py

from typing import List

from fastapi import Depends, HTTPException, status

from models.dtos import AnalysisDTO, ProductDTO
from repositories.analysis_repository import AnalysisRepository
from repositories.product_repository import ProductRepository

# 최근 분석 목록 기본/최대 개수
RECENT_LIMIT = 5
MAX_RECENT_LIMIT = 50


class HistoryService:
    def __init__(
        self,
        repo: AnalysisRepository = Depends(AnalysisRepository),
        product_repo: ProductRepository = Depends(ProductRepository),
    ):
        self.repo = repo
        self.product_repo = product_repo

    def get_recent_analyses(self, limit: int = RECENT_LIMIT) -> List[AnalysisDTO]:
        """
        최근 분석 기록을 제품 정보와 합쳐서 반환
        """
        limit = max(1, min(limit, MAX_RECENT_LIMIT))
        rows = self.repo.get_recent_analyses(limit=limit)
        return [AnalysisDTO.from_record(row, include_product=True) for row in rows]

    def get_analysis_by_id(self, analysis_id: str) -> AnalysisDTO:
        row = self.repo.get_analysis_by_id(analysis_id)
        if not row:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Analysis not found")
        return AnalysisDTO.from_record(row, include_product=True)

    def get_product_by_id(self, product_id: str) -> ProductDTO:
        row = self.product_repo.get_product_by_id(product_id)
        if not row:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
        return ProductDTO.from_record(row)
