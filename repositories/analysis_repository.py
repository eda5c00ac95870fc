# /repositories/analysis_repository.py
from typing import List, Optional

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from database import get_db
from models.dtos import EnvironmentalScores
from models.models import Analysis


class AnalysisRepository:
    def __init__(self, db: Session = Depends(get_db)):
        self.db = db

    def create_analysis(self, product_id: str, scores: EnvironmentalScores) -> Analysis:
        """
        분석 결과 1건 저장 (product_id로 제품과 연결)
        """
        analysis = Analysis(
            product_id=product_id,
            overall_score=scores.overall_score,
            carbon_footprint_score=scores.carbon_footprint_score,
            water_usage_score=scores.water_usage_score,
            material_sustainability_score=scores.material_sustainability_score,
            packaging_score=scores.packaging_score,
            transportation_score=scores.transportation_score,
            analysis_text=scores.analysis_text,
        )
        try:
            self.db.add(analysis)
            self.db.commit()
            self.db.refresh(analysis)
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return analysis

    def get_recent_analyses(self, limit: int = 5) -> List[Analysis]:
        """
        최근 분석 기록 조회 (최신순), 제품 정보도 같이 로딩
        """
        return (
            self.db.query(Analysis)
            .options(joinedload(Analysis.product))
            .order_by(Analysis.created_at.desc())
            .limit(limit)
            .all()
        )

    def get_analysis_by_id(self, analysis_id: str) -> Optional[Analysis]:
        return (
            self.db.query(Analysis)
            .options(joinedload(Analysis.product))
            .filter(Analysis.id == analysis_id)
            .first()
        )
