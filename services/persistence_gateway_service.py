# services/persistence_gateway_service.py
import logging
from typing import Union

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError

from exceptions import PersistenceError
from models.dtos import AnalysisDTO, EnvironmentalScores, ProductCreateDTO, ProductDTO
from repositories.analysis_repository import AnalysisRepository
from repositories.product_repository import ProductRepository

logger = logging.getLogger("ecoimpact.persistence")


class PersistenceGateway:
    """
    제품 저장 / 분석 저장 두 번의 쓰기를 각각 1회씩 시도
    - 두 쓰기를 묶는 트랜잭션 없음 (제품만 저장되고 분석 저장은 실패할 수 있음)
    - 실패는 raise 하지 않고 PersistenceError 값으로 돌려줌
    """
    def __init__(
        self,
        product_repo: ProductRepository = Depends(ProductRepository),
        analysis_repo: AnalysisRepository = Depends(AnalysisRepository),
    ):
        self.product_repo = product_repo
        self.analysis_repo = analysis_repo

    def write_product(self, fields: ProductCreateDTO) -> Union[ProductDTO, PersistenceError]:
        logger.info("Attempting to create product: %s", fields.name)
        try:
            row = self.product_repo.create_product(fields)
        except SQLAlchemyError as e:
            err = PersistenceError.from_sqlalchemy("products.insert", e)
            logger.error("Product insertion error: code=%s message=%s", err.code, err.message)
            return err

        logger.info("Product created successfully: %s", row.id)
        return ProductDTO.from_record(row)

    def write_analysis(self, product_id: str, scores: EnvironmentalScores) -> Union[AnalysisDTO, PersistenceError]:
        try:
            row = self.analysis_repo.create_analysis(product_id, scores)
        except SQLAlchemyError as e:
            err = PersistenceError.from_sqlalchemy("analyses.insert", e)
            logger.error("Analysis insertion error: code=%s message=%s", err.code, err.message)
            return err

        logger.info("Analysis saved successfully: %s", row.id)
        return AnalysisDTO.from_record(row)
