# repositories/product_repository.py
from typing import Optional

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import get_db
from models.dtos import ProductCreateDTO
from models.models import Product


class ProductRepository:
    def __init__(self, db: Session = Depends(get_db)):
        self.db = db

    def create_product(self, fields: ProductCreateDTO) -> Product:
        """
        제품 1건 INSERT 후 DB가 채운 id/시간값까지 다시 읽어서 반환
        실패 시 롤백 후 SQLAlchemyError 그대로 전파
        """
        product = Product(**fields.model_dump())
        try:
            self.db.add(product)
            self.db.commit()
            self.db.refresh(product)
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return product

    def get_product_by_id(self, product_id: str) -> Optional[Product]:
        return self.db.get(Product, product_id)
