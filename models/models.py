#models/models.py
import uuid

from sqlalchemy import Column, ForeignKey, String, DateTime, Text, DECIMAL, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from database import Base


def _new_uuid() -> str:
    return str(uuid.uuid4())

# =========================================================
# 1. 제품 (products)
# =========================================================
class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=_new_uuid)
    name = Column(String(300), nullable=False)
    description = Column(Text)
    manufacturer = Column(String(300))
    category = Column(String(100))
    image_url = Column(String(1000))
    barcode = Column(String(50), unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # 제품을 지우면 분석/검색 기록도 같이 삭제
    analyses = relationship("Analysis", back_populates="product", cascade="all, delete-orphan")
    search_histories = relationship("SearchHistory", back_populates="product", cascade="all, delete-orphan")

# =========================================================
# 2. 환경 영향 분석 결과 (analyses)
# =========================================================
class Analysis(Base):
    __tablename__ = "analyses"
    __table_args__ = (
        CheckConstraint("overall_score >= 0 AND overall_score <= 10", name="score_range"),
    )

    id = Column(String(36), primary_key=True, default=_new_uuid)
    product_id = Column(String(36), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), nullable=True)

    # 종합 점수 (5개 세부 점수의 가중합, 직접 입력하지 않음)
    overall_score = Column(DECIMAL(3, 1), nullable=False)

    # 세부 점수 (0~10)
    carbon_footprint_score = Column(DECIMAL(3, 1))
    water_usage_score = Column(DECIMAL(3, 1))
    material_sustainability_score = Column(DECIMAL(3, 1))
    packaging_score = Column(DECIMAL(3, 1))
    transportation_score = Column(DECIMAL(3, 1))

    analysis_text = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    product = relationship("Product", back_populates="analyses")

# =========================================================
# 3. 검색 기록 (search_history) - 스키마만 유지, 분석 흐름에서는 쓰지 않음
# =========================================================
class SearchHistory(Base):
    __tablename__ = "search_history"

    id = Column(String(36), primary_key=True, default=_new_uuid)
    user_id = Column(String(36), nullable=True)
    product_id = Column(String(36), ForeignKey("products.id", ondelete="CASCADE"))
    searched_at = Column(DateTime(timezone=True), server_default=func.now())

    product = relationship("Product", back_populates="search_histories")
