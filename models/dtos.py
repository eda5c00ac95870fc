# models/dtos.py
import time
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field

# ===================================================================
# 0. 공통 타입 정의
# ===================================================================
AnalysisMode = Literal["full", "partial", "fallback"]

Score = Annotated[float, Field(ge=0, le=10)]

TRANSIENT_ID_PREFIX = "temp-"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)

# ===================================================================
# 1. 레코드 식별자 (DB 저장됨 / 임시)
# ===================================================================
class PersistedId(BaseModel):
    """DB가 발급한 식별자"""
    kind: Literal["persisted"] = "persisted"
    id: str

    def as_id(self) -> str:
        return self.id


class TransientId(BaseModel):
    """DB에 저장되지 않은 레코드의 임시 식별자 (예: product-1712345678901)"""
    kind: Literal["transient"] = "transient"
    local_tag: str

    def as_id(self) -> str:
        return f"{TRANSIENT_ID_PREFIX}{self.local_tag}"

    @classmethod
    def new(cls, resource: str) -> "TransientId":
        return cls(local_tag=f"{resource}-{int(time.time() * 1000)}")


RecordIdentity = Annotated[Union[PersistedId, TransientId], Field(discriminator="kind")]

# ===================================================================
# 2. [입력] 분석 요청 (Frontend -> API)
# ===================================================================
class AnalyzeRequest(BaseModel):
    """
    [API 요청] POST /api/analyze
    이름/설명 필수 여부는 서비스에서 검사 (공백만 있는 경우도 400 처리하기 위해)
    """
    name: Optional[str] = None
    description: Optional[str] = None
    manufacturer: Optional[str] = None
    category: Optional[str] = None
    barcode: Optional[str] = None
    image_url: Optional[str] = None


class ProductCreateDTO(BaseModel):
    """
    [Service -> Repository]
    공백 제거가 끝난 제품 저장용 값
    """
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    manufacturer: Optional[str] = None
    category: Optional[str] = None
    barcode: Optional[str] = None
    image_url: Optional[str] = None

    @classmethod
    def from_request(cls, req: AnalyzeRequest) -> "ProductCreateDTO":
        def _clean(value: Optional[str]) -> Optional[str]:
            value = (value or "").strip()
            return value or None

        return cls(
            name=(req.name or "").strip(),
            description=(req.description or "").strip(),
            manufacturer=_clean(req.manufacturer),
            category=_clean(req.category),
            barcode=_clean(req.barcode),
            image_url=_clean(req.image_url),
        )

# ===================================================================
# 3. [점수] AI 분석 결과 (Scorer -> Orchestrator -> Gateway)
# ===================================================================
class EnvironmentalScores(BaseModel):
    """5개 세부 점수 + 종합 점수 + 설명. 자체 식별자 없음"""
    overall_score: Score
    carbon_footprint_score: Score
    water_usage_score: Score
    material_sustainability_score: Score
    packaging_score: Score
    transportation_score: Score
    analysis_text: str

# ===================================================================
# 4. [출력] 제품 / 분석 레코드 (API -> Frontend)
# ===================================================================
class ProductDTO(BaseModel):
    identity: RecordIdentity
    name: str
    description: Optional[str] = None
    manufacturer: Optional[str] = None
    category: Optional[str] = None
    barcode: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def id(self) -> str:
        return self.identity.as_id()

    @property
    def is_persisted(self) -> bool:
        return isinstance(self.identity, PersistedId)

    @classmethod
    def from_record(cls, row) -> "ProductDTO":
        return cls(
            identity=PersistedId(id=row.id),
            name=row.name,
            description=row.description,
            manufacturer=row.manufacturer,
            category=row.category,
            barcode=row.barcode,
            image_url=row.image_url,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @classmethod
    def transient(cls, fields: ProductCreateDTO) -> "ProductDTO":
        now = utc_now()
        return cls(
            identity=TransientId.new("product"),
            created_at=now,
            updated_at=now,
            **fields.model_dump(),
        )


class AnalysisDTO(BaseModel):
    identity: RecordIdentity
    product_id: str
    overall_score: Score
    carbon_footprint_score: Optional[Score] = None
    water_usage_score: Optional[Score] = None
    material_sustainability_score: Optional[Score] = None
    packaging_score: Optional[Score] = None
    transportation_score: Optional[Score] = None
    analysis_text: Optional[str] = None
    created_at: Optional[datetime] = None

    # 조회 시에만 채워지는 제품 정보 (저장 필드 아님)
    product: Optional[ProductDTO] = None

    @computed_field
    @property
    def id(self) -> str:
        return self.identity.as_id()

    @property
    def is_persisted(self) -> bool:
        return isinstance(self.identity, PersistedId)

    @classmethod
    def from_record(cls, row, include_product: bool = False) -> "AnalysisDTO":
        product = None
        if include_product and row.product is not None:
            product = ProductDTO.from_record(row.product)
        return cls(
            identity=PersistedId(id=row.id),
            product_id=row.product_id,
            overall_score=row.overall_score,
            carbon_footprint_score=row.carbon_footprint_score,
            water_usage_score=row.water_usage_score,
            material_sustainability_score=row.material_sustainability_score,
            packaging_score=row.packaging_score,
            transportation_score=row.transportation_score,
            analysis_text=row.analysis_text,
            created_at=row.created_at,
            product=product,
        )

    @classmethod
    def transient(cls, product_id: str, scores: EnvironmentalScores) -> "AnalysisDTO":
        return cls(
            identity=TransientId.new("analysis"),
            product_id=product_id,
            created_at=utc_now(),
            **scores.model_dump(),
        )


class AnalyzeResponse(BaseModel):
    """
    [API 응답] POST /api/analyze
    mode로 어떤 경로(full/partial/fallback)로 만들어졌는지 스스로 알림
    """
    product: ProductDTO
    analysis: AnalysisDTO
    mode: AnalysisMode
    message: Optional[str] = None
    warning: Optional[str] = None
    error: Optional[str] = None
    debug: Optional[Dict[str, Any]] = None

# ===================================================================
# 5. [DB 상태] 테이블 확인 결과
# ===================================================================
class TableStatusDTO(BaseModel):
    success: bool
    message: str
    table_status: Dict[str, bool] = Field(alias="tableStatus")

    model_config = ConfigDict(populate_by_name=True)


class InitDbResultDTO(BaseModel):
    message: str
    tables: List[str]
