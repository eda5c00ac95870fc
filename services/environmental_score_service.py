#services/environmental_score_service.py
import json
import logging
import random
import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Mapping, Optional

import numpy as np
from fastapi import Depends
from pydantic import ValidationError as PydanticValidationError

from clients.openai_client import OpenAITextClient, get_text_client
from config import Settings, get_settings
from exceptions import ScoreFieldMissingError, ScoreParseError, TextGenerationError, ValidationError
from models.dtos import EnvironmentalScores

logger = logging.getLogger("ecoimpact.scorer")

# 세부 점수 필드 (가중치와 같은 순서)
SUB_SCORE_FIELDS = (
    "carbon_footprint_score",
    "water_usage_score",
    "material_sustainability_score",
    "packaging_score",
    "transportation_score",
)
# 탄소 0.25 / 물 0.20 / 소재 0.25 / 포장 0.15 / 운송 0.15
SCORE_WEIGHTS = np.array([0.25, 0.20, 0.25, 0.15, 0.15])

REQUIRED_FIELDS = SUB_SCORE_FIELDS + ("analysis_text",)

# 시뮬레이션 점수: 기준값 ± 1.5
PLACEHOLDER_SPREAD = 1.5

SCORING_PROMPT = """
Analyze the environmental impact of this product and provide scores from 0-10 (10 being most environmentally friendly):

Product: {name}
Description: {description}
Manufacturer: {manufacturer}
Category: {category}

Please evaluate and score the following aspects:
1. Carbon Footprint (manufacturing, energy use, lifecycle emissions)
2. Water Usage (production water consumption and pollution)
3. Material Sustainability (renewable materials, recyclability, biodegradability)
4. Packaging (eco-friendly packaging, minimal waste)
5. Transportation (shipping distance, logistics efficiency)

Provide your response in this exact JSON format:
{{
  "carbon_footprint_score": [score],
  "water_usage_score": [score],
  "material_sustainability_score": [score],
  "packaging_score": [score],
  "transportation_score": [score],
  "analysis_text": "[detailed explanation of the environmental impact analysis]"
}}

Base your analysis on typical environmental impacts for this type of product, considering industry standards and best practices.
"""

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def round_half_up(value: float) -> float:
    """
    소수점 첫째 자리 사사오입 (6.25 -> 6.3)
    (내장 round()는 6.25 -> 6.2)
    """
    # 가중합의 부동소수 오차(6.2499999...) 먼저 제거
    exact = Decimal(repr(round(float(value), 6)))
    return float(exact.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def calculate_overall_score(sub_scores: Mapping[str, float]) -> float:
    """5개 세부 점수 가중합 (소수점 첫째 자리 반올림). AI/시뮬레이션 공통"""
    values = np.array([float(sub_scores[f]) for f in SUB_SCORE_FIELDS])
    return round_half_up(np.dot(values, SCORE_WEIGHTS))


def category_baseline(category: Optional[str]) -> float:
    s = (category or "").lower()
    if "electronics" in s:
        return 4.0
    if "food" in s or "organic" in s:
        return 6.0
    return 5.0


def parse_scores_response(text: str) -> Dict[str, Any]:
    """
    AI 응답 텍스트에서 JSON 객체를 꺼내 필수 필드를 검사
    - JSON 없음/해석 불가 -> ScoreParseError
    - 필드 누락 -> ScoreFieldMissingError
    """
    match = _JSON_OBJECT_RE.search(text or "")
    if not match:
        raise ScoreParseError("Invalid AI response format: no JSON object found")

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ScoreParseError(f"Failed to parse AI response: {e}") from e

    if not isinstance(data, dict):
        raise ScoreParseError("Invalid AI response format: JSON is not an object")

    for field in REQUIRED_FIELDS:
        if data.get(field) is None:
            raise ScoreFieldMissingError(field)
    return data


class EnvironmentalScoreService:
    """
    [점수 계산기]
    제품 정보 -> (AI 호출 or 시뮬레이션) -> 5개 세부 점수 + 종합 점수

    AI 호출 실패, 응답 형식 오류는 밖으로 던지지 않고 시뮬레이션 점수로 대체함
    """
    def __init__(
        self,
        settings: Settings = Depends(get_settings),
        client: Optional[OpenAITextClient] = Depends(get_text_client),
    ):
        self.settings = settings
        self.client = client
        self._rng = random.Random()

    def score(
        self,
        name: str,
        description: str,
        manufacturer: Optional[str] = None,
        category: Optional[str] = None,
    ) -> EnvironmentalScores:
        if not (name or "").strip() or not (description or "").strip():
            raise ValidationError("Product name and description are required")

        # 1. 시뮬레이션 모드 or 키 없음
        if self.settings.force_placeholder_scoring:
            logger.info("Using mock AI analysis for %s", name)
            return self.generate_placeholder(name, manufacturer, category)
        if not self.settings.provider_credential_present or self.client is None:
            logger.warning("AI provider is not configured, using mock data for %s", name)
            return self.generate_placeholder(name, manufacturer, category)

        # 2. AI 호출 -> 3. 파싱 -> 4. 종합 점수
        try:
            return self._score_with_provider(name, description, manufacturer, category)
        except (TextGenerationError, ScoreParseError) as e:
            logger.warning("AI analysis failed (%s), using mock data as fallback", e)
            return self.generate_placeholder(name, manufacturer, category)

    def _score_with_provider(
        self,
        name: str,
        description: str,
        manufacturer: Optional[str],
        category: Optional[str],
    ) -> EnvironmentalScores:
        prompt = SCORING_PROMPT.format(
            name=name,
            description=description,
            manufacturer=manufacturer or "Unknown",
            category=category or "Unknown",
        )
        logger.info("Starting AI analysis for %s", name)
        text = self.client.generate(
            prompt,
            max_tokens=self.settings.llm_max_tokens,
            temperature=self.settings.llm_temperature,
        )

        data = parse_scores_response(text)
        try:
            sub_scores = {f: round_half_up(float(data[f])) for f in SUB_SCORE_FIELDS}
            return EnvironmentalScores(
                overall_score=calculate_overall_score(sub_scores),
                analysis_text=str(data["analysis_text"]),
                **sub_scores,
            )
        except (TypeError, ArithmeticError, ValueError, PydanticValidationError) as e:
            # 숫자가 아니거나 (NaN 포함) 0~10 범위를 벗어난 점수
            raise ScoreParseError(f"Invalid score values in AI response: {e}") from e

    def generate_placeholder(
        self,
        name: str,
        manufacturer: Optional[str] = None,
        category: Optional[str] = None,
    ) -> EnvironmentalScores:
        """카테고리 기준값 ± 1.5 범위의 임의 점수 (AI 사용 불가 시)"""
        base = category_baseline(category)
        sub_scores = {
            f: round_half_up(self._rng.uniform(base - PLACEHOLDER_SPREAD, base + PLACEHOLDER_SPREAD))
            for f in SUB_SCORE_FIELDS
        }
        overall = calculate_overall_score(sub_scores)

        return EnvironmentalScores(
            overall_score=overall,
            analysis_text=(
                f"This is a simulated environmental impact analysis for {name} by "
                f"{manufacturer or 'unknown manufacturer'}. The product appears to have an overall "
                f"environmental impact score of {overall}/10. This is a fallback analysis generated "
                f"when AI analysis is unavailable."
            ),
            **sub_scores,
        )
