import json
import random
from decimal import Decimal, ROUND_HALF_UP

import pytest
from unittest.mock import MagicMock

from clients.openai_client import OpenAITextClient
from config import Settings
from exceptions import ScoreFieldMissingError, ScoreParseError, TextGenerationError, ValidationError
from services.environmental_score_service import (
    EnvironmentalScoreService,
    SUB_SCORE_FIELDS,
    calculate_overall_score,
    category_baseline,
    parse_scores_response,
)

# --- 테스트용 가짜 AI 응답 ---
AI_SCORES = {
    "carbon_footprint_score": 7,
    "water_usage_score": 6.5,
    "material_sustainability_score": 8,
    "packaging_score": 5,
    "transportation_score": 4,
    "analysis_text": "Mostly recycled steel, long shipping distance.",
}


def _expected_overall(s: dict) -> float:
    # 가중치 x 100 정수 연산 후 사사오입 (부동소수 오차 없음)
    total = (
        Decimal(str(s["carbon_footprint_score"])) * 25
        + Decimal(str(s["water_usage_score"])) * 20
        + Decimal(str(s["material_sustainability_score"])) * 25
        + Decimal(str(s["packaging_score"])) * 15
        + Decimal(str(s["transportation_score"])) * 15
    ) / 100
    return float(total.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _assert_valid(scores):
    for field in SUB_SCORE_FIELDS:
        assert 0 <= getattr(scores, field) <= 10
    assert 0 <= scores.overall_score <= 10
    assert scores.overall_score == calculate_overall_score(scores.model_dump())


# --- 테스트 픽스처(Fixture) 설정 ---

@pytest.fixture
def mock_client() -> MagicMock:
    """외부 AI 클라이언트 가짜 객체"""
    return MagicMock(spec=OpenAITextClient)


@pytest.fixture
def ai_service(mock_client: MagicMock) -> EnvironmentalScoreService:
    settings = Settings(database_url="sqlite://", openai_api_key="sk-test")
    service = EnvironmentalScoreService(settings=settings, client=mock_client)
    service._rng = random.Random(42)
    return service


# --- 테스트 케이스 ---

def test_placeholder_when_forced(mock_client: MagicMock):
    """
    [시나리오 1] USE_MOCK_AI 설정 시 AI를 호출하지 않고 시뮬레이션 점수 반환
    """
    settings = Settings(database_url="sqlite://", openai_api_key="sk-test", force_placeholder_scoring=True)
    service = EnvironmentalScoreService(settings=settings, client=mock_client)

    result = service.score("Eco Bottle", "Recycled steel bottle", manufacturer="GreenCo", category="Kitchenware")

    _assert_valid(result)
    assert "simulated" in result.analysis_text
    assert "Eco Bottle by GreenCo" in result.analysis_text
    assert f"{result.overall_score}/10" in result.analysis_text
    mock_client.generate.assert_not_called()


def test_placeholder_when_no_credential():
    """
    [시나리오 2] API 키가 없으면 클라이언트 없이 시뮬레이션 점수
    """
    service = EnvironmentalScoreService(settings=Settings(database_url="sqlite://"), client=None)

    result = service.score("Phone", "Smartphone")

    _assert_valid(result)
    assert "unknown manufacturer" in result.analysis_text


@pytest.mark.parametrize("category, base", [
    ("Consumer Electronics", 4.0),
    ("Organic snacks", 6.0),
    ("FOOD", 6.0),
    ("Kitchenware", 5.0),
    (None, 5.0),
])
def test_placeholder_scores_within_category_band(category, base):
    """
    [시나리오 3] 카테고리 기준값 ± 1.5 범위 안에서만 점수가 나오는지
    """
    assert category_baseline(category) == base

    service = EnvironmentalScoreService(settings=Settings(database_url="sqlite://"), client=None)
    service._rng = random.Random(7)

    for _ in range(20):
        result = service.generate_placeholder("Item", category=category)
        for field in SUB_SCORE_FIELDS:
            value = getattr(result, field)
            assert base - 1.5 <= value <= base + 1.5
            assert value == round(value, 1)
        assert result.overall_score == calculate_overall_score(result.model_dump())


def test_provider_scores_are_used(ai_service, mock_client: MagicMock):
    """
    [시나리오 4] AI 응답(JSON 앞뒤로 설명 텍스트 포함)을 정상 파싱
    """
    mock_client.generate.return_value = "Here is the analysis:\n" + json.dumps(AI_SCORES) + "\nThanks."

    result = ai_service.score("Eco Bottle", "Recycled steel bottle", category="Kitchenware")

    assert result.carbon_footprint_score == 7
    assert result.water_usage_score == 6.5
    assert result.analysis_text == AI_SCORES["analysis_text"]
    assert result.overall_score == _expected_overall(AI_SCORES)

    # 토큰 제한 / 낮은 temperature 로 호출되었는가?
    _, kwargs = mock_client.generate.call_args
    assert kwargs["max_tokens"] == 1000
    assert 0 < kwargs["temperature"] < 1
    prompt = mock_client.generate.call_args[0][0]
    assert "Eco Bottle" in prompt and "Kitchenware" in prompt and "Manufacturer: Unknown" in prompt


@pytest.mark.parametrize("sub_scores, expected", [
    # 0.25 -> 0.3 (짝수 반올림이면 0.2)
    ({"carbon_footprint_score": 1.0, "water_usage_score": 0, "material_sustainability_score": 0,
      "packaging_score": 0, "transportation_score": 0}, 0.3),
    # 6.25 -> 6.3
    ({"carbon_footprint_score": 7.0, "water_usage_score": 6.0, "material_sustainability_score": 7.5,
      "packaging_score": 5.0, "transportation_score": 4.5}, 6.3),
    # 0.45 -> 0.5
    ({"carbon_footprint_score": 0, "water_usage_score": 0, "material_sustainability_score": 0,
      "packaging_score": 3.0, "transportation_score": 0}, 0.5),
    ({"carbon_footprint_score": 10, "water_usage_score": 10, "material_sustainability_score": 10,
      "packaging_score": 10, "transportation_score": 10}, 10.0),
])
def test_overall_score_rounds_half_up(sub_scores, expected):
    """
    [시나리오 5-1] 가중합이 정확히 .x5 로 떨어지면 항상 올림
    """
    assert calculate_overall_score(sub_scores) == expected
    assert _expected_overall(sub_scores) == expected


def test_provider_tie_score_rounds_up(ai_service, mock_client: MagicMock):
    """
    [시나리오 5-2] AI 경로에서도 같은 사사오입 적용 (6.25 -> 6.3)
    """
    tie = {
        "carbon_footprint_score": 7.0,
        "water_usage_score": 6.0,
        "material_sustainability_score": 7.5,
        "packaging_score": 5.0,
        "transportation_score": 4.5,
        "analysis_text": "Tie case",
    }
    mock_client.generate.return_value = json.dumps(tie)

    result = ai_service.score("Item", "Desc")

    assert result.overall_score == 6.3


def test_weights_match_between_paths(ai_service, mock_client: MagicMock):
    """
    [시나리오 5] AI 경로와 시뮬레이션 경로가 같은 가중치를 쓰는지
    """
    placeholder = ai_service.generate_placeholder("Item")
    same_scores = {f: getattr(placeholder, f) for f in SUB_SCORE_FIELDS}
    mock_client.generate.return_value = json.dumps({**same_scores, "analysis_text": "x"})

    provider = ai_service.score("Item", "Desc")

    assert provider.overall_score == placeholder.overall_score


@pytest.mark.parametrize("raw", [
    "Sorry, I cannot help with that.",
    "{not valid json}",
    json.dumps({k: v for k, v in AI_SCORES.items() if k != "packaging_score"}),
    json.dumps({**AI_SCORES, "water_usage_score": 15}),
    json.dumps({**AI_SCORES, "carbon_footprint_score": "high"}),
    json.dumps({**AI_SCORES, "packaging_score": float("inf")}),
])
def test_malformed_response_falls_back(ai_service, mock_client: MagicMock, raw):
    """
    [시나리오 6] AI 응답이 이상하면 에러 대신 시뮬레이션 점수
    """
    mock_client.generate.return_value = raw

    result = ai_service.score("Item", "Desc")

    _assert_valid(result)
    assert "fallback analysis" in result.analysis_text


def test_provider_error_falls_back(ai_service, mock_client: MagicMock):
    """
    [시나리오 7] AI 호출 자체가 실패해도 호출자에게 에러를 전파하지 않음
    """
    mock_client.generate.side_effect = TextGenerationError("timeout")

    result = ai_service.score("Item", "Desc")

    _assert_valid(result)
    mock_client.generate.assert_called_once()


@pytest.mark.parametrize("name, description", [("", "Desc"), ("Item", "   ")])
def test_blank_input_is_rejected(ai_service, mock_client: MagicMock, name, description):
    with pytest.raises(ValidationError):
        ai_service.score(name, description)
    mock_client.generate.assert_not_called()


def test_parse_scores_response_errors():
    with pytest.raises(ScoreParseError):
        parse_scores_response("no json here")

    with pytest.raises(ScoreFieldMissingError) as exc_info:
        parse_scores_response(json.dumps({k: v for k, v in AI_SCORES.items() if k != "analysis_text"}))
    assert exc_info.value.field == "analysis_text"
