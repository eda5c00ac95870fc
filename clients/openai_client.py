# clients/openai_client.py
from typing import Optional

from fastapi import Depends
from openai import OpenAI, OpenAIError

from config import Settings, get_settings
from exceptions import TextGenerationError


class OpenAITextClient:
    """
    프롬프트 -> 텍스트만 책임지는 얇은 래퍼
    (응답 해석은 점수 서비스 쪽에서 담당)
    """
    def __init__(self, api_key: str, model: str = "gpt-4o"):
        self.model = model
        self._client = OpenAI(api_key=api_key)

    def generate(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
        try:
            rsp = self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except OpenAIError as e:
            raise TextGenerationError(f"OpenAI request failed: {e}") from e

        if not rsp.choices:
            raise TextGenerationError("OpenAI returned no choices")
        return (rsp.choices[0].message.content or "").strip()


def get_text_client(settings: Settings = Depends(get_settings)) -> Optional[OpenAITextClient]:
    """키가 없으면 None -> 점수 서비스가 시뮬레이션 모드로 동작"""
    if not settings.provider_credential_present:
        return None
    return OpenAITextClient(api_key=settings.openai_api_key, model=settings.llm_model)
