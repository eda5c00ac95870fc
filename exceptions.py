# exceptions.py
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError, DBAPIError


class ValidationError(Exception):
    """필수 입력(이름/설명) 누락 -> 400"""


class AnalysisError(Exception):
    """점수 산출 자체가 불가능한 경우 -> 500"""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.details = details

    def to_detail(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": str(self)}
        if self.details:
            body["details"] = self.details
        return body


class PersistenceError(Exception):
    """
    DB 쓰기 1회 실패 결과
    - raise 하지 않고 값으로 반환되어 응답 모드(fallback/partial)를 결정함
    """

    def __init__(self, operation: str, message: str, code: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__(f"Database error: {message}")
        self.operation = operation
        self.message = message
        self.code = code
        self.cause = cause

    @classmethod
    def from_sqlalchemy(cls, operation: str, exc: SQLAlchemyError) -> "PersistenceError":
        orig = exc.orig if isinstance(exc, DBAPIError) else None
        code = None
        if orig is not None:
            # pymysql: args[0]이 에러 번호, psycopg: pgcode
            code = getattr(orig, "pgcode", None)
            if code is None and orig.args and isinstance(orig.args[0], int):
                code = str(orig.args[0])
        if code is None:
            code = exc.code
        message = str(orig) if orig is not None else str(exc)
        return cls(operation=operation, message=message or "Unknown error", code=code, cause=exc)

    def to_debug(self) -> Dict[str, Any]:
        return {"operation": self.operation, "code": self.code, "message": self.message}


class ScoreParseError(Exception):
    """AI 응답에서 JSON 객체를 찾지 못했거나 해석 불가"""


class ScoreFieldMissingError(ScoreParseError):
    """AI 응답 JSON에 필수 필드가 없음"""

    def __init__(self, field: str):
        super().__init__(f"Missing required field in AI response: {field}")
        self.field = field


class TextGenerationError(Exception):
    """외부 텍스트 생성(AI) 호출 실패"""
