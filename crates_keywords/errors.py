"""수집/변환 단계별 예외"""
from typing import Optional


class KeywordsError(Exception):
    """모든 치명적 오류의 공통 부모. stage 와 page 로 실패 위치를 식별한다."""

    stage = "run"

    def __init__(self, message: str, page: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.page = page

    def __str__(self) -> str:
        if self.page is None:
            return f"[{self.stage}] {self.message}"
        return f"[{self.stage}] page {self.page}: {self.message}"


class ConfigError(KeywordsError):
    stage = "config"


class FetchError(KeywordsError):
    stage = "fetch"


class HTTPStatusError(FetchError):
    def __init__(self, page: int, status_code: int, reason: str = ""):
        message = f"HTTP {status_code}"
        if reason:
            message += f" {reason}"
        super().__init__(message, page)
        self.status_code = status_code


class DecodeError(KeywordsError):
    stage = "decode"


class SchemaError(KeywordsError):
    stage = "schema"
