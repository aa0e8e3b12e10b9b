"""데이터 모델"""
from dataclasses import dataclass
from typing import Any

from .config import LINE_FORMAT
from .errors import SchemaError


@dataclass(frozen=True)
class KeywordRecord:
    """키워드 하나와 그 키워드를 쓰는 크레이트 수."""

    keyword: str
    crates_cnt: int

    def to_line(self) -> str:
        return LINE_FORMAT.format(keyword=self.keyword, crates_cnt=self.crates_cnt)

    @classmethod
    def from_json(cls, entry: Any, page: int) -> "KeywordRecord":
        """keywords 배열의 원소 하나를 검증해서 변환. 나머지 필드는 무시."""
        if not isinstance(entry, dict):
            raise SchemaError(f"keyword entry is not an object: {entry!r}", page)
        for field in ("keyword", "crates_cnt"):
            if field not in entry:
                raise SchemaError(f"keyword entry missing '{field}': {entry!r}", page)

        keyword = entry["keyword"]
        count = entry["crates_cnt"]
        if not isinstance(keyword, str) or not keyword:
            raise SchemaError(f"invalid keyword name {keyword!r}", page)
        # bool 은 int 의 하위 타입이라 따로 걸러야 함
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise SchemaError(f"invalid crates_cnt {count!r} for '{keyword}'", page)
        return cls(keyword=keyword, crates_cnt=count)


@dataclass
class PageBody:
    """페이지 하나의 원본 응답 바디"""

    page: int
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)
