"""
crates.io 키워드 목록 수집기
- 페이지별 JSON 수집 → keywords 평탄화 → `<keyword>    count=<n>` 출력
"""
from .config import FetchConfig
from .errors import (
    ConfigError,
    DecodeError,
    FetchError,
    HTTPStatusError,
    KeywordsError,
    SchemaError,
)
from .fetcher import PageFetcher, concatenate
from .models import KeywordRecord, PageBody
from .transformer import (
    decode_page,
    format_lines,
    iter_documents,
    iter_records,
    write_report,
)

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "DecodeError",
    "FetchConfig",
    "FetchError",
    "HTTPStatusError",
    "KeywordRecord",
    "KeywordsError",
    "PageBody",
    "PageFetcher",
    "SchemaError",
    "concatenate",
    "decode_page",
    "format_lines",
    "iter_documents",
    "iter_records",
    "write_report",
]
