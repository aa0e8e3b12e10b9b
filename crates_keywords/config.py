"""
수집 설정
- 기본값은 모듈 상수, 실행 시에는 FetchConfig 로 묶어서 Fetcher 에 전달
"""
from dataclasses import dataclass
from typing import Iterator

from .errors import ConfigError

# 설정
KEYWORDS_URL    = "https://crates.io/api/v1/keywords?sort=alpha&per_page=100"
FIRST_PAGE      = 1
LAST_PAGE       = 275
MAX_WORKERS     = 1                # 1 이면 순차 수집
REQUEST_TIMEOUT = 30               # 초
MAX_RETRIES     = 0                # 0 = 실패 즉시 중단
USER_AGENT      = "crates-keywords/0.1 (keyword catalog report)"
LINE_FORMAT     = "{keyword}    count={crates_cnt}"


@dataclass
class FetchConfig:
    base_url: str = KEYWORDS_URL
    first_page: int = FIRST_PAGE
    last_page: int = LAST_PAGE
    workers: int = MAX_WORKERS
    timeout: float = REQUEST_TIMEOUT
    retries: int = MAX_RETRIES

    def __post_init__(self):
        if self.first_page < 1 or self.last_page < self.first_page:
            raise ConfigError(
                f"invalid page range [{self.first_page}, {self.last_page}]"
            )
        if self.workers < 1:
            raise ConfigError(f"workers must be >= 1, got {self.workers}")
        if self.retries < 0:
            raise ConfigError(f"retries must be >= 0, got {self.retries}")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be > 0, got {self.timeout}")

    @property
    def pages(self) -> Iterator[int]:
        """first_page..last_page (양 끝 포함, 오름차순)"""
        return iter(range(self.first_page, self.last_page + 1))

    @property
    def page_count(self) -> int:
        return self.last_page - self.first_page + 1

    def page_url(self, page: int) -> str:
        sep = "&" if "?" in self.base_url else "?"
        return f"{self.base_url}{sep}page={page}"
