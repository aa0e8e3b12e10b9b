"""
페이지 수집기
- GET <base_url>&page=<p> 를 범위 전체에 대해 호출 (gzip 허용)
- 병렬 수집 시에도 결과는 페이지 오름차순으로 재조립
- 실패는 어느 페이지든 즉시 전체 중단 (부분 결과 없음)
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, Iterable, List, Optional

import requests
from requests.adapters import HTTPAdapter
from requests.exceptions import HTTPError, RequestException
from tqdm import tqdm
from urllib3.util.retry import Retry

from .config import USER_AGENT, FetchConfig
from .errors import FetchError, HTTPStatusError
from .models import PageBody


def build_session(config: FetchConfig) -> requests.Session:
    """재시도 정책과 공통 헤더를 갖춘 세션 생성"""
    session = requests.Session()
    if config.retries > 0:
        # 재시도가 끝나면 마지막 응답을 그대로 돌려받아 raise_for_status 로 판정
        retry = Retry(
            total=config.retries,
            backoff_factor=0.5,
            status_forcelist=[429, 500, 502, 504],
            allowed_methods=["GET"],
            raise_on_status=False,
        )
    else:
        retry = 0
    pool_size = max(10, config.workers)
    adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size, max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update({
        "Accept-Encoding": "gzip, deflate",   # requests 가 자동으로 해제
        "Accept": "application/json",
        "User-Agent": USER_AGENT,
    })
    return session


class PageFetcher:
    def __init__(self, config: FetchConfig, session: Optional[requests.Session] = None,
                 progress: bool = True):
        self.config = config
        self.session = session if session is not None else build_session(config)
        self.progress = progress

    def __enter__(self) -> "PageFetcher":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        self.session.close()

    def fetch_page(self, page: int) -> PageBody:
        """페이지 하나를 받아 원본 바디를 돌려준다."""
        url = self.config.page_url(page)
        try:
            resp = self.session.get(url, timeout=self.config.timeout)
            resp.raise_for_status()
        except HTTPError as e:
            status = e.response.status_code if e.response is not None else 0
            reason = (e.response.reason or "") if e.response is not None else ""
            raise HTTPStatusError(page, status, reason) from e
        except RequestException as e:
            raise FetchError(f"{e.__class__.__name__}: {e}", page) from e
        logging.debug(f"page {page}: {len(resp.content)} bytes from {url}")
        return PageBody(page=page, content=resp.content)

    def fetch_all(self) -> List[PageBody]:
        """범위 전체 수집. 반환 순서는 항상 페이지 오름차순."""
        cfg = self.config
        logging.info(
            f"Fetching pages {cfg.first_page}..{cfg.last_page} from {cfg.base_url} "
            f"(workers={cfg.workers}, retries={cfg.retries})"
        )
        start_time = time.time()
        if cfg.workers == 1:
            bodies = self._fetch_sequential()
        else:
            bodies = self._fetch_parallel()
        elapsed = time.time() - start_time
        total = sum(b.size for b in bodies)
        logging.info(f"Fetched {len(bodies)} pages ({total:,} bytes) in {elapsed:.2f}s")
        return bodies

    def _fetch_sequential(self) -> List[PageBody]:
        pages = tqdm(self.config.pages, total=self.config.page_count,
                     desc="Pages", disable=not self.progress)
        return [self.fetch_page(page) for page in pages]

    def _fetch_parallel(self) -> List[PageBody]:
        bodies: Dict[int, PageBody] = {}
        with ThreadPoolExecutor(max_workers=self.config.workers) as pool:
            future_to_page = {pool.submit(self.fetch_page, p): p for p in self.config.pages}
            try:
                for future in tqdm(as_completed(future_to_page), total=len(future_to_page),
                                   desc="Pages", disable=not self.progress):
                    body = future.result()
                    bodies[body.page] = body
            except BaseException:
                # 첫 실패에서 대기 중인 요청은 버리고 오류를 그대로 올림
                for future in future_to_page:
                    future.cancel()
                raise
        # 완료 순서와 무관하게 페이지 순으로 재조립
        return [bodies[page] for page in self.config.pages]


def concatenate(bodies: Iterable[PageBody]) -> bytes:
    """curl 로 범위를 받은 것과 같은 하나의 바이트 스트림"""
    return b"".join(body.content for body in bodies)
