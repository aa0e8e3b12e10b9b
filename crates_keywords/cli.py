#!/usr/bin/env python3
"""
crates.io 키워드 리포트 실행 스크립트
- 기본: 1..275 페이지 수집 → 표준출력으로 `<keyword>    count=<n>`
- --input: 저장해 둔 원본 스트림(이어붙인 JSON)만 변환
- 로그/진행률은 stderr, 리포트는 stdout
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import config
from .errors import KeywordsError
from .fetcher import PageFetcher, concatenate
from .transformer import iter_documents, write_report


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="crates-keywords",
        description="crates.io 키워드 전체 목록 → '<keyword>    count=<n>' 리포트",
    )
    p.add_argument("--url", default=config.KEYWORDS_URL,
                   help=f"정렬/페이지 크기가 포함된 목록 URL(기본: {config.KEYWORDS_URL})")
    p.add_argument("--first-page", type=int, default=config.FIRST_PAGE,
                   help=f"시작 페이지(기본: {config.FIRST_PAGE})")
    p.add_argument("--last-page", type=int, default=config.LAST_PAGE,
                   help=f"마지막 페이지, 포함(기본: {config.LAST_PAGE})")
    p.add_argument("--workers", type=int, default=config.MAX_WORKERS,
                   help=f"동시 요청 수(기본: {config.MAX_WORKERS}, 1이면 순차)")
    p.add_argument("--timeout", type=float, default=config.REQUEST_TIMEOUT,
                   help=f"요청 타임아웃(초), 기본 {config.REQUEST_TIMEOUT}")
    p.add_argument("--retries", type=int, default=config.MAX_RETRIES,
                   help="429/5xx 재시도 횟수(기본: 0, 첫 실패에서 중단)")
    p.add_argument("--no-progress", action="store_true", help="진행률 표시 끄기")
    p.add_argument("--save-raw", type=Path, metavar="PATH",
                   help="수집한 원본 응답을 이어붙여 파일로 저장")
    p.add_argument("--input", metavar="PATH",
                   help="수집 대신 저장된 원본 스트림을 변환('-' 이면 stdin)")
    p.add_argument("--log-level", default="INFO",
                   choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                   help="로그 레벨(기본: INFO)")
    return p.parse_args(argv)


def read_stream(source: str) -> bytes:
    if source == "-":
        return sys.stdin.buffer.read()
    with open(source, "rb") as f:
        return f.read()


def run(args: argparse.Namespace) -> int:
    out = sys.stdout
    if hasattr(out, "reconfigure"):
        out.reconfigure(encoding="utf-8")

    if args.input:
        bodies = list(iter_documents(read_stream(args.input)))
        logging.info(f"Loaded {len(bodies)} documents from {args.input}")
        return write_report(bodies, out)

    cfg = config.FetchConfig(
        base_url=args.url,
        first_page=args.first_page,
        last_page=args.last_page,
        workers=args.workers,
        timeout=args.timeout,
        retries=args.retries,
    )
    with PageFetcher(cfg, progress=not args.no_progress) as fetcher:
        bodies = fetcher.fetch_all()

    if args.save_raw:
        args.save_raw.parent.mkdir(parents=True, exist_ok=True)
        args.save_raw.write_bytes(concatenate(bodies))
        logging.info(f"Saved raw responses to {args.save_raw}")

    return write_report(bodies, out)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format='%(asctime)s %(levelname)s %(message)s')
    try:
        run(args)
    except KeywordsError as e:
        logging.error(f"Aborted: {e}")
        return 1
    except OSError as e:
        logging.error(f"Aborted: [io] {e}")
        return 1
    except KeyboardInterrupt:
        logging.warning("Interrupted by user (Ctrl+C).")
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
