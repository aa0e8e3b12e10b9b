"""
페이지 JSON → 키워드 레코드 → 출력 줄
- 페이지 순서, 페이지 내 배열 순서를 그대로 유지 (정렬/필터/중복 제거 없음)
- 형식 오류는 건너뛰지 않고 해당 페이지를 지목하는 예외로 중단
"""
import json
import logging
from typing import Any, Dict, Iterable, Iterator, List, TextIO

from .errors import DecodeError, SchemaError
from .models import KeywordRecord, PageBody

_WHITESPACE = " \t\r\n"


def decode_page(body: PageBody) -> Dict[str, Any]:
    """바디 하나를 JSON 객체로 파싱"""
    try:
        doc = json.loads(body.content.decode("utf-8"))
    except ValueError as e:
        # JSONDecodeError, UnicodeDecodeError 모두 ValueError
        raise DecodeError(f"invalid JSON: {e}", body.page) from e
    if not isinstance(doc, dict):
        raise DecodeError(f"expected a JSON object, got {type(doc).__name__}", body.page)
    return doc


def page_keywords(doc: Dict[str, Any], page: int) -> List[Any]:
    keywords = doc.get("keywords")
    if keywords is None:
        raise SchemaError("response has no 'keywords' array", page)
    if not isinstance(keywords, list):
        raise SchemaError(f"'keywords' is {type(keywords).__name__}, not an array", page)
    return keywords


def iter_records(bodies: Iterable[PageBody]) -> Iterator[KeywordRecord]:
    """페이지를 차례로 풀어 하나의 레코드 흐름으로 평탄화"""
    for body in bodies:
        entries = page_keywords(decode_page(body), body.page)
        for entry in entries:
            yield KeywordRecord.from_json(entry, body.page)


def iter_documents(stream: bytes) -> Iterator[PageBody]:
    """이어붙인 JSON 문서 스트림을 문서 단위로 분리 (번호는 1부터)

    curl 이 페이지 범위를 받아 그대로 이어붙인 출력, 또는 --save-raw 로
    저장한 파일을 다시 읽을 때 쓴다. 문서 사이의 공백은 허용한다.
    """
    try:
        text = stream.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"stream is not valid UTF-8: {e}") from e

    decoder = json.JSONDecoder()
    pos = 0
    index = 0
    length = len(text)
    while True:
        while pos < length and text[pos] in _WHITESPACE:
            pos += 1
        if pos >= length:
            return
        index += 1
        try:
            _, end = decoder.raw_decode(text, pos)
        except ValueError as e:
            raise DecodeError(f"invalid JSON document: {e}", index) from e
        yield PageBody(page=index, content=text[pos:end].encode("utf-8"))
        pos = end


def format_lines(records: Iterable[KeywordRecord]) -> Iterator[str]:
    for record in records:
        yield record.to_line()


def write_report(bodies: Iterable[PageBody], out: TextIO) -> int:
    """모든 페이지를 먼저 검증한 뒤 출력. 오류 시 한 줄도 쓰지 않는다.

    Returns: 출력한 줄 수 (= 페이지별 keywords 길이의 합)
    """
    records = list(iter_records(bodies))
    for line in format_lines(records):
        out.write(line + "\n")
    out.flush()
    logging.info(f"Wrote {len(records):,} keyword lines")
    return len(records)
