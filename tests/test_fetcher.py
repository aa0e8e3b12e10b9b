import threading
import unittest
from http.server import BaseHTTPRequestHandler, HTTPServer

import requests
from urllib3.util.retry import Retry

from crates_keywords.config import FetchConfig
from crates_keywords.errors import FetchError, HTTPStatusError
from crates_keywords.fetcher import PageFetcher, build_session, concatenate
from crates_keywords.models import PageBody

from fakes import FakeSession, keywords_body

BASE = "http://mock.local/api/v1/keywords?sort=alpha&per_page=100"


def body_for(page):
    return keywords_body((f"kw{page}", page))


class TestFetchPage(unittest.TestCase):
    def test_returns_raw_body_and_uses_timeout(self):
        session = FakeSession({1: b'{"keywords":[]}'})
        fetcher = PageFetcher(FetchConfig(base_url=BASE, last_page=1, timeout=7), session=session)
        body = fetcher.fetch_page(1)
        self.assertEqual(body, PageBody(page=1, content=b'{"keywords":[]}'))
        self.assertEqual(session.calls, [(BASE + "&page=1", 7)])

    def test_http_status_error_names_page_and_status(self):
        session = FakeSession({3: (503, b"unavailable")})
        fetcher = PageFetcher(FetchConfig(base_url=BASE, last_page=3), session=session)
        with self.assertRaises(HTTPStatusError) as ctx:
            fetcher.fetch_page(3)
        self.assertEqual(ctx.exception.page, 3)
        self.assertEqual(ctx.exception.status_code, 503)
        self.assertTrue(str(ctx.exception).startswith("[fetch] page 3: HTTP 503"))

    def test_network_error_becomes_fetch_error(self):
        session = FakeSession({2: requests.ConnectionError("name resolution failed")})
        fetcher = PageFetcher(FetchConfig(base_url=BASE, last_page=2), session=session)
        with self.assertRaises(FetchError) as ctx:
            fetcher.fetch_page(2)
        self.assertNotIsInstance(ctx.exception, HTTPStatusError)
        self.assertEqual(ctx.exception.page, 2)
        self.assertIn("ConnectionError", str(ctx.exception))

    def test_timeout_becomes_fetch_error(self):
        session = FakeSession({1: requests.Timeout("read timed out")})
        fetcher = PageFetcher(FetchConfig(base_url=BASE, last_page=1), session=session)
        with self.assertRaises(FetchError):
            fetcher.fetch_page(1)


class TestFetchAll(unittest.TestCase):
    def test_sequential_fetch_in_page_order(self):
        pages = {p: body_for(p) for p in range(1, 6)}
        session = FakeSession(pages)
        cfg = FetchConfig(base_url=BASE, last_page=5)
        bodies = PageFetcher(cfg, session=session, progress=False).fetch_all()
        self.assertEqual([b.page for b in bodies], [1, 2, 3, 4, 5])
        self.assertEqual([url for url, _ in session.calls],
                         [f"{BASE}&page={p}" for p in range(1, 6)])

    def test_parallel_fetch_reassembles_ascending_order(self):
        pages = {p: body_for(p) for p in range(1, 7)}
        # 앞 페이지일수록 늦게 끝나도록
        delays = {1: 0.15, 2: 0.1, 3: 0.05}
        session = FakeSession(pages, delays=delays)
        cfg = FetchConfig(base_url=BASE, last_page=6, workers=6)
        bodies = PageFetcher(cfg, session=session, progress=False).fetch_all()
        self.assertEqual([b.page for b in bodies], [1, 2, 3, 4, 5, 6])
        self.assertEqual([b.content for b in bodies], [pages[p] for p in range(1, 7)])

    def test_partial_range(self):
        pages = {p: body_for(p) for p in range(1, 10)}
        cfg = FetchConfig(base_url=BASE, first_page=4, last_page=6)
        bodies = PageFetcher(cfg, session=FakeSession(pages), progress=False).fetch_all()
        self.assertEqual([b.page for b in bodies], [4, 5, 6])

    def test_sequential_stops_at_first_failure(self):
        pages = {p: body_for(p) for p in range(1, 6)}
        pages[3] = (500, b"boom")
        session = FakeSession(pages)
        cfg = FetchConfig(base_url=BASE, last_page=5)
        with self.assertRaises(HTTPStatusError) as ctx:
            PageFetcher(cfg, session=session, progress=False).fetch_all()
        self.assertEqual(ctx.exception.page, 3)
        self.assertEqual(len(session.calls), 3)

    def test_parallel_failure_propagates(self):
        pages = {p: body_for(p) for p in range(1, 11)}
        pages[5] = requests.ConnectionError("reset by peer")
        cfg = FetchConfig(base_url=BASE, last_page=10, workers=4)
        with self.assertRaises(FetchError) as ctx:
            PageFetcher(cfg, session=FakeSession(pages), progress=False).fetch_all()
        self.assertEqual(ctx.exception.page, 5)

    def test_context_manager_closes_session(self):
        session = FakeSession({})
        with PageFetcher(FetchConfig(base_url=BASE, last_page=1), session=session):
            pass
        self.assertTrue(session.closed)


class TestSession(unittest.TestCase):
    def test_headers_accept_compression(self):
        session = build_session(FetchConfig())
        self.assertIn("gzip", session.headers["Accept-Encoding"])
        self.assertEqual(session.headers["Accept"], "application/json")

    def test_no_retries_by_default(self):
        session = build_session(FetchConfig())
        adapter = session.get_adapter("https://crates.io/")
        self.assertEqual(adapter.max_retries.total, 0)

    def test_retries_configurable(self):
        session = build_session(FetchConfig(retries=3))
        retry = session.get_adapter("https://crates.io/").max_retries
        self.assertIsInstance(retry, Retry)
        self.assertEqual(retry.total, 3)
        self.assertIn(429, retry.status_forcelist)
        self.assertFalse(retry.raise_on_status)


class ServerErrorHandler(BaseHTTPRequestHandler):
    """항상 500 을 돌려주는 핸들러. 받은 요청 수를 서버에 기록."""

    def do_GET(self):
        self.server.hits += 1
        body = b'{"errors":[{"detail":"internal error"}]}'
        self.send_response(500)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


class TestRetryAgainstServer(unittest.TestCase):
    def setUp(self):
        self.server = HTTPServer(("127.0.0.1", 0), ServerErrorHandler)
        self.server.hits = 0
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()
        host, port = self.server.server_address
        self.base = f"http://{host}:{port}/api/v1/keywords?sort=alpha&per_page=100"

    def tearDown(self):
        self.server.shutdown()
        self.server.server_close()
        self.thread.join()

    def test_exhausted_retries_surface_last_status(self):
        cfg = FetchConfig(base_url=self.base, last_page=1, retries=2, timeout=5)
        with PageFetcher(cfg, progress=False) as fetcher:
            with self.assertRaises(HTTPStatusError) as ctx:
                fetcher.fetch_page(1)
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertEqual(ctx.exception.page, 1)
        self.assertEqual(self.server.hits, 3)

    def test_no_retry_by_default(self):
        cfg = FetchConfig(base_url=self.base, last_page=1, timeout=5)
        with PageFetcher(cfg, progress=False) as fetcher:
            with self.assertRaises(HTTPStatusError):
                fetcher.fetch_page(1)
        self.assertEqual(self.server.hits, 1)


class TestConcatenate(unittest.TestCase):
    def test_joins_in_given_order(self):
        bodies = [PageBody(1, b'{"a":1}'), PageBody(2, b'{"b":2}')]
        self.assertEqual(concatenate(bodies), b'{"a":1}{"b":2}')


if __name__ == "__main__":
    unittest.main()
