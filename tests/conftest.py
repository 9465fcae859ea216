"""Shared fixtures: an in-memory stand-in for ``requests.Session``."""

import io
from typing import Dict, List, Tuple

import pytest
import requests
from PIL import Image

from web_image_extractor.fetcher import PageFetcher


class FakeResponse:
    def __init__(self, status_code: int = 200, content: bytes = b""):
        self.status_code = status_code
        self.content = content
        self.closed = False

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", "replace")

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """Routes URLs to canned responses and records every request made."""

    def __init__(self) -> None:
        self.routes: Dict[str, Tuple[int, bytes]] = {}
        self.failing: set = set()
        self.requests: List[str] = []
        self.streamed: List[str] = []

    def add(self, url: str, body=b"", status: int = 200) -> None:
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.routes[url] = (status, body)

    def fail(self, url: str) -> None:
        self.failing.add(url)

    def count(self, url: str) -> int:
        return self.requests.count(url)

    def get(self, url, timeout=None, stream=False):
        self.requests.append(url)
        if stream:
            self.streamed.append(url)
        if url in self.failing:
            raise requests.ConnectionError(f"connection refused: {url}")
        status, body = self.routes.get(url, (404, b"not found"))
        return FakeResponse(status, body)


def _encode(size, fmt, mode="RGBA", **kwargs) -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, (200, 30, 30, 255) if mode == "RGBA" else (200, 30, 30)).save(
        buffer, format=fmt, **kwargs
    )
    return buffer.getvalue()


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def fetcher(session) -> PageFetcher:
    return PageFetcher(session=session, timeout=1.0)


@pytest.fixture
def make_png():
    def factory(width: int = 16, height: int = 16) -> bytes:
        return _encode((width, height), "PNG")

    return factory


@pytest.fixture
def png_bytes(make_png) -> bytes:
    return make_png()


@pytest.fixture
def ico_bytes() -> bytes:
    return _encode((32, 32), "ICO", sizes=[(32, 32)])


@pytest.fixture
def jpeg_bytes() -> bytes:
    return _encode((8, 8), "JPEG", mode="RGB")


@pytest.fixture
def svg_bytes() -> bytes:
    return b'<svg xmlns="http://www.w3.org/2000/svg" width="10" height="10"><rect width="10" height="10"/></svg>'
