"""HTTP access for pages and image resources."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import requests
from bs4 import BeautifulSoup

from .config import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, ExtractionSettings
from .content import parse_html
from .models import CancellationToken
from .utils import strip_scheme

logger = logging.getLogger("web_image_extractor")


def is_success(status_code: int) -> bool:
    return 200 <= status_code <= 299


class PageFetcher:
    """Blocking ``requests`` calls run off the event loop, one per await.

    Every call honours a cancellation token that is already set by returning
    immediately without touching the network. Transport errors, timeouts and
    non-2xx responses are logged and reported as ``None``/``False``.
    """

    def __init__(
        self,
        session: Optional[Any] = None,
        timeout: float = DEFAULT_TIMEOUT,
        relay_prefix: Optional[str] = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        if session is None:
            session = requests.Session()
            session.headers.update({"User-Agent": user_agent})
        self.session = session
        self.timeout = timeout
        self.relay_prefix = relay_prefix

    @classmethod
    def from_settings(
        cls, settings: ExtractionSettings, session: Optional[Any] = None
    ) -> "PageFetcher":
        return cls(
            session=session,
            timeout=settings.timeout,
            relay_prefix=settings.relay_prefix,
            user_agent=settings.user_agent,
        )

    def target(self, address: str) -> str:
        """Rewrite ``address`` through the relay prefix when one is set."""
        if self.relay_prefix:
            return self.relay_prefix + strip_scheme(address)
        return address

    def _get(self, address: str, stream: bool = False) -> requests.Response:
        return self.session.get(self.target(address), timeout=self.timeout, stream=stream)

    async def _request(
        self,
        address: str,
        cancel: Optional[CancellationToken],
        stream: bool = False,
    ) -> Optional[requests.Response]:
        if cancel is not None and cancel.cancelled:
            return None
        try:
            response = await asyncio.to_thread(self._get, address, stream)
        except requests.RequestException as exc:
            logger.warning("Failed to fetch %s: %s", address, exc)
            return None
        if cancel is not None and cancel.cancelled:
            response.close()
            return None
        return response

    async def fetch_page(
        self, address: str, cancel: Optional[CancellationToken] = None
    ) -> Optional[BeautifulSoup]:
        """GET a page and parse it; any failure yields ``None``."""
        response = await self._request(address, cancel)
        if response is None:
            return None
        try:
            if not is_success(response.status_code):
                logger.debug("Skipping page %s: HTTP %s", address, response.status_code)
                return None
            html = response.text
        except requests.RequestException as exc:
            logger.warning("Failed to read %s: %s", address, exc)
            return None
        finally:
            response.close()
        return parse_html(html)

    async def fetch_bytes(
        self, address: str, cancel: Optional[CancellationToken] = None
    ) -> Optional[bytes]:
        """GET a resource body; non-2xx and transport errors yield ``None``."""
        response = await self._request(address, cancel)
        if response is None:
            return None
        try:
            if not is_success(response.status_code):
                logger.warning("Failed to fetch %s: HTTP %s", address, response.status_code)
                return None
            return response.content
        except requests.RequestException as exc:
            logger.warning("Failed to read %s: %s", address, exc)
            return None
        finally:
            response.close()

    async def check_reachable(
        self, address: str, cancel: Optional[CancellationToken] = None
    ) -> bool:
        """Report whether a streamed GET answers 2xx, without reading the body."""
        response = await self._request(address, cancel, stream=True)
        if response is None:
            return False
        try:
            return is_success(response.status_code)
        finally:
            response.close()
