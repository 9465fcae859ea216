"""High-level orchestration for walking pages and collecting images."""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set

from .config import ExtractionSettings
from .content import extract_anchor_hrefs
from .discovery import PageScanner
from .fetcher import PageFetcher
from .images import ImageMaterializer
from .models import CancellationToken, ExtractionKind, ExtractionResult, WebImage
from .utils import (
    is_http_address,
    is_root,
    normalize,
    remove_last_segment,
    resolve,
    split_address,
)

logger = logging.getLogger("web_image_extractor")


@dataclass
class TraversalState:
    """Mutable bookkeeping owned by exactly one top-level extraction."""

    visited_pages: Set[str] = field(default_factory=set)
    found_references: Set[str] = field(default_factory=set)
    outgoing_links: Dict[str, List[str]] = field(default_factory=dict)
    stop_requested: bool = False


async def _notify(callback: Optional[Callable[..., Any]], *args: Any) -> None:
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class Traversal:
    """Walks ancestor path segments and hyperlinks from a start address.

    Pages are visited one at a time, depth first. The candidates of a single
    page are downloaded concurrently unless lazy downloading is configured.
    """

    def __init__(
        self,
        settings: ExtractionSettings,
        kind: ExtractionKind = ExtractionKind.ALL,
        fetcher: Optional[PageFetcher] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> None:
        self.settings = settings
        self.kind = kind
        self.fetcher = fetcher or PageFetcher.from_settings(settings)
        self.cancel = cancel or CancellationToken()
        self.materializer = ImageMaterializer(self.fetcher)
        self.state = TraversalState()
        self.scanner = PageScanner(
            settings,
            self.fetcher,
            self.materializer,
            self.state.found_references,
            kind,
        )

    @property
    def cancelled(self) -> bool:
        return self.cancel.cancelled

    async def run(self, url: str) -> ExtractionResult:
        if self.cancelled:
            return ExtractionResult.aborted(url)

        images = await self.walk(url, 0)

        if self.settings.recurse_segments:
            current = url
            while not is_root(current) and not self.state.stop_requested and not self.cancelled:
                parent = remove_last_segment(current)
                if parent == current:
                    break
                current = parent
                images.extend(await self.walk(current, 0))

        pages = len(self.state.visited_pages)
        if self.cancelled:
            logger.info("Extraction from %s cancelled after %d pages", url, pages)
            return ExtractionResult.aborted(url, pages_visited=pages)

        if not self.settings.lazy_download:
            images = [image for image in images if image.payload is not None]

        logger.info("Found %d images across %d pages from %s", len(images), pages, url)
        return ExtractionResult(url=url, images=images, pages_visited=pages)

    def _apply_stop(self, images: List[WebImage]) -> List[WebImage]:
        should_stop = self.settings.should_stop
        if should_stop is None:
            return images
        for index, image in enumerate(images):
            if should_stop(image):
                logger.debug("Stop requested at %s", image.url)
                self.state.stop_requested = True
                return images[: index + 1]
        return images

    async def _visit(self, url: str, key: str) -> List[WebImage]:
        self.state.visited_pages.add(key)
        await _notify(self.settings.on_page_start, url)
        logger.info("Exploring %s", url)

        page = await self.fetcher.fetch_page(url, self.cancel)
        self.state.outgoing_links[key] = extract_anchor_hrefs(page) if page is not None else []
        images = await self.scanner.scan(url, page, self.cancel)
        if self.cancelled:
            return []

        await _notify(self.settings.on_page_end, url, list(images))
        images = self._apply_stop(images)

        if not self.settings.lazy_download and images:
            await asyncio.gather(*(image.get_image(self.cancel) for image in images))

        for image in images:
            if self.cancelled:
                return []
            await _notify(self.settings.on_image_found, image)
        return images

    async def walk(self, url: str, depth: int) -> List[WebImage]:
        """Collect images from ``url`` and, depth allowing, the pages it links to."""
        if self.cancelled:
            return []

        key = normalize(url)
        images: List[WebImage] = []
        if key not in self.state.visited_pages:
            images = await self._visit(url, key)

        if self.state.stop_requested or self.cancelled or depth >= self.settings.max_depth:
            return images

        for href in self.state.outgoing_links.get(key, []):
            if self.state.stop_requested or self.cancelled:
                break
            target = resolve(url, href)
            if not is_http_address(target):
                continue
            if self.settings.internal_links_only and not _same_host(url, target):
                continue
            images.extend(await self.walk(target, depth + 1))
        return images


def _same_host(first: str, second: str) -> bool:
    first_parts, second_parts = split_address(first), split_address(second)
    if first_parts is None or second_parts is None:
        return False
    return first_parts.netloc.lower() == second_parts.netloc.lower()


async def run_extraction(
    url: str,
    settings: Optional[ExtractionSettings] = None,
    kind: ExtractionKind = ExtractionKind.ALL,
    cancel: Optional[CancellationToken] = None,
    fetcher: Optional[PageFetcher] = None,
) -> ExtractionResult:
    """Extract images of ``kind`` starting from ``url``.

    Each call owns fresh traversal state, so results never leak between calls.
    """
    traversal = Traversal(settings or ExtractionSettings(), kind, fetcher, cancel)
    return await traversal.run(url)


async def extract_favicons(
    url: str,
    settings: Optional[ExtractionSettings] = None,
    cancel: Optional[CancellationToken] = None,
    fetcher: Optional[PageFetcher] = None,
) -> ExtractionResult:
    return await run_extraction(url, settings, ExtractionKind.FAVICONS, cancel, fetcher)


async def extract_touch_icons(
    url: str,
    settings: Optional[ExtractionSettings] = None,
    cancel: Optional[CancellationToken] = None,
    fetcher: Optional[PageFetcher] = None,
) -> ExtractionResult:
    return await run_extraction(url, settings, ExtractionKind.TOUCH_ICONS, cancel, fetcher)


async def extract_icons(
    url: str,
    settings: Optional[ExtractionSettings] = None,
    cancel: Optional[CancellationToken] = None,
    fetcher: Optional[PageFetcher] = None,
) -> ExtractionResult:
    return await run_extraction(url, settings, ExtractionKind.ICONS, cancel, fetcher)


async def extract_page_images(
    url: str,
    settings: Optional[ExtractionSettings] = None,
    cancel: Optional[CancellationToken] = None,
    fetcher: Optional[PageFetcher] = None,
) -> ExtractionResult:
    return await run_extraction(url, settings, ExtractionKind.PAGE_IMAGES, cancel, fetcher)


async def extract_all_images(
    url: str,
    settings: Optional[ExtractionSettings] = None,
    cancel: Optional[CancellationToken] = None,
    fetcher: Optional[PageFetcher] = None,
) -> ExtractionResult:
    return await run_extraction(url, settings, ExtractionKind.ALL, cancel, fetcher)
