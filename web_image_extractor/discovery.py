"""Per-page discovery of candidate image references."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Set

from bs4 import BeautifulSoup

from .config import (
    DEFAULT_FAVICON_PATH,
    DEFAULT_TOUCH_ICON_PATH,
    ExtractionSettings,
    MetaMatch,
)
from .content import (
    extract_img_sources,
    extract_link_tags,
    extract_meta_tags,
    iter_background_urls,
)
from .fetcher import PageFetcher
from .images import ImageMaterializer
from .models import (
    CancellationToken,
    ExtractionKind,
    ImageRole,
    LinkTag,
    MetaTag,
    WebImage,
)
from .utils import (
    has_image_extension,
    has_vector_extension,
    is_http_address,
    is_unsupported,
    normalize,
    resolve,
)

logger = logging.getLogger("web_image_extractor")

FAVICON_RELS = frozenset({"icon", "shortcut icon", "mask-icon"})
PREFIX_TOUCH_ICON_NAMES = ("apple-touch-icon",)
PREFIX_FAVICON_NAMES = ("favicon", "icon")


def link_role(link: LinkTag) -> ImageRole:
    """Classify a ``<link>`` by its ``rel`` attribute."""
    rel = link.rel.strip().lower()
    if "apple-touch-icon" in rel:
        return ImageRole.TOUCH_ICON
    if rel in FAVICON_RELS or "favicon" in rel:
        return ImageRole.FAVICON
    return ImageRole.PAGE_IMAGE


def meta_role(meta: MetaTag, mode: MetaMatch) -> Optional[ImageRole]:
    """Classify a ``<meta>`` by name; ``None`` means it is not an image source."""
    name = meta.name
    if mode is MetaMatch.PREFIX:
        if name.startswith(PREFIX_TOUCH_ICON_NAMES):
            return ImageRole.TOUCH_ICON
        if name.startswith(PREFIX_FAVICON_NAMES):
            return ImageRole.FAVICON
        return None
    lowered = name.lower()
    if "apple-touch-icon" in lowered:
        return ImageRole.TOUCH_ICON
    if "favicon" in lowered or lowered == "icon":
        return ImageRole.FAVICON
    return ImageRole.PAGE_IMAGE


class PageScanner:
    """Finds candidates on one page, deduplicating against ``found``.

    ``found`` holds normalized addresses and is shared by every page of a
    traversal; an address is added the moment its candidate is accepted, so
    the first page (and the first source on that page) to reach it wins.
    """

    def __init__(
        self,
        settings: ExtractionSettings,
        fetcher: PageFetcher,
        materializer: ImageMaterializer,
        found: Set[str],
        kind: ExtractionKind = ExtractionKind.ALL,
    ) -> None:
        self.settings = settings
        self.fetcher = fetcher
        self.materializer = materializer
        self.found = found
        self.kind = kind

    def _wants(self, role: ImageRole) -> bool:
        return bool(self.kind & role.kind)

    def _extension_filter(self, strict: bool) -> Callable[[str], bool]:
        if self.settings.svg_only:
            return has_vector_extension
        if strict:
            return has_image_extension
        return lambda address: not is_unsupported(address)

    async def _accept(
        self,
        address: str,
        role: ImageRole,
        cancel: Optional[CancellationToken],
        background: bool = False,
    ) -> Optional[WebImage]:
        if not is_http_address(address):
            return None
        key = normalize(address)
        if key in self.found:
            return None
        if self.settings.validate_links:
            if not await self.fetcher.check_reachable(address, cancel):
                logger.debug("Rejected unreachable candidate %s", address)
                return None
        self.found.add(key)
        return WebImage(
            address,
            self.materializer,
            is_favicon=role is ImageRole.FAVICON,
            is_touch_icon=role is ImageRole.TOUCH_ICON,
            is_background_image=background,
        )

    async def _collect(
        self,
        images: List[WebImage],
        page_url: str,
        reference: str,
        role: ImageRole,
        cancel: Optional[CancellationToken],
        strict: bool = True,
        background: bool = False,
    ) -> None:
        reference = reference.strip()
        if not reference or reference.startswith("#"):
            return
        if not self._wants(role):
            return
        if cancel is not None and cancel.cancelled:
            return
        address = resolve(page_url, reference)
        if not self._extension_filter(strict)(address):
            return
        image = await self._accept(address, role, cancel, background=background)
        if image is not None:
            images.append(image)

    async def scan(
        self,
        page_url: str,
        page: Optional[BeautifulSoup],
        cancel: Optional[CancellationToken] = None,
    ) -> List[WebImage]:
        """Return newly accepted candidates for ``page_url`` in discovery order.

        The default favicon and touch icon locations are probed even when the
        page itself could not be fetched or parsed.
        """
        images: List[WebImage] = []

        if not self.settings.svg_only:
            for path, role in (
                (DEFAULT_FAVICON_PATH, ImageRole.FAVICON),
                (DEFAULT_TOUCH_ICON_PATH, ImageRole.TOUCH_ICON),
            ):
                if not self._wants(role) or (cancel is not None and cancel.cancelled):
                    continue
                image = await self._accept(resolve(page_url, path), role, cancel)
                if image is not None:
                    images.append(image)

        if page is None:
            return images

        if self.settings.include_link_images:
            for link in extract_link_tags(page):
                await self._collect(images, page_url, link.href, link_role(link), cancel)

        if self.settings.include_meta_images:
            for meta in extract_meta_tags(page):
                role = meta_role(meta, self.settings.meta_match)
                if role is not None:
                    await self._collect(images, page_url, meta.content, role, cancel)

        if self.settings.include_background_images:
            for reference in iter_background_urls(page):
                await self._collect(
                    images,
                    page_url,
                    reference,
                    ImageRole.PAGE_IMAGE,
                    cancel,
                    background=True,
                )

        if self.settings.include_img_tags:
            for source in extract_img_sources(page):
                await self._collect(
                    images, page_url, source, ImageRole.PAGE_IMAGE, cancel, strict=False
                )

        logger.debug("Found %d new candidates on %s", len(images), page_url)
        return images
