"""Data models used throughout the extraction pipeline."""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass, field
from enum import Enum, Flag, auto
from typing import TYPE_CHECKING, Iterator, List, Optional

from PIL import Image

from .utils import has_vector_extension, normalize

if TYPE_CHECKING:
    from .images import ImageMaterializer


class ExtractionKind(Flag):
    """Which candidate roles a traversal collects."""

    FAVICONS = auto()
    TOUCH_ICONS = auto()
    PAGE_IMAGES = auto()
    ICONS = FAVICONS | TOUCH_ICONS
    ALL = FAVICONS | TOUCH_ICONS | PAGE_IMAGES


class ImageRole(Enum):
    FAVICON = "favicon"
    TOUCH_ICON = "touch-icon"
    PAGE_IMAGE = "page-image"

    @property
    def kind(self) -> ExtractionKind:
        if self is ImageRole.FAVICON:
            return ExtractionKind.FAVICONS
        if self is ImageRole.TOUCH_ICON:
            return ExtractionKind.TOUCH_ICONS
        return ExtractionKind.PAGE_IMAGES


class CancellationToken:
    """Cooperative cancellation latch shared by every step of one extraction."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class LinkTag:
    """A ``<link>`` element reduced to the attributes discovery needs."""

    rel: str
    href: str
    type: str = ""


@dataclass
class MetaTag:
    """A ``<meta>`` element; ``name`` falls back to the ``property`` attribute."""

    name: str
    content: str


@dataclass
class ImagePayload:
    """Downloaded bytes of a candidate plus the decoded raster, if any."""

    url: str
    data: bytes
    format: str
    image: Optional[Image.Image] = field(default=None, repr=False, compare=False)

    @property
    def is_vector(self) -> bool:
        return self.image is None

    @property
    def width(self) -> Optional[int]:
        return self.image.width if self.image is not None else None

    @property
    def height(self) -> Optional[int]:
        return self.image.height if self.image is not None else None


class WebImage:
    """A discovered image reference whose payload is downloaded at most once."""

    def __init__(
        self,
        url: str,
        materializer: "ImageMaterializer",
        is_favicon: bool = False,
        is_touch_icon: bool = False,
        is_background_image: bool = False,
    ) -> None:
        if is_favicon and is_touch_icon:
            raise ValueError("An image cannot be both a favicon and a touch icon")
        self.url = url
        self.is_favicon = is_favicon
        self.is_touch_icon = is_touch_icon
        self.is_background_image = is_background_image
        self._materializer = materializer
        self._payload: Optional[ImagePayload] = None
        self._attempted = False
        self._pending: Optional[asyncio.Future] = None

    @property
    def key(self) -> str:
        return normalize(self.url)

    @property
    def is_vector(self) -> bool:
        return has_vector_extension(self.url)

    @property
    def download_attempted(self) -> bool:
        return self._attempted

    @property
    def payload(self) -> Optional[ImagePayload]:
        """The payload if a download already happened, otherwise ``None``."""
        return self._payload

    async def get_image(
        self, cancel: Optional[CancellationToken] = None
    ) -> Optional[ImagePayload]:
        """Download and decode the image, or return the cached outcome."""
        if self._attempted:
            return self._payload
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._download(cancel))
        await self._pending
        return self._payload

    async def _download(self, cancel: Optional[CancellationToken]) -> None:
        payload = await self._materializer.materialize(self, cancel)
        if payload is None and cancel is not None and cancel.cancelled:
            # Interrupted, not failed: allow a later retry.
            self._pending = None
            return
        self._payload = payload
        self._attempted = True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WebImage):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __repr__(self) -> str:
        flags = [
            name
            for name, value in (
                ("favicon", self.is_favicon),
                ("touch_icon", self.is_touch_icon),
                ("background", self.is_background_image),
            )
            if value
        ]
        return f"WebImage({self.url!r}{', ' if flags else ''}{', '.join(flags)})"


@dataclass
class ExtractionResult:
    """Outcome of one top-level extraction."""

    url: str
    images: List[WebImage] = field(default_factory=list)
    cancelled: bool = False
    pages_visited: int = 0

    @classmethod
    def aborted(cls, url: str, pages_visited: int = 0) -> "ExtractionResult":
        return cls(url=url, images=[], cancelled=True, pages_visited=pages_visited)

    @property
    def urls(self) -> List[str]:
        return [image.url for image in self.images]

    def __len__(self) -> int:
        return len(self.images)

    def __iter__(self) -> Iterator[WebImage]:
        return iter(self.images)
