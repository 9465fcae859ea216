"""Configuration objects and constants for the extractor."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Sequence, Union

if TYPE_CHECKING:
    from .models import WebImage

DEFAULT_FAVICON_PATH = "favicon.ico"
DEFAULT_TOUCH_ICON_PATH = "apple-touch-icon.png"
CORS_ANYWHERE_PREFIX = "https://cors-anywhere.herokuapp.com/"
DEFAULT_USER_AGENT = "web-image-extractor/0.1"
DEFAULT_TIMEOUT = 15.0

PageStartCallback = Callable[[str], Union[None, Awaitable[None]]]
PageEndCallback = Callable[[str, Sequence["WebImage"]], Union[None, Awaitable[None]]]
ImageFoundCallback = Callable[["WebImage"], Union[None, Awaitable[None]]]
StopPredicate = Callable[["WebImage"], bool]


class MetaMatch(str, Enum):
    """How ``<meta>`` elements are matched as image sources."""

    # Only names starting with favicon/icon/apple-touch-icon.
    PREFIX = "prefix"
    # Every meta element with a content value; role taken from the name.
    CONTENT = "content"


@dataclass(frozen=True)
class ExtractionSettings:
    """Settings that control traversal, discovery and downloading."""

    lazy_download: bool = False
    svg_only: bool = False
    recurse_segments: bool = False
    recurse_hyperlinks: bool = False
    hyperlink_depth: int = 1
    internal_links_only: bool = False
    include_meta_images: bool = True
    include_link_images: bool = True
    include_background_images: bool = True
    include_img_tags: bool = True
    validate_links: bool = True
    relay_prefix: Optional[str] = None
    meta_match: MetaMatch = MetaMatch.CONTENT
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT
    on_page_start: Optional[PageStartCallback] = None
    on_page_end: Optional[PageEndCallback] = None
    on_image_found: Optional[ImageFoundCallback] = None
    should_stop: Optional[StopPredicate] = None

    @property
    def max_depth(self) -> int:
        """Hyperlink depth actually explored; negative values clamp to zero."""
        if not self.recurse_hyperlinks:
            return 0
        return max(self.hyperlink_depth, 0)

    @classmethod
    def with_cors_anywhere(cls, **kwargs: Any) -> "ExtractionSettings":
        return cls(relay_prefix=CORS_ANYWHERE_PREFIX, **kwargs)
