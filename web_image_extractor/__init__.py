"""
Web Image Extractor - discover favicons, touch icons and page images

This is the main public API module.
"""

from .config import CORS_ANYWHERE_PREFIX, ExtractionSettings, MetaMatch
from .crawler import (
    extract_all_images,
    extract_favicons,
    extract_icons,
    extract_page_images,
    extract_touch_icons,
    run_extraction,
)
from .fetcher import PageFetcher
from .models import (
    CancellationToken,
    ExtractionKind,
    ExtractionResult,
    ImagePayload,
    WebImage,
)

__version__ = "0.1.0"
__all__ = [
    "CORS_ANYWHERE_PREFIX",
    "CancellationToken",
    "ExtractionKind",
    "ExtractionResult",
    "ExtractionSettings",
    "ImagePayload",
    "MetaMatch",
    "PageFetcher",
    "WebImage",
    "extract_all_images",
    "extract_favicons",
    "extract_icons",
    "extract_page_images",
    "extract_touch_icons",
    "run_extraction",
]
