"""MCP server exposing image extraction tools."""

from __future__ import annotations

import logging
from typing import List

from mcp.server.fastmcp import FastMCP

from .config import ExtractionSettings
from .crawler import run_extraction
from .models import ExtractionKind
from .selection import highest_resolution

logger = logging.getLogger("web_image_extractor.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="web-image-extractor")

TOOL_KINDS = {
    "all": ExtractionKind.ALL,
    "images": ExtractionKind.PAGE_IMAGES,
    "icons": ExtractionKind.ICONS,
    "favicons": ExtractionKind.FAVICONS,
    "touch-icons": ExtractionKind.TOUCH_ICONS,
}


@mcp.tool()
async def extract(
    url: str,
    kind: str = "all",
    depth: int = 0,
    recurse_segments: bool = False,
) -> List[str]:
    """List image addresses found on a page without downloading them."""

    if kind not in TOOL_KINDS:
        raise ValueError(f"Unknown kind {kind!r}; expected one of {sorted(TOOL_KINDS)}")
    settings = ExtractionSettings(
        lazy_download=True,
        recurse_segments=recurse_segments,
        recurse_hyperlinks=depth > 0,
        hyperlink_depth=depth,
    )
    result = await run_extraction(url, settings, TOOL_KINDS[kind])
    return result.urls


@mcp.tool()
async def best_icon(url: str) -> str:
    """Return the address of the highest resolution icon for a site."""

    settings = ExtractionSettings(recurse_segments=True)
    result = await run_extraction(url, settings, ExtractionKind.ICONS)
    best = highest_resolution(result.images)
    if best is None:
        raise RuntimeError(f"No usable icon found for {url}")
    return best.url


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
