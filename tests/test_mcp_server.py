"""
Tests for the MCP tools
"""
import pytest

from web_image_extractor import mcp_server
from web_image_extractor.images import ImageMaterializer
from web_image_extractor.models import ExtractionKind, ExtractionResult, WebImage


@pytest.mark.asyncio
async def test_extract_lists_addresses(monkeypatch):
    seen = {}

    async def fake_run_extraction(url, settings, kind):
        seen.update(settings=settings, kind=kind)
        image = WebImage("https://a.test/x.png", ImageMaterializer(fetcher=None))
        return ExtractionResult(url=url, images=[image])

    monkeypatch.setattr(mcp_server, "run_extraction", fake_run_extraction)
    urls = await mcp_server.extract("https://a.test/", kind="images", depth=2)
    assert urls == ["https://a.test/x.png"]
    assert seen["kind"] is ExtractionKind.PAGE_IMAGES
    assert seen["settings"].lazy_download
    assert seen["settings"].max_depth == 2


@pytest.mark.asyncio
async def test_extract_rejects_unknown_kind():
    with pytest.raises(ValueError):
        await mcp_server.extract("https://a.test/", kind="banners")


@pytest.mark.asyncio
async def test_best_icon_without_candidates(monkeypatch):
    async def fake_run_extraction(url, settings, kind):
        return ExtractionResult(url=url, images=[])

    monkeypatch.setattr(mcp_server, "run_extraction", fake_run_extraction)
    with pytest.raises(RuntimeError):
        await mcp_server.best_icon("https://a.test/")


def test_server_uses_fastmcp():
    from mcp.server.fastmcp import FastMCP

    assert isinstance(mcp_server.mcp, FastMCP)
