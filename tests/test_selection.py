"""
Tests for choosing the best icon
"""
import pytest

from web_image_extractor.images import ImageMaterializer
from web_image_extractor.models import WebImage
from web_image_extractor.selection import (
    at_least,
    closest_ratio,
    closest_resolution,
    first_good_enough,
    highest_resolution,
)

SIZES = {
    "https://a.test/small.png": (16, 16),
    "https://a.test/wide.png": (64, 32),
    "https://a.test/large.png": (180, 180),
}


async def download_all(session, fetcher, make_png, svg_bytes):
    for url, (width, height) in SIZES.items():
        session.add(url, make_png(width, height))
    session.add("https://a.test/huge.svg", svg_bytes)
    materializer = ImageMaterializer(fetcher)
    images = [WebImage(url, materializer) for url in [*SIZES, "https://a.test/huge.svg"]]
    for image in images:
        await image.get_image()
    return images


class TestSelection:
    """Test the selection norms"""

    @pytest.mark.asyncio
    async def test_highest_resolution(self, session, fetcher, make_png, svg_bytes):
        downloaded = await download_all(session, fetcher, make_png, svg_bytes)
        assert highest_resolution(downloaded).url == "https://a.test/large.png"

    @pytest.mark.asyncio
    async def test_closest_resolution(self, session, fetcher, make_png, svg_bytes):
        downloaded = await download_all(session, fetcher, make_png, svg_bytes)
        assert closest_resolution(downloaded, 20, 20).url == "https://a.test/small.png"
        assert closest_resolution(downloaded, 150, 150).url == "https://a.test/large.png"

    @pytest.mark.asyncio
    async def test_closest_ratio(self, session, fetcher, make_png, svg_bytes):
        downloaded = await download_all(session, fetcher, make_png, svg_bytes)
        assert closest_ratio(downloaded, 200, 100).url == "https://a.test/wide.png"

    @pytest.mark.asyncio
    async def test_ties_keep_first(self, session, fetcher, make_png, svg_bytes):
        downloaded = await download_all(session, fetcher, make_png, svg_bytes)
        assert closest_ratio(downloaded, 1, 1).url == "https://a.test/small.png"

    @pytest.mark.asyncio
    async def test_first_good_enough(self, session, fetcher, make_png, svg_bytes):
        downloaded = await download_all(session, fetcher, make_png, svg_bytes)
        assert first_good_enough(downloaded, at_least(32, 32)).url == "https://a.test/wide.png"
        assert first_good_enough(downloaded, at_least(100, 100)).url == "https://a.test/large.png"
        assert first_good_enough(downloaded, at_least(1, 1)).url == "https://a.test/small.png"
        assert first_good_enough(downloaded, at_least(500, 500)) is None

    @pytest.mark.asyncio
    async def test_first_good_enough_skips_vectors(self, session, fetcher, make_png, svg_bytes):
        downloaded = await download_all(session, fetcher, make_png, svg_bytes)
        seen = []

        def check(image):
            seen.append(image.size)
            return False

        assert first_good_enough(downloaded, check) is None
        assert seen == [(16, 16), (64, 32), (180, 180)]


@pytest.mark.parametrize("width, height", [(0, 10), (10, 0), (-1, 5)])
def test_closest_ratio_rejects_non_positive_size(width, height):
    with pytest.raises(ValueError):
        closest_ratio([], width, height)


def test_nothing_downloaded():
    image = WebImage("https://a.test/x.png", ImageMaterializer(fetcher=None))
    assert highest_resolution([]) is None
    assert highest_resolution([image]) is None
