"""Image downloading, decoding and persistence utilities."""

from __future__ import annotations

import asyncio
import io
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, List, Optional

from filetype import guess
from PIL import Image

from .models import CancellationToken, ImagePayload
from .utils import url_extension

if TYPE_CHECKING:
    from .fetcher import PageFetcher
    from .models import WebImage

logger = logging.getLogger("web_image_extractor")

PILLOW_FORMATS = {
    "apng": "PNG",
    "bmp": "BMP",
    "cur": "CUR",
    "dds": "DDS",
    "gif": "GIF",
    "icns": "ICNS",
    "ico": "ICO",
    "jfif": "JPEG",
    "jp2": "JPEG2000",
    "jpe": "JPEG",
    "jpeg": "JPEG",
    "jpg": "JPEG",
    "pbm": "PPM",
    "pcx": "PCX",
    "pgm": "PPM",
    "pjp": "JPEG",
    "pjpeg": "JPEG",
    "png": "PNG",
    "ppm": "PPM",
    "psd": "PSD",
    "tga": "TGA",
    "tif": "TIFF",
    "tiff": "TIFF",
    "webp": "WEBP",
    "xbm": "XBM",
    "xpm": "XPM",
}


def detect_image_format(data: bytes) -> Optional[str]:
    """Detect image type using filetype; returns lowercase extension."""
    kind = guess(data)
    if kind and kind.mime.startswith("image/"):
        ext = kind.extension.lower()
        if ext == "jpeg":
            return "jpg"
        return ext
    return None


def format_hint(address: str) -> Optional[str]:
    """Pillow format name implied by the address extension, if known."""
    return PILLOW_FORMATS.get(url_extension(address))


def _open(data: bytes, formats: Optional[List[str]] = None) -> Image.Image:
    image = Image.open(io.BytesIO(data), formats=formats)
    image.load()
    return image


def decode_image(data: bytes, address: str) -> Optional[ImagePayload]:
    """Decode raster bytes, trying the extension's format before sniffing.

    Returns ``None`` when neither attempt can decode the data.
    """
    hint = format_hint(address)
    image = None
    if hint:
        try:
            image = _open(data, [hint])
        except Exception as exc:  # pylint: disable=broad-except
            logger.debug("Decoding %s as %s failed: %s", address, hint, exc)
    if image is None:
        try:
            image = _open(data)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Unable to decode image %s: %s", address, exc)
            return None
    extension = detect_image_format(data)
    if not extension and image.format:
        extension = image.format.lower()
    return ImagePayload(
        url=address,
        data=data,
        format=extension or url_extension(address) or "png",
        image=image,
    )


class ImageMaterializer:
    """Fetches candidate bytes and hands raster data to the decoder."""

    def __init__(self, fetcher: "PageFetcher") -> None:
        self.fetcher = fetcher

    async def materialize(
        self,
        image: "WebImage",
        cancel: Optional[CancellationToken] = None,
    ) -> Optional[ImagePayload]:
        data = await self.fetcher.fetch_bytes(image.url, cancel)
        if data is None:
            return None
        if image.is_vector:
            # Vector data is stored verbatim.
            return ImagePayload(url=image.url, data=data, format=url_extension(image.url))
        return await asyncio.to_thread(decode_image, data, image.url)


def _save(payload: ImagePayload, destination: Path) -> None:
    if payload.image is None:
        destination.write_bytes(payload.data)
        return
    try:
        payload.image.save(destination, format=payload.image.format)
    except (OSError, ValueError, KeyError) as exc:
        logger.debug("Re-encoding %s failed (%s), writing original bytes", payload.url, exc)
        destination.write_bytes(payload.data)


def write_images(images: Iterable["WebImage"], output_dir: Path) -> List[Path]:
    """Persist downloaded images as ``<index>.<format>`` under ``output_dir``."""
    output_dir.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []
    index = 0
    for image in images:
        payload = image.payload
        if payload is None:
            continue
        destination = output_dir / f"{index}.{payload.format}"
        try:
            _save(payload, destination)
        except OSError as exc:
            logger.warning("Failed to write image %s: %s", destination, exc)
            continue
        logger.debug("Saved %s to %s", image.url, destination)
        written.append(destination)
        index += 1
    return written
