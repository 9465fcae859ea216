"""Picking a single best image out of downloaded candidates."""

from __future__ import annotations

from typing import Callable, Iterable, Optional

from PIL import Image

from .models import WebImage

ImageNorm = Callable[[Image.Image], float]


def select_best(
    images: Iterable[WebImage], norm: ImageNorm, maximize: bool = True
) -> Optional[WebImage]:
    """Return the downloaded raster image with the best ``norm`` score.

    Images that were not downloaded, failed to decode, or are vectors are
    ignored. Ties keep the earliest discovered image.
    """
    best: Optional[WebImage] = None
    best_score = 0.0
    for image in images:
        payload = image.payload
        if payload is None or payload.image is None:
            continue
        score = norm(payload.image)
        if not maximize:
            score = -score
        if best is None or score > best_score:
            best, best_score = image, score
    return best


def highest_resolution(images: Iterable[WebImage]) -> Optional[WebImage]:
    return select_best(images, lambda image: image.width ** 2 + image.height ** 2)


def closest_resolution(
    images: Iterable[WebImage], width: int, height: int
) -> Optional[WebImage]:
    return select_best(
        images,
        lambda image: (image.width - width) ** 2 + (image.height - height) ** 2,
        maximize=False,
    )


def closest_ratio(
    images: Iterable[WebImage], width: int, height: int
) -> Optional[WebImage]:
    if width <= 0 or height <= 0:
        raise ValueError(f"Target size must be positive, got {width}x{height}")
    target = width / height
    return select_best(
        images,
        lambda image: abs(target - image.width / image.height),
        maximize=False,
    )


def first_good_enough(
    images: Iterable[WebImage], check: Callable[[Image.Image], bool]
) -> Optional[WebImage]:
    """Return the first downloaded raster image, in discovery order, passing ``check``."""
    for image in images:
        payload = image.payload
        if payload is None or payload.image is None:
            continue
        if check(payload.image):
            return image
    return None


def at_least(width: int, height: int) -> Callable[[Image.Image], bool]:
    """Check accepting images no smaller than ``width`` x ``height``."""
    return lambda image: image.width >= width and image.height >= height
