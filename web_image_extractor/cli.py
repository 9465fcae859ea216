"""Command-line entry point for the web image extractor."""

from __future__ import annotations

import argparse
import asyncio
import logging
import shutil
import signal
import sys
import time
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence, Tuple

from .config import CORS_ANYWHERE_PREFIX, DEFAULT_TIMEOUT, ExtractionSettings, MetaMatch
from .crawler import run_extraction
from .images import write_images
from .models import CancellationToken, ExtractionKind, ExtractionResult, WebImage
from .selection import (
    at_least,
    closest_ratio,
    closest_resolution,
    first_good_enough,
    highest_resolution,
)
from .utils import slugify, split_address

logger = logging.getLogger("web_image_extractor.cli")

KINDS = {
    "all": ExtractionKind.ALL,
    "images": ExtractionKind.PAGE_IMAGES,
    "icons": ExtractionKind.ICONS,
    "favicons": ExtractionKind.FAVICONS,
    "touch-icons": ExtractionKind.TOUCH_ICONS,
}


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return argv
    first = argv[0]
    if first in commands or first.startswith("-"):
        return argv
    return ("extract", *argv)


def _parse_size(value: str) -> Tuple[int, int]:
    try:
        width, height = (int(part) for part in value.lower().split("x", 1))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected WIDTHxHEIGHT, got {value!r}") from exc
    if width <= 0 or height <= 0:
        raise argparse.ArgumentTypeError("Width and height must be positive")
    return width, height


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("url", help="Address to start extracting from")
    parser.add_argument(
        "--output",
        default="output",
        type=Path,
        help="Directory where downloaded images should be written",
    )
    parser.add_argument(
        "--svg-only",
        action="store_true",
        help="Only collect SVG images",
    )
    parser.add_argument(
        "--recurse-segments",
        action="store_true",
        help="Also extract from the address with path segments removed one by one",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=0,
        help="Follow hyperlinks up to this many hops (0 disables hyperlink recursion)",
    )
    parser.add_argument(
        "--internal-only",
        action="store_true",
        help="Only follow hyperlinks that stay on the start host",
    )
    parser.add_argument(
        "--no-validate",
        action="store_true",
        help="Skip the reachability check before accepting an image",
    )
    parser.add_argument(
        "--relay",
        nargs="?",
        const=CORS_ANYWHERE_PREFIX,
        default=None,
        help="Route requests through a relay prefix (default: cors-anywhere)",
    )
    parser.add_argument(
        "--meta-match",
        choices=[mode.value for mode in MetaMatch],
        default=MetaMatch.CONTENT.value,
        help="How <meta> elements are recognised as image sources",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="Per-request timeout in seconds",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _add_extract_arguments(parser: argparse.ArgumentParser) -> None:
    _add_common_arguments(parser)
    parser.add_argument(
        "--kind",
        choices=sorted(KINDS),
        default="all",
        help="Which images to collect",
    )
    parser.add_argument(
        "--lazy",
        action="store_true",
        help="Only list discovered addresses instead of downloading them",
    )
    parser.add_argument("--no-meta", action="store_true", help="Ignore <meta> images")
    parser.add_argument("--no-links", action="store_true", help="Ignore <link> images")
    parser.add_argument(
        "--no-background",
        action="store_true",
        help="Ignore inline background-image styles",
    )
    parser.add_argument("--no-img", action="store_true", help="Ignore <img> elements")
    parser.add_argument(
        "--max-images",
        type=int,
        default=None,
        help="Stop exploring once this many images have been found",
    )


def _add_icon_arguments(parser: argparse.ArgumentParser) -> None:
    _add_common_arguments(parser)
    parser.add_argument(
        "--strategy",
        choices=["highest", "closest-size", "closest-ratio", "good-enough"],
        default="highest",
        help="How to choose between the icons found",
    )
    parser.add_argument(
        "--size",
        type=_parse_size,
        default=(180, 180),
        help="Target WIDTHxHEIGHT for the closest-size and closest-ratio strategies",
    )
    parser.add_argument(
        "--min-size",
        type=_parse_size,
        default=(32, 32),
        help="Smallest acceptable WIDTHxHEIGHT for the good-enough strategy",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Discover and download favicons, touch icons and page images from websites.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract_parser = subparsers.add_parser(
        "extract", help="Collect images from a page and, optionally, related pages"
    )
    _add_extract_arguments(extract_parser)

    icon_parser = subparsers.add_parser(
        "icon", help="Download the single best icon for a site"
    )
    _add_icon_arguments(icon_parser)

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def stop_after(limit: int) -> Callable[[WebImage], bool]:
    """Stop predicate matching the ``limit``-th candidate it is shown."""
    seen = 0

    def should_stop(_image: WebImage) -> bool:
        nonlocal seen
        seen += 1
        return seen >= limit

    return should_stop


def build_settings(args: argparse.Namespace, lazy: bool = False) -> ExtractionSettings:
    """Translate parsed arguments into extraction settings."""
    max_images = getattr(args, "max_images", None)
    should_stop = stop_after(max_images) if max_images and max_images > 0 else None
    return ExtractionSettings(
        lazy_download=lazy,
        svg_only=args.svg_only,
        recurse_segments=args.recurse_segments,
        recurse_hyperlinks=args.depth > 0,
        hyperlink_depth=args.depth,
        internal_links_only=args.internal_only,
        include_meta_images=not getattr(args, "no_meta", False),
        include_link_images=not getattr(args, "no_links", False),
        include_background_images=not getattr(args, "no_background", False),
        include_img_tags=not getattr(args, "no_img", False),
        validate_links=not args.no_validate,
        relay_prefix=args.relay,
        meta_match=MetaMatch(args.meta_match),
        timeout=args.timeout,
        should_stop=should_stop,
    )


def output_dir_for(root: Path, url: str) -> Path:
    """Per-site output directory, emptied before writing."""
    parsed = split_address(url)
    directory = root / slugify(parsed.netloc if parsed is not None else "site")
    shutil.rmtree(directory, ignore_errors=True)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


async def _extract(
    url: str,
    settings: ExtractionSettings,
    kind: ExtractionKind,
    cancel: CancellationToken,
) -> ExtractionResult:
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel.cancel)
    except (NotImplementedError, RuntimeError):
        pass
    return await run_extraction(url, settings, kind, cancel)


def _run_extract(args: argparse.Namespace) -> int:
    settings = build_settings(args, lazy=args.lazy)
    cancel = CancellationToken()

    overall_start = time.perf_counter()
    result = asyncio.run(_extract(args.url, settings, KINDS[args.kind], cancel))
    total_elapsed = time.perf_counter() - overall_start

    if result.cancelled:
        logger.error("Cancelled after %d pages", result.pages_visited)
        return 1

    if args.lazy:
        for image in result.images:
            sys.stdout.write(image.url + "\n")
        sys.stdout.flush()
    else:
        written = write_images(result.images, output_dir_for(args.output.resolve(), args.url))
        logger.info("Saved %d images", len(written))

    logger.info(
        "Finished in %.2fs (%d images, %d pages)",
        total_elapsed,
        len(result.images),
        result.pages_visited,
    )
    return 0


def _run_icon(args: argparse.Namespace) -> int:
    settings = build_settings(args)
    cancel = CancellationToken()
    result = asyncio.run(_extract(args.url, settings, ExtractionKind.ICONS, cancel))
    if result.cancelled:
        logger.error("Cancelled after %d pages", result.pages_visited)
        return 1

    width, height = args.size
    if args.strategy == "closest-size":
        best = closest_resolution(result.images, width, height)
    elif args.strategy == "closest-ratio":
        best = closest_ratio(result.images, width, height)
    elif args.strategy == "good-enough":
        best = first_good_enough(result.images, at_least(*args.min_size))
    else:
        best = highest_resolution(result.images)

    if best is None:
        logger.error("No usable icon found for %s", args.url)
        return 1

    written = write_images([best], output_dir_for(args.output.resolve(), args.url))
    logger.info("Saved %s as %s", best.url, written[0] if written else "nothing")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    _configure_logging(args.verbose)
    if args.command == "icon":
        return _run_icon(args)
    return _run_extract(args)


if __name__ == "__main__":
    sys.exit(main())
