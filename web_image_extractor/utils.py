"""Utility helpers for address resolution, classification and path handling."""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional
from urllib.parse import SplitResult, urljoin, urlsplit, urlunsplit

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
SCHEME_PATTERN = re.compile(r"^[a-z][a-z0-9+.\-]*:", re.IGNORECASE)

UNSUPPORTED_EXTENSIONS = frozenset(
    {"json", "unknown", "html", "http", "https", "pdf", "pdfa", "txt"}
)
VECTOR_EXTENSIONS = frozenset({"svg", "svgz"})
IMAGE_EXTENSIONS = frozenset(
    {
        "apng",
        "avif",
        "bmp",
        "cur",
        "dds",
        "gif",
        "heic",
        "heif",
        "icns",
        "ico",
        "jfif",
        "jp2",
        "jpe",
        "jpeg",
        "jpg",
        "pbm",
        "pcx",
        "pgm",
        "pjp",
        "pjpeg",
        "png",
        "ppm",
        "psd",
        "tga",
        "tif",
        "tiff",
        "webp",
        "xbm",
        "xpm",
    }
)


class ExtensionClass(str, Enum):
    """Classification of an address by its file extension."""

    IMAGE = "image"
    VECTOR = "vector"
    UNSUPPORTED = "unsupported"
    UNKNOWN = "unknown"


def slugify(value: str, fallback: str = "site") -> str:
    """Generate a filesystem-friendly slug using ASCII characters only."""
    normalized = value.encode("ascii", "ignore").decode("ascii")
    normalized = normalized.lower()
    normalized = SLUG_PATTERN.sub("-", normalized).strip("-")
    return normalized or fallback


def is_absolute(reference: str) -> bool:
    return bool(SCHEME_PATTERN.match(reference))


def split_address(address: str) -> Optional[SplitResult]:
    """``urlsplit`` that reports unparsable input (e.g. ``http://[x/``) as ``None``."""
    try:
        return urlsplit(address)
    except ValueError:
        return None


def is_http_address(address: str) -> bool:
    parsed = split_address(address)
    return parsed is not None and parsed.scheme.lower() in ("http", "https")


def remove_last_segment(address: str) -> str:
    """Strip the final path segment, keeping scheme and authority.

    Query and fragment are dropped. Once only ``scheme://authority`` remains
    the address is returned unchanged, as is an address that cannot be parsed.
    """
    parsed = split_address(address)
    if parsed is None:
        return address
    path = parsed.path.rstrip("/")
    parent = path.rsplit("/", 1)[0] if "/" in path else ""
    return f"{parsed.scheme}://{parsed.netloc}{parent.rstrip('/')}"


def is_root(address: str) -> bool:
    parsed = split_address(address)
    return parsed is None or parsed.path in ("", "/")


def resolve(base: str, reference: str) -> str:
    """Resolve an HTML reference found on ``base`` into an absolute address.

    Relative references are joined onto the base with its final segment
    removed: ``x.png`` on ``https://a.com/blog/post`` becomes
    ``https://a.com/blog/x.png``. Fragment-only and empty references resolve
    to the base itself. When either side cannot be parsed the reference is
    returned as is.
    """
    reference = reference.strip()
    if not reference or reference.startswith("#"):
        return base
    if is_absolute(reference):
        return reference
    parsed = split_address(base)
    if parsed is None:
        return reference
    if reference.startswith("//"):
        return f"{parsed.scheme}:{reference}"
    try:
        if reference.startswith("/"):
            return urljoin(f"{parsed.scheme}://{parsed.netloc}/", reference)
        folder = remove_last_segment(base)
        return urljoin(folder.rstrip("/") + "/", reference.lstrip("/"))
    except ValueError:
        return reference


def normalize(address: str) -> str:
    """Identity key for an absolute address: lower-cased origin, no fragment."""
    address = address.strip()
    parsed = split_address(address)
    if parsed is None:
        return address
    return urlunsplit(
        (
            parsed.scheme.lower(),
            parsed.netloc.lower(),
            parsed.path or "/",
            parsed.query,
            "",
        )
    )


def strip_scheme(address: str) -> str:
    """Drop the scheme and leading slashes, e.g. for relay rewriting."""
    index = address.find(":")
    if index > 0:
        address = address[index + 1 :]
    return address.lstrip("/")


def url_extension(address: str) -> str:
    parsed = split_address(address)
    if parsed is None:
        return ""
    name = parsed.path.lower().rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1]


def classify_extension(address: str) -> ExtensionClass:
    """Classify an address as image, vector, unsupported or unknown."""
    extension = url_extension(address)
    if not extension:
        return ExtensionClass.UNKNOWN
    if extension in UNSUPPORTED_EXTENSIONS:
        return ExtensionClass.UNSUPPORTED
    if extension in VECTOR_EXTENSIONS:
        return ExtensionClass.VECTOR
    if extension in IMAGE_EXTENSIONS:
        return ExtensionClass.IMAGE
    return ExtensionClass.UNKNOWN


def has_image_extension(address: str) -> bool:
    return classify_extension(address) in (ExtensionClass.IMAGE, ExtensionClass.VECTOR)


def has_vector_extension(address: str) -> bool:
    return classify_extension(address) is ExtensionClass.VECTOR


def is_unsupported(address: str) -> bool:
    return classify_extension(address) is ExtensionClass.UNSUPPORTED
