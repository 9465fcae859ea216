"""HTML parsing and tag extraction utilities."""

from __future__ import annotations

import logging
import re
from typing import Iterable, Iterator, List, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from .models import LinkTag, MetaTag

logger = logging.getLogger("web_image_extractor")

STYLE_URL_PATTERN = re.compile(r"url\(\s*(.*?)\s*\)", re.IGNORECASE)


def parse_html(html: str) -> Optional[BeautifulSoup]:
    """Parse markup into a tree; malformed input yields ``None``."""
    try:
        return BeautifulSoup(html, "html.parser")
    except Exception as exc:  # pylint: disable=broad-except
        logger.debug("Unable to parse HTML: %s", exc)
        return None


def _attr(tag: Tag, name: str) -> str:
    value = tag.get(name)
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    return str(value)


def extract_link_tags(soup: BeautifulSoup) -> List[LinkTag]:
    return [
        LinkTag(rel=_attr(tag, "rel"), href=_attr(tag, "href"), type=_attr(tag, "type"))
        for tag in soup.find_all("link")
    ]


def extract_meta_tags(soup: BeautifulSoup) -> List[MetaTag]:
    tags = []
    for tag in soup.find_all("meta"):
        name = _attr(tag, "name") or _attr(tag, "property")
        tags.append(MetaTag(name=name, content=_attr(tag, "content")))
    return tags


def extract_img_sources(soup: BeautifulSoup) -> List[str]:
    return [_attr(tag, "src") for tag in soup.find_all("img")]


def extract_anchor_hrefs(soup: BeautifulSoup) -> List[str]:
    return [_attr(tag, "href") for tag in soup.find_all("a")]


def _walk(root: Tag) -> Iterator[Tag]:
    """Depth-first, document-order walk over ``root`` and its descendants."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        children = [child for child in node.children if isinstance(child, Tag)]
        stack.extend(reversed(children))


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1].strip()
    return value


def style_urls(style: str) -> List[str]:
    """Return every ``url(...)`` value in an inline style, quotes removed."""
    urls = []
    for match in STYLE_URL_PATTERN.finditer(style):
        value = _strip_quotes(match.group(1))
        if value:
            urls.append(value)
    return urls


def iter_background_urls(soup: BeautifulSoup) -> Iterable[str]:
    """Yield ``url(...)`` references from inline styles inside ``<body>``."""
    body = soup.body
    if body is None:
        return
    for node in _walk(body):
        style = _attr(node, "style")
        if style:
            yield from style_urls(style)
