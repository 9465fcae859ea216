"""
Tests for address resolution and classification helpers
"""
import pytest

from web_image_extractor.utils import (
    ExtensionClass,
    classify_extension,
    is_http_address,
    is_root,
    normalize,
    remove_last_segment,
    resolve,
    slugify,
    split_address,
    strip_scheme,
)


class TestResolve:
    """Test resolving references found on a page"""

    def test_relative_reference_uses_parent_folder(self):
        assert (
            resolve("https://example.com/blog/post", "favicon.ico")
            == "https://example.com/blog/favicon.ico"
        )

    def test_relative_reference_on_origin(self):
        assert resolve("https://example.com", "favicon.ico") == "https://example.com/favicon.ico"

    def test_root_relative_reference(self):
        assert resolve("https://a.com/x/y", "/img/a.png") == "https://a.com/img/a.png"

    def test_absolute_reference_unchanged(self):
        assert resolve("https://a.com/x", "http://cdn.com/a.png") == "http://cdn.com/a.png"

    def test_fragment_returns_base(self):
        assert resolve("https://a.com/x/y", "#top") == "https://a.com/x/y"

    def test_protocol_relative_reference(self):
        assert resolve("https://a.com/x/y", "//cdn.com/a.png") == "https://cdn.com/a.png"

    def test_dot_segments_are_collapsed(self):
        assert resolve("https://a.com/x/y/z", "../a.png") == "https://a.com/x/a.png"

    def test_duplicate_separator_trimmed(self):
        assert resolve("https://a.com/x/y", "img/a.png") == "https://a.com/x/img/a.png"


class TestRemoveLastSegment:
    """Test stripping path segments"""

    @pytest.mark.parametrize(
        "address, expected",
        [
            ("https://a.com/x/y/z", "https://a.com/x/y"),
            ("https://a.com/x", "https://a.com"),
            ("https://a.com/x/y/?q=1", "https://a.com/x"),
            ("https://a.com/", "https://a.com"),
        ],
    )
    def test_strips_final_segment(self, address, expected):
        assert remove_last_segment(address) == expected

    def test_idempotent_at_origin(self):
        root = remove_last_segment("https://a.com")
        assert root == "https://a.com"
        assert remove_last_segment(root) == root
        assert is_root(root)

    def test_is_root(self):
        assert is_root("https://a.com/")
        assert not is_root("https://a.com/x")


class TestClassifyExtension:
    """Test extension classification"""

    @pytest.mark.parametrize(
        "address, expected",
        [
            ("https://a.com/favicon.ico", ExtensionClass.IMAGE),
            ("https://a.com/photo.JPG", ExtensionClass.IMAGE),
            ("https://a.com/img.png?v=2", ExtensionClass.IMAGE),
            ("https://a.com/logo.svg", ExtensionClass.VECTOR),
            ("https://a.com/doc.pdf", ExtensionClass.UNSUPPORTED),
            ("https://a.com/index.html", ExtensionClass.UNSUPPORTED),
            ("https://a.com/page", ExtensionClass.UNKNOWN),
            ("https://a.com/style.css", ExtensionClass.UNKNOWN),
        ],
    )
    def test_classification(self, address, expected):
        assert classify_extension(address) is expected


def test_normalize_lowercases_origin_and_drops_fragment():
    assert normalize("HTTPS://Example.com") == "https://example.com/"
    assert normalize("https://a.com/x#frag") == "https://a.com/x"
    assert normalize("https://a.com/X?q=1") == "https://a.com/X?q=1"


def test_strip_scheme():
    assert strip_scheme("https://a.com/x") == "a.com/x"


def test_slugify():
    assert slugify("www.Example.com") == "www-example-com"
    assert slugify("") == "site"


class TestUnparsableAddresses:
    """Test that malformed addresses degrade instead of raising"""

    BROKEN = "http://[broken/x.png"

    def test_split_address(self):
        assert split_address(self.BROKEN) is None
        assert split_address("https://a.com/x").netloc == "a.com"

    def test_helpers_do_not_raise(self):
        assert is_http_address(self.BROKEN) is False
        assert classify_extension(self.BROKEN) is ExtensionClass.UNKNOWN
        assert normalize(self.BROKEN) == self.BROKEN
        assert remove_last_segment(self.BROKEN) == self.BROKEN
        assert is_root(self.BROKEN)

    def test_resolve_keeps_reference(self):
        assert resolve("https://a.com/page", self.BROKEN) == self.BROKEN
        assert resolve("http://[broken/page", "x.png") == "x.png"
