"""
Unit tests for page resolution.
"""

from pathlib import Path

import pytest

from webserver.handlers.pages import NotFoundDocumentError, PageResolver, read_document

NOT_FOUND_HTML = "<!DOCTYPE html>\n<html><body><h1>404</h1></body></html>\n"


def get(uri: str) -> bytes:
    return f"GET {uri} HTTP/1.1\r\nHost: localhost\r\n\r\n".encode()


def document(root: Path, name: str) -> str:
    return (root / name).read_bytes().decode("utf-8")


@pytest.fixture
def resolver(document_root: Path) -> PageResolver:
    return PageResolver(document_root)


class TestPagePath:
    """Tests for URI to path mapping."""

    def test_root_maps_to_index(self, resolver: PageResolver, document_root: Path):
        assert resolver.page_path("/") == document_root / "index.html"

    def test_html_suffix_appended(self, resolver: PageResolver, document_root: Path):
        assert resolver.page_path("/about") == document_root / "about.html"
        assert resolver.page_path("/docs/intro") == document_root / "docs" / "intro.html"

    def test_html_suffix_not_doubled(self, resolver: PageResolver, document_root: Path):
        """Test that a URI containing ".html" anywhere is used as-is."""
        assert resolver.page_path("/about.html") == document_root / "about.html"
        assert resolver.page_path("/old.html.bak") == document_root / "old.html.bak"

    def test_custom_index_document(self, document_root: Path):
        resolver = PageResolver(document_root, index_document="about.html")
        assert resolver.page_path("/") == document_root / "about.html"


class TestResolve:
    """Tests for PageResolver.resolve()."""

    def test_index_page(self, resolver: PageResolver, document_root: Path):
        """Test the exact response for an existing page."""
        index = document(document_root, "index.html")
        result = resolver.resolve_page(get("/"))

        length = len(index.encode("utf-8"))
        assert result == f"HTTP/1.1 200 OK\r\nContent-Length: {length}\r\n\r\n{index}"

    def test_browser_request_resolves(self, resolver: PageResolver, sample_request: bytes):
        assert resolver.resolve_page(sample_request).startswith("HTTP/1.1 200 OK\r\n")

    def test_content_length_is_byte_length(self, resolver: PageResolver, document_root: Path):
        """Test Content-Length for a page with multi-byte characters."""
        about = document(document_root, "about.html")
        response = resolver.resolve(get("/about"))

        assert response.status == 200
        assert response.body == about
        assert response.headers == f"Content-Length: {len(about.encode('utf-8'))}"
        assert len(about.encode("utf-8")) > len(about)

    def test_nested_and_explicit_html(self, resolver: PageResolver, document_root: Path):
        intro = document(document_root, "docs/intro.html")
        assert resolver.resolve(get("/docs/intro")).body == intro
        assert resolver.resolve(get("/docs/intro.html")).body == intro

    def test_line_endings_preserved(self, document_root: Path):
        """Test that CRLF in a document reaches the client untouched."""
        (document_root / "crlf.html").write_bytes(b"<p>a</p>\r\n<p>b</p>\r\n")
        response = PageResolver(document_root).resolve(get("/crlf"))

        assert response.body == "<p>a</p>\r\n<p>b</p>\r\n"
        assert response.headers == "Content-Length: 20"

    def test_missing_page_serves_not_found_document(self, resolver: PageResolver):
        """Test the fallback: not-found body under a 200 status, no headers."""
        response = resolver.resolve(get("/not-found"))

        assert response.status == 200
        assert response.reason == "OK"
        assert response.headers == ""
        assert response.body == NOT_FOUND_HTML
        assert resolver.resolve_page(get("/not-found")) == (
            f"HTTP/1.1 200 OK\r\n\r\n\r\n{NOT_FOUND_HTML}"
        )

    def test_directory_serves_not_found_document(self, document_root: Path):
        """Test that a directory named like the page is a miss."""
        (document_root / "folder.html").mkdir()
        response = PageResolver(document_root).resolve(get("/folder"))

        assert response.body == NOT_FOUND_HTML

    def test_undecodable_page_serves_not_found_document(self, document_root: Path):
        (document_root / "binary.html").write_bytes(b"\xff\xfe\x00garbage")
        response = PageResolver(document_root).resolve(get("/binary"))

        assert response.body == NOT_FOUND_HTML
        assert response.headers == ""

    def test_query_string_is_part_of_the_path(self, resolver: PageResolver):
        """Test that query strings are not stripped before lookup."""
        assert resolver.resolve(get("/about?x=1")).body == NOT_FOUND_HTML

    def test_malformed_request(self, resolver: PageResolver):
        assert resolver.resolve_page(b"") == "HTTP/1.1 400 Bad ass Request\r\n\r\n\r\n"
        assert resolver.resolve_page(b"GET\r\n\r\n") == "HTTP/1.1 400 Bad ass Request\r\n\r\n\r\n"

    def test_invalid_version_is_bad_request(self, resolver: PageResolver):
        """Test that an unparsable version takes the 400 path instead of aborting."""
        response = resolver.resolve(b"GET / HTTP/x.y\r\n\r\n")

        assert response.status == 400
        assert response.reason == "Bad ass Request"

    def test_malformed_request_skips_filesystem(self, document_root: Path):
        """Test that a 400 is produced without touching any document."""
        resolver = PageResolver(document_root)
        (document_root / "404.html").unlink()

        assert resolver.resolve(b"nonsense").status == 400

    def test_resolution_is_idempotent(self, resolver: PageResolver):
        """Test that resolving the same page twice gives identical bytes."""
        first = resolver.resolve(get("/about")).to_bytes()
        second = resolver.resolve(get("/about")).to_bytes()

        assert first == second

    def test_path_traversal_not_sanitized(self, tmp_path: Path, document_root: Path):
        """Test the known risk: ".." in the URI escapes the document root."""
        (tmp_path / "secret.html").write_bytes(b"top secret")
        response = PageResolver(document_root).resolve(get("/../secret"))

        assert response.body == "top secret"


class TestNotFoundDocument:
    """Tests for the not-found document requirement."""

    def test_missing_at_construction(self, tmp_path: Path):
        """Test fail-fast when the fallback document is absent."""
        with pytest.raises(NotFoundDocumentError):
            PageResolver(tmp_path)

    def test_custom_not_found_document(self, document_root: Path):
        (document_root / "missing.html").write_bytes(b"custom miss")
        resolver = PageResolver(document_root, not_found_document="missing.html")

        assert resolver.resolve(get("/nope")).body == "custom miss"

    def test_removed_after_construction(self, document_root: Path):
        """Test that a vanished fallback surfaces as a typed error."""
        resolver = PageResolver(document_root)
        (document_root / "404.html").unlink()

        # existing pages are unaffected
        assert resolver.resolve(get("/")).status == 200

        with pytest.raises(NotFoundDocumentError):
            resolver.resolve(get("/nope"))


def test_read_document(tmp_path: Path):
    path = tmp_path / "page.html"
    path.write_bytes("héllo".encode("utf-8"))

    assert read_document(path) == "héllo"

    with pytest.raises(OSError):
        read_document(tmp_path / "absent.html")
