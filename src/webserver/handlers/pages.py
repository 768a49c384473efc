"""
=============================================================================
PAGE RESOLUTION
=============================================================================

Maps a request buffer to an HTML document under the document root and
wraps the result in an HTTPResponse.

=============================================================================
URI → FILE
=============================================================================

    document_root = "frontend"

    GET /                 → frontend/index.html
    GET /about            → frontend/about.html
    GET /docs/intro       → frontend/docs/intro.html
    GET /about.html       → frontend/about.html      (".html" already there)
    GET /missing          → frontend/missing.html    → not found → 404.html

The URI is appended to the root as-is. Query strings are not stripped and
".." segments or symlinks are NOT checked: the server can read anything
the process can read along those paths.

=============================================================================
RESPONSES
=============================================================================

    unparseable buffer   400 Bad ass Request, no headers, no body
    page found           200 OK, "Content-Length: <bytes>", page body
    page not found       200 OK, no headers, body of the not-found document

The not-found document must exist when the resolver is built. If it
disappears later, NotFoundDocumentError escapes resolve() and the caller
decides what to do with the connection.

=============================================================================
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..http.request import MalformedRequestError, RequestParser
from ..http.response import HTTPResponse, bad_request, content_length_header, ok

logger = logging.getLogger(__name__)

HTML_SUFFIX = ".html"


class NotFoundDocumentError(RuntimeError):
    """The fallback not-found document cannot be read."""


def read_document(path: Path) -> str:
    """
    Read a document as UTF-8 text.

    Bytes are decoded directly so line endings reach the client exactly as
    stored on disk.

    Raises:
        OSError: Missing, unreadable, or a directory.
        ValueError: The path holds a NUL character.
        UnicodeDecodeError: Not valid UTF-8.
    """
    return path.read_bytes().decode("utf-8")


class PageResolver:
    """
    Resolves request buffers to pages.

    =========================================================================
    USAGE
    =========================================================================

        resolver = PageResolver("frontend")
        response = resolver.resolve(b"GET / HTTP/1.1\\r\\n\\r\\n")
        response.status          # 200
        resolver.resolve_page(buffer)   # formatted wire string

    =========================================================================
    """

    def __init__(
        self,
        document_root: Union[str, Path],
        index_document: str = "index.html",
        not_found_document: str = "404.html",
        parser: Optional[RequestParser] = None,
    ):
        """
        Args:
            document_root: Directory pages are served from.
            index_document: Document served for "/".
            not_found_document: Fallback document, relative to the root.
            parser: Request parser, a fresh RequestParser by default.

        Raises:
            NotFoundDocumentError: The fallback document cannot be read.
        """
        self.document_root = Path(document_root)
        self.index_document = index_document
        self.not_found_path = self.document_root / not_found_document
        self.parser = parser or RequestParser()

        # fail fast: every miss depends on this file
        self._read_not_found()

    def page_path(self, uri: str) -> Path:
        if uri == "/":
            return self.document_root / self.index_document
        suffix = "" if HTML_SUFFIX in uri else HTML_SUFFIX
        # plain concatenation: uri starts with "/" and must not reset the root
        return Path(f"{self.document_root}{uri}{suffix}")

    def resolve(self, data: bytes) -> HTTPResponse:
        """
        Resolve one request buffer to a response.

        Raises:
            NotFoundDocumentError: The page was missing and so is the
                fallback document.
        """
        try:
            request = self.parser.parse(data)
        except MalformedRequestError as e:
            logger.debug(f"Rejecting malformed request: {e}")
            return bad_request()

        path = self.page_path(request.uri)
        try:
            content = read_document(path)
        except (OSError, UnicodeDecodeError, ValueError) as e:
            logger.debug(f"Page {path} unavailable ({e}), serving not-found document")
            return ok(self._read_not_found())

        return ok(content, content_length_header(content))

    def resolve_page(self, data: bytes) -> str:
        """Resolve and format: the string written back to the client."""
        return self.resolve(data).to_str()

    def _read_not_found(self) -> str:
        try:
            return read_document(self.not_found_path)
        except (OSError, UnicodeDecodeError) as e:
            raise NotFoundDocumentError(
                f"Cannot read not-found document {self.not_found_path}: {e}"
            ) from e
