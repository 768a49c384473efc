"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

The two pure halves of request handling:

    request.py    raw bytes → ParsedRequest (or MalformedRequestError)
    response.py   (status, reason, header block, body) → wire string

Neither module touches sockets or the filesystem, which keeps them safe to
call from any worker thread without locking.

=============================================================================
"""

from .request import (
    Headers,
    HTTPParseError,
    InvalidVersionError,
    MalformedRequestError,
    ParsedRequest,
    RequestParser,
    parse_request,
    try_parse,
)
from .response import (
    BAD_REQUEST_REASON,
    HTTPResponse,
    bad_request,
    content_length_header,
    format_response,
    ok,
)

__all__ = [
    # Request
    "Headers",
    "HTTPParseError",
    "InvalidVersionError",
    "MalformedRequestError",
    "ParsedRequest",
    "RequestParser",
    "parse_request",
    "try_parse",
    # Response
    "BAD_REQUEST_REASON",
    "HTTPResponse",
    "bad_request",
    "content_length_header",
    "format_response",
    "ok",
]
