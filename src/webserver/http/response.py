"""
=============================================================================
HTTP RESPONSE FORMATTING
=============================================================================

Every response this server sends has the same shape:

    HTTP/1.1 200 OK\r\n              ← status line
    Content-Length: 1234             ← header block, pre-formatted by caller
    \r\n\r\n                         ← header terminator + blank line
    <!DOCTYPE html>...               ← body

The header block is a plain string. When it is empty the wire form is
"HTTP/1.1 400 Bad ass Request\\r\\n\\r\\n\\r\\n": the formatter never adds or
removes line breaks around it.

format_response() is a pure function. Same input, same output, no checks on
the status range, the reason phrase or the header syntax.

=============================================================================
"""

from dataclasses import dataclass

HTTP_VERSION = "HTTP/1.1"

# The reason phrase for malformed requests is part of the wire contract.
BAD_REQUEST_REASON = "Bad ass Request"


def format_response(status: int, reason: str, headers: str, body: str) -> str:
    """
    Build the wire form of a response.

    Args:
        status: Numeric status code.
        reason: Reason phrase for the status line.
        headers: Header block, already formatted as "Name: value" lines.
        body: Response body.

    Returns:
        "HTTP/1.1 {status} {reason}\\r\\n{headers}\\r\\n\\r\\n{body}"
    """
    return f"{HTTP_VERSION} {status} {reason}\r\n{headers}\r\n\r\n{body}"


@dataclass
class HTTPResponse:
    """
    A resolved page, ready to be formatted.

    This is what PageResolver produces for every parseable or unparseable
    buffer. ``headers`` is the pre-formatted header block.
    """

    status: int = 200
    reason: str = "OK"
    headers: str = ""
    body: str = ""

    def to_str(self) -> str:
        return format_response(self.status, self.reason, self.headers, self.body)

    def to_bytes(self) -> bytes:
        """Serialize for socket.sendall()."""
        return self.to_str().encode("utf-8")


def content_length_header(body: str) -> str:
    """Header line with the UTF-8 byte length of body."""
    return f"Content-Length: {len(body.encode('utf-8'))}"


def ok(body: str = "", headers: str = "") -> HTTPResponse:
    """200 OK with the given header block."""
    return HTTPResponse(status=200, reason="OK", headers=headers, body=body)


def bad_request() -> HTTPResponse:
    """400 response for buffers the parser rejects: no headers, no body."""
    return HTTPResponse(status=400, reason=BAD_REQUEST_REASON)
