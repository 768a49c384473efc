"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

Turns the raw bytes read from a client socket into a ParsedRequest.

The parser is deliberately lenient. It works on whatever landed in the
connection's read buffer, which may be a partial request and may be padded
with NUL bytes, and it never fails on bad encoding.

=============================================================================
WHAT GETS PARSED
=============================================================================

    GET /about HTTP/1.1\r\n          ← request line: METHOD SP URI SP VERSION
    Host: 127.0.0.1:3000\r\n         ← headers: "Name: value"
    Accept: text/html\r\n
    \r\n                             ← first blank line
    name=value                       ← body: ONE line only

    ParsedRequest(
        method="GET",
        uri="/about",
        http_version=1.1,
        headers=Headers({"Host": "127.0.0.1:3000", "Accept": "text/html"}),
        body="name=value",
    )

=============================================================================
KNOWN LIMITATIONS
=============================================================================

1. Only the single line after the first blank line becomes the body.
   Multi-line bodies are truncated to their first line. Lines after the
   blank line that look like "name: value" still land in the headers.

2. No limits on line length or header count.

3. The URI is passed through untouched: no query parsing, no percent
   decoding, no ".." checks.

=============================================================================
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional


class HTTPParseError(Exception):
    """
    Raised when a request buffer cannot be turned into a ParsedRequest.

    Carries the HTTP status code the failure maps to.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class MalformedRequestError(HTTPParseError):
    """The request line does not yield method, URI and version."""


class InvalidVersionError(MalformedRequestError):
    """The version token is not ``HTTP/<number>``."""


class Headers(Mapping):
    """
    Read-only ordered header mapping.

    Names keep the case the client sent. A repeated name overwrites the
    earlier value but keeps the position of its first occurrence, so
    iteration order is the order names were first seen.
    """

    def __init__(self, items: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(items or {})

    def __getitem__(self, name: str) -> str:
        return self._items[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"Headers({self._items!r})"

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive lookup, returns the last matching entry."""
        found = default
        lowered = name.lower()
        for key, value in self._items.items():
            if key.lower() == lowered:
                found = value
        return found


@dataclass(frozen=True)
class ParsedRequest:
    """
    A request parsed out of one connection's read buffer.

    Built once per connection and never mutated afterwards.
    """

    method: str
    uri: str
    http_version: float
    headers: Headers = field(default_factory=Headers)
    body: str = ""

    def get_header(self, name: str, default: str = "") -> str:
        return self.headers.get_header(name, default)


class RequestParser:
    """
    Parses raw HTTP request bytes into ParsedRequest objects.

    ==========================================================================
    PARSER STEPS
    ==========================================================================

        raw bytes
            │  1. decode UTF-8, invalid sequences replaced
            ▼
        text
            │  2. split on "\\n", strip trailing "\\r"
            ▼
        lines
            │  3. request line → method, uri, version string
            │  4. strip "HTTP/", the rest must be digits[.digits]
            │  5. every "name: value" line is a header; the line after
            │     the first blank line is also the body
            ▼
        ParsedRequest

    Failures in steps 3 and 4 raise MalformedRequestError. The parser holds
    no state, so one instance can be shared by every worker thread.

    ==========================================================================
    """

    VERSION_PREFIX = "HTTP/"
    VERSION_PATTERN = re.compile(r"[0-9]+(\.[0-9]+)?")

    def parse(self, data: bytes) -> ParsedRequest:
        """
        Parse one request buffer.

        Args:
            data: Bytes read from the client socket.

        Returns:
            The parsed request.

        Raises:
            MalformedRequestError: The request line has fewer than three
                space-separated tokens.
            InvalidVersionError: The version token is not a number after
                its ``HTTP/`` prefix is removed.
        """
        text = data.decode("utf-8", errors="replace")
        lines = self._split_lines(text)
        if not lines:
            raise MalformedRequestError("Empty request")

        method, uri, version = self._parse_request_line(lines[0])
        headers, body = self._parse_headers_and_body(lines[1:])

        return ParsedRequest(
            method=method,
            uri=uri,
            http_version=version,
            headers=Headers(headers),
            body=body,
        )

    @staticmethod
    def _split_lines(text: str) -> list:
        # "a\r\nb\n" -> ["a", "b"]; a final newline does not add an empty line
        lines = text.split("\n")
        if lines and lines[-1] == "":
            lines.pop()
        return [line[:-1] if line.endswith("\r") else line for line in lines]

    def _parse_request_line(self, line: str) -> tuple:
        parts = line.split(" ")
        if len(parts) < 3:
            raise MalformedRequestError(f"Invalid request line: {line!r}")

        method, uri, version_token = parts[0], parts[1], parts[2]

        if version_token.startswith(self.VERSION_PREFIX):
            version_token = version_token[len(self.VERSION_PREFIX):]
        # float() alone would also take "1_1", "nan" and "inf"
        if not self.VERSION_PATTERN.fullmatch(version_token):
            raise InvalidVersionError(f"Invalid HTTP version: {parts[2]!r}")

        return method, uri, float(version_token)

    @staticmethod
    def _parse_headers_and_body(lines: list) -> tuple:
        headers: Dict[str, str] = {}
        body = ""
        body_found = False

        # the blank line only marks the body; lines after it can still be headers
        for idx, line in enumerate(lines):
            if line == "" and not body_found:
                body_found = True
                if idx + 1 < len(lines):
                    body = lines[idx + 1].strip().replace("\x00", "")
                continue

            if ":" not in line:
                continue

            name, value = (part.strip() for part in line.split(":", 1))
            if name and value:
                # dict keeps the first position on overwrite
                headers[name] = value

        return headers, body


_parser = RequestParser()


def parse_request(data: bytes) -> ParsedRequest:
    """Parse a request buffer with a shared RequestParser."""
    return _parser.parse(data)


def try_parse(data: bytes) -> Optional[ParsedRequest]:
    """
    Parse a request buffer, returning None instead of raising.

    Useful where the caller only cares whether the buffer is usable.
    """
    try:
        return _parser.parse(data)
    except MalformedRequestError:
        return None
