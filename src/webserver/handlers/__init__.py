"""
=============================================================================
REQUEST HANDLERS
=============================================================================

1. PageResolver
   - request buffer → document under the document root → HTTPResponse
   - 400 for malformed buffers, not-found document for misses

2. ConnectionHandler
   - what a worker runs for each accepted connection
   - read → resolve → write → close, failures logged and dropped

=============================================================================
"""

from .pages import NotFoundDocumentError, PageResolver, read_document
from .connection import ConnectionHandler

__all__ = [
    "ConnectionHandler",
    "NotFoundDocumentError",
    "PageResolver",
    "read_document",
]
